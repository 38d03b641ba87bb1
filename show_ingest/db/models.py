"""
SQLAlchemy models for Show Ingest.
"""

from typing import Any, Dict

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..primitives import as_utc, generate_id
from .base import Base


def _iso(value) -> Any:
    value = as_utc(value)
    return value.isoformat() if value else None


class ProfileModel(Base):
    """Local record of an external identity."""

    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=generate_id)
    external_user_id = Column(String(128), nullable=False, unique=True, index=True)
    email = Column(String(320), nullable=True)
    role = Column(
        Enum("admin", "listener", name="profile_role"),
        nullable=False,
        default="listener",
    )

    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=func.now(), onupdate=func.now()
    )

    mixcloud_token = relationship(
        "MixcloudOAuthTokenModel",
        back_populates="profile",
        uselist=False,
        cascade="all, delete-orphan",
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "external_user_id": self.external_user_id,
            "email": self.email,
            "role": self.role,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class MixcloudOAuthTokenModel(Base):
    """Stored Mixcloud OAuth credential, one per profile."""

    __tablename__ = "mixcloud_oauth_tokens"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(
        String(36),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    access_token = Column(Text, nullable=False)
    refresh_token = Column(Text, nullable=True)
    token_type = Column(String(32), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    scope = Column(String(256), nullable=True)
    mixcloud_user_id = Column(String(128), nullable=True)
    mixcloud_username = Column(String(128), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=func.now(), onupdate=func.now()
    )

    profile = relationship("ProfileModel", back_populates="mixcloud_token")

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary. Secrets are never included."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "token_type": self.token_type,
            "expires_at": _iso(self.expires_at),
            "scope": self.scope,
            "mixcloud_user_id": self.mixcloud_user_id,
            "mixcloud_username": self.mixcloud_username,
            "has_refresh_token": bool(self.refresh_token),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class ShowModel(Base):
    """A radio show imported from Mixcloud."""

    __tablename__ = "shows"

    id = Column(String(36), primary_key=True, default=generate_id)
    title = Column(String(512), nullable=False)
    slug = Column(String(512), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    mixcloud_url = Column(String(1024), nullable=False)
    mixcloud_embed = Column(Text, nullable=False, default="")
    mixcloud_picture = Column(String(1024), nullable=False, default="")
    published_date = Column(DateTime(timezone=True), nullable=False, default=func.now())
    storyblok_id = Column(String(64), nullable=True, index=True)
    status = Column(
        Enum("draft", "published", name="show_status"),
        nullable=False,
        default="draft",
        index=True,
    )

    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=func.now(), onupdate=func.now()
    )

    tracks = relationship(
        "TrackModel",
        back_populates="show",
        order_by="TrackModel.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_shows_published_date", "published_date"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "description": self.description,
            "mixcloud_url": self.mixcloud_url,
            "mixcloud_embed": self.mixcloud_embed,
            "mixcloud_picture": self.mixcloud_picture,
            "published_date": _iso(self.published_date),
            "storyblok_id": self.storyblok_id,
            "status": self.status,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class TrackModel(Base):
    """One tracklist entry of a show."""

    __tablename__ = "mixcloud_tracks"

    id = Column(String(36), primary_key=True, default=generate_id)
    show_id = Column(
        String(36),
        ForeignKey("shows.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False)
    hour = Column(Integer, nullable=True)
    artist = Column(String(512), nullable=False)
    track = Column(String(512), nullable=False, default="")

    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=func.now(), onupdate=func.now()
    )

    show = relationship("ShowModel", back_populates="tracks")

    __table_args__ = (
        UniqueConstraint("show_id", "position", name="uq_mixcloud_tracks_show_position"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "show_id": self.show_id,
            "position": self.position,
            "hour": self.hour,
            "artist": self.artist,
            "track": self.track,
        }

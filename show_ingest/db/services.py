"""
Database services for Show Ingest.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import desc, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..primitives import create_unique_slug, create_slug, utc_now
from .models import MixcloudOAuthTokenModel, ProfileModel, ShowModel, TrackModel


class _CommitMixin:
    db: Session

    def _commit(self) -> None:
        """Commit, rolling the session back before re-raising on failure."""
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise


class ProfileService(_CommitMixin):
    """Service for managing identity profiles."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_external_id(self, external_user_id: str) -> Optional[ProfileModel]:
        """Get a profile by the identity provider's user id."""
        return (
            self.db.query(ProfileModel)
            .filter(ProfileModel.external_user_id == external_user_id)
            .first()
        )

    def get_or_create(
        self,
        external_user_id: str,
        role: str = "listener",
        email: Optional[str] = None,
    ) -> ProfileModel:
        """Return the profile for an identity, creating it on first sight.

        An existing profile is promoted to ``role`` when ``role`` is admin.
        """
        profile = self.get_by_external_id(external_user_id)
        if profile:
            if role == "admin" and profile.role != "admin":
                profile.role = "admin"
                self._commit()
                self.db.refresh(profile)
            return profile

        profile = ProfileModel(
            external_user_id=external_user_id,
            role=role,
            email=email,
        )
        self.db.add(profile)
        self._commit()
        self.db.refresh(profile)
        return profile


class OAuthTokenService(_CommitMixin):
    """Service for managing stored Mixcloud OAuth tokens."""

    def __init__(self, db: Session):
        self.db = db

    def get_for_profile(self, profile_id: str) -> Optional[MixcloudOAuthTokenModel]:
        """Get the token row owned by a profile."""
        return (
            self.db.query(MixcloudOAuthTokenModel)
            .filter(MixcloudOAuthTokenModel.user_id == profile_id)
            .first()
        )

    def upsert(self, profile_id: str, **fields: Any) -> MixcloudOAuthTokenModel:
        """Insert or replace the token for a profile (one row per owner)."""
        token = self.get_for_profile(profile_id)
        if token is None:
            token = MixcloudOAuthTokenModel(user_id=profile_id)
            self.db.add(token)

        for key, value in fields.items():
            setattr(token, key, value)
        token.updated_at = utc_now()

        self._commit()
        self.db.refresh(token)
        return token

    def update_credentials(
        self,
        token: MixcloudOAuthTokenModel,
        access_token: str,
        refresh_token: Optional[str],
        token_type: Optional[str],
        expires_at: Optional[datetime],
        scope: Optional[str],
    ) -> MixcloudOAuthTokenModel:
        """Write refreshed credentials onto an existing token row."""
        token.access_token = access_token
        token.refresh_token = refresh_token
        token.token_type = token_type
        token.expires_at = expires_at
        token.scope = scope
        token.updated_at = utc_now()

        self._commit()
        self.db.refresh(token)
        return token

    def delete_for_profile(self, profile_id: str) -> bool:
        """Delete a profile's token. Returns False when none existed."""
        token = self.get_for_profile(profile_id)
        if token is None:
            return False
        self.db.delete(token)
        self._commit()
        return True


class ShowService(_CommitMixin):
    """Service for managing shows and their tracks."""

    def __init__(self, db: Session):
        self.db = db

    def next_available_slug(self, title: str) -> str:
        """Derive the slug for a title, suffixed when already taken."""
        base_slug = create_slug(title)
        existing = (
            self.db.query(ShowModel.slug)
            .filter(
                or_(ShowModel.slug == base_slug, ShowModel.slug.like(f"{base_slug}-%"))
            )
            .all()
        )
        return create_unique_slug(title, (row.slug for row in existing))

    def create_show(
        self,
        title: str,
        slug: str,
        mixcloud_url: str,
        mixcloud_embed: str,
        published_date: datetime,
        description: str = "",
        status: str = "published",
    ) -> ShowModel:
        """Insert a show row and return it."""
        show = ShowModel(
            title=title,
            slug=slug,
            description=description,
            mixcloud_url=mixcloud_url,
            mixcloud_embed=mixcloud_embed,
            mixcloud_picture="",
            published_date=published_date,
            status=status,
        )

        self.db.add(show)
        self._commit()
        self.db.refresh(show)
        return show

    def add_tracks(self, show_id: str, tracks: Iterable[Dict[str, Any]]) -> int:
        """Bulk-insert track rows for a show. Returns the number inserted."""
        rows = [TrackModel(show_id=show_id, **track) for track in tracks]
        if not rows:
            return 0
        self.db.add_all(rows)
        self._commit()
        return len(rows)

    def link_storyblok_story(
        self, show_id: str, storyblok_id: str, slug: str
    ) -> Optional[ShowModel]:
        """Record the Storyblok story id and its authoritative slug."""
        show = self.get_show(show_id)
        if not show:
            return None

        show.storyblok_id = storyblok_id
        show.slug = slug
        show.updated_at = utc_now()

        self._commit()
        self.db.refresh(show)
        return show

    def set_picture(self, show_id: str, picture_url: str) -> Optional[ShowModel]:
        """Store the cover image URL of a show."""
        show = self.get_show(show_id)
        if not show:
            return None
        show.mixcloud_picture = picture_url
        self._commit()
        self.db.refresh(show)
        return show

    def get_show(self, show_id: str) -> Optional[ShowModel]:
        """Get a show by ID."""
        return self.db.query(ShowModel).filter(ShowModel.id == show_id).first()

    def get_show_by_slug(self, slug: str) -> Optional[ShowModel]:
        """Get a show by slug."""
        return self.db.query(ShowModel).filter(ShowModel.slug == slug).first()

    def get_show_by_storyblok_id(self, storyblok_id: str) -> Optional[ShowModel]:
        """Get a show by its Storyblok story id."""
        return (
            self.db.query(ShowModel)
            .filter(ShowModel.storyblok_id == storyblok_id)
            .first()
        )

    def find_show(self, identifier: str) -> Optional[ShowModel]:
        """Resolve an id, a slug, or a slug ending in a Storyblok id."""
        show = self.get_show(identifier) or self.get_show_by_slug(identifier)
        if show:
            return show

        last_part = identifier.rsplit("-", 1)[-1]
        if last_part.isdigit():
            return self.get_show_by_storyblok_id(last_part)
        return None

    def get_tracks(self, show_id: str) -> List[TrackModel]:
        """Get the tracks of a show in playlist order."""
        return (
            self.db.query(TrackModel)
            .filter(TrackModel.show_id == show_id)
            .order_by(TrackModel.position)
            .all()
        )

    def list_shows(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Tuple[ShowModel, int]], int]:
        """List shows, newest first, with track counts and the total count."""
        track_counts = (
            self.db.query(
                TrackModel.show_id.label("show_id"),
                func.count(TrackModel.id).label("track_count"),
            )
            .group_by(TrackModel.show_id)
            .subquery()
        )

        query = self.db.query(
            ShowModel, func.coalesce(track_counts.c.track_count, 0)
        ).outerjoin(track_counts, track_counts.c.show_id == ShowModel.id)

        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(ShowModel.title.ilike(pattern), ShowModel.description.ilike(pattern))
            )
        if status:
            query = query.filter(ShowModel.status == status)

        total = query.count()
        rows = (
            query.order_by(desc(ShowModel.published_date))
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [(show, int(count)) for show, count in rows], total

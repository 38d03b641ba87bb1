from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ShowStatus(str, Enum):
    """Publication status of a show."""

    DRAFT = "draft"
    PUBLISHED = "published"


class CreateShowRequest(BaseModel):
    """
    Body of ``POST /api/mixcloud/create-show``.

    ``title`` and ``mixcloud_url`` are optional at the schema level so that a
    missing value reaches the ingestion validator and is reported as a 400
    with the pipeline's own message. Unknown fields are rejected.
    """

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "title": "Deep House Vol.1",
                "mixcloud_url": "https://www.mixcloud.com/dj/deep-house-vol-1/",
                "description": "Two hours of deep house.",
                "published_date": "2026-10-01T20:00:00Z",
                "playlist_text": "HOUR 1\nKerri Chandler - Rain\nMaya Jane Coles - What They Say",
            }
        },
    )

    title: Optional[str] = None
    mixcloud_url: Optional[str] = None
    description: Optional[str] = None
    published_date: Optional[datetime] = None
    playlist_text: Optional[str] = None

    @field_validator("title", "mixcloud_url", "description", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("published_date", "playlist_text", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class CreateShowResponse(BaseModel):
    """Reply of ``POST /api/mixcloud/create-show``."""

    success: bool
    show_id: Optional[str] = None
    storyblok_id: Optional[int] = None
    storyblok_slug: Optional[str] = None
    tracks_count: int = 0
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    message: str = ""


class ParsePlaylistRequest(BaseModel):
    """Body of ``POST /api/mixcloud/parse-playlist``."""

    model_config = ConfigDict(extra="forbid")

    playlist_text: str
    allow_missing_track: bool = False


class ShowListResponse(BaseModel):
    """Reply of ``GET /api/shows``."""

    success: bool = True
    shows: List[Dict[str, Any]] = Field(default_factory=list)
    total_count: int = 0


class ShowDetailResponse(BaseModel):
    """Reply of ``GET /api/shows/{show_id}``."""

    success: bool = True
    show: Dict[str, Any]
    tracks: List[Dict[str, Any]] = Field(default_factory=list)

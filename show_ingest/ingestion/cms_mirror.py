"""
Mirror a persisted show into Storyblok.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import structlog

from ..integrations.errors import StoryblokError
from ..integrations.mixcloud import MixcloudClient
from ..integrations.storyblok import StoryblokClient
from ..playlist.parser import ParsedTrack, tracks_to_storyblok_format
from ..primitives import create_slug, utc_now

logger = structlog.get_logger()

STORY_COMPONENT = "mixcloud_show"
STORY_TAGS = ["mixcloud", "radio-show"]


@dataclass
class CoverImage:
    """An uploaded cover image."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass
class ShowMeta:
    """Show fields copied into the story."""

    show_id: str
    title: str
    mixcloud_url: str
    mixcloud_embed: str
    published_date: datetime
    description: str = ""


@dataclass
class MirroredStory:
    story_id: int
    slug: str
    cover_asset: Optional[Dict[str, Any]] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def picture_url(self) -> str:
        if not self.cover_asset:
            return ""
        return self.cover_asset.get("filename") or ""


class CMSMirror:
    """Creates the Storyblok story for a show."""

    def __init__(
        self,
        storyblok: StoryblokClient,
        mixcloud: MixcloudClient,
        shows_folder_id: Optional[int] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.storyblok = storyblok
        self.mixcloud = mixcloud
        self.shows_folder_id = shows_folder_id
        self.clock = clock

    async def _upload_cover(self, cover: CoverImage) -> Dict[str, Any]:
        asset = await self.storyblok.upload_asset(
            cover.content, cover.filename, cover.content_type
        )
        return {
            "id": asset["id"],
            "filename": asset.get("public_url") or asset.get("filename") or "",
            "fieldtype": "asset",
            "name": cover.filename,
        }

    async def _mixcloud_cover(self, mixcloud_url: str) -> Optional[Dict[str, Any]]:
        picture = await self.mixcloud.get_cover_image_url(mixcloud_url)
        if not picture:
            return None
        return {"filename": picture, "fieldtype": "asset", "is_external_url": True}

    async def resolve_cover(
        self, mixcloud_url: str, cover_image: Optional[CoverImage]
    ) -> Tuple[Optional[Dict[str, Any]], List[str]]:
        """Return the cover asset block and any warnings raised finding it."""
        warnings: List[str] = []
        if cover_image is not None:
            try:
                return await self._upload_cover(cover_image), warnings
            except StoryblokError as e:
                logger.warning("storyblok_cover_upload_failed", error=str(e))
                warnings.append(f"Cover image upload failed: {e}")

        try:
            return await self._mixcloud_cover(mixcloud_url), warnings
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("mixcloud_cover_lookup_failed", error=str(e))
            warnings.append(f"Could not fetch Mixcloud cover image: {e}")
            return None, warnings

    def build_story(
        self,
        meta: ShowMeta,
        tracklist: List[ParsedTrack],
        cover_asset: Optional[Dict[str, Any]],
    ) -> Dict[str, Any]:
        """Assemble the story payload sent to the Management API."""
        millis = int(self.clock().timestamp() * 1000)
        content = {
            "component": STORY_COMPONENT,
            "title": meta.title,
            "description": meta.description,
            "mixcloud_url": meta.mixcloud_url,
            "mixcloud_embed": meta.mixcloud_embed,
            "mixcloud_picture": cover_asset or "",
            "published_date": meta.published_date.strftime("%Y-%m-%d %H:%M"),
            "tracklist": tracks_to_storyblok_format(tracklist),
            "show_id": meta.show_id,
        }
        return {
            "name": meta.title,
            "slug": f"{create_slug(meta.title)}-{millis}",
            "parent_id": self.shows_folder_id or 0,
            "content": content,
            "is_startpage": False,
            "published": True,
            "tag_list": list(STORY_TAGS),
        }

    async def create_show_story(
        self,
        meta: ShowMeta,
        tracklist: List[ParsedTrack],
        cover_image: Optional[CoverImage] = None,
    ) -> MirroredStory:
        """Create and publish the story. Raises StoryblokError on failure."""
        cover_asset, warnings = await self.resolve_cover(meta.mixcloud_url, cover_image)
        story = self.build_story(meta, tracklist, cover_asset)
        created = await self.storyblok.create_story(story)
        return MirroredStory(
            story_id=created["id"],
            slug=created["slug"],
            cover_asset=cover_asset,
            warnings=warnings,
        )

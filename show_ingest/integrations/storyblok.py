"""
Storyblok Management API client.
"""

from typing import Any, Dict, Optional

import httpx
import structlog

from .errors import StoryblokError

logger = structlog.get_logger()

MANAGEMENT_API_BASE = "https://mapi.storyblok.com/v1"


class StoryblokClient:
    """Async client for the Storyblok Management API."""

    def __init__(
        self,
        management_token: Optional[str],
        space_id: Optional[str],
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.management_token = management_token
        self.space_id = space_id
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._http.aclose()

    def _space_url(self, path: str) -> str:
        if not self.management_token:
            raise StoryblokError("STORYBLOK_MANAGEMENT_TOKEN not configured")
        if not self.space_id:
            raise StoryblokError("STORYBLOK_SPACE_ID not configured")
        return f"{MANAGEMENT_API_BASE}/spaces/{self.space_id}/{path}"

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": self.management_token or ""}

    async def _send(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = await self._http.request(
                method, url, headers=self._headers(), **kwargs
            )
        except httpx.HTTPError as e:
            raise StoryblokError(f"Storyblok request failed: {e}") from e

        if not response.is_success:
            logger.error(
                "storyblok_request_rejected",
                method=method,
                url=url,
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise StoryblokError(
                f"Storyblok API error ({response.status_code}): {response.text}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise StoryblokError("Storyblok response was not JSON") from e

    async def create_story(self, story: Dict[str, Any]) -> Dict[str, Any]:
        """Create a story and return the ``story`` object of the reply."""
        logger.info(
            "storyblok_create_story",
            name=story.get("name"),
            slug=story.get("slug"),
            parent_id=story.get("parent_id"),
            tracklist_count=len(story.get("content", {}).get("tracklist") or []),
        )
        data = await self._send("POST", self._space_url("stories/"), json={"story": story})

        created = data.get("story") if isinstance(data, dict) else None
        if not isinstance(created, dict) or "id" not in created or "slug" not in created:
            raise StoryblokError("Storyblok reply did not contain a story id and slug")

        logger.info("storyblok_story_created", story_id=created["id"], slug=created["slug"])
        return created

    async def upload_asset(
        self,
        content: bytes,
        filename: str,
        content_type: str = "application/octet-stream",
    ) -> Dict[str, Any]:
        """Upload a file as an asset. Returns ``id``, ``filename``, ``public_url``."""
        data = await self._send(
            "POST",
            self._space_url("assets/"),
            files={"file": (filename, content, content_type)},
            data={"filename": filename},
        )
        if not isinstance(data, dict) or "id" not in data:
            raise StoryblokError("Storyblok asset reply did not contain an id")
        return data

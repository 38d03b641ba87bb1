"""
Mixcloud API client.

Covers the OAuth authorization-code flow (authorize URL, code exchange,
refresh) and the few public API reads the pipeline needs. Mixcloud expects
the access token as a query parameter, not an Authorization header.
"""

from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx
import structlog

from ..primitives import mixcloud_path
from .errors import MixcloudOAuthError

logger = structlog.get_logger()

OAUTH_BASE = "https://www.mixcloud.com/oauth"
API_BASE = "https://api.mixcloud.com"

PICTURE_KEYS = (
    "large",
    "medium",
    "small",
    "1024wx1024h",
    "640wx640h",
    "320wx320h",
)


class MixcloudClient:
    """Async client for Mixcloud OAuth and API calls."""

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        redirect_uri: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self._http = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._http.aclose()

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    # ------------------------------------------------------------------
    # OAuth flow
    # ------------------------------------------------------------------

    def authorization_url(self, state: str, scope: str = "upload") -> str:
        """Build the URL the admin is redirected to for consent."""
        params = {
            "client_id": self.client_id or "",
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": scope,
            "state": state,
            "approval_prompt": "force",
        }
        return f"{OAUTH_BASE}/authorize?{urlencode(params)}"

    async def _token_request(self, form: Dict[str, str]) -> Dict[str, Any]:
        if not self.is_configured:
            raise MixcloudOAuthError("Mixcloud OAuth client is not configured")

        body = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            **form,
        }
        try:
            response = await self._http.post(f"{OAUTH_BASE}/access_token", data=body)
        except httpx.HTTPError as e:
            raise MixcloudOAuthError(f"Token request failed: {e}") from e

        if not response.is_success:
            logger.error(
                "mixcloud_token_request_rejected",
                grant_type=form.get("grant_type"),
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise MixcloudOAuthError(
                f"Token request failed: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise MixcloudOAuthError("Token response was not JSON") from e

        if not isinstance(data, dict) or not data.get("access_token"):
            raise MixcloudOAuthError("No access token received")
        return data

    async def exchange_code(self, code: str) -> Dict[str, Any]:
        """Exchange an authorization code for a token payload.

        The payload gains a ``user`` key with the ``/me/`` profile when it
        can be fetched.
        """
        data = await self._token_request(
            {
                "grant_type": "authorization_code",
                "redirect_uri": self.redirect_uri,
                "code": code,
            }
        )

        try:
            data["user"] = await self.fetch_me(data["access_token"])
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("mixcloud_user_fetch_failed", error=str(e))
        return data

    async def refresh_access_token(self, refresh_token: str) -> Dict[str, Any]:
        """Exchange a refresh token for a new token payload."""
        return await self._token_request(
            {"grant_type": "refresh_token", "refresh_token": refresh_token}
        )

    # ------------------------------------------------------------------
    # API reads
    # ------------------------------------------------------------------

    async def fetch_me(self, access_token: str) -> Dict[str, Any]:
        """Fetch the authenticated user's profile."""
        response = await self._http.get(
            f"{API_BASE}/me/", params={"access_token": access_token}
        )
        response.raise_for_status()
        return response.json()

    async def test_token_validity(self, access_token: str) -> Dict[str, Any]:
        """Call ``/me/`` with a token. Returns ``{"valid": bool, ...}``."""
        try:
            response = await self._http.get(
                f"{API_BASE}/me/", params={"access_token": access_token}
            )
        except httpx.HTTPError as e:
            return {"valid": False, "error": str(e)}

        if not response.is_success:
            return {"valid": False, "error": f"API call failed: {response.status_code}"}

        try:
            user_info = response.json()
        except ValueError:
            return {"valid": False, "error": "API response was not JSON"}

        if isinstance(user_info, dict) and user_info.get("error"):
            error = user_info["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            return {"valid": False, "error": message or "API error"}

        return {"valid": True, "user_info": user_info}

    async def get_cover_image_url(self, mixcloud_url: str) -> Optional[str]:
        """Look up the cover picture of a public Mixcloud show."""
        path = mixcloud_path(mixcloud_url)
        if not path:
            return None

        response = await self._http.get(f"{API_BASE}{path}")
        if not response.is_success:
            logger.warning(
                "mixcloud_show_lookup_failed",
                mixcloud_url=mixcloud_url,
                status_code=response.status_code,
            )
            return None

        data = response.json()
        pictures = data.get("pictures") if isinstance(data, dict) else None
        if not isinstance(pictures, dict):
            return None
        for key in PICTURE_KEYS:
            if pictures.get(key):
                return pictures[key]
        return None

"""
Mixcloud OAuth token lifecycle.

Tokens are stored one per admin profile and refreshed transparently. Nothing
here raises to the caller: a lookup, refresh or storage problem is logged and
reported as "no token", and callers treat that as "Mixcloud unavailable".
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..db.models import MixcloudOAuthTokenModel
from ..db.services import OAuthTokenService, ProfileService
from ..integrations.errors import MixcloudOAuthError
from ..integrations.mixcloud import MixcloudClient
from ..primitives import as_utc, utc_now

logger = structlog.get_logger()

DEFAULT_REFRESH_BUFFER = timedelta(minutes=5)


def _expiry_from(expires_in: Any, now: datetime) -> Optional[datetime]:
    try:
        seconds = int(expires_in)
    except (TypeError, ValueError):
        return None
    if seconds <= 0:
        return None
    return now + timedelta(seconds=seconds)


class MixcloudTokenManager:
    """Token store and refresher for per-admin Mixcloud credentials."""

    def __init__(
        self,
        db: Session,
        client: MixcloudClient,
        refresh_buffer: timedelta = DEFAULT_REFRESH_BUFFER,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.client = client
        self.refresh_buffer = refresh_buffer
        self.clock = clock
        self.profiles = ProfileService(db)
        self.tokens = OAuthTokenService(db)

    def get_token(self, owner_id: str) -> Optional[MixcloudOAuthTokenModel]:
        """Return the stored token for an external user id, if any."""
        try:
            profile = self.profiles.get_by_external_id(owner_id)
            if profile is None:
                return None
            return self.tokens.get_for_profile(profile.id)
        except SQLAlchemyError as e:
            logger.error("mixcloud_token_lookup_failed", owner_id=owner_id, error=str(e))
            self.db.rollback()
            return None

    def is_expired(self, token: MixcloudOAuthTokenModel) -> bool:
        """True when the token expires within the refresh buffer."""
        expires_at = as_utc(token.expires_at)
        if expires_at is None:
            return False
        return expires_at - self.clock() <= self.refresh_buffer

    async def refresh(
        self, token: MixcloudOAuthTokenModel
    ) -> Optional[MixcloudOAuthTokenModel]:
        """Exchange the refresh token and persist the new credentials.

        The stored row is left untouched when anything fails.
        """
        log = logger.bind(token_id=token.id, user_id=token.user_id)
        if not token.refresh_token:
            log.warning("mixcloud_token_refresh_skipped", reason="no_refresh_token")
            return None

        try:
            payload = await self.client.refresh_access_token(token.refresh_token)
        except MixcloudOAuthError as e:
            log.error("mixcloud_token_refresh_failed", error=str(e), status_code=e.status_code)
            return None

        try:
            updated = self.tokens.update_credentials(
                token,
                access_token=payload["access_token"],
                refresh_token=payload.get("refresh_token") or token.refresh_token,
                token_type=payload.get("token_type") or token.token_type,
                expires_at=_expiry_from(payload.get("expires_in"), self.clock()),
                scope=payload.get("scope") or token.scope,
            )
        except SQLAlchemyError as e:
            # the failed commit was rolled back, which also expired the
            # in-memory edits on ``token``
            log.error("mixcloud_token_refresh_store_failed", error=str(e))
            return None

        log.info("mixcloud_token_refreshed", expires_at=updated.to_dict()["expires_at"])
        return updated

    async def get_valid_token(self, owner_id: str) -> Optional[str]:
        """Return a usable access token, refreshing it when needed."""
        token = self.get_token(owner_id)
        if token is None:
            return None

        if self.is_expired(token):
            logger.info("mixcloud_token_expired", owner_id=owner_id)
            token = await self.refresh(token)
            if token is None:
                return None

        return token.access_token

    def store_authorization(
        self, owner_id: str, payload: Dict[str, Any], role: str = "listener"
    ) -> MixcloudOAuthTokenModel:
        """Upsert the token obtained from an authorization-code exchange.

        Raises SQLAlchemyError when the write fails; the callback turns that
        into a redirect with ``error=db_error``.
        """
        profile = self.profiles.get_or_create(owner_id, role=role)
        user = payload.get("user") or {}
        username = user.get("username") if isinstance(user, dict) else None

        token = self.tokens.upsert(
            profile.id,
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
            token_type=payload.get("token_type"),
            expires_at=_expiry_from(payload.get("expires_in"), self.clock()),
            scope=payload.get("scope"),
            mixcloud_user_id=username,
            mixcloud_username=username,
        )
        logger.info("mixcloud_token_stored", owner_id=owner_id, mixcloud_username=username)
        return token

    def revoke(self, owner_id: str) -> bool:
        """Delete the stored token. False when there was nothing to delete."""
        try:
            profile = self.profiles.get_by_external_id(owner_id)
            if profile is None:
                return False
            return self.tokens.delete_for_profile(profile.id)
        except SQLAlchemyError as e:
            logger.error("mixcloud_token_revoke_failed", owner_id=owner_id, error=str(e))
            return False

    async def connection_status(self, owner_id: str) -> Dict[str, Any]:
        """Summarize whether the owner has a working Mixcloud connection."""
        token = self.get_token(owner_id)
        if token is None:
            return {
                "connected": False,
                "user_id": owner_id,
                "message": "No OAuth token found",
            }

        access_token = await self.get_valid_token(owner_id)
        if access_token is None:
            return {
                "connected": False,
                "user_id": owner_id,
                "message": "Token expired and could not be refreshed",
            }

        check = await self.client.test_token_validity(access_token)
        token = self.get_token(owner_id) or token
        return {
            "connected": check["valid"],
            "user_id": owner_id,
            "mixcloud_username": token.mixcloud_username,
            "expires_at": token.to_dict()["expires_at"],
            "scope": token.scope,
            "user_info": check.get("user_info"),
            "message": "Connected successfully" if check["valid"] else check.get("error"),
        }

"""
Mixcloud OAuth endpoints, prefixed with /api/auth/mixcloud.
"""

import secrets
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError

from ..config import Settings, get_settings
from ..dependencies import (
    AdminUser,
    get_mixcloud_client,
    get_token_manager,
    require_admin,
)
from ..integrations.errors import MixcloudOAuthError
from ..integrations.mixcloud import MixcloudClient
from ..oauth.token_manager import MixcloudTokenManager

logger = structlog.get_logger()

router = APIRouter(prefix="/api/auth/mixcloud", tags=["auth"])

STATE_COOKIE = "mixcloud_oauth_state"
STATE_COOKIE_MAX_AGE = 600


def _admin_redirect(settings: Settings, **params: str) -> RedirectResponse:
    url = f"{settings.app_url.rstrip('/')}/admin?{urlencode(params)}"
    response = RedirectResponse(url, status_code=302)
    response.delete_cookie(STATE_COOKIE, path="/")
    return response


@router.get("/authorize")
async def authorize(
    admin: AdminUser = Depends(require_admin),
    client: MixcloudClient = Depends(get_mixcloud_client),
    settings: Settings = Depends(get_settings),
):
    """Start the authorization-code flow."""
    if not client.client_id:
        logger.error("mixcloud_oauth_not_configured")
        return JSONResponse(
            status_code=500, content={"error": "Mixcloud OAuth not configured"}
        )

    state = secrets.token_urlsafe(32)
    response = RedirectResponse(client.authorization_url(state), status_code=302)
    response.set_cookie(
        STATE_COOKIE,
        state,
        max_age=STATE_COOKIE_MAX_AGE,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
        path="/",
    )
    logger.info("mixcloud_oauth_started", user_id=admin.user_id)
    return response


@router.get("/callback")
async def callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    admin: AdminUser = Depends(require_admin),
    manager: MixcloudTokenManager = Depends(get_token_manager),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """Finish the flow: verify state, exchange the code, store the token."""
    log = logger.bind(user_id=admin.user_id)

    if error:
        log.warning("mixcloud_oauth_denied", error=error)
        return _admin_redirect(settings, error="oauth_denied")

    if not code:
        return _admin_redirect(settings, error="missing_code")

    expected_state = request.cookies.get(STATE_COOKIE)
    if not state or not expected_state or not secrets.compare_digest(state, expected_state):
        log.warning("mixcloud_oauth_state_mismatch")
        return _admin_redirect(settings, error="invalid_state")

    try:
        payload = await manager.client.exchange_code(code)
    except MixcloudOAuthError as e:
        log.error("mixcloud_code_exchange_failed", error=str(e), status_code=e.status_code)
        return _admin_redirect(settings, error="oauth_failed")

    try:
        manager.store_authorization(admin.user_id, payload, role=admin.role)
    except SQLAlchemyError as e:
        log.error("mixcloud_token_store_failed", error=str(e))
        return _admin_redirect(settings, error="db_error")

    log.info("mixcloud_oauth_connected")
    return _admin_redirect(settings, success="oauth_connected")


@router.get("/status")
async def status(
    admin: AdminUser = Depends(require_admin),
    manager: MixcloudTokenManager = Depends(get_token_manager),
) -> Dict[str, Any]:
    """Report whether the caller has a working Mixcloud connection."""
    return await manager.connection_status(admin.user_id)


@router.get("/token")
async def token(
    admin: AdminUser = Depends(require_admin),
    manager: MixcloudTokenManager = Depends(get_token_manager),
):
    """Return a valid access token, refreshing it first when needed."""
    access_token = await manager.get_valid_token(admin.user_id)
    if not access_token:
        return JSONResponse(
            status_code=401,
            content={
                "error": "No valid Mixcloud token. Please reconnect your Mixcloud account."
            },
        )

    stored = manager.get_token(admin.user_id)
    return {
        "access_token": access_token,
        "expires_at": stored.to_dict()["expires_at"] if stored else None,
    }


@router.post("/disconnect")
async def disconnect(
    admin: AdminUser = Depends(require_admin),
    manager: MixcloudTokenManager = Depends(get_token_manager),
) -> Dict[str, Any]:
    """Forget the caller's Mixcloud token."""
    removed = manager.revoke(admin.user_id)
    logger.info("mixcloud_oauth_disconnected", user_id=admin.user_id, removed=removed)
    return {"success": True, "disconnected": removed}

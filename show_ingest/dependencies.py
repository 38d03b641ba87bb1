"""
FastAPI dependencies: integration clients, pipeline services and admin auth.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import AsyncGenerator, Optional

import structlog
from fastapi import Depends, Header, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import Settings, get_settings
from .db.base import get_db
from .db.services import ProfileService, ShowService
from .ingestion.cms_mirror import CMSMirror
from .ingestion.orchestrator import ShowIngestionOrchestrator
from .integrations.mixcloud import MixcloudClient
from .integrations.storyblok import StoryblokClient
from .oauth.token_manager import MixcloudTokenManager

logger = structlog.get_logger()


@dataclass
class AdminUser:
    """The authenticated caller of an admin endpoint."""

    user_id: str
    profile_id: str
    role: str


async def get_mixcloud_client(
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[MixcloudClient, None]:
    client = MixcloudClient(
        client_id=settings.mixcloud_client_id,
        client_secret=settings.mixcloud_client_secret,
        redirect_uri=settings.mixcloud_callback_url,
        timeout=settings.http_timeout_seconds,
    )
    try:
        yield client
    finally:
        await client.close()


async def get_storyblok_client(
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[StoryblokClient, None]:
    client = StoryblokClient(
        management_token=settings.storyblok_management_token,
        space_id=settings.storyblok_space_id,
        timeout=settings.http_timeout_seconds,
    )
    try:
        yield client
    finally:
        await client.close()


def get_token_manager(
    db: Session = Depends(get_db),
    client: MixcloudClient = Depends(get_mixcloud_client),
    settings: Settings = Depends(get_settings),
) -> MixcloudTokenManager:
    return MixcloudTokenManager(
        db,
        client,
        refresh_buffer=timedelta(seconds=settings.mixcloud_token_refresh_buffer_seconds),
    )


def get_cms_mirror(
    storyblok: StoryblokClient = Depends(get_storyblok_client),
    mixcloud: MixcloudClient = Depends(get_mixcloud_client),
    settings: Settings = Depends(get_settings),
) -> CMSMirror:
    return CMSMirror(storyblok, mixcloud, shows_folder_id=settings.storyblok_shows_folder_id)


def get_orchestrator(
    db: Session = Depends(get_db),
    mirror: CMSMirror = Depends(get_cms_mirror),
    settings: Settings = Depends(get_settings),
) -> ShowIngestionOrchestrator:
    return ShowIngestionOrchestrator(
        ShowService(db), mirror, database_url=settings.database_url
    )


def require_admin(
    x_user_id: Optional[str] = Header(default=None),
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AdminUser:
    """
    Authenticate the caller and require the admin role.

    Identity comes from the ``X-User-Id`` header set by the fronting auth
    proxy. When ``ADMIN_API_KEY`` is configured the request must also carry
    ``Authorization: Bearer <key>``.
    """
    if settings.admin_api_key:
        expected = f"Bearer {settings.admin_api_key}"
        if not authorization or not secrets.compare_digest(authorization, expected):
            raise HTTPException(status_code=401, detail="Unauthorized")

    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")

    role = "admin" if user_id in settings.admin_ids else "listener"
    try:
        profile = ProfileService(db).get_or_create(user_id, role=role)
    except SQLAlchemyError as e:
        logger.error("profile_lookup_failed", user_id=user_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")

    if profile.role != "admin":
        logger.warning("admin_access_denied", user_id=user_id, role=profile.role)
        raise HTTPException(status_code=403, detail="Admin access required")

    return AdminUser(user_id=user_id, profile_id=profile.id, role=profile.role)

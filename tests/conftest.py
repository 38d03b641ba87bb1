"""Test configuration and fixtures."""

import json
import os

# Set environment variables before importing application code
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["ADMIN_USER_IDS"] = "admin-1,admin-2"
os.environ.pop("ADMIN_API_KEY", None)

from typing import Callable, Optional

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from show_ingest.api import app
from show_ingest.db.base import Base, get_db
from show_ingest.dependencies import get_mixcloud_client, get_storyblok_client
from show_ingest.integrations.mixcloud import MixcloudClient
from show_ingest.integrations.storyblok import StoryblokClient

# In-memory SQLite shared by every connection through StaticPool
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def override_get_db():
    """Override the get_db dependency for testing."""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db

ADMIN_HEADERS = {"X-User-Id": "admin-1"}
STORY_ID = 987654
COVER_URL = "https://thumbnailer.mixcloud.com/unsafe/600x600/cover.jpg"


def storyblok_ok(request: httpx.Request) -> httpx.Response:
    """Storyblok Management API stand-in that accepts everything."""
    if request.url.path.endswith("/stories/"):
        story = json.loads(request.content)["story"]
        return httpx.Response(201, json={"story": {"id": STORY_ID, "slug": story["slug"]}})
    if request.url.path.endswith("/assets/"):
        return httpx.Response(
            200, json={"id": 55, "public_url": "https://a.storyblok.com/f/55/cover.jpg"}
        )
    return httpx.Response(404, json={"error": "not found"})


def mixcloud_ok(request: httpx.Request) -> httpx.Response:
    """Mixcloud API stand-in returning a show with a cover picture."""
    if request.url.host == "api.mixcloud.com":
        return httpx.Response(200, json={"pictures": {"large": COVER_URL}})
    return httpx.Response(404, json={"error": "not found"})


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop them after."""
    from show_ingest.db import models  # noqa: F401

    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def db_session():
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def http_mocks():
    """Route the API's Storyblok and Mixcloud clients through handlers.

    Call the fixture value with optional ``storyblok=`` and ``mixcloud=``
    handlers; the defaults accept every request.
    """

    def install(
        storyblok: Optional[Callable[[httpx.Request], httpx.Response]] = None,
        mixcloud: Optional[Callable[[httpx.Request], httpx.Response]] = None,
    ) -> None:
        async def storyblok_client():
            client = StoryblokClient(
                "sb-test-token",
                "12345",
                transport=httpx.MockTransport(storyblok or storyblok_ok),
            )
            try:
                yield client
            finally:
                await client.close()

        async def mixcloud_client():
            client = MixcloudClient(
                "client-id",
                "client-secret",
                "http://testserver/api/auth/mixcloud/callback",
                transport=httpx.MockTransport(mixcloud or mixcloud_ok),
            )
            try:
                yield client
            finally:
                await client.close()

        app.dependency_overrides[get_storyblok_client] = storyblok_client
        app.dependency_overrides[get_mixcloud_client] = mixcloud_client

    install()
    yield install
    app.dependency_overrides.pop(get_storyblok_client, None)
    app.dependency_overrides.pop(get_mixcloud_client, None)

"""Tests for the show ingestion state machine."""

from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import SQLAlchemyError

from show_ingest.db.models import ShowModel, TrackModel
from show_ingest.db.services import ShowService
from show_ingest.ingestion import (
    IngestionState,
    MirroredStory,
    ShowIngestionOrchestrator,
)
from show_ingest.integrations.errors import StoryblokError
from show_ingest.schemas.show_v1 import CreateShowRequest

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)

DEEP_HOUSE = CreateShowRequest(
    title="Deep House Vol.1",
    mixcloud_url="https://www.mixcloud.com/dj/deep-house-vol-1/",
    playlist_text="HOUR 1\nKerri Chandler - Rain\nMaya Jane Coles - What They Say",
)


class FakeMirror:
    """Stands in for CMSMirror and remembers what it was asked to mirror."""

    def __init__(self, error=None, story_id=314, warnings=None):
        self.error = error
        self.story_id = story_id
        self.warnings = warnings or []
        self.calls = []

    async def create_show_story(self, meta, tracklist, cover_image=None):
        self.calls.append((meta, list(tracklist), cover_image))
        if self.error:
            raise self.error
        return MirroredStory(
            story_id=self.story_id,
            slug=f"deep-house-vol1-{self.story_id}",
            cover_asset={"filename": "https://img/large.jpg"},
            warnings=list(self.warnings),
        )


class FailingShowInsert(ShowService):
    def create_show(self, *args, **kwargs):
        raise SQLAlchemyError("connection lost")


class FailingTrackInsert(ShowService):
    def add_tracks(self, show_id, tracks):
        raise SQLAlchemyError("unique constraint failed")


class FailingLink(ShowService):
    def link_storyblok_story(self, show_id, storyblok_id, slug):
        raise SQLAlchemyError("database is locked")


class FailingPicture(ShowService):
    def set_picture(self, show_id, picture_url):
        raise SQLAlchemyError("disk I/O error")


def make_orchestrator(db, mirror=None, service_cls=ShowService, database_url="sqlite://"):
    return ShowIngestionOrchestrator(
        service_cls(db),
        mirror or FakeMirror(),
        database_url=database_url,
        clock=lambda: NOW,
    )


class TestHappyPath:
    @pytest.mark.asyncio
    async def test_deep_house_example(self, db_session):
        mirror = FakeMirror()
        outcome = await make_orchestrator(db_session, mirror).ingest(DEEP_HOUSE)

        assert outcome.http_status == 200
        assert outcome.success is True
        assert outcome.tracks_count == 2
        assert outcome.storyblok_id == 314
        assert outcome.storyblok_slug == "deep-house-vol1-314"
        assert outcome.message == "Show created successfully and synced to Storyblok"
        assert outcome.history == [
            IngestionState.VALIDATING,
            IngestionState.PERSISTING_SHOW,
            IngestionState.PERSISTING_TRACKS,
            IngestionState.MIRRORING_CMS,
            IngestionState.LINKING,
            IngestionState.DONE,
        ]

        show = db_session.query(ShowModel).one()
        assert show.status == "published"
        assert show.storyblok_id == "314"
        # CMS slug becomes authoritative after linking
        assert show.slug == "deep-house-vol1-314"
        assert show.mixcloud_picture == "https://img/large.jpg"
        assert "feed=%2Fdj%2Fdeep-house-vol-1%2F" in show.mixcloud_embed

        tracks = db_session.query(TrackModel).order_by(TrackModel.position).all()
        assert [(t.position, t.hour, t.artist) for t in tracks] == [
            (1, 1, "Kerri Chandler"),
            (2, 1, "Maya Jane Coles"),
        ]

        meta, tracklist, _ = mirror.calls[0]
        assert meta.show_id == show.id
        assert len(tracklist) == 2

    @pytest.mark.asyncio
    async def test_without_playlist_skips_track_step(self, db_session):
        request = CreateShowRequest(
            title="No Tracks", mixcloud_url="https://www.mixcloud.com/dj/no-tracks/"
        )
        mirror = FakeMirror()

        outcome = await make_orchestrator(db_session, mirror).ingest(request)

        assert outcome.http_status == 200
        assert outcome.tracks_count == 0
        assert IngestionState.PERSISTING_TRACKS not in outcome.history
        assert mirror.calls[0][1] == []

    @pytest.mark.asyncio
    async def test_published_date_defaults_to_now(self, db_session):
        await make_orchestrator(db_session).ingest(DEEP_HOUSE)

        show = db_session.query(ShowModel).one()
        assert show.published_date.replace(tzinfo=timezone.utc) == NOW

    @pytest.mark.asyncio
    async def test_slug_collision_gets_suffix(self, db_session):
        request = CreateShowRequest(
            title="Weekly Mix", mixcloud_url="https://www.mixcloud.com/dj/weekly/"
        )
        failing_mirror = FakeMirror(error=StoryblokError("down"))

        await make_orchestrator(db_session, failing_mirror).ingest(request)
        await make_orchestrator(db_session, failing_mirror).ingest(request)

        slugs = sorted(s.slug for s in db_session.query(ShowModel).all())
        assert slugs == ["weekly-mix", "weekly-mix-1"]


class TestValidation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "title,url,message",
        [
            (None, "https://www.mixcloud.com/dj/x/", "Title and Mixcloud URL are required"),
            ("Show", None, "Title and Mixcloud URL are required"),
            ("Show", "https://soundcloud.com/dj/x", "Invalid Mixcloud URL format"),
        ],
    )
    async def test_rejected_without_side_effects(self, db_session, title, url, message):
        mirror = FakeMirror()
        request = CreateShowRequest(title=title, mixcloud_url=url)

        outcome = await make_orchestrator(db_session, mirror).ingest(request)

        assert outcome.http_status == 400
        assert outcome.state == IngestionState.REJECTED
        assert outcome.errors == [message]
        assert db_session.query(ShowModel).count() == 0
        assert mirror.calls == []

    @pytest.mark.asyncio
    async def test_missing_database_url_is_a_server_error(self, db_session):
        outcome = await make_orchestrator(db_session, database_url="").ingest(DEEP_HOUSE)

        assert outcome.http_status == 500
        assert outcome.state == IngestionState.FAILED

    @pytest.mark.asyncio
    async def test_invalid_request_is_rejected_before_database_check(self, db_session):
        request = CreateShowRequest(title="", mixcloud_url="https://www.mixcloud.com/dj/x/")

        outcome = await make_orchestrator(db_session, database_url="").ingest(request)

        assert outcome.http_status == 400
        assert outcome.state == IngestionState.REJECTED
        assert outcome.errors == ["Title and Mixcloud URL are required"]


class TestPartialFailures:
    @pytest.mark.asyncio
    async def test_show_insert_failure_is_fatal(self, db_session):
        mirror = FakeMirror()

        outcome = await make_orchestrator(db_session, mirror, FailingShowInsert).ingest(
            DEEP_HOUSE
        )

        assert outcome.http_status == 500
        assert outcome.show_id is None
        assert outcome.state == IngestionState.FAILED
        assert db_session.query(TrackModel).count() == 0
        assert mirror.calls == []

    @pytest.mark.asyncio
    async def test_track_insert_failure_keeps_show_and_still_mirrors(self, db_session):
        mirror = FakeMirror()

        outcome = await make_orchestrator(db_session, mirror, FailingTrackInsert).ingest(
            DEEP_HOUSE
        )

        assert outcome.http_status == 207
        assert outcome.tracks_count == 0
        assert outcome.errors[0].startswith("Failed to save tracks:")
        assert outcome.storyblok_id == 314
        assert len(mirror.calls[0][1]) == 2
        assert outcome.state == IngestionState.PARTIAL_FAILURE

    @pytest.mark.asyncio
    async def test_mirror_failure_keeps_show_and_tracks(self, db_session):
        mirror = FakeMirror(error=StoryblokError("Storyblok API error (401): Unauthorized"))

        outcome = await make_orchestrator(db_session, mirror).ingest(DEEP_HOUSE)

        assert outcome.http_status == 207
        assert outcome.success is False
        assert outcome.show_id is not None
        assert outcome.tracks_count == 2
        assert outcome.storyblok_id is None
        assert outcome.errors == [
            "Storyblok story creation failed: Storyblok API error (401): Unauthorized"
        ]
        assert outcome.message == "Show created successfully"
        assert IngestionState.LINKING not in outcome.history
        assert db_session.query(ShowModel).one().slug == "deep-house-vol1"

    @pytest.mark.asyncio
    async def test_link_failure_is_a_warning(self, db_session):
        outcome = await make_orchestrator(db_session, service_cls=FailingLink).ingest(
            DEEP_HOUSE
        )

        assert outcome.http_status == 200
        assert outcome.errors == []
        assert outcome.warnings[0].startswith("Show created but failed to link Storyblok ID:")

    @pytest.mark.asyncio
    async def test_picture_save_failure_is_its_own_warning(self, db_session):
        outcome = await make_orchestrator(db_session, service_cls=FailingPicture).ingest(
            DEEP_HOUSE
        )

        assert outcome.http_status == 200
        assert outcome.errors == []
        assert len(outcome.warnings) == 1
        assert outcome.warnings[0].startswith("Show linked but failed to save cover picture:")
        show = db_session.query(ShowModel).one()
        assert show.storyblok_id == "314"
        assert show.slug == "deep-house-vol1-314"

    @pytest.mark.asyncio
    async def test_parse_errors_are_reported(self, db_session):
        request = DEEP_HOUSE.model_copy(
            update={"playlist_text": "HOUR 1\nKerri Chandler - Rain\nnot a track"}
        )

        outcome = await make_orchestrator(db_session).ingest(request)

        assert outcome.tracks_count == 1
        assert outcome.errors == [
            'Line 3: Missing track separator " - " in line: "not a track"'
        ]
        assert outcome.http_status == 207

    @pytest.mark.asyncio
    async def test_cover_warnings_are_passed_through(self, db_session):
        mirror = FakeMirror(warnings=["Cover image upload failed: boom"])

        outcome = await make_orchestrator(db_session, mirror).ingest(DEEP_HOUSE)

        assert outcome.http_status == 200
        assert outcome.warnings == ["Cover image upload failed: boom"]

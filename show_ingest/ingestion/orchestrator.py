"""
Show ingestion orchestrator.

Runs one create-show request through
``validating -> persisting_show -> persisting_tracks -> mirroring_cms ->
linking -> done``. Only a failed show insert is fatal; later steps record an
error (or a warning, for linking) and the request ends in ``partial_failure``
with the show kept. There is no transaction across steps and no retry.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, List, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError

from ..db.models import ShowModel
from ..db.services import ShowService
from ..playlist.parser import (
    ParsedTrack,
    PlaylistParseResult,
    parse_playlist_text,
    tracks_to_db_format,
)
from ..primitives import as_utc, generate_mixcloud_embed, is_mixcloud_url, utc_now
from ..schemas.show_v1 import CreateShowRequest, ShowStatus
from .cms_mirror import CMSMirror, CoverImage, MirroredStory, ShowMeta
from .results import ErrorKind, IngestionOutcome, IngestionState, StepResult

logger = structlog.get_logger()

SUCCESS_MESSAGE = "Show created successfully"


class ShowIngestionOrchestrator:
    """Composes parsing, persistence and the CMS mirror for one request."""

    def __init__(
        self,
        shows: ShowService,
        mirror: CMSMirror,
        database_url: Optional[str] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.shows = shows
        self.mirror = mirror
        self.database_url = database_url
        self.clock = clock

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def validate(self, request: CreateShowRequest) -> StepResult[None]:
        if not request.title or not request.mixcloud_url:
            return StepResult.failure(
                "Title and Mixcloud URL are required", ErrorKind.VALIDATION
            )
        if not is_mixcloud_url(request.mixcloud_url):
            return StepResult.failure("Invalid Mixcloud URL format", ErrorKind.VALIDATION)
        if not self.database_url:
            return StepResult.failure("Database not configured", ErrorKind.FATAL)
        return StepResult.success()

    def persist_show(self, request: CreateShowRequest) -> StepResult[ShowModel]:
        published_date = as_utc(request.published_date) or self.clock()
        try:
            show = self.shows.create_show(
                title=request.title,
                slug=self.shows.next_available_slug(request.title),
                description=request.description or "",
                mixcloud_url=request.mixcloud_url,
                mixcloud_embed=generate_mixcloud_embed(request.mixcloud_url),
                published_date=published_date,
                status=ShowStatus.PUBLISHED.value,
            )
        except SQLAlchemyError as e:
            logger.error("show_insert_failed", error=str(e))
            return StepResult.failure(f"Failed to create show: {e}", ErrorKind.FATAL)
        return StepResult.success(show)

    def persist_tracks(self, show_id: str, tracks: List[ParsedTrack]) -> StepResult[int]:
        try:
            count = self.shows.add_tracks(show_id, tracks_to_db_format(tracks))
        except SQLAlchemyError as e:
            logger.error("tracks_insert_failed", show_id=show_id, error=str(e))
            return StepResult.failure(f"Failed to save tracks: {e}", ErrorKind.PARTIAL)
        return StepResult.success(count)

    async def mirror_show(
        self,
        show: ShowModel,
        tracks: List[ParsedTrack],
        cover_image: Optional[CoverImage],
    ) -> StepResult[MirroredStory]:
        meta = ShowMeta(
            show_id=show.id,
            title=show.title,
            description=show.description or "",
            mixcloud_url=show.mixcloud_url,
            mixcloud_embed=show.mixcloud_embed,
            published_date=as_utc(show.published_date),
        )
        try:
            story = await self.mirror.create_show_story(meta, tracks, cover_image)
        except Exception as e:
            logger.exception("storyblok_story_creation_failed", show_id=show.id)
            return StepResult.failure(
                f"Storyblok story creation failed: {e}", ErrorKind.PARTIAL
            )
        return StepResult.success(story, warnings=story.warnings)

    def link_story(self, show_id: str, story: MirroredStory) -> StepResult[None]:
        try:
            self.shows.link_storyblok_story(show_id, str(story.story_id), story.slug)
        except SQLAlchemyError as e:
            logger.error("storyblok_link_failed", show_id=show_id, error=str(e))
            return StepResult.failure(
                f"Show created but failed to link Storyblok ID: {e}", ErrorKind.PARTIAL
            )
        if not story.picture_url:
            return StepResult.success()
        try:
            self.shows.set_picture(show_id, story.picture_url)
        except SQLAlchemyError as e:
            logger.error("show_picture_save_failed", show_id=show_id, error=str(e))
            return StepResult.success(
                warnings=[f"Show linked but failed to save cover picture: {e}"]
            )
        return StepResult.success()

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    async def ingest(
        self,
        request: CreateShowRequest,
        cover_image: Optional[CoverImage] = None,
    ) -> IngestionOutcome:
        """Run the whole pipeline and return the aggregated outcome."""
        outcome = IngestionOutcome()
        log = logger.bind(title=request.title, mixcloud_url=request.mixcloud_url)

        def enter(state: IngestionState) -> None:
            outcome.history.append(state)
            outcome.state = state
            log.info("ingestion_state", state=state.value, show_id=outcome.show_id)

        enter(IngestionState.VALIDATING)
        validated = self.validate(request)
        if not validated.ok:
            outcome.errors.append(validated.error)
            outcome.message = validated.error
            enter(
                IngestionState.REJECTED
                if validated.kind == ErrorKind.VALIDATION
                else IngestionState.FAILED
            )
            return outcome

        enter(IngestionState.PERSISTING_SHOW)
        created = self.persist_show(request)
        if not created.ok:
            outcome.errors.append(created.error)
            outcome.message = "Failed to create show"
            enter(IngestionState.FAILED)
            return outcome

        show = created.value
        outcome.show_id = show.id
        log = log.bind(show_id=show.id)

        tracks: List[ParsedTrack] = []
        if request.playlist_text:
            enter(IngestionState.PERSISTING_TRACKS)
            parsed: PlaylistParseResult = parse_playlist_text(request.playlist_text)
            outcome.errors.extend(parsed.errors)
            outcome.warnings.extend(parsed.warnings)
            tracks = parsed.tracks
            if tracks:
                saved = self.persist_tracks(show.id, tracks)
                if saved.ok:
                    outcome.tracks_count = saved.value
                else:
                    outcome.errors.append(saved.error)

        enter(IngestionState.MIRRORING_CMS)
        mirrored = await self.mirror_show(show, tracks, cover_image)
        if mirrored.ok:
            outcome.warnings.extend(mirrored.warnings)
            story = mirrored.value
            outcome.storyblok_id = story.story_id
            outcome.storyblok_slug = story.slug

            enter(IngestionState.LINKING)
            linked = self.link_story(show.id, story)
            if linked.ok:
                outcome.warnings.extend(linked.warnings)
            else:
                outcome.warnings.append(linked.error)
        else:
            outcome.errors.append(mirrored.error)

        outcome.message = SUCCESS_MESSAGE
        if outcome.storyblok_id is not None:
            outcome.message += " and synced to Storyblok"

        enter(IngestionState.DONE if outcome.success else IngestionState.PARTIAL_FAILURE)
        log.info(
            "show_ingested",
            status=outcome.http_status,
            tracks_count=outcome.tracks_count,
            storyblok_id=outcome.storyblok_id,
            errors=len(outcome.errors),
            warnings=len(outcome.warnings),
        )
        return outcome

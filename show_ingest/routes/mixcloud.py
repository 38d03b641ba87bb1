"""
Mixcloud show ingestion endpoints.

All endpoints are prefixed with /api/mixcloud and require an admin caller.
"""

from typing import Any, Dict, Optional, Tuple

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.datastructures import UploadFile

from ..dependencies import AdminUser, get_orchestrator, require_admin
from ..ingestion.cms_mirror import CoverImage
from ..ingestion.orchestrator import ShowIngestionOrchestrator
from ..playlist.parser import ParserOptions, generate_parse_summary, parse_playlist_text
from ..schemas.show_v1 import (
    CreateShowRequest,
    CreateShowResponse,
    ParsePlaylistRequest,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/api/mixcloud", tags=["mixcloud"])

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")
FORM_FIELDS = ("title", "mixcloud_url", "description", "published_date", "playlist_text")


class BadRequest(Exception):
    """The request body could not be read."""


def _error_response(status_code: int, message: str, errors=None) -> JSONResponse:
    body = CreateShowResponse(
        success=False,
        errors=list(errors or [message]),
        message=message,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _format_validation_error(exc: ValidationError) -> list:
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ())) or "body"
        messages.append(f"{location}: {err.get('msg')}")
    return messages


async def _read_create_show_body(
    request: Request,
) -> Tuple[Dict[str, Any], Optional[CoverImage]]:
    content_type = request.headers.get("content-type", "")

    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        payload = {
            name: form.get(name)
            for name in FORM_FIELDS
            if isinstance(form.get(name), str)
        }
        cover = None
        upload = form.get("cover_image")
        if isinstance(upload, UploadFile) and upload.filename:
            content = await upload.read()
            if content:
                cover = CoverImage(
                    filename=upload.filename,
                    content=content,
                    content_type=upload.content_type or "application/octet-stream",
                )
        return payload, cover

    try:
        payload = await request.json()
    except ValueError as e:
        raise BadRequest("Request body must be valid JSON") from e
    if not isinstance(payload, dict):
        raise BadRequest("Request body must be a JSON object")
    return payload, None


@router.post("/create-show")
async def create_show(
    request: Request,
    admin: AdminUser = Depends(require_admin),
    orchestrator: ShowIngestionOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    """
    Create a show from a Mixcloud URL and an optional tracklist.

    Accepts JSON or a multipart form (the form may carry ``cover_image``).
    Returns 200 when every step succeeded, 207 when the show was created but
    later steps reported errors, 400 for invalid input and 500 when the show
    could not be created.
    """
    try:
        payload, cover_image = await _read_create_show_body(request)
        show_request = CreateShowRequest.model_validate(payload)
    except BadRequest as e:
        return _error_response(400, str(e))
    except ValidationError as e:
        return _error_response(400, "Invalid request", _format_validation_error(e))

    try:
        outcome = await orchestrator.ingest(show_request, cover_image)
    except Exception:
        logger.exception("create_show_unhandled_error", user_id=admin.user_id)
        return _error_response(500, "Internal server error")

    return JSONResponse(status_code=outcome.http_status, content=outcome.to_dict())


@router.post("/parse-playlist")
async def parse_playlist(
    body: ParsePlaylistRequest,
    admin: AdminUser = Depends(require_admin),
) -> Dict[str, Any]:
    """Preview how a tracklist will be parsed, without saving anything."""
    result = parse_playlist_text(
        body.playlist_text,
        ParserOptions(allow_missing_track=body.allow_missing_track),
    )
    return {
        "success": not result.errors,
        "summary": generate_parse_summary(result),
        **result.to_dict(),
    }

"""
Step and outcome types for show ingestion.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class IngestionState(str, Enum):
    """States of the ingestion state machine."""

    VALIDATING = "validating"
    PERSISTING_SHOW = "persisting_show"
    PERSISTING_TRACKS = "persisting_tracks"
    MIRRORING_CMS = "mirroring_cms"
    LINKING = "linking"
    DONE = "done"
    PARTIAL_FAILURE = "partial_failure"
    REJECTED = "rejected"
    FAILED = "failed"


class ErrorKind(str, Enum):
    """How a failed step affects the request."""

    VALIDATION = "validation"
    FATAL = "fatal"
    PARTIAL = "partial"


@dataclass
class StepResult(Generic[T]):
    """Result of one ingestion step."""

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def success(cls, value: Optional[T] = None, warnings: Optional[List[str]] = None) -> "StepResult[T]":
        return cls(ok=True, value=value, warnings=list(warnings or []))

    @classmethod
    def failure(cls, error: str, kind: ErrorKind) -> "StepResult[T]":
        return cls(ok=False, error=error, kind=kind)


@dataclass
class IngestionOutcome:
    """Aggregated result of one create-show request."""

    state: IngestionState = IngestionState.VALIDATING
    history: List[IngestionState] = field(default_factory=list)
    show_id: Optional[str] = None
    storyblok_id: Optional[int] = None
    storyblok_slug: Optional[str] = None
    tracks_count: int = 0
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    message: str = ""

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def http_status(self) -> int:
        if self.state == IngestionState.REJECTED:
            return 400
        if self.state == IngestionState.FAILED or self.show_id is None:
            return 500
        return 200 if self.success else 207

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": self.success,
            "show_id": self.show_id,
            "tracks_count": self.tracks_count,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "message": self.message,
        }
        if self.storyblok_id is not None:
            data["storyblok_id"] = self.storyblok_id
            data["storyblok_slug"] = self.storyblok_slug
        return data

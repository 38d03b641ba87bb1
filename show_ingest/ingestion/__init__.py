"""
Show ingestion pipeline.
"""

from .cms_mirror import CMSMirror, CoverImage, MirroredStory, ShowMeta
from .orchestrator import ShowIngestionOrchestrator
from .results import ErrorKind, IngestionOutcome, IngestionState, StepResult

__all__ = [
    "CMSMirror",
    "CoverImage",
    "ErrorKind",
    "IngestionOutcome",
    "IngestionState",
    "MirroredStory",
    "ShowIngestionOrchestrator",
    "ShowMeta",
    "StepResult",
]

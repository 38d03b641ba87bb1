"""
Show Ingest

Imports Mixcloud radio shows: tracklist parsing, persistence, and mirroring
into the Storyblok CMS.
"""

import importlib.metadata

__version__ = importlib.metadata.version("show-ingest")

from .ingestion import CMSMirror, IngestionOutcome, ShowIngestionOrchestrator
from .oauth import MixcloudTokenManager
from .playlist import ParsedTrack, PlaylistParseResult, parse_playlist_text

__all__ = [
    "CMSMirror",
    "IngestionOutcome",
    "MixcloudTokenManager",
    "ParsedTrack",
    "PlaylistParseResult",
    "ShowIngestionOrchestrator",
    "parse_playlist_text",
]

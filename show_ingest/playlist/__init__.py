"""
Tracklist parsing.
"""

from .parser import (
    ParsedTrack,
    ParserOptions,
    PlaylistParseResult,
    generate_parse_summary,
    parse_playlist_text,
    tracks_to_db_format,
    tracks_to_mixcloud_format,
    tracks_to_storyblok_format,
)

__all__ = [
    "ParsedTrack",
    "ParserOptions",
    "PlaylistParseResult",
    "generate_parse_summary",
    "parse_playlist_text",
    "tracks_to_db_format",
    "tracks_to_mixcloud_format",
    "tracks_to_storyblok_format",
]

"""
Playlist parser.

Turns the plain-text tracklist an admin pastes next to a Mixcloud upload into
structured tracks. Input looks like::

    HOUR 1
    Kerri Chandler - Rain
    Maya Jane Coles - What They Say
    # comments and blank lines are ignored
    HOUR 2
    Moodymann - Shades Of Jae

The parser is pure: no I/O, and the same text always yields the same result.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Pattern

HOUR_PATTERN = re.compile(r"^HOUR\s+(-?\d+)", re.IGNORECASE)

# Spaced hyphen, en dash or em dash; the first occurrence splits artist/title.
SEPARATOR_PATTERN = re.compile(r"\s+[-–—]\s+")


@dataclass(frozen=True)
class ParsedTrack:
    """A single tracklist entry."""

    position: int
    hour: Optional[int]
    artist: str
    track: str
    raw: str


@dataclass
class PlaylistParseResult:
    """Outcome of parsing a tracklist."""

    tracks: List[ParsedTrack] = field(default_factory=list)
    hours: List[int] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def total_tracks(self) -> int:
        return len(self.tracks)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tracks": [
                {
                    "position": t.position,
                    "hour": t.hour,
                    "artist": t.artist,
                    "track": t.track,
                    "raw": t.raw,
                }
                for t in self.tracks
            ],
            "total_tracks": self.total_tracks,
            "hours": list(self.hours),
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class ParserOptions:
    """Knobs for :func:`parse_playlist_text`."""

    # Drop lines that fail to parse instead of keeping a PARSE_ERROR entry.
    skip_invalid_lines: bool = True
    # Accept lines with no title; the whole line becomes the artist.
    allow_missing_track: bool = False
    hour_pattern: Pattern[str] = HOUR_PATTERN


@dataclass
class _LineResult:
    track: Optional[ParsedTrack] = None
    error: Optional[str] = None
    warning: Optional[str] = None


def parse_playlist_text(
    playlist_text: str, options: Optional[ParserOptions] = None
) -> PlaylistParseResult:
    """Parse playlist text into structured track data."""
    opts = options or ParserOptions()
    lines = [line.strip() for line in playlist_text.splitlines()]
    lines = [line for line in lines if line]

    result = PlaylistParseResult()
    seen_hours = set()
    current_hour: Optional[int] = None
    position = 1

    for index, line in enumerate(lines):
        line_number = index + 1

        hour_match = opts.hour_pattern.match(line)
        if hour_match:
            hour = int(hour_match.group(1))
            if hour < 1:
                result.errors.append(
                    f'Line {line_number}: Invalid hour number "{hour_match.group(1)}"'
                )
            elif current_hour is not None and hour < current_hour:
                result.warnings.append(
                    f"Line {line_number}: HOUR {hour} comes after HOUR {current_hour}, "
                    f"keeping hour {current_hour}"
                )
            else:
                current_hour = hour
                seen_hours.add(hour)
            continue

        if line.startswith("#"):
            continue

        parsed = _parse_track_line(line, position, current_hour, opts)

        if parsed.error:
            result.errors.append(f"Line {line_number}: {parsed.error}")
            if not opts.skip_invalid_lines:
                result.tracks.append(
                    ParsedTrack(
                        position=position,
                        hour=current_hour,
                        artist="PARSE_ERROR",
                        track=line,
                        raw=line,
                    )
                )
                position += 1
            continue

        if parsed.warning:
            result.warnings.append(f"Line {line_number}: {parsed.warning}")
        if parsed.track:
            result.tracks.append(parsed.track)
            position += 1

    result.hours = sorted(seen_hours)
    return result


def _parse_track_line(
    line: str, position: int, hour: Optional[int], opts: ParserOptions
) -> _LineResult:
    parts = SEPARATOR_PATTERN.split(line, maxsplit=1)
    warning = None

    if len(parts) == 2:
        artist, title = parts[0].strip(), parts[1].strip()
    elif line.endswith(" -"):
        artist, title = line[:-2].strip(), ""
    elif line.startswith("- "):
        artist, title = "", line[2:].strip()
    elif "-" in line.strip("-"):
        artist, _, title = line.partition("-")
        artist, title = artist.strip(), title.strip()
        warning = (
            f'No spaced " - " separator, split on first hyphen as '
            f'"{artist}" / "{title}"'
        )
    elif opts.allow_missing_track:
        return _LineResult(
            track=ParsedTrack(position, hour, line, "", line),
            warning="No track separator found, treating as artist name only",
        )
    else:
        return _LineResult(error=f'Missing track separator " - " in line: "{line}"')

    if not artist:
        return _LineResult(error=f'Empty artist name in line: "{line}"')

    if not title:
        if opts.allow_missing_track:
            return _LineResult(
                track=ParsedTrack(position, hour, artist, "", line),
                warning="Empty track name after separator",
            )
        return _LineResult(error=f'Empty track name in line: "{line}"')

    return _LineResult(
        track=ParsedTrack(position, hour, artist, title, line),
        warning=warning,
    )


def tracks_to_db_format(tracks: List[ParsedTrack]) -> List[Dict[str, Any]]:
    """Convert parsed tracks to ``mixcloud_tracks`` row values."""
    return [
        {
            "position": t.position,
            "hour": t.hour,
            "artist": t.artist,
            "track": t.track,
        }
        for t in tracks
    ]


def tracks_to_storyblok_format(tracks: List[ParsedTrack]) -> List[Dict[str, Any]]:
    """Convert parsed tracks to Storyblok ``track`` blocks."""
    return [
        {
            "component": "track",
            "_uid": f"track_{t.position}",
            "position": t.position,
            "hour": t.hour,
            "artist": t.artist,
            "track": t.track,
            "spotify_url": "",
            "youtube_url": "",
            "discogs_url": "",
        }
        for t in tracks
    ]


def tracks_to_mixcloud_format(tracks: List[ParsedTrack]) -> Dict[str, str]:
    """Convert parsed tracks to Mixcloud upload ``sections-N-*`` fields."""
    data: Dict[str, str] = {}
    for index, t in enumerate(tracks):
        data[f"sections-{index}-artist"] = t.artist
        data[f"sections-{index}-song"] = t.track
    return data


def generate_parse_summary(result: PlaylistParseResult) -> str:
    """Human-readable one-paragraph summary of a parse."""
    summary = f"Parsed {result.total_tracks} tracks"
    if result.hours:
        hours = ", ".join(str(h) for h in result.hours)
        summary += f" across {len(result.hours)} hour(s) ({hours})"
    if result.errors:
        summary += f"\n{len(result.errors)} error(s)"
    if result.warnings:
        summary += f"\n{len(result.warnings)} warning(s)"
    return summary

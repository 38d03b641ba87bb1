"""Tests for the plain-text tracklist parser."""

import pytest

from show_ingest.playlist import (
    ParserOptions,
    generate_parse_summary,
    parse_playlist_text,
    tracks_to_db_format,
    tracks_to_mixcloud_format,
    tracks_to_storyblok_format,
)

TWO_HOUR_PLAYLIST = """
HOUR 1
Kerri Chandler - Rain
Maya Jane Coles - What They Say

HOUR 2
Moodymann - Shades Of Jae
"""


class TestHappyPath:
    """Well-formed tracklists."""

    def test_tracks_get_positions_and_hours(self):
        result = parse_playlist_text(TWO_HOUR_PLAYLIST)

        assert result.errors == []
        assert result.warnings == []
        assert [(t.position, t.hour, t.artist, t.track) for t in result.tracks] == [
            (1, 1, "Kerri Chandler", "Rain"),
            (2, 1, "Maya Jane Coles", "What They Say"),
            (3, 2, "Moodymann", "Shades Of Jae"),
        ]
        assert result.hours == [1, 2]
        assert result.total_tracks == 3

    def test_tracks_before_any_hour_marker_have_no_hour(self):
        result = parse_playlist_text("Artist - Title")

        assert result.tracks[0].hour is None
        assert result.hours == []

    def test_hour_marker_after_unmarked_tracks(self):
        result = parse_playlist_text("A - B\nC - D\nHOUR 2\nE - F\nG - H\nI - J")

        assert [t.hour for t in result.tracks] == [None, None, 2, 2, 2]
        assert [t.position for t in result.tracks] == [1, 2, 3, 4, 5]
        assert result.hours == [2]
        assert result.errors == []

    def test_only_first_separator_splits(self):
        result = parse_playlist_text("Jay-Z - Song - Extended Mix")

        track = result.tracks[0]
        assert track.artist == "Jay-Z"
        assert track.track == "Song - Extended Mix"

    def test_en_dash_separator(self):
        result = parse_playlist_text("Floating Points – Silhouettes")

        assert result.tracks[0].artist == "Floating Points"
        assert result.tracks[0].track == "Silhouettes"

    def test_hour_marker_is_case_insensitive(self):
        result = parse_playlist_text("hour 3\nA - B")

        assert result.tracks[0].hour == 3

    def test_comments_and_blank_lines_are_ignored(self):
        result = parse_playlist_text("# intro\n\n   \nA - B\n# outro")

        assert result.total_tracks == 1
        assert result.errors == []

    def test_raw_line_is_kept(self):
        result = parse_playlist_text("   A - B   ")

        assert result.tracks[0].raw == "A - B"

    def test_empty_text(self):
        result = parse_playlist_text("")

        assert result.tracks == []
        assert result.errors == []

    def test_same_text_parses_the_same(self):
        assert parse_playlist_text(TWO_HOUR_PLAYLIST) == parse_playlist_text(TWO_HOUR_PLAYLIST)


class TestInvalidLines:
    """Lines that cannot become tracks."""

    def test_missing_separator_is_an_error(self):
        result = parse_playlist_text("A - B\nJust some words\nC - D")

        assert result.errors == [
            'Line 2: Missing track separator " - " in line: "Just some words"'
        ]
        # positions stay contiguous over skipped lines
        assert [t.position for t in result.tracks] == [1, 2]

    def test_empty_title_is_an_error(self):
        result = parse_playlist_text("Artist -")

        assert result.tracks == []
        assert result.errors == ['Line 1: Empty track name in line: "Artist -"']

    def test_empty_artist_is_an_error(self):
        result = parse_playlist_text("- Title")

        assert result.tracks == []
        assert result.errors == ['Line 1: Empty artist name in line: "- Title"']

    def test_line_numbers_count_non_blank_lines(self):
        result = parse_playlist_text("A - B\n\n\nnope")

        assert result.errors[0].startswith("Line 2: ")

    @pytest.mark.parametrize("marker", ["HOUR 0", "HOUR -1"])
    def test_hour_below_one_is_an_error(self, marker):
        result = parse_playlist_text(f"{marker}\nA - B")

        assert result.errors == [f'Line 1: Invalid hour number "{marker.split()[1]}"']
        assert result.tracks[0].hour is None

    def test_decreasing_hour_is_ignored_with_warning(self):
        result = parse_playlist_text("HOUR 2\nA - B\nHOUR 1\nC - D")

        assert [t.hour for t in result.tracks] == [2, 2]
        assert len(result.warnings) == 1
        assert result.warnings[0].startswith("Line 3: ")

    def test_bare_hyphen_splits_with_warning(self):
        result = parse_playlist_text("Artist-Title")

        assert result.errors == []
        assert result.tracks[0].artist == "Artist"
        assert result.tracks[0].track == "Title"
        assert len(result.warnings) == 1

    def test_keep_invalid_lines_as_parse_errors(self):
        result = parse_playlist_text(
            "A - B\nbroken\nC - D", ParserOptions(skip_invalid_lines=False)
        )

        assert [t.artist for t in result.tracks] == ["A", "PARSE_ERROR", "C"]
        assert [t.position for t in result.tracks] == [1, 2, 3]

    def test_allow_missing_track(self):
        result = parse_playlist_text(
            "Unknown Artist", ParserOptions(allow_missing_track=True)
        )

        assert result.errors == []
        assert result.tracks[0].artist == "Unknown Artist"
        assert result.tracks[0].track == ""
        assert result.warnings == [
            "Line 1: No track separator found, treating as artist name only"
        ]


class TestFormatting:
    """Conversions of parsed tracks for the database, Storyblok and Mixcloud."""

    def test_db_format(self):
        tracks = parse_playlist_text(TWO_HOUR_PLAYLIST).tracks

        rows = tracks_to_db_format(tracks)

        assert rows[0] == {"position": 1, "hour": 1, "artist": "Kerri Chandler", "track": "Rain"}

    def test_storyblok_format(self):
        tracks = parse_playlist_text(TWO_HOUR_PLAYLIST).tracks

        blocks = tracks_to_storyblok_format(tracks)

        assert blocks[2]["component"] == "track"
        assert blocks[2]["_uid"] == "track_3"
        assert blocks[2]["hour"] == 2
        assert blocks[2]["spotify_url"] == ""

    def test_mixcloud_format(self):
        tracks = parse_playlist_text("A - B\nC - D").tracks

        assert tracks_to_mixcloud_format(tracks) == {
            "sections-0-artist": "A",
            "sections-0-song": "B",
            "sections-1-artist": "C",
            "sections-1-song": "D",
        }

    def test_summary(self):
        result = parse_playlist_text(TWO_HOUR_PLAYLIST + "\nbroken")

        summary = generate_parse_summary(result)

        assert summary.startswith("Parsed 3 tracks across 2 hour(s) (1, 2)")
        assert "1 error(s)" in summary

    def test_to_dict(self):
        data = parse_playlist_text("HOUR 1\nA - B").to_dict()

        assert data["total_tracks"] == 1
        assert data["hours"] == [1]
        assert data["tracks"][0]["artist"] == "A"

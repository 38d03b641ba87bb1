"""Tests for slug, URL and embed helpers."""

from datetime import datetime, timezone

import pytest

from show_ingest.primitives import (
    as_utc,
    create_slug,
    create_unique_slug,
    generate_mixcloud_embed,
    is_mixcloud_url,
    mixcloud_path,
)


class TestSlugs:
    @pytest.mark.parametrize(
        "title,expected",
        [
            ("Deep House Vol.1", "deep-house-vol1"),
            ("  Late   Night  Session ", "late-night-session"),
            ("Café del Mar", "cafe-del-mar"),
            ("Rock & Roll -- Special", "rock-roll-special"),
            ("!!!", "show"),
        ],
    )
    def test_create_slug(self, title, expected):
        assert create_slug(title) == expected

    def test_unique_slug_without_collision(self):
        assert create_unique_slug("Deep House Vol.1", ["other"]) == "deep-house-vol1"

    def test_unique_slug_appends_counter(self):
        existing = ["deep-house-vol1", "deep-house-vol1-1"]

        assert create_unique_slug("Deep House Vol.1", existing) == "deep-house-vol1-2"


class TestMixcloudUrls:
    def test_is_mixcloud_url(self):
        assert is_mixcloud_url("https://www.mixcloud.com/dj/show/")
        assert not is_mixcloud_url("https://soundcloud.com/dj/show")

    def test_mixcloud_path(self):
        assert mixcloud_path("https://www.mixcloud.com/dj/show/") == "/dj/show/"
        assert mixcloud_path("not a url") is None

    def test_embed_uses_url_encoded_path(self):
        embed = generate_mixcloud_embed("https://www.mixcloud.com/dj/show/")

        assert embed == (
            '<iframe width="100%" height="120" '
            'src="https://www.mixcloud.com/widget/iframe/?hide_cover=1&feed=%2Fdj%2Fshow%2F" '
            'frameborder="0"></iframe>'
        )

    def test_embed_for_unparseable_url_is_empty(self):
        assert generate_mixcloud_embed("mixcloud.com/dj/show") == ""


def test_as_utc_treats_naive_values_as_utc():
    naive = datetime(2026, 1, 1, 12, 0)

    assert as_utc(naive) == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert as_utc(None) is None

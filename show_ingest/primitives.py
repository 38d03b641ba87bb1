"""
Small helpers shared across the ingestion pipeline.
"""

from __future__ import annotations

import re
import unicodedata
import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional
from urllib.parse import quote, urlparse

MIXCLOUD_HOST = "mixcloud.com"
MIXCLOUD_WIDGET_URL = "https://www.mixcloud.com/widget/iframe/"


def generate_id() -> str:
    """Generate a string primary key."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def create_slug(text: str) -> str:
    """Derive a URL-safe slug from a title.

    Accents are folded to ASCII, punctuation is dropped and whitespace runs
    become single hyphens: ``"Deep House Vol.1"`` -> ``"deep-house-vol1"``.
    """
    folded = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode()
    slug = folded.lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    slug = slug.strip("-")
    return slug or "show"


def create_unique_slug(title: str, existing_slugs: Iterable[str] = ()) -> str:
    """Derive a slug and append ``-1``, ``-2``... until it is unused."""
    taken = set(existing_slugs)
    base_slug = create_slug(title)
    slug = base_slug
    counter = 1
    while slug in taken:
        slug = f"{base_slug}-{counter}"
        counter += 1
    return slug


def is_mixcloud_url(url: str) -> bool:
    return MIXCLOUD_HOST in url


def mixcloud_path(url: str) -> Optional[str]:
    """Return the show path (``/user/show-name/``) of a Mixcloud URL."""
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        return None
    return parsed.path or "/"


def generate_mixcloud_embed(mixcloud_url: str) -> str:
    """Build the Mixcloud widget iframe for a show URL.

    Returns an empty string when the URL cannot be parsed.
    """
    path = mixcloud_path(mixcloud_url)
    if path is None:
        return ""
    feed = quote(path, safe="!~*'()")
    return (
        f'<iframe width="100%" height="120" '
        f'src="{MIXCLOUD_WIDGET_URL}?hide_cover=1&feed={feed}" '
        f'frameborder="0"></iframe>'
    )

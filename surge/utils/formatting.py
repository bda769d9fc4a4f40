"""
Helper functions for turning raw API payloads into display-ready values.
"""

import html
from typing import Any

THUMBNAIL_PREFERENCE = ("high", "medium", "default")


def clean_title(raw_title: str | None) -> str:
    """Unescapes the HTML entities the search API leaves in titles."""
    if not raw_title:
        return "Unknown Title"
    return html.unescape(raw_title).strip() or "Unknown Title"


def best_thumbnail_url(snippet: dict[str, Any]) -> str | None:
    """
    Picks the largest thumbnail offered in a result snippet.

    Returns None when the snippet carries no thumbnails at all, in which case the
    downloader falls back to an id-based lookup.
    """
    thumbnails = snippet.get("thumbnails") or {}
    for size in THUMBNAIL_PREFERENCE:
        if (entry := thumbnails.get(size)) and (url := entry.get("url")):
            return url
    return None

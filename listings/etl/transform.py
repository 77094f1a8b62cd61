"""Utilities for turning raw scraped strings into presentable listing fields."""

import re
from typing import Optional
from urllib.parse import quote

MAX_NAME_LENGTH = 50

_NAME_DASH_SUFFIX = re.compile(r"\s+-\s+.*$", re.DOTALL)
_NAME_PIPE_SUFFIX = re.compile(r"\s*\|.*$", re.DOTALL)
_WHITESPACE_RUN = re.compile(r"\s+")
_RATING_PATTERN = re.compile(r"(\d+\.\d+)")

# characters encodeURIComponent leaves untouched, beyond quote()'s defaults
_URI_COMPONENT_SAFE = "!~*'()"


def _strip_trailing_ellipsis(text: str) -> str:
    stripped = text.rstrip()
    while True:
        if stripped.endswith("..."):
            stripped = stripped.rstrip(".").rstrip()
        elif stripped.endswith("…"):
            stripped = stripped[:-1].rstrip()
        else:
            return stripped


def clean_business_name(name: str) -> str:
    """Strip listing-site suffixes (" - City", " | Yelp", "...") and cap the length.

    Cleaning an already clean name returns it unchanged.
    """
    if not name:
        return ""

    cleaned = _WHITESPACE_RUN.sub(" ", name).strip()
    cleaned = _NAME_DASH_SUFFIX.sub("", cleaned)
    cleaned = _NAME_PIPE_SUFFIX.sub("", cleaned)
    cleaned = _strip_trailing_ellipsis(cleaned)

    # truncation can expose a new trailing ellipsis or space
    return _strip_trailing_ellipsis(cleaned[:MAX_NAME_LENGTH]).strip()


def clean_address(address: str) -> str:
    """Collapse whitespace (including CR, LF and tabs) into single spaces."""
    if not address:
        return ""
    return _WHITESPACE_RUN.sub(" ", address).strip()


def extract_rating(text: Optional[str]) -> Optional[float]:
    """Return the first decimal number found in ``text`` (e.g. "4.5 star rating")."""
    if not text:
        return None
    match = _RATING_PATTERN.search(text)
    if not match:
        return None
    return float(match.group(1))


def encode_component(value: str) -> str:
    """Percent-encode a query or path component the way encodeURIComponent does.

    Lone surrogates (possible in decoded JSON) are encoded rather than rejected.
    """
    return quote(value, safe=_URI_COMPONENT_SAFE, errors="surrogatepass")

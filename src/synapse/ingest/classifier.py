"""Input and content-type heuristics.

Pure string analysis, no I/O:
  - detect_input_kind: url | text | image_data_uri (total, never fails)
  - is_todo_list / parse_todo_items: bullet, numbered and checkbox lists
  - parse_quote: quoted text and "text - author" attributions
  - classify_url: youtube / product candidate / article by host and path
"""

from __future__ import annotations

import re
import urllib.parse
from dataclasses import dataclass
from enum import Enum

_IMAGE_DATA_URI_PREFIX = "data:image/"

_TODO_MARKERS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^[-*•]\s"),
    re.compile(r"^\d+[.)]\s"),
    re.compile(r"^\[[ x]\]\s", re.IGNORECASE),
)
_TODO_PREFIXES: tuple[re.Pattern[str], ...] = (
    re.compile(r"^[-*•]\s+"),
    re.compile(r"^\d+[.)]\s+"),
    re.compile(r"^\[[ x]\]\s+", re.IGNORECASE),
)

_QUOTE_PAIRS: tuple[tuple[str, str], ...] = (
    ('"', '"'),
    ("'", "'"),
    ("“", "”"),
    ("‘", "’"),
)
_QUOTE_CHARS = "\"'“”‘’"
_ATTRIBUTION_SEP = re.compile(r"—|\s-\s")

_YOUTUBE_HOSTS = ("youtube.com", "youtu.be")
_SHOPPING_MARKERS = ("amazon.", "/product", "shop", "store", "/buy")


class InputKind(str, Enum):
    URL = "url"
    TEXT = "text"
    IMAGE_DATA_URI = "image_data_uri"


class UrlKind(str, Enum):
    YOUTUBE = "youtube"
    PRODUCT_CANDIDATE = "product_candidate"
    ARTICLE = "article"


@dataclass(frozen=True)
class Quote:
    text: str
    author: str | None = None


def detect_input_kind(raw: str) -> InputKind:
    """Classify raw user input. Anything that is not a URL or image is text."""
    candidate = raw.strip()
    if _is_http_url(candidate):
        return InputKind.URL
    if candidate.startswith(_IMAGE_DATA_URI_PREFIX):
        return InputKind.IMAGE_DATA_URI
    return InputKind.TEXT


def _is_http_url(value: str) -> bool:
    if not value or any(ch.isspace() for ch in value):
        return False
    try:
        parsed = urllib.parse.urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def is_todo_list(text: str) -> bool:
    """True when at least half the non-empty lines carry a list marker.

    A single line is never a list.
    """
    lines = [line.strip() for line in text.strip().splitlines()]
    lines = [line for line in lines if line]
    if len(lines) < 2:
        return False

    marked = sum(1 for line in lines if any(p.match(line) for p in _TODO_MARKERS))
    return marked >= len(lines) * 0.5


def parse_todo_items(text: str) -> list[str]:
    """Strip list markers from every non-empty line, preserving order."""
    items: list[str] = []
    for line in text.strip().splitlines():
        cleaned = line.strip()
        if not cleaned:
            continue
        for prefix in _TODO_PREFIXES:
            cleaned = prefix.sub("", cleaned)
        if cleaned:
            items.append(cleaned)
    return items


def parse_quote(text: str) -> Quote | None:
    """Return a Quote if *text* looks like one, else None.

    Text wrapped in matching quote characters, or containing an em-dash or a
    spaced hyphen, is a quote. The author is whatever follows the last
    separator; the quote body is the first segment with its quote characters
    stripped.
    """
    trimmed = text.strip()
    if not trimmed:
        return None

    wrapped = len(trimmed) >= 2 and any(
        trimmed.startswith(open_) and trimmed.endswith(close) for open_, close in _QUOTE_PAIRS
    )
    has_separator = _ATTRIBUTION_SEP.search(trimmed) is not None
    if not (wrapped or has_separator):
        return None

    parts = [p.strip() for p in _ATTRIBUTION_SEP.split(trimmed)]
    body = _strip_quote_chars(parts[0])
    author = parts[-1] if len(parts) > 1 and parts[-1] else None
    if not body:
        return None
    return Quote(text=body, author=author)


def _strip_quote_chars(value: str) -> str:
    if value[:1] in _QUOTE_CHARS:
        value = value[1:]
    if value[-1:] in _QUOTE_CHARS:
        value = value[:-1]
    return value.strip()


def classify_url(url: str) -> UrlKind:
    """Pick an extraction path from the URL alone.

    Product candidates only become products once a price is found on the page.
    """
    lowered = url.lower()
    host = (urllib.parse.urlparse(lowered).hostname or "").removeprefix("www.")
    if any(host == h or host.endswith("." + h) for h in _YOUTUBE_HOSTS):
        return UrlKind.YOUTUBE
    if any(marker in lowered for marker in _SHOPPING_MARKERS):
        return UrlKind.PRODUCT_CANDIDATE
    return UrlKind.ARTICLE

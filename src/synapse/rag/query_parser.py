"""Natural-language search query → keywords, content-type filters, date range.

Three independent, pure extractions:
  - content types: singular/plural synonyms per kind ("videos" → youtube)
  - date range: a fixed vocabulary of relative phrases anchored at ``now``
  - keywords: lower-cased, punctuation stripped, stop words removed,
    tokens shorter than ``min_keyword_length`` and pure numbers dropped,
    de-duplicated in first-seen order

Keywords and types depend only on the query string. The date range is
relative to the parse instant by design.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from synapse.db.models import ContentKind

_TYPE_SYNONYMS: dict[ContentKind, tuple[str, ...]] = {
    ContentKind.ARTICLE: ("article", "articles", "post", "posts", "blog"),
    ContentKind.YOUTUBE: ("video", "videos", "youtube"),
    ContentKind.PRODUCT: ("product", "products", "item for sale"),
    ContentKind.TODO: ("todo", "todos", "task", "tasks", "list"),
    ContentKind.QUOTE: ("quote", "quotes"),
    ContentKind.NOTE: ("note", "notes"),
    ContentKind.IMAGE: (
        "image",
        "images",
        "picture",
        "pictures",
        "photo",
        "photos",
        "screenshot",
    ),
}

_TYPE_PATTERNS: dict[ContentKind, re.Pattern[str]] = {
    kind: re.compile(r"\b(?:" + "|".join(re.escape(s) for s in synonyms) + r")\b")
    for kind, synonyms in _TYPE_SYNONYMS.items()
}

_GENERIC_STOP_WORDS = frozenset(
    """
    the a an and or but in on at to for of with by from as is was are were been
    be have has had do does did will would could should may might can about into
    through during before after above below between under again further then
    once here there when where why how all both each few more most other some
    such only own same so than too very that these those
    """.split()
)
_PRONOUN_STOP_WORDS = frozenset("i me my mine your his her its our their saved".split())
_DATE_STOP_WORDS = frozenset(
    "today yesterday week last this month year days past recent ago".split()
)
_TYPE_STOP_WORDS = frozenset(
    """
    article articles video videos youtube product products todo todos task tasks
    list quote quotes note notes image images picture pictures photo photos
    screenshot
    """.split()
)
STOP_WORDS: frozenset[str] = (
    _GENERIC_STOP_WORDS | _PRONOUN_STOP_WORDS | _DATE_STOP_WORDS | _TYPE_STOP_WORDS
)

MIN_KEYWORD_LENGTH = 3

_PUNCTUATION_RE = re.compile(r"[^\w\s]")


@dataclass(frozen=True)
class DateRange:
    """Half-open interval ``[start, end)`` with a display label."""

    start: datetime
    end: datetime
    label: str

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end


@dataclass
class ParsedQuery:
    raw_query: str
    keywords: list[str] = field(default_factory=list)
    content_types: set[ContentKind] = field(default_factory=set)
    date_range: DateRange | None = None

    @property
    def search_text(self) -> str:
        """Text to embed: the keywords if any survived, else the raw query."""
        return " ".join(self.keywords) if self.keywords else self.raw_query


def parse_query(
    query: str,
    *,
    now: datetime | None = None,
    min_keyword_length: int = MIN_KEYWORD_LENGTH,
) -> ParsedQuery:
    lowered = query.lower()
    return ParsedQuery(
        raw_query=query,
        keywords=extract_keywords(lowered, min_keyword_length=min_keyword_length),
        content_types=extract_content_types(lowered),
        date_range=extract_date_range(lowered, now=now),
    )


def extract_content_types(query: str) -> set[ContentKind]:
    lowered = query.lower()
    return {kind for kind, pattern in _TYPE_PATTERNS.items() if pattern.search(lowered)}


def extract_keywords(query: str, *, min_keyword_length: int = MIN_KEYWORD_LENGTH) -> list[str]:
    words = _PUNCTUATION_RE.sub(" ", query.lower()).split()
    keywords: dict[str, None] = {}
    for word in words:
        if len(word) < min_keyword_length or word in STOP_WORDS or word.isdigit():
            continue
        keywords.setdefault(word, None)
    return list(keywords)


def extract_date_range(query: str, *, now: datetime | None = None) -> DateRange | None:
    """Map the first recognised relative-date phrase to a concrete range.

    ``now`` defaults to the current local time (timezone-aware).
    """
    lowered = query.lower()
    current = now or datetime.now().astimezone()
    today = current.replace(hour=0, minute=0, second=0, microsecond=0)
    tomorrow_from_now = current + timedelta(days=1)

    if "today" in lowered:
        return DateRange(today, today + timedelta(days=1), "today")

    if "yesterday" in lowered:
        return DateRange(today - timedelta(days=1), today, "yesterday")

    # weeks start on Sunday
    days_since_sunday = (today.weekday() + 1) % 7
    start_of_week = today - timedelta(days=days_since_sunday)

    if "this week" in lowered:
        return DateRange(start_of_week, tomorrow_from_now, "this week")

    if "last week" in lowered:
        start = start_of_week - timedelta(days=7)
        return DateRange(start, start + timedelta(days=7), "last week")

    start_of_month = today.replace(day=1)

    if "this month" in lowered:
        return DateRange(start_of_month, tomorrow_from_now, "this month")

    if "last month" in lowered:
        return DateRange(_previous_month_start(start_of_month), start_of_month, "last month")

    if "this year" in lowered:
        return DateRange(today.replace(month=1, day=1), tomorrow_from_now, "this year")

    if "last 7 days" in lowered or "past week" in lowered:
        return DateRange(today - timedelta(days=7), tomorrow_from_now, "last 7 days")

    if "last 30 days" in lowered or "past month" in lowered:
        return DateRange(today - timedelta(days=30), tomorrow_from_now, "last 30 days")

    return None


def _previous_month_start(start_of_month: datetime) -> datetime:
    if start_of_month.month == 1:
        return start_of_month.replace(year=start_of_month.year - 1, month=12)
    return start_of_month.replace(month=start_of_month.month - 1)

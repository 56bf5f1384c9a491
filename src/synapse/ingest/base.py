"""Extraction result types shared by every extractor.

Extractors never raise on transient failure. They return an ``Extraction``
whose ``status`` says how complete it is:

  ok        every stage succeeded
  degraded  something was missing or failed, a usable record remains
  failed    nothing could be fetched; only placeholder fields are set
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any

from synapse.db.models import ContentKind


class ExtractionStatus(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"
    FAILED = "failed"

    def worst(self, other: ExtractionStatus) -> ExtractionStatus:
        order = [ExtractionStatus.OK, ExtractionStatus.DEGRADED, ExtractionStatus.FAILED]
        return max(self, other, key=order.index)


@dataclass
class Extraction:
    """Normalised output of one extraction path.

    Attributes:
        kind: Content kind the source resolved to.
        title: Display title (may be empty; the pipeline supplies a fallback).
        body: Primary text payload.
        attributes: Kind-specific fields merged into the saved item.
        embedding_text: Text to embed instead of ``title + body``, if set.
        insight_text: Text to summarise instead of ``body``, if set.
        status: ok / degraded / failed.
        issues: Human-readable notes on what degraded.
    """

    kind: ContentKind
    title: str = ""
    body: str = ""
    attributes: dict[str, Any] = field(default_factory=dict)
    embedding_text: str | None = None
    insight_text: str | None = None
    status: ExtractionStatus = ExtractionStatus.OK
    issues: list[str] = field(default_factory=list)

    def degrade(self, issue: str) -> None:
        """Record *issue* and lower the status to at least degraded."""
        self.issues.append(issue)
        self.status = self.status.worst(ExtractionStatus.DEGRADED)


def placeholder_title(label: str, today: date | None = None) -> str:
    """Date-stamped fallback title, e.g. ``Note - 2026-10-19``."""
    day = today or date.today()
    return f"{label} - {day.isoformat()}"

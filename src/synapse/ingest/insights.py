"""Summary, key points, topics and free-text classification via LiteLLM.

Both entry points are total: a model error or an unparseable reply yields
default values, never an exception.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from synapse.config import GenerationCfg, InsightsCfg
from synapse.db.models import ContentKind
from synapse.rag.llm_client import complete, user_message
from synapse.rag.structured import decode_object

logger = logging.getLogger(__name__)

INSIGHT_KINDS: frozenset[ContentKind] = frozenset(
    {ContentKind.ARTICLE, ContentKind.YOUTUBE, ContentKind.NOTE}
)
_CLASSIFIABLE_KINDS: frozenset[ContentKind] = frozenset(
    {ContentKind.ARTICLE, ContentKind.TODO, ContentKind.QUOTE, ContentKind.NOTE}
)

_PROMPT_CHARS = 2_000
_FALLBACK_SUMMARY_CHARS = 200
_TITLE_MAX = 100

_INSIGHTS_PROMPT = """\
Analyze this {kind} and provide insights in JSON format:

Title: {title}
Content: {content}

Respond ONLY with valid JSON in this format:
{{
  "summary": "2-3 sentence summary of the main points",
  "keyPoints": ["point 1", "point 2", "point 3"],
  "topics": ["topic1", "topic2", "topic3"]
}}

Keep it concise and actionable."""

_CLASSIFY_PROMPT = """\
Analyze this content and respond ONLY with valid JSON in this exact format:
{{
  "type": "article|todo|quote|note",
  "title": "brief title",
  "summary": "one sentence summary"
}}

Content: {content}"""


@dataclass
class Insights:
    summary: str
    key_points: list[str] = field(default_factory=list)
    topics: list[str] = field(default_factory=list)

    def as_attributes(self) -> dict:
        return {
            "ai_summary": self.summary,
            "key_points": list(self.key_points),
            "topics": list(self.topics),
        }


@dataclass
class TextClassification:
    kind: ContentKind
    title: str
    summary: str | None = None


def fallback_summary(body: str) -> str:
    if len(body) <= _FALLBACK_SUMMARY_CHARS:
        return body
    return body[:_FALLBACK_SUMMARY_CHARS] + "..."


class InsightGenerator:
    """Generate insights and classify ambiguous text.

    Args:
        generation: Model, timeout and retry settings.
        config: Eligibility thresholds.
    """

    def __init__(
        self,
        generation: GenerationCfg | None = None,
        config: InsightsCfg | None = None,
    ) -> None:
        self._generation = generation or GenerationCfg()
        self._config = config or InsightsCfg()

    def is_eligible(self, kind: ContentKind, body: str) -> bool:
        return kind in INSIGHT_KINDS and len(body) > self._config.min_body_chars

    def summarize(self, title: str, body: str, kind: ContentKind) -> Insights:
        """Summary, key points and topics for *body*.

        On any failure the summary is the truncated body and the lists are empty.
        """
        prompt = _INSIGHTS_PROMPT.format(
            kind=kind.value, title=title, content=body[:_PROMPT_CHARS]
        )
        try:
            text = self._complete(prompt, max_tokens=500, temperature=0.5)
        except Exception as exc:
            logger.warning("Insight generation failed for %r: %s", title[:60], exc)
            return Insights(summary=fallback_summary(body))

        fields, _ = decode_object(text, {"summary": "", "keyPoints": [], "topics": []})
        return Insights(
            summary=fields["summary"] or fallback_summary(body),
            key_points=fields["keyPoints"],
            topics=fields["topics"],
        )

    def classify_free_text(self, text: str) -> TextClassification:
        """Ask the model whether *text* is an article, todo, quote or note."""
        default_title = text.strip().split("\n")[0][:_TITLE_MAX]
        prompt = _CLASSIFY_PROMPT.format(content=text[:_PROMPT_CHARS])
        try:
            reply = self._complete(prompt, max_tokens=300, temperature=0.3)
        except Exception as exc:
            logger.warning("Free-text classification failed: %s", exc)
            return TextClassification(kind=ContentKind.NOTE, title=default_title)

        fields, _ = decode_object(reply, {"type": "note", "title": "", "summary": None})
        return TextClassification(
            kind=_parse_kind(fields["type"]),
            title=fields["title"][:_TITLE_MAX] or default_title,
            summary=fields["summary"] or None,
        )

    def _complete(self, prompt: str, max_tokens: int, temperature: float) -> str:
        return complete(
            model=self._generation.model,
            messages=[user_message(prompt)],
            max_tokens=max_tokens,
            temperature=temperature,
            num_retries=self._generation.num_retries,
            timeout=self._generation.timeout,
        )


def _parse_kind(value: str) -> ContentKind:
    try:
        kind = ContentKind(value.strip().lower())
    except ValueError:
        return ContentKind.NOTE
    return kind if kind in _CLASSIFIABLE_KINDS else ContentKind.NOTE

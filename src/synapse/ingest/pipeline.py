"""Ingestion pipeline: raw input → complete, unsaved ContentItem.

  1. Classify the input (url / text / image data URI).
  2. Run the matching extraction path.
  3. Embed ``title + body`` (or the extractor's embedding text), truncated.
  4. For insight-eligible items, merge summary / key points / topics.
  5. Return the item with its extraction status for the caller to persist.

Step 3 always runs on whatever text survived steps 1-2. The only error that
escapes is IngestionError for empty input.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import assert_never

from synapse.config import EmbeddingCfg, InsightsCfg
from synapse.db.models import ContentItem, ContentKind
from synapse.errors import IngestionError
from synapse.ingest.base import Extraction, ExtractionStatus, placeholder_title
from synapse.ingest.classifier import (
    InputKind,
    UrlKind,
    classify_url,
    detect_input_kind,
    is_todo_list,
    parse_quote,
    parse_todo_items,
)
from synapse.ingest.image import ImageExtractor
from synapse.ingest.insights import InsightGenerator
from synapse.ingest.web import WebExtractor
from synapse.ingest.youtube import YouTubeExtractor
from synapse.vectors import embed

logger = logging.getLogger(__name__)

_TITLE_MAX = 100


@dataclass
class IngestResult:
    item: ContentItem
    status: ExtractionStatus = ExtractionStatus.OK
    issues: list[str] = field(default_factory=list)


class IngestionPipeline:
    """Turn raw user input into a normalised ContentItem.

    Args:
        web: Article / product extractor.
        youtube: Video extractor.
        image: OCR + vision extractor.
        insights: Insight generator and free-text classifier.
        embedding: Embedding dimensions and truncation limits.
        insight_cfg: Insight input limits.
    """

    def __init__(
        self,
        web: WebExtractor,
        youtube: YouTubeExtractor,
        image: ImageExtractor,
        insights: InsightGenerator,
        embedding: EmbeddingCfg | None = None,
        insight_cfg: InsightsCfg | None = None,
    ) -> None:
        self._web = web
        self._youtube = youtube
        self._image = image
        self._insights = insights
        self._embedding = embedding or EmbeddingCfg()
        self._insight_cfg = insight_cfg or InsightsCfg()

    @property
    def insights(self) -> InsightGenerator:
        return self._insights

    def process(self, raw: str) -> IngestResult:
        """Run the full pipeline over *raw*.

        Raises:
            IngestionError: If *raw* is empty or whitespace.
        """
        if not raw or not raw.strip():
            raise IngestionError("Nothing to save: input is empty.")

        input_kind = detect_input_kind(raw)
        if input_kind is InputKind.URL:
            extraction = self._extract_url(raw.strip())
        elif input_kind is InputKind.IMAGE_DATA_URI:
            extraction = self._image.extract(raw.strip())
        elif input_kind is InputKind.TEXT:
            extraction = self._extract_text(raw)
        else:
            assert_never(input_kind)

        title = extraction.title.strip() or placeholder_title(_placeholder_label(extraction.kind))
        if not title:
            raise IngestionError("Could not produce a title for the input.")

        item = ContentItem(
            kind=extraction.kind,
            title=title,
            body=extraction.body,
            attributes={k: v for k, v in extraction.attributes.items() if v is not None},
        )
        item.embedding = self._embed(extraction, item)
        self._add_insights(extraction, item)

        if extraction.issues:
            logger.info(
                "Ingested %s item %r with status %s: %s",
                item.kind.value,
                item.title[:60],
                extraction.status.value,
                "; ".join(extraction.issues),
            )
        return IngestResult(item=item, status=extraction.status, issues=list(extraction.issues))

    # ------------------------------------------------------------------
    # Extraction paths
    # ------------------------------------------------------------------

    def _extract_url(self, url: str) -> Extraction:
        url_kind = classify_url(url)
        try:
            if url_kind is UrlKind.YOUTUBE:
                return self._youtube.extract(url)
            return self._web.extract(url, url_kind)
        except Exception as exc:
            logger.exception("Extraction crashed for %s", url)
            return Extraction(
                kind=ContentKind.ARTICLE,
                title=url,
                attributes={"url": url},
                status=ExtractionStatus.FAILED,
                issues=[f"extraction error: {exc}"],
            )

    def _extract_text(self, text: str) -> Extraction:
        if is_todo_list(text):
            todos = parse_todo_items(text)
            return Extraction(
                kind=ContentKind.TODO,
                title=placeholder_title("Todo List"),
                body=text,
                attributes={"todos": todos, "completed": [False] * len(todos)},
                embedding_text=text,
            )

        quote = parse_quote(text)
        if quote is not None:
            return Extraction(
                kind=ContentKind.QUOTE,
                title=quote.text[:_TITLE_MAX],
                body=quote.text,
                attributes={"author": quote.author},
                embedding_text=quote.text,
            )

        classification = self._insights.classify_free_text(text)
        return Extraction(
            kind=classification.kind,
            title=classification.title,
            body=text,
            attributes={"summary": classification.summary},
            embedding_text=text,
        )

    # ------------------------------------------------------------------
    # Embedding + insights
    # ------------------------------------------------------------------

    def _embed(self, extraction: Extraction, item: ContentItem) -> list[float] | None:
        text = extraction.embedding_text or f"{item.title} {item.body}"
        text = text[: self._embedding.max_input_chars]
        if not text.strip():
            return None
        return embed(text, self._embedding.dimensions, self._embedding.max_chars)

    def _add_insights(self, extraction: Extraction, item: ContentItem) -> None:
        insight_kind = _insight_kind(item, self._insight_cfg)
        if insight_kind is None:
            return

        if item.kind is not ContentKind.IMAGE and not self._insights.is_eligible(
            insight_kind, item.body
        ):
            return

        text = extraction.insight_text or item.body[: self._insight_cfg.max_input_chars]
        insights = self._insights.summarize(item.title, text, insight_kind)
        item.attributes.update(insights.as_attributes())


def _insight_kind(item: ContentItem, cfg: InsightsCfg) -> ContentKind | None:
    """Kind to summarise *item* as, or None if it gets no insights."""
    kind = item.kind
    if kind is ContentKind.ARTICLE or kind is ContentKind.YOUTUBE or kind is ContentKind.NOTE:
        return kind
    if kind is ContentKind.IMAGE:
        # OCR text is summarised as a note once there is enough of it
        return ContentKind.NOTE if len(item.body) > cfg.min_image_text_chars else None
    if kind is ContentKind.TODO or kind is ContentKind.QUOTE or kind is ContentKind.PRODUCT:
        return None
    assert_never(kind)


def _placeholder_label(kind: ContentKind) -> str:
    if kind is ContentKind.TODO:
        return "Todo List"
    if kind is ContentKind.IMAGE:
        return "Image"
    if kind is ContentKind.YOUTUBE:
        return "YouTube Video"
    if (
        kind is ContentKind.ARTICLE
        or kind is ContentKind.PRODUCT
        or kind is ContentKind.QUOTE
        or kind is ContentKind.NOTE
    ):
        return kind.value.title()
    assert_never(kind)

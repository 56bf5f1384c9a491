"""Owner-scoped operations over the item store.

SynapseService is the single entry point used by the CLI: it persists what
the ingestion pipeline produces and runs search, related-item lookup,
insight regeneration and chat over an owner's saved items.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime

from synapse.config import SynapseConfig
from synapse.db.models import ContentItem, ContentKind
from synapse.db.repository import ItemStore, Repository
from synapse.errors import ItemNotFoundError, OcrError
from synapse.ingest.fetch import FetchClient, Fetcher
from synapse.ingest.image import ImageExtractor
from synapse.ingest.insights import InsightGenerator
from synapse.ingest.ocr import OcrEngine
from synapse.ingest.pipeline import IngestionPipeline, IngestResult
from synapse.ingest.vision import VisionAnalyzer
from synapse.ingest.web import WebExtractor
from synapse.ingest.youtube import TranscriptClient, YouTubeExtractor, YouTubeTranscriptClient
from synapse.rag.assembler import ChatMessage, ChatReply, chat_with_knowledge
from synapse.rag.related import RelatedItem, related_to
from synapse.rag.retriever import SearchFilters, SearchResponse, search

logger = logging.getLogger(__name__)

_CHAT_ITEM_LIMIT = 50
_REGENERATE_KINDS = frozenset({ContentKind.ARTICLE, ContentKind.NOTE})


@dataclass
class RegenerateReport:
    processed: int = 0
    errors: int = 0
    skipped: int = 0
    failed_ids: list[int] = field(default_factory=list)

    @property
    def message(self) -> str:
        text = f"Regenerated insights for {self.processed} items"
        if self.errors:
            text += f" ({self.errors} errors)"
        return text


class SynapseService:
    """Ingest, search, relate and chat over one store.

    Args:
        pipeline: Ingestion pipeline producing unsaved items.
        store: Persistence collaborator.
        config: Loaded configuration.
        ocr: OCR engine owned by this service, opened by ``open()``.
    """

    def __init__(
        self,
        pipeline: IngestionPipeline,
        store: ItemStore,
        config: SynapseConfig | None = None,
        ocr: OcrEngine | None = None,
    ) -> None:
        self._pipeline = pipeline
        self._store = store
        self._config = config or SynapseConfig()
        self._ocr = ocr

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> SynapseService:
        """Open the OCR engine. Image saves degrade if Tesseract is missing."""
        if self._ocr is not None and not self._ocr.is_open:
            try:
                self._ocr.open()
            except OcrError as exc:
                logger.warning("OCR disabled: %s", exc)
        return self

    def close(self) -> None:
        if self._ocr is not None:
            self._ocr.close()

    def __enter__(self) -> SynapseService:
        return self.open()

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def ingest(self, owner_id: str, raw: str) -> IngestResult:
        """Run the pipeline over *raw* and persist the resulting item."""
        result = self._pipeline.process(raw)
        result.item = self._store.create_item(owner_id, result.item)
        logger.info("Saved %s item %s for %s", result.item.kind.value, result.item.id, owner_id)
        return result

    def search(
        self,
        owner_id: str,
        query: str,
        filters: SearchFilters | None = None,
        now: datetime | None = None,
    ) -> SearchResponse:
        return search(
            query,
            self._store.find_items_by_owner(owner_id),
            filters=filters,
            config=self._config.retrieval,
            embedding=self._config.embedding,
            now=now,
        )

    def find_related(self, owner_id: str, item_id: int) -> list[RelatedItem]:
        """Items of *owner_id* most similar to *item_id*.

        Raises:
            ItemNotFoundError: If the item does not exist for *owner_id*.
        """
        item = self._require(owner_id, item_id)
        return related_to(
            item,
            self._store.find_items_by_owner(owner_id),
            top_k=self._config.related.top_k,
            min_similarity=self._config.related.min_similarity,
        )

    def regenerate_insights(self, owner_id: str, item_id: int | None = None) -> RegenerateReport:
        """Re-run insight generation over stored articles and notes.

        Only items whose body is longer than ``insights.min_body_chars`` are
        processed. A failure on one item is counted and does not stop the run.

        Raises:
            ItemNotFoundError: If *item_id* is given and does not exist.
        """
        if item_id is not None:
            items = [self._require(owner_id, item_id)]
        else:
            items = self._store.find_items_by_owner(owner_id)

        generator = self._pipeline.insights
        report = RegenerateReport()
        for item in items:
            if (
                item.id is None
                or item.kind not in _REGENERATE_KINDS
                or len(item.body) <= self._config.insights.min_body_chars
            ):
                report.skipped += 1
                continue
            try:
                insights = generator.summarize(
                    item.title, item.body[: self._config.insights.max_input_chars], item.kind
                )
                attributes = {**item.attributes, **insights.as_attributes()}
                self._store.update_item_attributes(owner_id, item.id, attributes)
            except (sqlite3.Error, ItemNotFoundError) as exc:
                logger.warning("Could not regenerate insights for item %s: %s", item.id, exc)
                report.errors += 1
                report.failed_ids.append(item.id)
                continue
            item.attributes = attributes
            report.processed += 1
        return report

    def ask(
        self,
        owner_id: str,
        message: str,
        history: Sequence[ChatMessage] = (),
    ) -> ChatReply:
        """Answer *message* from the owner's most recent items."""
        items = self._store.find_items_by_owner(owner_id)[:_CHAT_ITEM_LIMIT]
        return chat_with_knowledge(
            message, items, history=history, generation=self._config.generation
        )

    def list_items(self, owner_id: str) -> list[ContentItem]:
        return self._store.find_items_by_owner(owner_id)

    def _require(self, owner_id: str, item_id: int) -> ContentItem:
        item = self._store.find_item_by_id(owner_id, item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item


def build_service(
    config: SynapseConfig,
    conn: sqlite3.Connection,
    *,
    fetcher: FetchClient | None = None,
    transcripts: TranscriptClient | None = None,
    ocr: OcrEngine | None = None,
) -> SynapseService:
    """Wire the default collaborators around an open, initialised connection."""
    fetcher = fetcher or Fetcher(config.fetch)
    transcripts = transcripts or YouTubeTranscriptClient(timeout=config.fetch.timeout)
    ocr = ocr or OcrEngine(config.ocr)
    insights = InsightGenerator(config.generation, config.insights)

    pipeline = IngestionPipeline(
        web=WebExtractor(fetcher),
        youtube=YouTubeExtractor(
            fetcher, transcripts, insight_chars=config.insights.max_input_chars
        ),
        image=ImageExtractor(ocr, VisionAnalyzer(config.vision, config.generation)),
        insights=insights,
        embedding=config.embedding,
        insight_cfg=config.insights,
    )
    store = Repository(conn, dimensions=config.embedding.dimensions)
    return SynapseService(pipeline, store, config, ocr=ocr)

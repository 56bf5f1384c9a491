"""Semantic search with keyword boosting over an owner's items.

Pipeline:
  1. Parse the query (keywords, type filters, date range).
  2. Hard-filter candidates by type and date range.
  3. Embed the search text; score every candidate that has an embedding and
     drop zero similarities.
  4. Keep the best ``top_k * oversample`` by similarity, then boost:
       +title_boost per search term found in the title
       +body_boost  per search term found in the body
     capped at 1.0.
  5. Re-sort and return the top ``top_k``.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from synapse.config import EmbeddingCfg, RetrievalCfg
from synapse.db.models import ContentItem, ContentKind
from synapse.rag.query_parser import DateRange, ParsedQuery, parse_query
from synapse.vectors import cosine_similarity, embed


@dataclass
class SearchFilters:
    """Explicit filters from the caller.

    Each applies only when the query itself did not produce the same kind of
    filter.
    """

    kind: ContentKind | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None


@dataclass
class ScoredItem:
    """An item with its final (boosted) score and its raw similarity."""

    item: ContentItem
    score: float
    similarity: float

    @property
    def item_id(self) -> int | None:
        return self.item.id


@dataclass
class AppliedFilters:
    content_types: list[ContentKind] = field(default_factory=list)
    date_range: str | None = None
    keywords: list[str] = field(default_factory=list)


@dataclass
class SearchResponse:
    results: list[ScoredItem]
    applied_filters: AppliedFilters

    @property
    def count(self) -> int:
        return len(self.results)


def search(
    query: str,
    items: Iterable[ContentItem],
    *,
    filters: SearchFilters | None = None,
    config: RetrievalCfg | None = None,
    embedding: EmbeddingCfg | None = None,
    now: datetime | None = None,
) -> SearchResponse:
    """Parse *query*, filter *items*, and rank what remains."""
    cfg = config or RetrievalCfg()
    parsed = parse_query(query, now=now, min_keyword_length=cfg.min_keyword_length)
    candidates, kinds = apply_filters(items, parsed, filters)

    ranked = rank(parsed.search_text, candidates, top_k=cfg.top_k, config=cfg, embedding=embedding)
    return SearchResponse(
        results=ranked,
        applied_filters=AppliedFilters(
            content_types=sorted(kinds, key=lambda k: k.value),
            date_range=parsed.date_range.label if parsed.date_range else None,
            keywords=list(parsed.keywords),
        ),
    )


def apply_filters(
    items: Iterable[ContentItem],
    parsed: ParsedQuery,
    filters: SearchFilters | None = None,
) -> tuple[list[ContentItem], set[ContentKind]]:
    """Hard type and date filtering. Returns (candidates, kinds applied)."""
    filters = filters or SearchFilters()
    candidates = list(items)

    kinds = set(parsed.content_types)
    if not kinds and filters.kind is not None:
        kinds = {filters.kind}
    if kinds:
        candidates = [item for item in candidates if item.kind in kinds]

    if parsed.date_range is not None:
        candidates = _within(candidates, parsed.date_range)
    else:
        if filters.date_from is not None:
            candidates = [
                i for i in candidates if i.created_at is not None and i.created_at >= filters.date_from
            ]
        if filters.date_to is not None:
            candidates = [
                i for i in candidates if i.created_at is not None and i.created_at <= filters.date_to
            ]

    return candidates, kinds


def _within(items: list[ContentItem], date_range: DateRange) -> list[ContentItem]:
    return [i for i in items if i.created_at is not None and date_range.contains(i.created_at)]


def rank(
    search_text: str,
    items: Sequence[ContentItem],
    *,
    top_k: int = 20,
    config: RetrievalCfg | None = None,
    embedding: EmbeddingCfg | None = None,
) -> list[ScoredItem]:
    """Similarity-rank *items* against *search_text*, then keyword-boost."""
    cfg = config or RetrievalCfg()
    emb = embedding or EmbeddingCfg()
    semantic = semantic_rank(search_text, items, limit=top_k * cfg.oversample, embedding=emb)

    terms = search_text.lower().split()
    boosted = [
        ScoredItem(
            item=s.item,
            score=min(s.similarity + _boost(s.item, terms, cfg), 1.0),
            similarity=s.similarity,
        )
        for s in semantic
    ]
    boosted.sort(key=lambda s: s.score, reverse=True)
    return boosted[:top_k]


def semantic_rank(
    search_text: str,
    items: Sequence[ContentItem],
    *,
    limit: int,
    embedding: EmbeddingCfg | None = None,
) -> list[ScoredItem]:
    """Pure cosine ranking; items without an embedding or with zero similarity are dropped."""
    emb = embedding or EmbeddingCfg()
    query_vec = embed(search_text, emb.dimensions, emb.max_chars)

    scored: list[ScoredItem] = []
    for item in items:
        if not item.embedding:
            continue
        similarity = cosine_similarity(query_vec, item.embedding)
        if similarity > 0:
            scored.append(ScoredItem(item=item, score=similarity, similarity=similarity))

    scored.sort(key=lambda s: s.similarity, reverse=True)
    return scored[:limit]


def _boost(item: ContentItem, terms: list[str], cfg: RetrievalCfg) -> float:
    title = item.title.lower()
    body = (item.body or "").lower()
    boost = 0.0
    for term in terms:
        if term in title:
            boost += cfg.title_boost
        if term in body:
            boost += cfg.body_boost
    return boost

"""Related items by embedding similarity."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from synapse.db.models import ContentItem, ContentKind
from synapse.vectors import cosine_similarity


@dataclass
class RelatedItem:
    id: int | None
    title: str
    kind: ContentKind
    similarity: float

    @property
    def strength(self) -> str:
        return connection_strength(self.similarity)


def related_to(
    item: ContentItem,
    candidates: Iterable[ContentItem],
    top_k: int = 5,
    min_similarity: float = 0.5,
) -> list[RelatedItem]:
    """Candidates most similar to *item*, best first.

    *item* itself is never returned. An item without an embedding has no
    relations.
    """
    if not item.embedding:
        return []

    related: list[RelatedItem] = []
    for candidate in candidates:
        if candidate is item or (item.id is not None and candidate.id == item.id):
            continue
        if not candidate.embedding:
            continue
        similarity = cosine_similarity(item.embedding, candidate.embedding)
        if similarity >= min_similarity:
            related.append(
                RelatedItem(
                    id=candidate.id,
                    title=candidate.title,
                    kind=candidate.kind,
                    similarity=similarity,
                )
            )

    related.sort(key=lambda r: r.similarity, reverse=True)
    return related[:top_k]


def connection_strength(similarity: float) -> str:
    if similarity >= 0.8:
        return "Very Similar"
    if similarity >= 0.7:
        return "Quite Similar"
    if similarity >= 0.6:
        return "Somewhat Related"
    return "Loosely Related"

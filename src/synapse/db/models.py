"""Domain models shared by the ingest, retrieval and persistence layers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ContentKind(str, Enum):
    """Closed set of content kinds a saved item can have."""

    ARTICLE = "article"
    YOUTUBE = "youtube"
    TODO = "todo"
    QUOTE = "quote"
    PRODUCT = "product"
    IMAGE = "image"
    NOTE = "note"


@dataclass
class ContentItem:
    """The canonical saved unit.

    ``id``, ``owner_id`` and ``created_at`` are assigned by the store; an item
    fresh out of the ingestion pipeline has them unset.
    """

    kind: ContentKind
    title: str
    body: str = ""
    attributes: dict[str, Any] = field(default_factory=dict)
    embedding: list[float] | None = None
    id: int | None = None
    owner_id: str | None = None
    created_at: datetime | None = None

    def attributes_json(self) -> str:
        return json.dumps(self.attributes)

    def embedding_json(self) -> str | None:
        if self.embedding is None:
            return None
        return json.dumps(self.embedding)

    @classmethod
    def from_row(
        cls,
        *,
        id: int | None,
        owner_id: str | None,
        kind: str,
        title: str,
        body: str | None,
        attributes: str | None,
        embedding: str | None,
        created_at: str | datetime | None,
    ) -> ContentItem:
        """Rebuild an item from the JSON-text columns the store persists."""
        return cls(
            id=id,
            owner_id=owner_id,
            kind=ContentKind(kind),
            title=title,
            body=body or "",
            attributes=json.loads(attributes) if attributes else {},
            embedding=json.loads(embedding) if embedding else None,
            created_at=parse_timestamp(created_at),
        )


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Return an aware datetime; naive values are taken to be UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt

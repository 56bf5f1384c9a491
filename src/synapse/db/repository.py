"""Repository for saved items.

``ItemStore`` is the persistence contract the service layer depends on;
``Repository`` is its SQLite implementation. Attributes and embeddings are
stored as JSON text.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from typing import Any, Protocol

from synapse.db.models import ContentItem
from synapse.errors import ItemNotFoundError
from synapse.vectors import DIMENSIONS, is_valid_embedding

_COLUMNS = "id, owner_id, kind, title, body, attributes, embedding, created_at"


class ItemStore(Protocol):
    def create_item(self, owner_id: str, item: ContentItem) -> ContentItem: ...

    def find_items_by_owner(self, owner_id: str) -> list[ContentItem]: ...

    def find_item_by_id(self, owner_id: str, item_id: int) -> ContentItem | None: ...

    def update_item_attributes(
        self, owner_id: str, item_id: int, attributes: dict[str, Any]
    ) -> None: ...


class Repository:
    """SQLite-backed ItemStore.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use.
    """

    def __init__(self, conn: sqlite3.Connection, dimensions: int = DIMENSIONS) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with the schema initialised
                (see synapse.db.schema.initialize).
            dimensions: Expected embedding length.
        """
        self._conn = conn
        self._dimensions = dimensions

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_item(self, owner_id: str, item: ContentItem) -> ContentItem:
        """Persist *item* for *owner_id* and return it with id and timestamp set.

        An embedding of the wrong length is dropped rather than stored
        partially.
        """
        created_at = item.created_at or datetime.now(timezone.utc)
        embedding = item.embedding
        if embedding is not None and not is_valid_embedding(embedding, self._dimensions):
            embedding = None
        cur = self._conn.execute(
            """
            INSERT INTO items (owner_id, kind, title, body, attributes, embedding, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                owner_id,
                item.kind.value,
                item.title,
                item.body,
                item.attributes_json(),
                json.dumps(embedding) if embedding is not None else None,
                created_at.isoformat(),
            ),
        )
        self._conn.commit()
        item.id = cur.lastrowid
        item.owner_id = owner_id
        item.created_at = created_at
        item.embedding = embedding
        return item

    def update_item_attributes(
        self, owner_id: str, item_id: int, attributes: dict[str, Any]
    ) -> None:
        """Replace the attribute bag of an item.

        Raises:
            ItemNotFoundError: If no such item belongs to *owner_id*.
        """
        cur = self._conn.execute(
            "UPDATE items SET attributes = ? WHERE id = ? AND owner_id = ?",
            (json.dumps(attributes), item_id, owner_id),
        )
        self._conn.commit()
        if cur.rowcount == 0:
            raise ItemNotFoundError(item_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_items_by_owner(self, owner_id: str) -> list[ContentItem]:
        """All items of *owner_id*, newest first."""
        rows = self._conn.execute(
            f"SELECT {_COLUMNS} FROM items WHERE owner_id = ? ORDER BY created_at DESC, id DESC",
            (owner_id,),
        ).fetchall()
        return [_row_to_item(r) for r in rows]

    def find_item_by_id(self, owner_id: str, item_id: int) -> ContentItem | None:
        row = self._conn.execute(
            f"SELECT {_COLUMNS} FROM items WHERE id = ? AND owner_id = ?",
            (item_id, owner_id),
        ).fetchone()
        return _row_to_item(row) if row else None


# ------------------------------------------------------------------
# Row mapping
# ------------------------------------------------------------------


def _row_to_item(row: sqlite3.Row) -> ContentItem:
    return ContentItem.from_row(
        id=row["id"],
        owner_id=row["owner_id"],
        kind=row["kind"],
        title=row["title"],
        body=row["body"],
        attributes=row["attributes"],
        embedding=row["embedding"],
        created_at=row["created_at"],
    )

"""Fixtures shared by the CLI command tests."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from synapse.db.connection import Database
from synapse.db.models import ContentItem, ContentKind
from synapse.db.repository import Repository
from synapse.db.schema import initialize
from synapse.vectors import embed


@pytest.fixture(autouse=True)
def _isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Run every command in tmp_path with a stubbed Tesseract probe."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SYNAPSE_OWNER", raising=False)
    monkeypatch.delenv("SYNAPSE_GENERATION_MODEL", raising=False)
    with patch("synapse.ingest.ocr.pytesseract.get_tesseract_version", return_value="5.3.0"):
        yield


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "kb.db"


@pytest.fixture
def seed(db_path: Path):
    """Insert items straight into the store; returns the saved items."""

    def _seed(*items: tuple[str, ContentKind, str], owner: str = "local") -> list[ContentItem]:
        conn = Database(db_path).connect()
        initialize(conn)
        repo = Repository(conn)
        saved = [
            repo.create_item(
                owner,
                ContentItem(kind=kind, title=title, body=body, embedding=embed(f"{title} {body}")),
            )
            for title, kind, body in items
        ]
        conn.close()
        return saved

    return _seed

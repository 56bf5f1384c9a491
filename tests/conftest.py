"""Shared pytest fixtures."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from synapse.db.connection import Database
from synapse.db.schema import initialize


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / ".synapse.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


def _llm_response(content: str | None) -> MagicMock:
    """A litellm.completion() return value whose first choice says *content*."""
    response = MagicMock()
    response.choices[0].message.content = content
    return response


@pytest.fixture
def mock_completion():
    """Patch litellm.completion for every module that routes through llm_client."""
    with patch("synapse.rag.llm_client.litellm.completion") as mock_c:
        mock_c.return_value = _llm_response("")
        yield mock_c

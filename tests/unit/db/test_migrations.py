"""Tests for the forward-only migration runner."""

from __future__ import annotations

from synapse.db.connection import Database
from synapse.db.migrations import MIGRATIONS, current_version, run_migrations
from synapse.db.schema import CURRENT_VERSION, initialize


def _fresh_conn(tmp_path):
    """Open a new connection without running migrations."""
    return Database(tmp_path / "test.db").connect()


def _table_exists(conn, name: str) -> bool:
    return conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=?", (name,)
    ).fetchone() is not None


def _table_columns(conn, table: str) -> set[str]:
    rows = conn.execute(f"PRAGMA table_info({table})").fetchall()
    return {row["name"] for row in rows}


# --- Bootstrap ---

def test_run_migrations_creates_schema_version(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    assert _table_exists(conn, "schema_version")
    conn.close()


def test_run_migrations_records_latest_version(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    assert current_version(conn) == MIGRATIONS[-1][0] == CURRENT_VERSION
    conn.close()


# --- Idempotency ---

def test_run_migrations_idempotent(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    run_migrations(conn)
    count = conn.execute("SELECT COUNT(*) FROM schema_version").fetchone()[0]
    assert count == len(MIGRATIONS)
    conn.close()


def test_initialize_runs_migrations(tmp_path):
    conn = _fresh_conn(tmp_path)
    initialize(conn)
    assert _table_exists(conn, "items")
    conn.close()


# --- Tables created ---

def test_items_columns(tmp_db):
    assert _table_columns(tmp_db, "items") == {
        "id",
        "owner_id",
        "kind",
        "title",
        "body",
        "attributes",
        "embedding",
        "created_at",
    }


def test_items_owner_index_exists(tmp_db):
    row = tmp_db.execute(
        "SELECT name FROM sqlite_master WHERE type='index' AND name='idx_items_owner_created'"
    ).fetchone()
    assert row is not None

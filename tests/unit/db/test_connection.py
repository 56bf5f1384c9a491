"""Tests for the Database connection layer."""

from __future__ import annotations

import sqlite3

import pytest

from synapse.db.connection import Database


def test_connect_creates_file(tmp_path):
    db_path = tmp_path / ".synapse.db"
    conn = Database(db_path).connect()
    conn.close()
    assert db_path.exists()


def test_connect_creates_parent_directory(tmp_path):
    db_path = tmp_path / "nested" / "dir" / "items.db"
    conn = Database(db_path).connect()
    conn.close()
    assert db_path.exists()


def test_foreign_keys_enabled(tmp_path):
    conn = Database(tmp_path / ".synapse.db").connect()
    result = conn.execute("PRAGMA foreign_keys").fetchone()[0]
    conn.close()
    assert result == 1


def test_wal_journal_mode(tmp_path):
    conn = Database(tmp_path / ".synapse.db").connect()
    mode = conn.execute("PRAGMA journal_mode").fetchone()[0]
    conn.close()
    assert mode == "wal"


def test_in_memory_database():
    conn = Database(":memory:").connect()
    conn.execute("CREATE TABLE t (x INTEGER)")
    conn.close()


def test_row_factory_set(tmp_path):
    conn = Database(tmp_path / ".synapse.db").connect()
    conn.execute("CREATE TABLE t (x INTEGER)")
    conn.execute("INSERT INTO t VALUES (42)")
    row = conn.execute("SELECT x FROM t").fetchone()
    conn.close()
    assert row["x"] == 42


def test_context_manager_closes_connection(tmp_path):
    db = Database(tmp_path / ".synapse.db")
    with db as conn:
        conn.execute("CREATE TABLE t (x INTEGER)")
    with pytest.raises(sqlite3.ProgrammingError):
        conn.execute("SELECT 1")

"""Tests for synapse insights."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from synapse.cli.main import app
from synapse.db.models import ContentKind

runner = CliRunner()

LONG_BODY = "Generators produce values lazily, one at a time, on demand. " * 3


def test_insights_without_api_key_exits_1(db_path: Path, seed, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    seed(("Generators", ContentKind.NOTE, LONG_BODY))

    result = runner.invoke(app, ["insights", "--db", str(db_path)])

    assert result.exit_code == 1
    assert "GROQ_API_KEY" in result.output


def test_insights_regenerates(db_path: Path, seed, mock_completion, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GROQ_API_KEY", "test-key")
    mock_completion.return_value.choices[0].message.content = json.dumps(
        {"summary": "Lazy values.", "keyPoints": ["yield"], "topics": ["python"]}
    )
    seed(
        ("Generators", ContentKind.NOTE, LONG_BODY),
        ("Buy milk", ContentKind.TODO, "- milk"),
    )

    result = runner.invoke(app, ["insights", "--db", str(db_path)])

    assert result.exit_code == 0, result.output
    assert "Regenerated insights for 1 items" in result.output
    assert "1 skipped" in result.output


def test_insights_unknown_item_exits_1(db_path: Path, seed, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GROQ_API_KEY", "test-key")
    seed(("Generators", ContentKind.NOTE, LONG_BODY))

    result = runner.invoke(app, ["insights", "--item", "42", "--db", str(db_path)])

    assert result.exit_code == 1
    assert "Item 42 does not exist" in result.output

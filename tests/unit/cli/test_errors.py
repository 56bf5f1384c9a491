"""Tests for synapse rich error messages."""

from __future__ import annotations

import pytest

from synapse.cli.errors import (
    err_config,
    err_empty_input,
    err_image_unreadable,
    err_item_not_found,
    err_no_api_key,
    err_no_db,
    warn_degraded,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _has_what_and_action(msg: str) -> bool:
    """Every error must contain a cause AND an actionable instruction."""
    lower = msg.lower()
    return "error:" in lower and any(
        kw in lower for kw in ["run:", "set:", "synapse ", "fix ", "supported formats"]
    )


# ---------------------------------------------------------------------------
# Every error is actionable
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "msg",
    [
        err_no_api_key("groq"),
        err_no_db(".synapse.db"),
        err_empty_input(),
        err_item_not_found(3),
        err_image_unreadable("a.tiff"),
        err_config("embedding.dimensions must be >= 1"),
    ],
)
def test_errors_are_actionable(msg: str) -> None:
    assert _has_what_and_action(msg)


# ---------------------------------------------------------------------------
# Individual messages
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "provider, env_var",
    [
        ("groq", "GROQ_API_KEY"),
        ("openai", "OPENAI_API_KEY"),
        ("together_ai", "TOGETHERAI_API_KEY"),
        ("fireworks", "FIREWORKS_API_KEY"),
    ],
)
def test_err_no_api_key_names_env_var(provider: str, env_var: str) -> None:
    assert f"export {env_var}=" in err_no_api_key(provider)


def test_err_no_db_includes_path() -> None:
    assert "/tmp/kb.db" in err_no_db("/tmp/kb.db")


def test_err_item_not_found_includes_id() -> None:
    assert "Item 17 does not exist" in err_item_not_found(17)


def test_err_config_includes_message() -> None:
    assert "related.min_similarity" in err_config("related.min_similarity must be in [0.0, 1.0]")


def test_warn_degraded_lists_issues() -> None:
    msg = warn_degraded("degraded", ["no transcript", "HTTP 404"])
    assert "degraded" in msg
    assert "- no transcript" in msg
    assert "- HTTP 404" in msg

"""Tests for synapse config loader."""

from __future__ import annotations

import warnings
from pathlib import Path

import pytest
import yaml

from synapse.config import ConfigError, load_config


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_yaml(path: Path, data: dict) -> None:
    path.write_text(yaml.dump(data), encoding="utf-8")


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SYNAPSE_GENERATION_MODEL", raising=False)
    monkeypatch.delenv("SYNAPSE_VISION_MODEL", raising=False)


# ---------------------------------------------------------------------------
# Defaults: no config files present
# ---------------------------------------------------------------------------


def test_load_config_defaults_no_files(tmp_path: Path) -> None:
    """No config files → all hardcoded defaults."""
    missing_global = tmp_path / "nonexistent" / "config.yaml"
    cfg = load_config(project_dir=tmp_path, global_config_path=missing_global)

    assert cfg.generation.model == "groq/llama-3.3-70b-versatile"
    assert cfg.vision.min_ocr_chars == 20
    assert cfg.vision.send_image is False
    assert cfg.insights.min_body_chars == 50
    assert cfg.insights.max_input_chars == 4_000
    assert cfg.embedding.dimensions == 128
    assert cfg.embedding.max_chars == 500
    assert cfg.retrieval.top_k == 20
    assert cfg.retrieval.title_boost == pytest.approx(0.3)
    assert cfg.retrieval.body_boost == pytest.approx(0.1)
    assert cfg.related.top_k == 5
    assert cfg.related.min_similarity == pytest.approx(0.5)
    assert cfg.fetch.max_bytes == 5 * 1024 * 1024
    assert cfg.ocr.language == "eng"
    assert cfg.ocr.timeout == pytest.approx(30.0)


# ---------------------------------------------------------------------------
# Layering
# ---------------------------------------------------------------------------


def test_load_config_global_overrides_defaults(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"generation": {"model": "openai/gpt-4o-mini"}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.generation.model == "openai/gpt-4o-mini"
    assert cfg.vision.model == "groq/llama-3.3-70b-versatile"


def test_load_config_global_empty_file(tmp_path: Path) -> None:
    """Empty global config file → defaults (no crash)."""
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text("# nothing here\n", encoding="utf-8")

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.embedding.dimensions == 128


def test_load_config_project_partial_override(tmp_path: Path) -> None:
    """Per-project can override a single field; global values for other fields survive."""
    global_cfg = tmp_path / "global.yaml"
    _write_yaml(global_cfg, {"retrieval": {"top_k": 40, "title_boost": 0.5}})

    project_cfg = tmp_path / "synapse.yaml"
    _write_yaml(project_cfg, {"retrieval": {"top_k": 5}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.retrieval.top_k == 5
    assert cfg.retrieval.title_boost == pytest.approx(0.5)  # global value preserved


def test_load_config_every_section(tmp_path: Path) -> None:
    _write_yaml(
        tmp_path / "synapse.yaml",
        {
            "vision": {"send_image": True, "min_ocr_chars": 10},
            "insights": {"min_body_chars": 80},
            "embedding": {"dimensions": 64},
            "related": {"min_similarity": 0.7},
            "fetch": {"timeout": 5, "user_agent": "test-agent"},
            "ocr": {"language": "deu"},
        },
    )
    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")

    assert cfg.vision.send_image is True
    assert cfg.vision.min_ocr_chars == 10
    assert cfg.insights.min_body_chars == 80
    assert cfg.embedding.dimensions == 64
    assert cfg.related.min_similarity == pytest.approx(0.7)
    assert cfg.fetch.timeout == pytest.approx(5.0)
    assert cfg.fetch.user_agent == "test-agent"
    assert cfg.ocr.language == "deu"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "bad_key",
    ["api_key", "apikey", "GROQ_API_KEY", "secret", "password", "token", "api-key"],
)
def test_global_config_rejects_api_key_fields(tmp_path: Path, bad_key: str) -> None:
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text(f"{bad_key}: sk-abc123\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="forbidden key"):
        load_config(project_dir=tmp_path, global_config_path=global_cfg)


def test_global_config_rejects_nested_api_key(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"generation": {"api_key": "sk-secret"}})

    with pytest.raises(ConfigError, match="forbidden key"):
        load_config(project_dir=tmp_path, global_config_path=global_cfg)


def test_min_keyword_length_is_not_an_api_key(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"retrieval": {"min_keyword_length": 2}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.retrieval.min_keyword_length == 2


@pytest.mark.parametrize(
    "data, message",
    [
        ({"embedding": {"dimensions": 0}}, "dimensions"),
        ({"retrieval": {"oversample": 0}}, "oversample"),
        ({"related": {"min_similarity": 1.5}}, "min_similarity"),
        ({"fetch": {"timeout": 0}}, "timeouts"),
        ({"ocr": {"timeout": 0}}, "timeouts"),
    ],
)
def test_out_of_range_values_raise(tmp_path: Path, data: dict, message: str) -> None:
    _write_yaml(tmp_path / "synapse.yaml", data)
    with pytest.raises(ConfigError, match=message):
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")


def test_unknown_top_level_key_warns(tmp_path: Path) -> None:
    """Unknown top-level key in config emits UserWarning (not error)."""
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"unknown_section": {"foo": "bar"}})

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)

    assert any("unknown_section" in str(w.message) for w in caught)
    assert cfg.generation.model == "groq/llama-3.3-70b-versatile"


# ---------------------------------------------------------------------------
# Environment variable overrides
# ---------------------------------------------------------------------------


def test_env_var_model_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write_yaml(tmp_path / "synapse.yaml", {"generation": {"model": "openai/gpt-4o-mini"}})
    monkeypatch.setenv("SYNAPSE_GENERATION_MODEL", "anthropic/claude-3-5-haiku-20241022")
    monkeypatch.setenv("SYNAPSE_VISION_MODEL", "openai/gpt-4o")

    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")
    assert cfg.generation.model == "anthropic/claude-3-5-haiku-20241022"
    assert cfg.vision.model == "openai/gpt-4o"


def test_config_does_not_execute_yaml_load(tmp_path: Path) -> None:
    """Config loader uses safe_load, so python tags are rejected, not executed."""
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text("!!python/object/apply:os.system ['echo pwned']\n", encoding="utf-8")

    with pytest.raises(yaml.YAMLError):
        load_config(project_dir=tmp_path, global_config_path=global_cfg)

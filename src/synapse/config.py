"""Synapse configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (SYNAPSE_GENERATION_MODEL, SYNAPSE_VISION_MODEL)
  3. Per-project synapse.yaml  (next to the item database)
  4. Global ~/.synapse/config.yaml  (model defaults only — no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".synapse"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "synapse.yaml"

# Fields that suggest an API key: forbidden in global config.
# Does NOT match legitimate config keys like max_tokens or min_keyword_length.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    [
        "generation",
        "vision",
        "insights",
        "embedding",
        "retrieval",
        "related",
        "fetch",
        "ocr",
    ]
)

_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(compatible; synapse/0.1)"
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class GenerationCfg:
    """Language-model configuration (synapse.yaml: generation:)."""

    model: str = "groq/llama-3.3-70b-versatile"
    timeout: float = 30.0
    num_retries: int = 2


@dataclass
class VisionCfg:
    """Image analysis configuration (synapse.yaml: vision:).

    Attributes:
        model: LiteLLM model used for image descriptions.
        send_image: Attach the image itself to the request (needs a
            vision-capable model); otherwise only OCR text is sent.
        min_ocr_chars: OCR text must be longer than this to be analysed.
    """

    model: str = "groq/llama-3.3-70b-versatile"
    send_image: bool = False
    min_ocr_chars: int = 20


@dataclass
class InsightsCfg:
    """Summary / key-point generation (synapse.yaml: insights:)."""

    min_body_chars: int = 50
    max_input_chars: int = 4_000
    min_image_text_chars: int = 100


@dataclass
class EmbeddingCfg:
    """Character-frequency embedding parameters (synapse.yaml: embedding:)."""

    dimensions: int = 128
    max_chars: int = 500
    max_input_chars: int = 8_000


@dataclass
class RetrievalCfg:
    """Search ranking configuration (synapse.yaml: retrieval:)."""

    top_k: int = 20
    oversample: int = 2
    title_boost: float = 0.3
    body_boost: float = 0.1
    min_keyword_length: int = 3


@dataclass
class RelatedCfg:
    """Related-item lookup (synapse.yaml: related:)."""

    top_k: int = 5
    min_similarity: float = 0.5


@dataclass
class FetchCfg:
    """Outbound HTTP limits (synapse.yaml: fetch:)."""

    timeout: float = 30.0
    max_bytes: int = 5 * 1024 * 1024
    max_redirects: int = 3
    user_agent: str = _DEFAULT_USER_AGENT


@dataclass
class OcrCfg:
    """Tesseract settings (synapse.yaml: ocr:)."""

    language: str = "eng"
    tesseract_config: str = "--oem 3 --psm 6"
    timeout: float = 30.0


@dataclass
class SynapseConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    generation: GenerationCfg = field(default_factory=GenerationCfg)
    vision: VisionCfg = field(default_factory=VisionCfg)
    insights: InsightsCfg = field(default_factory=InsightsCfg)
    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    retrieval: RetrievalCfg = field(default_factory=RetrievalCfg)
    related: RelatedCfg = field(default_factory=RelatedCfg)
    fetch: FetchCfg = field(default_factory=FetchCfg)
    ocr: OcrCfg = field(default_factory=OcrCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


def _validate(cfg: SynapseConfig) -> None:
    if cfg.embedding.dimensions < 1:
        raise ConfigError("embedding.dimensions must be >= 1")
    if cfg.retrieval.oversample < 1:
        raise ConfigError("retrieval.oversample must be >= 1")
    if not 0.0 <= cfg.related.min_similarity <= 1.0:
        raise ConfigError("related.min_similarity must be in [0.0, 1.0]")
    if min(cfg.fetch.timeout, cfg.generation.timeout, cfg.ocr.timeout) <= 0:
        raise ConfigError("timeouts must be > 0")


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> SynapseConfig:
    """Build a *SynapseConfig* from a merged raw YAML dict."""
    cfg = SynapseConfig()

    if "generation" in data:
        g = data["generation"]
        cfg.generation = GenerationCfg(
            model=str(g.get("model", cfg.generation.model)),
            timeout=float(g.get("timeout", cfg.generation.timeout)),
            num_retries=int(g.get("num_retries", cfg.generation.num_retries)),
        )

    if "vision" in data:
        v = data["vision"]
        cfg.vision = VisionCfg(
            model=str(v.get("model", cfg.vision.model)),
            send_image=bool(v.get("send_image", cfg.vision.send_image)),
            min_ocr_chars=int(v.get("min_ocr_chars", cfg.vision.min_ocr_chars)),
        )

    if "insights" in data:
        i = data["insights"]
        cfg.insights = InsightsCfg(
            min_body_chars=int(i.get("min_body_chars", cfg.insights.min_body_chars)),
            max_input_chars=int(i.get("max_input_chars", cfg.insights.max_input_chars)),
            min_image_text_chars=int(
                i.get("min_image_text_chars", cfg.insights.min_image_text_chars)
            ),
        )

    if "embedding" in data:
        e = data["embedding"]
        cfg.embedding = EmbeddingCfg(
            dimensions=int(e.get("dimensions", cfg.embedding.dimensions)),
            max_chars=int(e.get("max_chars", cfg.embedding.max_chars)),
            max_input_chars=int(e.get("max_input_chars", cfg.embedding.max_input_chars)),
        )

    if "retrieval" in data:
        r = data["retrieval"]
        cfg.retrieval = RetrievalCfg(
            top_k=int(r.get("top_k", cfg.retrieval.top_k)),
            oversample=int(r.get("oversample", cfg.retrieval.oversample)),
            title_boost=float(r.get("title_boost", cfg.retrieval.title_boost)),
            body_boost=float(r.get("body_boost", cfg.retrieval.body_boost)),
            min_keyword_length=int(
                r.get("min_keyword_length", cfg.retrieval.min_keyword_length)
            ),
        )

    if "related" in data:
        rel = data["related"]
        cfg.related = RelatedCfg(
            top_k=int(rel.get("top_k", cfg.related.top_k)),
            min_similarity=float(rel.get("min_similarity", cfg.related.min_similarity)),
        )

    if "fetch" in data:
        f = data["fetch"]
        cfg.fetch = FetchCfg(
            timeout=float(f.get("timeout", cfg.fetch.timeout)),
            max_bytes=int(f.get("max_bytes", cfg.fetch.max_bytes)),
            max_redirects=int(f.get("max_redirects", cfg.fetch.max_redirects)),
            user_agent=str(f.get("user_agent", cfg.fetch.user_agent)),
        )

    if "ocr" in data:
        o = data["ocr"]
        cfg.ocr = OcrCfg(
            language=str(o.get("language", cfg.ocr.language)),
            tesseract_config=str(o.get("tesseract_config", cfg.ocr.tesseract_config)),
            timeout=float(o.get("timeout", cfg.ocr.timeout)),
        )

    return cfg


def _apply_env_overrides(cfg: SynapseConfig) -> SynapseConfig:
    """Apply SYNAPSE_* environment variable overrides."""
    if model := os.environ.get("SYNAPSE_GENERATION_MODEL"):
        cfg.generation.model = model
    if model := os.environ.get("SYNAPSE_VISION_MODEL"):
        cfg.vision.model = model
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> SynapseConfig:
    """Load and return a merged *SynapseConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *synapse.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Returns:
        Fully merged *SynapseConfig* with env var overrides applied.

    Raises:
        ConfigError: If global config contains API-key-like fields or a
            value is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = yaml.safe_load(project_cfg_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)
    cfg = _apply_env_overrides(cfg)
    _validate(cfg)
    return cfg

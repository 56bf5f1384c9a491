"""Structured image description via a language model.

By default the model only sees the OCR text and is asked what the image
likely contains; with ``send_image`` the image itself is attached for
vision-capable models. Any failure returns None.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from synapse.config import GenerationCfg, VisionCfg
from synapse.rag.llm_client import complete, user_message
from synapse.rag.structured import decode_object

logger = logging.getLogger(__name__)

_VISION_PROMPT = """\
Analyze this text extracted from an image and provide insights in JSON format:

Text: {ocr_text}

Respond ONLY with valid JSON in this format:
{{
  "description": "brief description of what the image likely contains",
  "objects": ["object1", "object2"],
  "scene": "type of scene (document, screenshot, photo, etc)",
  "colors": ["color1", "color2"],
  "tags": ["tag1", "tag2", "tag3"]
}}

Be concise and relevant."""

_DEFAULTS: dict = {
    "description": "",
    "objects": [],
    "scene": "unknown",
    "colors": [],
    "tags": [],
}


@dataclass
class VisionAnalysis:
    description: str = ""
    objects: list[str] = field(default_factory=list)
    scene: str = "unknown"
    colors: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "description": self.description,
            "objects": list(self.objects),
            "scene": self.scene,
            "colors": list(self.colors),
            "tags": list(self.tags),
        }


def search_tags(analysis: VisionAnalysis) -> list[str]:
    """Scene, objects, colours and tags, lower-cased, first occurrence kept."""
    seen: dict[str, None] = {}
    if analysis.scene:
        seen[analysis.scene.lower()] = None
    for value in [*analysis.objects, *analysis.colors, *analysis.tags]:
        seen.setdefault(value.lower(), None)
    return list(seen)


class VisionAnalyzer:
    def __init__(
        self,
        config: VisionCfg | None = None,
        generation: GenerationCfg | None = None,
    ) -> None:
        self._config = config or VisionCfg()
        self._generation = generation or GenerationCfg()

    def analyze(self, ocr_text: str, image_data_uri: str | None = None) -> VisionAnalysis | None:
        """Describe the image behind *ocr_text*; None if skipped or failed."""
        if len(ocr_text) <= self._config.min_ocr_chars:
            return None

        prompt = _VISION_PROMPT.format(ocr_text=ocr_text[:1000])
        image = image_data_uri if self._config.send_image else None
        try:
            text = complete(
                model=self._config.model,
                messages=[user_message(prompt, image)],
                max_tokens=400,
                temperature=0.5,
                num_retries=self._generation.num_retries,
                timeout=self._generation.timeout,
            )
        except Exception as exc:
            logger.warning("Vision analysis failed: %s", exc)
            return None

        fields, parsed = decode_object(text, _DEFAULTS)
        if not parsed:
            logger.debug("Vision output had no structured block; skipping analysis")
            return None
        return VisionAnalysis(
            description=fields["description"],
            objects=fields["objects"],
            scene=fields["scene"] or "unknown",
            colors=fields["colors"],
            tags=fields["tags"],
        )

"""Image extraction: OCR text plus an optional structured description."""

from __future__ import annotations

import logging

from synapse.db.models import ContentKind
from synapse.errors import OcrError
from synapse.ingest.base import Extraction
from synapse.ingest.ocr import TextRecognizer
from synapse.ingest.vision import VisionAnalyzer, search_tags

logger = logging.getLogger(__name__)

_TITLE_MAX = 100


class ImageExtractor:
    """OCR first; vision analysis only when OCR produced enough text.

    Args:
        ocr: Text recogniser (normally an open OcrEngine).
        vision: Analyzer for the structured description, or None to skip.
    """

    def __init__(self, ocr: TextRecognizer, vision: VisionAnalyzer | None = None) -> None:
        self._ocr = ocr
        self._vision = vision

    def extract(self, image_data_uri: str) -> Extraction:
        extraction = Extraction(kind=ContentKind.IMAGE, attributes={"data_url": image_data_uri})

        try:
            ocr_text = self._ocr.extract_text(image_data_uri)
        except OcrError as exc:
            logger.warning("OCR failed: %s", exc)
            extraction.degrade(f"OCR failed: {exc}")
            ocr_text = ""

        analysis = None
        if ocr_text and self._vision is not None:
            analysis = self._vision.analyze(ocr_text, image_data_uri)

        extraction.body = ocr_text
        extraction.attributes.update(
            {
                "ocr_text": ocr_text,
                "has_text": bool(ocr_text),
                "vision_analysis": analysis.to_dict() if analysis else None,
            }
        )

        if analysis and analysis.description:
            extraction.title = analysis.description[:_TITLE_MAX]
        elif ocr_text:
            extraction.title = ocr_text.split("\n")[0][:_TITLE_MAX]

        embed_text = ocr_text or extraction.title
        if analysis:
            embed_text = f"{embed_text} {' '.join(search_tags(analysis))}".strip()
        extraction.embedding_text = embed_text
        return extraction

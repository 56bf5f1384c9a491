"""Tesseract OCR engine with an explicit open/close lifecycle.

One engine is constructed by the application and injected into the image
extractor. Recognition is serialised with a lock so concurrent ingestion
requests sharing the engine never interleave inside Tesseract.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
import re
import threading
from typing import Protocol

import pytesseract
from PIL import Image, UnidentifiedImageError

from synapse.config import OcrCfg
from synapse.errors import OcrError

logger = logging.getLogger(__name__)

_DATA_URI_RE = re.compile(r"^data:image/[\w.+-]+(?:;[\w=.+-]+)*;base64,", re.IGNORECASE)


class TextRecognizer(Protocol):
    def extract_text(self, image_data_uri: str) -> str: ...


def decode_data_uri(image_data_uri: str) -> bytes:
    """Return the raw bytes of a base64 ``data:image/...`` URI.

    Raises:
        OcrError: If the URI is not a base64 image data URI.
    """
    match = _DATA_URI_RE.match(image_data_uri)
    if match is None:
        raise OcrError("Not a base64 image data URI.")
    try:
        return base64.b64decode(image_data_uri[match.end():], validate=False)
    except (binascii.Error, ValueError) as exc:
        raise OcrError(f"Invalid base64 image payload: {exc}") from exc


def clean_ocr_text(text: str) -> str:
    """Collapse all whitespace runs to single spaces."""
    return " ".join(text.split())


class OcrEngine:
    """Thread-safe wrapper around pytesseract.

    Usage::

        with OcrEngine(cfg.ocr) as ocr:
            text = ocr.extract_text(data_uri)
    """

    def __init__(self, config: OcrCfg | None = None) -> None:
        self._config = config or OcrCfg()
        self._lock = threading.Lock()
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> OcrEngine:
        """Verify Tesseract is installed and mark the engine ready.

        Raises:
            OcrError: If the tesseract binary cannot be found.
        """
        with self._lock:
            if self._open:
                return self
            try:
                version = pytesseract.get_tesseract_version()
            except (pytesseract.TesseractNotFoundError, OSError) as exc:
                raise OcrError(f"Tesseract is not available: {exc}") from exc
            logger.debug("Tesseract %s ready (lang=%s)", version, self._config.language)
            self._open = True
        return self

    def close(self) -> None:
        with self._lock:
            self._open = False

    def __enter__(self) -> OcrEngine:
        return self.open()

    def __exit__(self, *args: object) -> None:
        self.close()

    def extract_text(self, image_data_uri: str) -> str:
        """OCR the image in *image_data_uri* and return cleaned text.

        Raises:
            OcrError: If the engine is closed, the image cannot be decoded, or
                Tesseract fails.
        """
        raw = decode_data_uri(image_data_uri)
        try:
            image = Image.open(io.BytesIO(raw))
            image.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise OcrError(f"Cannot read image: {exc}") from exc

        with self._lock:
            if not self._open:
                raise OcrError("OCR engine is closed. Call open() first.")
            try:
                text = pytesseract.image_to_string(
                    image,
                    lang=self._config.language,
                    config=self._config.tesseract_config,
                    timeout=self._config.timeout,
                )
            except (pytesseract.TesseractError, RuntimeError) as exc:
                raise OcrError(f"Tesseract failed: {exc}") from exc

        return clean_ocr_text(text)

"""Tests for the Tesseract OCR engine wrapper."""

from __future__ import annotations

import base64
import io
from unittest.mock import patch

import pytesseract
import pytest
from PIL import Image

from synapse.config import OcrCfg
from synapse.errors import OcrError
from synapse.ingest.ocr import OcrEngine, clean_ocr_text, decode_data_uri


def _png_data_uri() -> str:
    buf = io.BytesIO()
    Image.new("RGB", (8, 8), "white").save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


@pytest.fixture
def engine():
    with patch("synapse.ingest.ocr.pytesseract.get_tesseract_version", return_value="5.3.0"):
        with OcrEngine() as ocr:
            yield ocr


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def test_decode_data_uri_returns_bytes():
    assert decode_data_uri("data:image/png;base64," + base64.b64encode(b"abc").decode()) == b"abc"


def test_decode_data_uri_rejects_other_schemes():
    with pytest.raises(OcrError, match="data URI"):
        decode_data_uri("https://example.com/a.png")


def test_clean_ocr_text_collapses_whitespace():
    assert clean_ocr_text("  Hello\n\n  world\t!  ") == "Hello world !"


# ------------------------------------------------------------------
# Lifecycle
# ------------------------------------------------------------------


def test_open_marks_engine_ready():
    with patch("synapse.ingest.ocr.pytesseract.get_tesseract_version", return_value="5.3.0"):
        ocr = OcrEngine().open()
    assert ocr.is_open
    ocr.close()
    assert not ocr.is_open


def test_open_without_tesseract_raises():
    missing = pytesseract.TesseractNotFoundError()
    with patch("synapse.ingest.ocr.pytesseract.get_tesseract_version", side_effect=missing):
        with pytest.raises(OcrError, match="not available"):
            OcrEngine().open()


def test_extract_on_closed_engine_raises():
    with pytest.raises(OcrError, match="closed"):
        OcrEngine().extract_text(_png_data_uri())


# ------------------------------------------------------------------
# extract_text
# ------------------------------------------------------------------


def test_extract_text_passes_language_and_cleans(engine):
    with patch(
        "synapse.ingest.ocr.pytesseract.image_to_string", return_value="Meeting\n notes  "
    ) as ocr_call:
        text = engine.extract_text(_png_data_uri())

    assert text == "Meeting notes"
    kwargs = ocr_call.call_args.kwargs
    assert kwargs["lang"] == "eng"
    assert kwargs["config"] == "--oem 3 --psm 6"


def test_extract_text_uses_configured_language():
    with patch("synapse.ingest.ocr.pytesseract.get_tesseract_version", return_value="5"):
        ocr = OcrEngine(OcrCfg(language="deu")).open()
    with patch("synapse.ingest.ocr.pytesseract.image_to_string", return_value="") as ocr_call:
        ocr.extract_text(_png_data_uri())
    assert ocr_call.call_args.kwargs["lang"] == "deu"


def test_extract_text_unreadable_image(engine):
    uri = "data:image/png;base64," + base64.b64encode(b"not an image").decode()
    with pytest.raises(OcrError, match="Cannot read image"):
        engine.extract_text(uri)


def test_extract_text_tesseract_failure(engine):
    with patch(
        "synapse.ingest.ocr.pytesseract.image_to_string",
        side_effect=pytesseract.TesseractError(1, "boom"),
    ):
        with pytest.raises(OcrError, match="Tesseract failed"):
            engine.extract_text(_png_data_uri())


def test_extract_text_passes_timeout():
    with patch("synapse.ingest.ocr.pytesseract.get_tesseract_version", return_value="5"):
        ocr = OcrEngine(OcrCfg(timeout=7.5)).open()
    with patch("synapse.ingest.ocr.pytesseract.image_to_string", return_value="") as ocr_call:
        ocr.extract_text(_png_data_uri())
    assert ocr_call.call_args.kwargs["timeout"] == 7.5


def test_extract_text_timeout_raises_ocr_error(engine):
    with patch(
        "synapse.ingest.ocr.pytesseract.image_to_string",
        side_effect=RuntimeError("Tesseract process timeout"),
    ):
        with pytest.raises(OcrError, match="timeout"):
            engine.extract_text(_png_data_uri())
    assert engine.is_open

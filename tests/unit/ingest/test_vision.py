"""Tests for model-based image description."""

from __future__ import annotations

from synapse.config import VisionCfg
from synapse.ingest.vision import VisionAnalysis, VisionAnalyzer, search_tags

OCR_TEXT = "Quarterly revenue chart showing growth in every region"

REPLY = """Here you go:
{"description": "A bar chart of quarterly revenue", "objects": ["Chart", "Axis"],
 "scene": "Screenshot", "colors": ["Blue"], "tags": ["finance", "chart"]}"""


def test_short_ocr_text_is_skipped(mock_completion):
    assert VisionAnalyzer().analyze("tiny") is None
    mock_completion.assert_not_called()


def test_analysis_parsed_from_reply(mock_completion):
    mock_completion.return_value.choices[0].message.content = REPLY
    analysis = VisionAnalyzer().analyze(OCR_TEXT)

    assert analysis == VisionAnalysis(
        description="A bar chart of quarterly revenue",
        objects=["Chart", "Axis"],
        scene="Screenshot",
        colors=["Blue"],
        tags=["finance", "chart"],
    )


def test_text_only_request_by_default(mock_completion):
    mock_completion.return_value.choices[0].message.content = REPLY
    VisionAnalyzer().analyze(OCR_TEXT, "data:image/png;base64,AAAA")

    message = mock_completion.call_args.kwargs["messages"][0]
    assert isinstance(message["content"], str)
    assert OCR_TEXT in message["content"]


def test_image_attached_when_enabled(mock_completion):
    mock_completion.return_value.choices[0].message.content = REPLY
    VisionAnalyzer(VisionCfg(send_image=True)).analyze(OCR_TEXT, "data:image/png;base64,AAAA")

    parts = mock_completion.call_args.kwargs["messages"][0]["content"]
    assert parts[1] == {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAAA"}}


def test_model_error_returns_none(mock_completion):
    mock_completion.side_effect = RuntimeError("rate limited")
    assert VisionAnalyzer().analyze(OCR_TEXT) is None


def test_unstructured_reply_returns_none(mock_completion):
    mock_completion.return_value.choices[0].message.content = "I cannot tell."
    assert VisionAnalyzer().analyze(OCR_TEXT) is None


def test_missing_fields_fall_back_to_defaults(mock_completion):
    mock_completion.return_value.choices[0].message.content = '{"description": "A receipt"}'
    analysis = VisionAnalyzer().analyze(OCR_TEXT)
    assert analysis.description == "A receipt"
    assert analysis.scene == "unknown"
    assert analysis.objects == []


def test_search_tags_lowercased_and_deduplicated():
    analysis = VisionAnalysis(
        scene="Screenshot",
        objects=["Chart", "screenshot"],
        colors=["Blue"],
        tags=["chart", "finance"],
    )
    assert search_tags(analysis) == ["screenshot", "chart", "blue", "finance"]

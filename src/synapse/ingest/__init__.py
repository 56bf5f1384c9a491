"""Synapse ingestion: classification, extractors, insights, pipeline."""

from synapse.ingest.base import Extraction, ExtractionStatus
from synapse.ingest.image import ImageExtractor
from synapse.ingest.insights import InsightGenerator
from synapse.ingest.ocr import OcrEngine
from synapse.ingest.pipeline import IngestionPipeline, IngestResult
from synapse.ingest.web import WebExtractor
from synapse.ingest.youtube import YouTubeExtractor

__all__ = [
    "Extraction",
    "ExtractionStatus",
    "ImageExtractor",
    "IngestResult",
    "IngestionPipeline",
    "InsightGenerator",
    "OcrEngine",
    "WebExtractor",
    "YouTubeExtractor",
]

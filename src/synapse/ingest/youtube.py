"""YouTube extraction: video id, page metadata, transcript with description fallback.

The transcript is preferred as the item body. When it is unavailable the page
description is used instead and ``has_transcript`` is recorded as False so the
chat assistant can tell the user it only saw the description.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Protocol

import requests
from bs4 import BeautifulSoup
from youtube_transcript_api import CouldNotRetrieveTranscript, YouTubeTranscriptApi

from synapse.db.models import ContentKind
from synapse.errors import FetchError
from synapse.ingest.base import Extraction
from synapse.ingest.fetch import FetchClient
from synapse.ingest.web import extract_description, extract_title

logger = logging.getLogger(__name__)

_VIDEO_ID_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(?:youtube\.com/watch\?(?:.*&)?v=|youtu\.be/)([^&\n?#/]+)"),
    re.compile(r"youtube\.com/(?:embed|shorts|live)/([^&\n?#/]+)"),
)
_DEFAULT_TITLE = "YouTube Video"
_TRANSCRIPT_PREVIEW_CHARS = 500


@dataclass(frozen=True)
class TranscriptSegment:
    text: str
    offset_ms: int
    duration_ms: int


class TranscriptClient(Protocol):
    def fetch_transcript(self, video_id: str) -> list[TranscriptSegment] | None: ...


class _TimeoutSession(requests.Session):
    """requests session that applies *timeout* to every request by default."""

    def __init__(self, timeout: float) -> None:
        super().__init__()
        self.timeout = timeout

    def request(self, method, url, **kwargs):
        kwargs.setdefault("timeout", self.timeout)
        return super().request(method, url, **kwargs)


class YouTubeTranscriptClient:
    """TranscriptClient backed by youtube-transcript-api."""

    def __init__(self, languages: tuple[str, ...] = ("en",), timeout: float = 30.0) -> None:
        self._languages = languages
        self._api = YouTubeTranscriptApi(http_client=_TimeoutSession(timeout))

    def fetch_transcript(self, video_id: str) -> list[TranscriptSegment] | None:
        try:
            fetched = self._api.fetch(video_id, languages=list(self._languages))
        except CouldNotRetrieveTranscript as exc:
            logger.info("No transcript for video %s: %s", video_id, type(exc).__name__)
            return None
        return [
            TranscriptSegment(
                text=snippet.text,
                offset_ms=int(snippet.start * 1000),
                duration_ms=int(snippet.duration * 1000),
            )
            for snippet in fetched
        ]


def extract_video_id(url: str) -> str | None:
    """Video id from watch?v=, youtu.be/ and /embed/ URL shapes."""
    for pattern in _VIDEO_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def thumbnail_url(video_id: str) -> str:
    return f"https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"


def join_transcript(segments: list[TranscriptSegment]) -> str:
    """Concatenate segment texts with whitespace normalised."""
    return " ".join(" ".join(s.text for s in segments).split())


def truncate_transcript(transcript: str, max_length: int = 8000) -> str:
    """Cut *transcript* to *max_length*, preferring a sentence boundary.

    The cut lands on the last ``.``/``!``/``?`` when that keeps more than 80 %
    of the budget; otherwise the hard cut is marked with ``...``.
    """
    if len(transcript) <= max_length:
        return transcript

    truncated = transcript[:max_length]
    last_end = max(truncated.rfind("."), truncated.rfind("!"), truncated.rfind("?"))
    if last_end > max_length * 0.8:
        return truncated[: last_end + 1]
    return truncated + "..."


class YouTubeExtractor:
    """Extract a YouTube video.

    Args:
        fetcher: Network collaborator for the watch page.
        transcripts: Transcript collaborator.
        insight_chars: Transcript budget handed to the insight generator.
    """

    def __init__(
        self,
        fetcher: FetchClient,
        transcripts: TranscriptClient,
        insight_chars: int = 4_000,
    ) -> None:
        self._fetcher = fetcher
        self._transcripts = transcripts
        self._insight_chars = insight_chars

    def extract(self, url: str) -> Extraction:
        video_id = extract_video_id(url)
        extraction = Extraction(
            kind=ContentKind.YOUTUBE,
            title=_DEFAULT_TITLE,
            attributes={"url": url, "video_id": video_id, "has_transcript": False},
        )
        if video_id is None:
            extraction.degrade("no video id in URL")
            return extraction

        extraction.attributes["image"] = thumbnail_url(video_id)
        description = self._fetch_page(video_id, extraction)

        transcript = self._fetch_transcript(video_id)
        if transcript:
            extraction.body = transcript
            extraction.insight_text = truncate_transcript(transcript, self._insight_chars)
            extraction.attributes["transcript"] = transcript[:_TRANSCRIPT_PREVIEW_CHARS]
            extraction.attributes["has_transcript"] = True
        else:
            extraction.body = description
            extraction.degrade("transcript unavailable; using description")
        return extraction

    def _fetch_page(self, video_id: str, extraction: Extraction) -> str:
        try:
            response = self._fetcher.fetch(f"https://www.youtube.com/watch?v={video_id}")
        except FetchError as exc:
            logger.warning("Fetching watch page for %s failed: %s", video_id, exc)
            extraction.degrade("watch page unavailable")
            return ""
        if not response.ok:
            extraction.degrade(f"watch page returned HTTP {response.status}")
            return ""

        soup = BeautifulSoup(response.body, "html.parser")
        title = extract_title(soup)
        if title and title != "Untitled":
            extraction.title = title
        description = extract_description(soup)
        extraction.attributes["description"] = description
        return description

    def _fetch_transcript(self, video_id: str) -> str:
        try:
            segments = self._transcripts.fetch_transcript(video_id)
        except Exception as exc:
            logger.warning("Transcript fetch for %s failed: %s", video_id, exc)
            return ""
        if not segments:
            return ""
        return join_transcript(segments)

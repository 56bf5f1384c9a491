"""Web page extraction: page metadata, price detection, readable article text.

Stages (each degrades independently):
  1. Fetch the page through the FetchClient.
  2. Parse Open-Graph / Twitter-card / plain HTML tags for title, description,
     hero image, favicon, author and price.
  3. Product candidates with a detected price become products; everything
     else is an article.
  4. Articles go through readability-lxml for clean HTML + plain text,
     word count and reading time. Failure keeps the metadata-only result.

A fetch failure yields a ``failed`` Extraction titled with the raw URL.
"""

from __future__ import annotations

import logging
import math
import re
import urllib.parse
from dataclasses import dataclass

import html2text
from bs4 import BeautifulSoup
from readability import Document

from synapse.db.models import ContentKind
from synapse.errors import FetchError
from synapse.ingest.base import Extraction, ExtractionStatus
from synapse.ingest.classifier import UrlKind
from synapse.ingest.fetch import FetchClient

logger = logging.getLogger(__name__)

_PRICE_RE = re.compile(r"[$€£¥]\s*[\d,]+\.?\d*")
_PRICE_SELECTORS = (
    '[class*="price"]',
    '[id*="price"]',
    ".product-price",
    '[itemprop="price"]',
)
_DESCRIPTION_MAX = 300
_WORDS_PER_MINUTE = 200

_h2t = html2text.HTML2Text()
_h2t.ignore_links = True
_h2t.ignore_images = True
_h2t.body_width = 0


@dataclass
class PageMetadata:
    title: str
    description: str = ""
    image: str | None = None
    favicon: str | None = None
    author: str | None = None
    price: str | None = None


@dataclass
class ReadableArticle:
    title: str
    html: str
    text: str
    excerpt: str
    byline: str | None
    word_count: int
    reading_time: int


class WebExtractor:
    """Extract articles and product pages.

    Args:
        fetcher: Network collaborator used for the page GET.
    """

    def __init__(self, fetcher: FetchClient) -> None:
        self._fetcher = fetcher

    def extract(self, url: str, url_kind: UrlKind = UrlKind.ARTICLE) -> Extraction:
        try:
            response = self._fetcher.fetch(url)
        except FetchError as exc:
            logger.warning("Fetching %s failed: %s", url, exc)
            return _failed(url, str(exc))
        if not response.ok:
            logger.warning("Fetching %s returned HTTP %s", url, response.status)
            return _failed(url, f"HTTP {response.status}")

        html = response.body
        soup = BeautifulSoup(html, "html.parser")
        meta = parse_metadata(soup, url)

        kind = ContentKind.ARTICLE
        if url_kind is UrlKind.PRODUCT_CANDIDATE and meta.price:
            kind = ContentKind.PRODUCT

        extraction = Extraction(
            kind=kind,
            title=meta.title,
            body=meta.description,
            attributes={
                "url": url,
                "image": meta.image,
                "favicon": meta.favicon,
                "author": meta.author,
            },
        )
        if kind is ContentKind.PRODUCT:
            extraction.attributes["price"] = meta.price
            return extraction

        article = extract_readable_article(html, url)
        if article is None:
            extraction.degrade("readable article extraction failed; metadata only")
            return extraction

        _merge_article(extraction, meta, article)
        return extraction


def _failed(url: str, issue: str) -> Extraction:
    return Extraction(
        kind=ContentKind.ARTICLE,
        title=url,
        attributes={"url": url},
        status=ExtractionStatus.FAILED,
        issues=[issue],
    )


def _merge_article(extraction: Extraction, meta: PageMetadata, article: ReadableArticle) -> None:
    extraction.body = article.text
    extraction.attributes.update(
        {
            "html_content": article.html,
            "reading_time": article.reading_time,
            "word_count": article.word_count,
        }
    )
    if article.title and len(article.title) > len(extraction.title):
        extraction.title = article.title
    if article.byline and not meta.author:
        extraction.attributes["author"] = article.byline
    if article.excerpt and not meta.description:
        extraction.attributes["description"] = article.excerpt
    elif meta.description:
        extraction.attributes["description"] = meta.description


# ------------------------------------------------------------------
# Metadata
# ------------------------------------------------------------------


def parse_metadata(soup: BeautifulSoup, url: str) -> PageMetadata:
    """Read title, description, image, favicon, author and price from *soup*."""
    return PageMetadata(
        title=extract_title(soup),
        description=extract_description(soup),
        image=extract_image(soup, url),
        favicon=extract_favicon(soup, url),
        author=extract_author(soup),
        price=extract_price(soup),
    )


def _meta(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return ""
    return (tag.get("content") or "").strip()


def _first_text(soup: BeautifulSoup, name: str) -> str:
    tag = soup.find(name)
    return tag.get_text().strip() if tag is not None else ""


def extract_title(soup: BeautifulSoup) -> str:
    return (
        _meta(soup, property="og:title")
        or _meta(soup, name="twitter:title")
        or _first_text(soup, "title")
        or _first_text(soup, "h1")
        or "Untitled"
    )


def extract_description(soup: BeautifulSoup) -> str:
    desc = (
        _meta(soup, property="og:description")
        or _meta(soup, name="description")
        or _meta(soup, name="twitter:description")
        or _first_text(soup, "p")
    )
    return desc[:_DESCRIPTION_MAX]


def extract_image(soup: BeautifulSoup, base_url: str) -> str | None:
    src = _meta(soup, property="og:image") or _meta(soup, name="twitter:image")
    if not src:
        img = soup.find("img", src=True)
        src = (img.get("src") or "").strip() if img is not None else ""
    return urllib.parse.urljoin(base_url, src) if src else None


def extract_favicon(soup: BeautifulSoup, base_url: str) -> str | None:
    link = soup.select_one('link[rel~="icon"][href]')
    if link is not None:
        return urllib.parse.urljoin(base_url, link["href"].strip())
    parsed = urllib.parse.urlparse(base_url)
    if not parsed.netloc:
        return None
    return f"{parsed.scheme}://{parsed.netloc}/favicon.ico"


def extract_author(soup: BeautifulSoup) -> str | None:
    author = _meta(soup, name="author") or _meta(soup, property="article:author")
    if not author:
        tag = soup.select_one('[rel~="author"]')
        author = tag.get_text().strip() if tag is not None else ""
    return author or None


def extract_price(soup: BeautifulSoup) -> str | None:
    """First currency amount in a price-bearing element, else anywhere in the body."""
    for selector in _PRICE_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        match = _PRICE_RE.search(element.get_text())
        if match:
            return match.group(0)

    body = soup.body or soup
    match = _PRICE_RE.search(body.get_text(" "))
    return match.group(0) if match else None


# ------------------------------------------------------------------
# Readable article
# ------------------------------------------------------------------


def extract_readable_article(html: str, url: str = "") -> ReadableArticle | None:
    """Run readability over *html*; None if nothing readable was found."""
    try:
        doc = Document(html, url=url or None)
        content_html = doc.summary(html_partial=True)
        title = doc.short_title() or doc.title() or ""
    except Exception as exc:
        logger.warning("Readability failed for %s: %s", url or "<html>", exc)
        return None

    text = html_to_text(content_html)
    if not text:
        return None

    word_count = len(text.split())
    return ReadableArticle(
        title="" if title == "[no-title]" else title.strip(),
        html=content_html,
        text=text,
        excerpt=_excerpt(text),
        byline=None,
        word_count=word_count,
        reading_time=math.ceil(word_count / _WORDS_PER_MINUTE),
    )


def html_to_text(html: str) -> str:
    """Strip non-content tags, then render plain text with html2text."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(["script", "style", "nav", "footer", "head"]):
        tag.decompose()
    return _h2t.handle(str(soup)).strip()


def _excerpt(text: str, limit: int = _DESCRIPTION_MAX) -> str:
    first = next((p.strip() for p in text.split("\n\n") if p.strip()), "")
    return first[:limit]

"""Knowledge-base chat: context assembly, model call, citation extraction.

Pipeline:
  1. Render the most relevant saved items into a context block. YouTube items
     are labelled "Video Transcript" or "Video Description" depending on
     ``has_transcript`` so the model can disclose when it only saw the
     description.
  2. Send the system prompt, the last conversation turns and the new message.
  3. Collect ``Item N`` citations from the reply.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from synapse.config import GenerationCfg
from synapse.db.models import ContentItem, ContentKind
from synapse.rag.llm_client import complete

logger = logging.getLogger(__name__)

_HISTORY_TURNS = 10
_TRANSCRIPT_PREVIEW = 2_000
_CONTENT_PREVIEW = 300
_CITATION_RE = re.compile(r"Item (\d+)")
_UNAVAILABLE_REPLY = "I'm having trouble connecting right now. Please try again in a moment."

_SYSTEM_PROMPT = """\
You are Synapse AI, an intelligent assistant that helps users explore and \
understand their personal knowledge base.

{context}

Your role:
- Help users find, understand, and connect information from their saved content
- Answer questions based on their saved items
- For YouTube videos: if "Video Transcript" is shown you have the full transcript. \
If only "Video Description" is shown, the video had no captions; say so and work \
with the description.
- When referencing saved content, mention the item number (e.g. "Based on Item 3...")
- If you don't have relevant information, say so honestly"""


@dataclass
class ChatMessage:
    role: str  # user | assistant
    content: str


@dataclass
class ChatReply:
    response: str
    cited_items: list[int] = field(default_factory=list)


def build_knowledge_context(items: Sequence[ContentItem], max_items: int = 10) -> str:
    """Render up to *max_items* items as numbered context entries."""
    if not items:
        return "The user hasn't saved any content yet."

    blocks = [_render_item(index, item) for index, item in enumerate(items[:max_items], start=1)]
    body = "\n---\n".join(blocks)
    return (
        f"The user has saved {len(items)} items in their knowledge base. "
        f"Here are the most relevant ones:\n\n{body}"
    )


def _render_item(index: int, item: ContentItem) -> str:
    attrs = item.attributes
    is_video = item.kind is ContentKind.YOUTUBE
    has_transcript = is_video and attrs.get("has_transcript") is True

    if has_transcript:
        label = "Video Transcript"
        preview = item.body[:_TRANSCRIPT_PREVIEW] if item.body else "No transcript available"
    else:
        label = "Video Description" if is_video else "Content"
        preview = item.body[:_CONTENT_PREVIEW] if item.body else "No content"

    lines = [
        f"[Item {index}] (ID: {item.id}, Type: {item.kind.value})",
        f"Title: {item.title}",
        f"{label}: {preview}",
    ]
    if attrs.get("video_id"):
        lines.append(f"Video ID: {attrs['video_id']}")
    if attrs.get("url"):
        lines.append(f"URL: {attrs['url']}")
    if attrs.get("ai_summary"):
        lines.append(f"AI Summary: {attrs['ai_summary']}")
    if attrs.get("key_points"):
        lines.append(f"Key Points: {'; '.join(attrs['key_points'])}")
    if attrs.get("topics"):
        lines.append(f"Topics: {', '.join(attrs['topics'])}")
    return "\n".join(lines)


def chat_with_knowledge(
    message: str,
    items: Sequence[ContentItem],
    history: Sequence[ChatMessage] = (),
    generation: GenerationCfg | None = None,
    max_items: int = 20,
) -> ChatReply:
    """Answer *message* grounded in *items*. Model failure returns an apology."""
    gen = generation or GenerationCfg()
    messages = [
        {"role": "system", "content": _SYSTEM_PROMPT.format(context=build_knowledge_context(items, max_items))}
    ]
    messages.extend({"role": m.role, "content": m.content} for m in history[-_HISTORY_TURNS:])
    messages.append({"role": "user", "content": message})

    try:
        text = complete(
            model=gen.model,
            messages=messages,
            max_tokens=1_000,
            temperature=0.7,
            num_retries=gen.num_retries,
            timeout=gen.timeout,
        )
    except Exception as exc:
        logger.warning("Chat completion failed: %s", exc)
        return ChatReply(response=_UNAVAILABLE_REPLY)

    return ChatReply(response=text, cited_items=extract_citations(text))


def extract_citations(text: str) -> list[int]:
    """Distinct ``Item N`` numbers in order of first mention."""
    seen: dict[int, None] = {}
    for match in _CITATION_RE.finditer(text):
        seen.setdefault(int(match.group(1)), None)
    return list(seen)


def suggested_questions(items: Sequence[ContentItem]) -> list[str]:
    """Up to four starter questions based on what the user has saved."""
    if not items:
        return ["Tell me what I can do with Synapse"]

    kinds = {item.kind for item in items}
    suggestions: list[str] = []
    if ContentKind.ARTICLE in kinds:
        suggestions.append("What are the key themes in my saved articles?")
    if ContentKind.TODO in kinds:
        suggestions.append("What tasks do I have pending?")
    if ContentKind.YOUTUBE in kinds:
        suggestions.append("Summarize the videos I've saved")
    if len(items) > 5:
        suggestions.append("What have I been learning lately?")
        suggestions.append("Find connections between my saved items")
    suggestions.append("What should I review today?")
    return suggestions[:4]

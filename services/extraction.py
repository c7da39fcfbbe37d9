"""Plain-text extraction from Notion pages and search relevance scoring."""

from typing import Any, Dict, Iterable

from .shared.models import UNTITLED

# Checked in order; the first non-empty title wins
TITLE_PROPERTIES = ("Name", "Title", "Question")


def extract_title(properties: Dict[str, Any]) -> str:
    """Resolve a page title from its properties."""
    for prop in TITLE_PROPERTIES:
        title_parts = (properties.get(prop) or {}).get("title") or []
        if title_parts:
            text = title_parts[0].get("plain_text")
            if text:
                return text
    return UNTITLED


def extract_block_text(block: Dict[str, Any]) -> str:
    """Concatenate the plain text spans of a single block."""
    block_type = block.get("type")
    content = block.get(block_type) if block_type else None
    if not content or not isinstance(content, dict):
        return ""

    rich_text = content.get("rich_text") or content.get("text")
    if isinstance(rich_text, list):
        return "".join(span.get("plain_text") or "" for span in rich_text)
    return ""


def join_blocks(blocks: Iterable[Dict[str, Any]]) -> str:
    """Build a page body: one line per typed block, trimmed."""
    lines = [extract_block_text(block) for block in blocks if "type" in block]
    return "".join(line + "\n" for line in lines).strip()


def calculate_relevance(query: str, title: str, body: str) -> int:
    """Score a search hit against the query.

    +100 for an exact (case-insensitive) title match, otherwise +50 when the
    title contains the query. Each whitespace-separated query word then adds
    10 per occurrence in the title and 2 per occurrence in the body.
    Occurrences are literal, non-overlapping substring counts.
    """
    query_lower = query.lower()
    title_lower = title.lower()
    body_lower = body.lower()

    score = 0
    if title_lower == query_lower:
        score += 100
    elif query_lower in title_lower:
        score += 50

    for word in query_lower.split():
        score += title_lower.count(word) * 10 + body_lower.count(word) * 2

    return score

"""Concept composition: turn user wishes plus FAQ content into Paul's reply.

Everything here is pure; the FAQ snapshot and search results are passed in,
so the route decides where they come from.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .shared.models import Document, ScoredDocument

PERSONA_NAME = "Paul Cameron"
COMPANY_NAME = "Treehouse Life"

GENERIC_CONCEPT = (
    'Based on your wish for "{user_input}", I envision a beautiful space that combines '
    'natural elegance with thoughtful design. This concept embraces the harmony between '
    'your dreams and the environment around you.'
)
GREETING = f"Hello, I'm {PERSONA_NAME}."
WISH_LINE = 'Based on your wish for "{user_input}", here\'s what I envision for you.'
CLOSING = (
    f"This concept combines {COMPANY_NAME}'s philosophy of elevated play and biophilic design "
    "with your unique vision. Let's explore how we can bring this dream to life in your space."
)

# Keyword and scoring rules
MIN_KEYWORD_LENGTH = 4
TITLE_KEYWORD_SCORE = 10
BODY_KEYWORD_SCORE = 2
FALLBACK_FAQ_COUNT = 2
SOURCE_COUNT = 3

# Excerpt rules
SENTENCE_PATTERN = re.compile(r"[^.!?]+[.!?]+(?:\s+|$)")
MIN_SENTENCE_CHARS = 30
MIN_SENTENCE_WORDS = 8
MAX_EXCERPT_CHARS = 600
MAX_SENTENCES = 4
MIN_SENTENCES = 2
MIN_EXCERPT_CHARS = 100
FALLBACK_CHARS = 400
MIN_PERIOD_CUTOFF = 150


@dataclass
class ConceptResult:
    concept: str
    sources: List[Dict[str, str]] = field(default_factory=list)
    matched: bool = False


def extract_keywords(user_input: str) -> List[str]:
    """Lower-cased whitespace tokens longer than three characters."""
    return [word for word in user_input.lower().split() if len(word) >= MIN_KEYWORD_LENGTH]


def score_faqs(faqs: Sequence[Document], keywords: Sequence[str]) -> List[ScoredDocument]:
    """Rank FAQs by keyword presence; FAQs scoring zero are dropped."""
    scored = []
    for faq in faqs:
        title_lower = faq.title.lower()
        body_lower = faq.body.lower()

        score = 0
        for keyword in keywords:
            if keyword in title_lower:
                score += TITLE_KEYWORD_SCORE
            if keyword in body_lower:
                score += BODY_KEYWORD_SCORE

        if score > 0:
            scored.append(ScoredDocument(document=faq, score=score))

    return sorted(scored, key=lambda candidate: candidate.score, reverse=True)


def select_relevant_faqs(faqs: Sequence[Document], scored: Sequence[ScoredDocument]) -> List[Document]:
    """Top two scored FAQs, or the first two FAQs when nothing matched."""
    if scored:
        return [candidate.document for candidate in scored[:FALLBACK_FAQ_COUNT]]
    return list(faqs[:FALLBACK_FAQ_COUNT])


def split_sentences(text: str) -> List[str]:
    return SENTENCE_PATTERN.findall(text)


def truncate_at_period(text: str) -> str:
    """First 400 characters, cut back to the last period if it lies past 150."""
    cutoff = text[:FALLBACK_CHARS]
    last_period = cutoff.rfind(".")
    if last_period > MIN_PERIOD_CUTOFF:
        return text[:last_period + 1]
    return cutoff


def extract_excerpt(body: str) -> str:
    """Pick two to four substantive sentences from an FAQ body.

    Sentences under 30 characters or 8 words are treated as headings or
    list items and skipped. Accumulation stops at 4 sentences or when the
    next one would reach 600 characters, once at least 2 are taken. If the
    result is 100 characters or less, fall back to ``truncate_at_period``.
    """
    snippet = body.strip()
    sentences = split_sentences(snippet)
    if not sentences:
        return truncate_at_period(snippet)

    selected_text = ""
    sentence_count = 0
    for sentence in sentences:
        trimmed = sentence.strip()
        if len(trimmed) < MIN_SENTENCE_CHARS:
            continue
        if len(trimmed.split()) < MIN_SENTENCE_WORDS:
            continue

        if len(selected_text) + len(trimmed) < MAX_EXCERPT_CHARS and sentence_count < MAX_SENTENCES:
            selected_text += trimmed + " "
            sentence_count += 1
        elif sentence_count >= MIN_SENTENCES:
            break

    selected_text = selected_text.strip()
    if len(selected_text) > MIN_EXCERPT_CHARS:
        return selected_text
    return truncate_at_period(snippet)


def compose_concept(user_input: str,
                    faqs: Sequence[Document],
                    scored: Optional[Sequence[ScoredDocument]] = None) -> str:
    """Build the persona reply from the most relevant FAQ.

    ``scored`` is the output of ``score_faqs`` for this input, when the caller
    already has it.
    """
    if scored is None:
        scored = score_faqs(faqs, extract_keywords(user_input))
    relevant = select_relevant_faqs(faqs, scored)
    if not relevant:
        return GENERIC_CONCEPT.format(user_input=user_input)

    excerpt = extract_excerpt(relevant[0].body)
    return (
        f"{GREETING}\n\n"
        f"{WISH_LINE.format(user_input=user_input)}\n\n"
        f"{excerpt}\n\n"
        f"{CLOSING}"
    )


def build_sources(search_results: Sequence[Document]) -> List[Dict[str, str]]:
    return [doc.source() for doc in search_results[:SOURCE_COUNT]]


def generate_concept(user_input: str,
                     search_results: Sequence[Document],
                     faqs: Sequence[Document]) -> ConceptResult:
    """Compose the concept text and attach the top search hits as sources."""
    scored = score_faqs(faqs, extract_keywords(user_input))
    return ConceptResult(
        concept=compose_concept(user_input, faqs, scored),
        sources=build_sources(search_results),
        matched=bool(scored)
    )

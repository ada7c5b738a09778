"""Split text into paragraphs and sentences, keeping source offsets."""

import re
from dataclasses import dataclass

# Abbreviations that don't end sentences
ABBREVIATIONS = {
    "mr", "mrs", "ms", "dr", "prof", "sr", "jr", "vs", "etc",
    "i.e", "e.g", "cf", "al", "st", "mt", "ft",
}

PARAGRAPH_BREAK = re.compile(r"\n\s*\n+")

# . ! ? (optionally followed by a closing quote), whitespace, then a capital or opening quote
SENTENCE_BREAK = re.compile(
    r"(?:(?<=[.!?])|(?<=[.!?][\"”’']))\s+(?=[A-Z\"“‘])"
)


@dataclass
class Span:
    """A stripped piece of text with its location in the source."""

    start: int
    end: int
    text: str


def _stripped_span(text: str, start: int, end: int) -> Span | None:
    """Shrink [start, end) to exclude surrounding whitespace."""
    chunk = text[start:end]
    stripped = chunk.strip()
    if not stripped:
        return None
    lead = len(chunk) - len(chunk.lstrip())
    return Span(start + lead, start + lead + len(stripped), stripped)


def paragraph_spans(text: str) -> list[Span]:
    """Paragraphs separated by blank lines, empty ones dropped."""
    spans: list[Span] = []
    last = 0
    for match in PARAGRAPH_BREAK.finditer(text):
        span = _stripped_span(text, last, match.start())
        if span:
            spans.append(span)
        last = match.end()
    span = _stripped_span(text, last, len(text))
    if span:
        spans.append(span)
    return spans


def sentence_spans(text: str, offset: int = 0) -> list[Span]:
    """
    Sentences of ``text``; positions are shifted by ``offset``.

    Handles common abbreviations (Mr., Dr., e.g.) that don't end sentences.
    """
    spans: list[Span] = []
    last = 0
    for match in SENTENCE_BREAK.finditer(text):
        previous_word = text[last:match.start()].split()
        if previous_word and previous_word[-1].rstrip(".").lower() in ABBREVIATIONS:
            continue
        span = _stripped_span(text, last, match.start())
        if span:
            spans.append(span)
        last = match.end()
    span = _stripped_span(text, last, len(text))
    if span:
        spans.append(span)

    if offset:
        for span in spans:
            span.start += offset
            span.end += offset
    return spans


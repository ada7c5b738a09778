"""Text ingestion and splitting."""

from story_narrator.ingest.loader import load_text
from story_narrator.ingest.splitter import (
    Span,
    paragraph_spans,
    sentence_spans,
)

__all__ = [
    "Span",
    "load_text",
    "paragraph_spans",
    "sentence_spans",
]

"""
Readability

Flesch reading ease per chunk of paragraphs, with syllables estimated by a
vowel-cluster count.
"""

import re
import statistics

from story_narrator.errors import InputValidationError
from story_narrator.ingest.splitter import paragraph_spans
from story_narrator.models import ReadabilityPoint

WORD = re.compile(r"[A-Za-z]+(?:['’][A-Za-z]+)*")
SENTENCE_END = re.compile(r"[.!?]+")

# Chunks with words but no terminal punctuation cannot be measured
FALLBACK_SCORE = 30.0
PREVIEW_LENGTH = 80


def count_syllables(word: str) -> int:
    """
    Estimate syllable count for a word.
    Uses a simple vowel-counting heuristic.
    """
    word = word.lower()
    vowels = "aeiouy"
    count = 0
    prev_vowel = False

    for char in word:
        is_vowel = char in vowels
        if is_vowel and not prev_vowel:
            count += 1
        prev_vowel = is_vowel

    # Adjust for silent e
    if word.endswith("e") and count > 1:
        count -= 1

    # Adjust for -le endings
    if word.endswith("le") and len(word) > 2 and word[-3] not in vowels:
        count += 1

    return max(1, count)


def flesch_reading_ease(text: str) -> tuple[float, int, int, int] | None:
    """
    Score a piece of text.

    Returns:
        (score, words, sentences, syllables), or None when there are no words.
        The score is clamped to 0-100.
    """
    words = WORD.findall(text)
    if not words:
        return None

    sentences = len(SENTENCE_END.findall(text))
    syllables = sum(count_syllables(w) for w in words)

    if sentences == 0:
        return FALLBACK_SCORE, len(words), 0, syllables

    # Average sentence length and average syllables per word
    asl = len(words) / sentences
    asw = syllables / len(words)
    score = 206.835 - (1.015 * asl) - (84.6 * asw)

    return round(max(0.0, min(100.0, score)), 2), len(words), sentences, syllables


def readability_points(text: str, paragraphs_per_point: int = 1) -> list[ReadabilityPoint]:
    """One point per chunk of ``paragraphs_per_point`` paragraphs; empty chunks are skipped."""
    if paragraphs_per_point < 1:
        raise InputValidationError("paragraphs_per_point must be at least 1")

    paragraphs = paragraph_spans(text)
    points: list[ReadabilityPoint] = []

    for i in range(0, len(paragraphs), paragraphs_per_point):
        chunk = paragraphs[i:i + paragraphs_per_point]
        start, end = chunk[0].start, chunk[-1].end
        measured = flesch_reading_ease(text[start:end])
        if measured is None:
            continue

        score, words, sentences, syllables = measured
        preview = chunk[0].text[:PREVIEW_LENGTH]
        points.append(ReadabilityPoint(
            index=len(points),
            score=score,
            start=start,
            end=end,
            word_count=words,
            sentence_count=sentences,
            syllable_count=syllables,
            preview=preview,
        ))

    return points


def average_score(points: list[ReadabilityPoint]) -> float | None:
    if not points:
        return None
    return statistics.mean(p.score for p in points)

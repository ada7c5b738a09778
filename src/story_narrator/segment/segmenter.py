"""
Segmenter

Split prose into ordered narration, dialogue and thought segments and work
out who speaks each one. Detection is purely pattern based: quote patterns
for speech, a verb vocabulary for attribution and a thought-verb vocabulary
for interior monologue.
"""

import bisect
import logging
import re
from typing import Optional

from story_narrator.config import Settings, get_settings
from story_narrator.errors import InputValidationError, NarratorError
from story_narrator.models import (
    NARRATOR,
    UNKNOWN_SPEAKER,
    AttributionMatch,
    DialogueMatch,
    Result,
    TextSegment,
)
from story_narrator.tables import load_table

logger = logging.getLogger(__name__)

# Quoted speech: double, curly double, single (apostrophes excluded), curly single
QUOTE_PATTERNS = [
    re.compile(r'"([^"]+)"'),
    re.compile(r"“([^”]+)”"),
    re.compile(r"(?<![\w'])'(?!\s)(.+?)(?<!\s)'(?!\w)"),
    re.compile(r"‘(.+?)’(?!\w)"),
]

# A capitalized word: "Sarah", "McGee", "PowerfulPerson"
NAME = re.compile(r"\b[A-Z][A-Za-z]*[a-z]\b")
NAME_AFTER_VERB = re.compile(r"[ \t]+([A-Z][A-Za-z]*[a-z])\b")
OPENING_QUOTE = re.compile(r"\s*[,:]?\s*[\"“‘']")

# Clause after a thought verb, up to terminal punctuation or a quote mark
THOUGHT_CLAUSE = re.compile(r"[ \t]*[.,:;]?[ \t]*([^.!?\"“”\n]+)")
MIN_THOUGHT_LENGTH = 5

BASE_CONFIDENCE = 0.5
COMMON_VERB_BONUS = 0.3
REPEAT_BONUS_PER_MENTION = 0.05
REPEAT_BONUS_CAP = 0.2


class Segmenter:
    """
    Turns raw text into attributed segments.

    Usage:
        segmenter = Segmenter()
        result = segmenter.parse('"Run!" shouted Tom.')
        for segment in result.data:
            print(segment.speaker, segment.type, segment.content)
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        vocabulary = load_table("vocabulary", self.settings.tables_dir)

        self.speech_verbs = set(vocabulary["speech_verbs"])
        self.thought_verbs = set(vocabulary["thought_verbs"])
        self.common_speech_verbs = set(vocabulary["common_speech_verbs"])
        self.stopwords = {word.lower() for word in vocabulary["speaker_stopwords"]}

        self._speech_pattern = _verb_pattern(self.speech_verbs)
        self._thought_pattern = _verb_pattern(self.thought_verbs)

    @property
    def window(self) -> int:
        return self.settings.attribution_window

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def parse(self, text: str) -> Result[list[TextSegment]]:
        """Split text into ordered, contiguous segments covering the whole input."""
        try:
            segments = self.segment(text)
        except NarratorError as e:
            return Result.fail(str(e))
        except Exception as e:
            logger.exception("Text parsing failed")
            return Result.fail(f"Text parsing failed: {e}")

        return Result.ok(
            segments,
            total_segments=len(segments),
            dialogue_segments=sum(1 for s in segments if s.type == "dialogue"),
            narration_segments=sum(1 for s in segments if s.type == "narration"),
            thought_segments=sum(1 for s in segments if s.type == "thought"),
        )

    def identify_dialogue(self, text: str) -> Result[list[DialogueMatch]]:
        """Quoted and thought spans, merged and ordered by position."""
        try:
            _validate(text)
            quotes = self._find_quotes(text)
            attributions = self._find_attributions(text, quotes)
            thoughts = self._find_thoughts(text, quotes, attributions)
            return Result.ok(_merge(quotes + thoughts))
        except NarratorError as e:
            return Result.fail(str(e))

    def extract_attributions(self, text: str) -> Result[list[AttributionMatch]]:
        """Speech and thought verbs with the speaker each points at."""
        try:
            _validate(text)
            quotes = self._find_quotes(text)
            return Result.ok(self._find_attributions(text, quotes))
        except NarratorError as e:
            return Result.fail(str(e))

    # ------------------------------------------------------------------
    # Core algorithm (raises)
    # ------------------------------------------------------------------

    def segment(self, text: str) -> list[TextSegment]:
        """Like :meth:`parse` but raises on invalid input."""
        _validate(text)

        quotes = self._find_quotes(text)
        attributions = self._find_attributions(text, quotes)
        thoughts = self._find_thoughts(text, quotes, attributions)
        matches = _merge(quotes + thoughts)
        quote_starts = [q.start for q in quotes]
        positions = [a.position for a in attributions]

        segments: list[TextSegment] = []
        cursor = 0
        pending_start = 0  # whitespace-only gaps are folded into the next segment

        def next_id() -> str:
            return f"segment-{len(segments)}"

        for match in matches:
            gap = text[cursor:match.start]
            if gap.strip():
                segments.append(TextSegment(
                    id=next_id(),
                    content=gap.strip(),
                    speaker=NARRATOR,
                    type="narration",
                    start_position=pending_start,
                    end_position=match.start,
                ))
                pending_start = match.start

            speaker, attribution = self._resolve_speaker(
                match, attributions, positions, quote_starts
            )
            if match.kind == "thought" or (attribution and attribution.kind == "thought"):
                segment_type = "thought"
            else:
                segment_type = "dialogue"

            segments.append(TextSegment(
                id=next_id(),
                content=match.content,
                speaker=speaker,
                type=segment_type,
                start_position=pending_start,
                end_position=match.end,
                attribution_verb=attribution.verb if attribution else match.verb,
            ))
            cursor = match.end
            pending_start = match.end

        tail = text[cursor:]
        if tail.strip():
            segments.append(TextSegment(
                id=next_id(),
                content=tail.strip(),
                speaker=NARRATOR,
                type="narration",
                start_position=pending_start,
                end_position=len(text),
            ))
        elif segments:
            segments[-1].end_position = len(text)

        logger.debug(
            "Segmented %d chars into %d segments (%d quotes, %d thoughts, %d attributions)",
            len(text), len(segments), len(quotes), len(thoughts), len(attributions),
        )
        return segments

    def _find_quotes(self, text: str) -> list[DialogueMatch]:
        found: list[DialogueMatch] = []
        for pattern in QUOTE_PATTERNS:
            for match in pattern.finditer(text):
                content = match.group(1).strip()
                if content:
                    found.append(DialogueMatch(
                        content=content, start=match.start(), end=match.end(), kind="quote"
                    ))
        # Nested or overlapping quote styles: keep the outermost, earliest span
        return _merge(found)

    def _find_attributions(
        self, text: str, quotes: list[DialogueMatch]
    ) -> list[AttributionMatch]:
        spans = _SpanIndex(quotes)
        mention_counts: dict[str, int] = {}
        found: list[AttributionMatch] = []

        for kind, pattern in (("speech", self._speech_pattern), ("thought", self._thought_pattern)):
            for match in pattern.finditer(text):
                if spans.contains(match.start()):
                    continue  # verbs inside quoted speech are content, not attribution

                verb = match.group(0).lower()
                speaker, follows = self._speaker_near(text, match.start(), match.end(), spans)
                if not speaker:
                    continue

                if speaker not in mention_counts:
                    mention_counts[speaker] = len(
                        re.findall(rf"\b{re.escape(speaker)}\b", text, re.IGNORECASE)
                    )

                attribution_end = match.end()
                if follows:
                    name_match = NAME_AFTER_VERB.match(text, match.end())
                    attribution_end = name_match.end()

                found.append(AttributionMatch(
                    verb=verb,
                    speaker=speaker,
                    position=match.start(),
                    end=attribution_end,
                    confidence=self._confidence(verb, mention_counts[speaker]),
                    kind=kind,
                    speaker_follows_verb=follows,
                    introduces_quote=bool(OPENING_QUOTE.match(text, attribution_end)),
                ))

        found.sort(key=lambda a: a.position)
        return found

    def _find_thoughts(
        self,
        text: str,
        quotes: list[DialogueMatch],
        attributions: list[AttributionMatch],
    ) -> list[DialogueMatch]:
        spans = _SpanIndex(quotes)
        by_position = {a.position: a for a in attributions if a.kind == "thought"}
        found: list[DialogueMatch] = []

        for match in self._thought_pattern.finditer(text):
            if spans.contains(match.start()):
                continue

            attribution = by_position.get(match.start())
            clause_start = attribution.end if attribution else match.end()
            clause = THOUGHT_CLAUSE.match(text, clause_start)
            if not clause:
                continue

            raw = clause.group(1)
            content = raw.strip()
            if len(content) <= MIN_THOUGHT_LENGTH:
                continue

            start = clause.start(1) + (len(raw) - len(raw.lstrip()))
            found.append(DialogueMatch(
                content=content,
                start=start,
                end=start + len(content),
                kind="thought",
                verb=match.group(0).lower(),
                speaker=attribution.speaker if attribution else None,
            ))
        return found

    def _speaker_near(
        self, text: str, verb_start: int, verb_end: int, spans: "_SpanIndex"
    ) -> tuple[Optional[str], bool]:
        """Find the speaker for a verb.

        Returns:
            (speaker, speaker_follows_verb)
        """
        # "said Bob"
        after = NAME_AFTER_VERB.match(text, verb_end)
        if after and after.group(1).lower() not in self.stopwords:
            return after.group(1), True

        # "Bob ... said": the closest name inside the lookback window
        window_start = max(0, verb_start - self.settings.speaker_lookback)
        candidate = None
        for match in NAME.finditer(text, window_start, verb_start):
            if match.group(0).lower() in self.stopwords:
                continue
            if spans.contains(match.start()):
                continue
            candidate = match.group(0)
        return candidate, False

    def _confidence(self, verb: str, mentions: int) -> float:
        confidence = BASE_CONFIDENCE
        if verb in self.common_speech_verbs:
            confidence += COMMON_VERB_BONUS
        if mentions > 1:
            confidence += min(REPEAT_BONUS_CAP, mentions * REPEAT_BONUS_PER_MENTION)
        return round(min(1.0, confidence), 3)

    def _resolve_speaker(
        self,
        match: DialogueMatch,
        attributions: list[AttributionMatch],
        positions: list[int],
        quote_starts: list[int],
    ) -> tuple[str, Optional[AttributionMatch]]:
        """Pick the attribution for a span.

        An attribution after the span wins when it is inside the window;
        otherwise the nearest one before it; otherwise the speaker is unknown.
        Attributions never reach across another quote.
        """
        if match.kind == "thought" and match.speaker:
            i = bisect.bisect_left(positions, match.start) - 1
            while i >= 0:
                candidate = attributions[i]
                if candidate.verb == match.verb and candidate.speaker == match.speaker:
                    return match.speaker, candidate
                i -= 1
            return match.speaker, None

        # Nearest attribution after the span
        i = bisect.bisect_left(positions, match.end)
        while i < len(attributions) and positions[i] - match.end < self.window:
            candidate = attributions[i]
            if _quote_between(quote_starts, match.end, candidate.position):
                break
            # "Amy said, "..."" introduces the next quote rather than closing this one
            if not (candidate.introduces_quote and not candidate.speaker_follows_verb):
                return candidate.speaker, candidate
            i += 1

        # Nearest attribution before the span
        i = bisect.bisect_left(positions, match.start) - 1
        while i >= 0 and match.start - positions[i] < self.window:
            candidate = attributions[i]
            if candidate.end <= match.start:
                if _quote_between(quote_starts, candidate.end, match.start):
                    break
                return candidate.speaker, candidate
            i -= 1

        return UNKNOWN_SPEAKER, None


class _SpanIndex:
    """Fast "is this offset inside a quote" lookups."""

    def __init__(self, matches: list[DialogueMatch]):
        self.spans = sorted((m.start, m.end) for m in matches)
        self.starts = [start for start, _ in self.spans]

    def contains(self, position: int) -> bool:
        i = bisect.bisect_right(self.starts, position) - 1
        return i >= 0 and self.spans[i][0] <= position < self.spans[i][1]


def _verb_pattern(verbs: set[str]) -> re.Pattern:
    # Longest first so multi-word entries win
    alternation = "|".join(re.escape(v) for v in sorted(verbs, key=len, reverse=True))
    return re.compile(rf"\b(?:{alternation})\b", re.IGNORECASE)


def _quote_between(quote_starts: list[int], low: int, high: int) -> bool:
    """True when a quote opens strictly between two offsets."""
    i = bisect.bisect_right(quote_starts, low)
    return i < len(quote_starts) and quote_starts[i] < high


def _merge(matches: list[DialogueMatch]) -> list[DialogueMatch]:
    """Sort by start and drop duplicate or overlapping spans.

    Quotes beat thoughts that start at the same offset; among equals the
    longer span is kept.
    """
    ordered = sorted(
        matches, key=lambda m: (m.start, 0 if m.kind == "quote" else 1, -m.end)
    )
    merged: list[DialogueMatch] = []
    last_end = -1
    for match in ordered:
        if match.start < last_end:
            continue
        merged.append(match)
        last_end = match.end
    return merged


def _validate(text: str) -> None:
    if not isinstance(text, str) or not text.strip():
        raise InputValidationError("Input text is empty")

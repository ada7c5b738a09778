"""
Dialogue Power Balance

Score each attributed line of dialogue for conversational dominance on a
-5 to +5 scale. Questions, hedging and politeness lower a turn; commands,
interruptions, topic control and ending the exchange raise it.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from story_narrator.models import (
    NARRATOR,
    UNKNOWN_SPEAKER,
    DialogueTurn,
    TextSegment,
    TurnMetrics,
)
from story_narrator.quality.echo import tokenize
from story_narrator.tables import load_table

BREAK_MARKERS = ("--", "—", "–", "...", "…")
ELLIPSES = ("...", "…")


def _phrase_pattern(phrases: list[str]) -> re.Pattern:
    alternation = "|".join(re.escape(p) for p in sorted(phrases, key=len, reverse=True))
    return re.compile(rf"(?<![\w'])(?:{alternation})(?![\w'])", re.IGNORECASE)


@dataclass
class _Turn:
    segment: TextSegment
    content: str
    words: list[str]
    score: float = 0.0


class PowerBalanceAnalyzer:
    """
    Scores dialogue turns.

    Usage:
        analyzer = PowerBalanceAnalyzer()
        for turn in analyzer.analyze(text, segments):
            print(turn.character_name, turn.power_score, turn.detected_tactic)
    """

    def __init__(self, tables_dir: Optional[Path] = None):
        table = load_table("dialogue", tables_dir)
        power = table["power"]

        self.stop_words = {w.lower() for w in table["stop_words"]}
        self.hedges = _phrase_pattern(power["hedges"])
        self.intensifiers = _phrase_pattern(power["intensifiers"])
        self.politeness = _phrase_pattern(power["politeness"])
        self.command_phrases = _phrase_pattern(power["command_phrases"])
        self.topic_shifts = _phrase_pattern(power["topic_shift_markers"])
        self.hesitations = _phrase_pattern(power["hesitation_markers"])
        self.endings = _phrase_pattern(power["ending_phrases"])
        self.leaving_cues = _phrase_pattern(power["leaving_cues"])
        self.pause_cues = _phrase_pattern(power["pause_cues"])
        self.imperative_verbs = {w.lower() for w in power["imperative_verbs"]}
        self.first_person = {w.lower() for w in power["first_person"]}
        self.second_person = {w.lower() for w in power["second_person"]}
        self.weights: dict[str, float] = power["weights"]

    def analyze(self, text: str, segments: list[TextSegment]) -> list[DialogueTurn]:
        turns = [
            _Turn(segment=s, content=_normalize(s.content), words=tokenize(s.content))
            for s in segments
            if s.type == "dialogue" and s.speaker not in (NARRATOR, UNKNOWN_SPEAKER)
        ]

        results: list[DialogueTurn] = []
        for index, turn in enumerate(turns):
            previous = turns[index - 1] if index else None
            is_last = index == len(turns) - 1
            results.append(self.score_turn(text, turn, previous, is_last))
        return results

    def score_turn(
        self, text: str, turn: _Turn, previous: Optional[_Turn], is_last: bool
    ) -> DialogueTurn:
        w = self.weights
        content = turn.content
        stripped = content.strip()
        segment = turn.segment
        tactic = None
        score = 0.0

        word_count = len(turn.words)
        length = (word_count - w["length_baseline"]) / w["length_scale"]
        score += max(w["length_min"], min(w["length_max"], length))

        is_question = "?" in content
        if is_question:
            score += w["question"]
        elif self._is_command(stripped, turn.words):
            score += w["command"]

        interrupted_other = (
            previous is not None
            and previous.segment.speaker != segment.speaker
            and previous.content.rstrip().endswith(BREAK_MARKERS)
        )
        interruptions = 1 if interrupted_other or stripped.startswith(BREAK_MARKERS) else 0
        score += w["interruption"] * interruptions

        hedges = len(self.hedges.findall(content))
        intensifiers = len(self.intensifiers.findall(content))
        ratio = 0.5
        if hedges + intensifiers:
            ratio = intensifiers / (hedges + intensifiers)
            score += w["hedge_balance"] * (2 * ratio - 1)
        assertive = hedges <= intensifiers

        if self.hesitations.search(content) or _has_mid_ellipsis(stripped):
            score += w["hesitation"]

        topic_changed = self._changed_topic(turn, previous)
        if topic_changed and assertive:
            score += w["topic_change"]

        first = sum(1 for word in turn.words if word in self.first_person)
        second = sum(1 for word in turn.words if word in self.second_person)
        if first + second:
            score += w["pronoun_skew"] * (first - second) / (first + second)

        if previous is not None:
            gap = text[previous.segment.end_position:segment.start_position]
            if self.pause_cues.search(gap):
                if is_question or not assertive:
                    score += w["hesitant_pause"]
                else:
                    score += w["strategic_pause"]

        if self.politeness.search(content):
            score += w["politeness"]
            if (
                previous is not None
                and previous.segment.speaker != segment.speaker
                and previous.score >= w["weaponized_threshold"]
                and assertive
            ):
                score += w["weaponized_politeness"]
                tactic = "weaponized_politeness"

        leaving = is_last and self.leaving_cues.search(text[segment.end_position:])
        if self.endings.search(content) or leaving:
            score += w["exchange_termination"]
            tactic = "exchange_termination"

        score = round(max(w["min_score"], min(w["max_score"], score)), 4)
        turn.score = score

        return DialogueTurn(
            character_name=segment.speaker,
            content=segment.content,
            position=segment.start_position,
            power_score=score,
            metrics=TurnMetrics(
                is_question=is_question,
                interruptions=interruptions,
                word_count=word_count,
                hedge_to_intensifier_ratio=round(ratio, 3),
                topic_changed=topic_changed,
            ),
            detected_tactic=tactic,
        )

    def _is_command(self, stripped: str, words: list[str]) -> bool:
        if stripped.endswith("!"):
            return True
        if words and words[0] in self.imperative_verbs:
            return True
        return bool(self.command_phrases.search(stripped))

    def _content_words(self, words: list[str]) -> set[str]:
        return {w for w in words if len(w) > 2 and w not in self.stop_words}

    def _changed_topic(self, turn: _Turn, previous: Optional[_Turn]) -> bool:
        if self.topic_shifts.search(turn.content):
            return True
        if previous is None:
            return False

        current = self._content_words(turn.words)
        before = self._content_words(previous.words)
        if len(current) < 3 or not before:
            return False
        overlap = len(current & before) / len(current)
        return overlap < self.weights["topic_overlap_threshold"]


def _normalize(content: str) -> str:
    return content.replace("’", "'")


def _has_mid_ellipsis(stripped: str) -> bool:
    for marker in ELLIPSES:
        index = stripped.find(marker, 1)
        if index != -1 and index + len(marker) < len(stripped):
            return True
    return False

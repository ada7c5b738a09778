"""
Character Extraction

Build the character roster from segmented text and infer per-character
traits and emotional states from what they say and how the narration
describes them.
"""

import logging
import math
import re
from collections import Counter, defaultdict
from typing import Optional

from story_narrator.config import Settings, get_settings
from story_narrator.errors import InputValidationError, NarratorError
from story_narrator.ingest.splitter import sentence_spans
from story_narrator.models import NARRATOR, UNKNOWN_SPEAKER, Character, Result, TextSegment
from story_narrator.tables import load_table

logger = logging.getLogger(__name__)

NAME = re.compile(r"\b[A-Z][A-Za-z]*[a-z]\b")
SPEAKER_CONTEXT = 30  # characters either side of a name searched for a speech verb


def _keyword_pattern(keywords: list[str]) -> re.Pattern:
    alternation = "|".join(re.escape(k) for k in sorted(keywords, key=len, reverse=True))
    return re.compile(rf"\b(?:{alternation})\b", re.IGNORECASE)


class CharacterExtractor:
    """
    Builds a character roster from segments.

    Usage:
        extractor = CharacterExtractor()
        result = extractor.detect(segments)
        for character in result.data:
            print(character.name, character.frequency, character.is_main_character)
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        table = load_table("characters", self.settings.tables_dir)
        vocabulary = load_table("vocabulary", self.settings.tables_dir)

        self.content_rules = [
            (re.compile(rule["pattern"], re.IGNORECASE if rule["ignore_case"] else 0), rule["emotion"])
            for rule in table["content_emotions"]
        ]

        self.verb_emotions: dict[str, list[str]] = defaultdict(list)
        for emotion, verbs in table["verb_emotions"].items():
            for verb in verbs:
                self.verb_emotions[verb].append(emotion)

        self.narration_traits = {
            label: _keyword_pattern(words) for label, words in table["narration_traits"].items()
        }
        self.speech_traits = {
            label: _keyword_pattern(words) for label, words in table["speech_traits"].items()
        }

        self.narrator_seed = table["narrator"]
        self.protagonist_min_frequency = table["protagonist_min_frequency"]
        self.main_share = table["main_character_share"]
        self.main_min_frequency = table["main_character_min_frequency"]
        self.main_early_index = table["main_character_early_index"]

        self.common_words = {w.lower() for w in vocabulary["speaker_stopwords"]}
        self._speech_verbs = _keyword_pattern(vocabulary["speech_verbs"])

    def detect(self, segments: list[TextSegment]) -> Result[list[Character]]:
        """Build the roster: main characters first, then by frequency, then first appearance."""
        try:
            characters = self.build_roster(segments)
        except NarratorError as e:
            return Result.fail(str(e))
        except Exception as e:
            logger.exception("Character detection failed")
            return Result.fail(f"Character detection failed: {e}")

        return Result.ok(
            characters,
            total_characters=len(characters),
            main_characters=sum(1 for c in characters if c.is_main_character),
            total_segments=len(segments),
        )

    def build_roster(self, segments: list[TextSegment]) -> list[Character]:
        """Like :meth:`detect` but raises on invalid input."""
        if segments is None:
            raise InputValidationError("No segments to analyze")

        roster: dict[str, Character] = {
            NARRATOR: Character(
                name=NARRATOR,
                characteristics=list(self.narrator_seed["characteristics"]),
                emotional_states=list(self.narrator_seed["emotional_states"]),
                is_main_character=True,
                first_appearance=0,
            )
        }
        emotion_counts: dict[str, Counter] = defaultdict(Counter)

        for index, segment in enumerate(segments):
            name = segment.speaker
            if name == NARRATOR:
                roster[NARRATOR].frequency += 1
                continue

            character = roster.get(name)
            if character is None:
                character = Character(name=name, first_appearance=index)
                roster[name] = character
            character.frequency += 1

            for emotion in self.infer_emotions(segment):
                character.add_emotion(emotion)
                emotion_counts[name][emotion] += 1

            for label, pattern in self.speech_traits.items():
                if pattern.search(segment.content):
                    character.add_characteristic(label)

        self._apply_narration_traits(segments, roster)

        total = len(segments)
        threshold = max(self.main_min_frequency, math.floor(total * self.main_share))
        for name, character in roster.items():
            if name == NARRATOR:
                continue
            if character.frequency >= self.protagonist_min_frequency:
                character.add_characteristic("protagonist")
            for emotion, count in emotion_counts[name].items():
                if count > 1:
                    character.add_characteristic(emotion)
            character.is_main_character = (
                character.frequency >= threshold
                or character.first_appearance < self.main_early_index
            )

        logger.debug("Detected %d characters from %d segments", len(roster), total)
        return sorted(
            roster.values(),
            key=lambda c: (not c.is_main_character, -c.frequency, c.first_appearance),
        )

    def infer_emotions(self, segment: TextSegment) -> list[str]:
        """Emotions suggested by a spoken segment's content, verb and mood."""
        emotions: list[str] = []
        if segment.type != "narration":
            for pattern, emotion in self.content_rules:
                if pattern.search(segment.content) and emotion not in emotions:
                    emotions.append(emotion)

        if segment.attribution_verb:
            for emotion in self.verb_emotions.get(segment.attribution_verb.lower(), []):
                if emotion not in emotions:
                    emotions.append(emotion)

        if segment.mood and segment.mood not in emotions:
            emotions.append(segment.mood)
        return emotions

    def _apply_narration_traits(
        self, segments: list[TextSegment], roster: dict[str, Character]
    ) -> None:
        """Descriptors in narration sentences that mention a character by name."""
        named = {
            name: re.compile(rf"\b{re.escape(name)}\b")
            for name in roster
            if name not in (NARRATOR, UNKNOWN_SPEAKER)
        }
        if not named:
            return

        for segment in segments:
            if segment.type != "narration":
                continue
            for sentence in sentence_spans(segment.content):
                for name, mention in named.items():
                    if not mention.search(sentence.text):
                        continue
                    for label, pattern in self.narration_traits.items():
                        if pattern.search(sentence.text):
                            roster[name].add_characteristic(label)

    def identify_speakers(self, text: str) -> Result[list[str]]:
        """
        Candidate speaker names straight from raw text.

        A capitalized word counts when a speech verb sits within a few
        characters of it. Narrator is always included.
        """
        if not text or not text.strip():
            return Result.fail("Input text is empty")

        speakers = {NARRATOR}
        for match in NAME.finditer(text):
            word = match.group(0)
            if len(word) <= 2 or word.lower() in self.common_words:
                continue
            context = text[max(0, match.start() - SPEAKER_CONTEXT):match.end() + SPEAKER_CONTEXT]
            if self._speech_verbs.search(context):
                speakers.add(word)

        return Result.ok(sorted(speakers), total_speakers=len(speakers))

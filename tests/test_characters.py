"""Tests for character detection."""

import pytest

from story_narrator.characters import CharacterExtractor
from story_narrator.models import NARRATOR, TextSegment


def make_segments(rows):
    """Build contiguous segments from (speaker, type, content, verb) rows."""
    segments = []
    position = 0
    for i, (speaker, kind, content, verb) in enumerate(rows):
        segments.append(TextSegment(
            id=f"segment-{i}",
            content=content,
            speaker=speaker,
            type=kind,
            start_position=position,
            end_position=position + len(content),
            attribution_verb=verb,
        ))
        position += len(content)
    return segments


@pytest.fixture
def extractor():
    return CharacterExtractor()


class TestRoster:
    """Tests for roster building."""

    def test_narrator_always_present(self, extractor):
        segments = make_segments([(NARRATOR, "narration", "It was quiet.", None)])
        roster = extractor.detect(segments).unwrap()

        assert roster[0].name == NARRATOR
        assert roster[0].is_main_character
        assert roster[0].frequency == 1

    def test_frequencies_sum_to_segment_count(self, extractor):
        segments = make_segments([
            (NARRATOR, "narration", "Morning came.", None),
            ("Tom", "dialogue", "Hello.", "said"),
            ("Anna", "dialogue", "Hi.", "said"),
            (NARRATOR, "narration", "They walked.", None),
            ("Tom", "dialogue", "Nice day.", "said"),
            ("Unknown", "dialogue", "Hey!", None),
        ])
        roster = extractor.detect(segments).unwrap()

        assert sum(c.frequency for c in roster) == len(segments)
        counts = {c.name: c.frequency for c in roster}
        assert counts == {NARRATOR: 2, "Tom": 2, "Anna": 1, "Unknown": 1}

    def test_two_frequent_speakers_are_main(self, extractor):
        rows = []
        for i in range(10):
            speaker = "Alice" if i % 2 == 0 else "Bob"
            rows.append((speaker, "dialogue", f"Line {i}.", "said"))
            rows.append((NARRATOR, "narration", "A pause.", None))
        roster = extractor.detect(make_segments(rows)).unwrap()

        by_name = {c.name: c for c in roster}
        assert len(rows) == 20
        assert by_name["Alice"].is_main_character
        assert by_name["Bob"].is_main_character
        assert by_name["Alice"].frequency == 5

    def test_ordering(self, extractor):
        rows = [(NARRATOR, "narration", "Intro.", None)] * 4
        rows += [("Minor", "dialogue", "Hm.", "said")]
        rows += [(NARRATOR, "narration", "Filler.", None)] * 20
        rows += [("Lead", "dialogue", f"Line {i}.", "said") for i in range(6)]
        roster = extractor.detect(make_segments(rows)).unwrap()

        names = [c.name for c in roster]
        assert names.index("Lead") < names.index("Minor")
        assert not roster[-1].is_main_character

    def test_early_speaker_is_main(self, extractor):
        rows = [("Tom", "dialogue", "First!", "said")]
        rows += [(NARRATOR, "narration", "Words.", None)] * 30
        roster = extractor.detect(make_segments(rows)).unwrap()

        tom = next(c for c in roster if c.name == "Tom")
        assert tom.first_appearance == 0
        assert tom.is_main_character

    def test_metadata(self, extractor):
        segments = make_segments([("Tom", "dialogue", "Hi.", "said")])
        result = extractor.detect(segments)
        assert result.metadata["total_characters"] == 2
        assert result.metadata["total_segments"] == 1


class TestInference:
    """Tests for emotions and characteristics."""

    def test_emotions_from_content_and_verb(self, extractor):
        segments = make_segments([("Tom", "dialogue", "Stop that!", "shouted")])
        emotions = extractor.infer_emotions(segments[0])
        assert emotions == ["excited", "angry"]

    def test_narration_content_has_no_content_emotions(self, extractor):
        segments = make_segments([(NARRATOR, "narration", "What a day!", None)])
        assert extractor.infer_emotions(segments[0]) == []

    def test_repeated_emotion_becomes_characteristic(self, extractor):
        segments = make_segments([
            ("Tom", "dialogue", "Look!", "said"),
            ("Tom", "dialogue", "Over there!", "said"),
        ])
        tom = next(c for c in extractor.detect(segments).unwrap() if c.name == "Tom")
        assert "excited" in tom.emotional_states
        assert "excited" in tom.characteristics

    def test_protagonist(self, extractor):
        segments = make_segments([("Tom", "dialogue", f"Line {i}.", "said") for i in range(3)])
        tom = next(c for c in extractor.detect(segments).unwrap() if c.name == "Tom")
        assert "protagonist" in tom.characteristics

    def test_narration_traits(self, extractor):
        segments = make_segments([
            ("Tom", "dialogue", "Good evening.", "said"),
            (NARRATOR, "narration", "Tom was an old sailor. The sea was calm.", None),
        ])
        tom = next(c for c in extractor.detect(segments).unwrap() if c.name == "Tom")
        assert "elderly" in tom.characteristics

    def test_speech_traits(self, extractor):
        segments = make_segments([("Tom", "dialogue", "Yeah, I'm gonna go.", "said")])
        tom = next(c for c in extractor.detect(segments).unwrap() if c.name == "Tom")
        assert "casual" in tom.characteristics

    def test_labels_are_deduplicated(self, extractor):
        segments = make_segments([
            ("Tom", "dialogue", "Hey!", "shouted"),
            ("Tom", "dialogue", "Hey!", "shouted"),
        ])
        tom = next(c for c in extractor.detect(segments).unwrap() if c.name == "Tom")
        assert len(tom.emotional_states) == len(set(tom.emotional_states))
        assert len(tom.characteristics) == len(set(tom.characteristics))


class TestIdentifySpeakers:
    """Tests for raw-text speaker candidates."""

    def test_names_near_speech_verbs(self, extractor):
        text = '"Hi," said Tom. Nothing happened for a very long while in the quiet Valley.'
        speakers = extractor.identify_speakers(text).unwrap()
        assert speakers == [NARRATOR, "Tom"]

    def test_empty_text(self, extractor):
        assert not extractor.identify_speakers("").success

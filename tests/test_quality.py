"""Tests for the writing-quality analyses."""

import re

import pytest

from story_narrator.errors import InputValidationError
from story_narrator.models import (
    NARRATOR,
    PurpleProseIssue,
    ShowTellIssue,
    TextSegment,
)
from story_narrator.quality import (
    ColorPaletteAnalyzer,
    PowerBalanceAnalyzer,
    PurpleProseDetector,
    QualityAnalyzer,
    ShowTellDetector,
    TropeDetector,
    count_syllables,
    detect_echo_chamber,
    flesch_reading_ease,
    readability_points,
)
from story_narrator.tables import load_table

QUOTE = re.compile(r'"([^"]+)"')


def dialogue_segments(text, speakers):
    """One dialogue segment per quote in ``text``, in order, with real offsets."""
    return [
        TextSegment(
            id=f"segment-{i}",
            content=match.group(1),
            speaker=speaker,
            type="dialogue",
            start_position=match.start(),
            end_position=match.end(),
        )
        for i, (match, speaker) in enumerate(zip(QUOTE.finditer(text), speakers))
    ]


def line(speaker, content, kind="dialogue"):
    return TextSegment(
        id="segment-0", content=content, speaker=speaker, type=kind,
        start_position=0, end_position=len(content),
    )


@pytest.fixture(scope="module")
def analyzer():
    return QualityAnalyzer()


class TestShowTell:
    """Tests for telling detection."""

    def test_intensified_emotion_is_high(self):
        text = "She was very angry."
        issues = ShowTellDetector().detect(text)

        assert len(issues) == 1
        assert issues[0].type == "emotion"
        assert issues[0].severity == "high"
        assert issues[0].position == text.index("was")
        assert issues[0].text == "was very angry"
        assert issues[0].suggestion

    def test_short_state_is_low(self):
        issues = ShowTellDetector().detect("He was tired.")
        assert [(i.type, i.severity) for i in issues] == [("state", "low")]

    def test_showing_passes(self):
        assert ShowTellDetector().detect("Her hands shook as she lit the lamp.") == []

    def test_empty_text_fails(self, analyzer):
        assert not analyzer.analyze_show_vs_tell("").success


class TestTropes:
    """Tests for trope detection."""

    def test_named_and_corroborated(self):
        matches = TropeDetector().detect("He was the chosen one, as the prophecy foretold.")

        assert len(matches) == 2
        assert {m.trope for m in matches} == {"Chosen One"}
        assert all(m.confidence == 1.0 for m in matches)
        assert matches[0].category == "character"
        assert matches[0].subversions

    def test_single_trigger(self):
        matches = TropeDetector().detect("The prophecy was old.")
        assert len(matches) == 1
        assert matches[0].confidence == 0.5

    def test_low_confidence_discarded(self):
        assert TropeDetector().detect("She woke up late.") == []


class TestPurpleProse:
    """Tests for purple prose detection."""

    @pytest.fixture
    def detector(self):
        return PurpleProseDetector()

    def test_adverb_stacking(self, detector):
        issues = detector.detect("She ran quickly, quietly, and desperately away.")
        assert len(issues) == 1
        assert issues[0].type == "adverb_stacking"
        assert issues[0].severity == "moderate"
        assert issues[0].simplified == "quickly"

    def test_flowery_word(self, detector):
        issues = detector.detect("The cerulean sky glowed.")
        assert [(i.type, i.severity) for i in issues] == [("flowery_language", "mild")]

    def test_adjective_run(self, detector):
        text = "It was a dark, cold, silent, bitter night."
        issues = detector.detect(text)
        assert len(issues) == 1
        assert issues[0].type == "excessive_adjectives"
        assert issues[0].severity == "moderate"
        assert issues[0].position == text.index("dark")

    def test_redundancy(self, detector):
        issues = detector.detect("He shrugged his shoulders.")
        assert issues[0].type == "redundant_description"
        assert issues[0].simplified == "shrugged"

    def test_overwrought_simile(self, detector):
        text = "Her voice was like a broken bell ringing across the empty frozen valley at midnight."
        issues = detector.detect(text)
        assert [(i.type, i.severity) for i in issues] == [("overwrought_metaphor", "severe")]

    def test_long_sentence(self, detector):
        text = " ".join(["word"] * 70) + "."
        issues = detector.detect(text)
        assert [(i.type, i.severity) for i in issues] == [("long_sentence", "severe")]

    def test_positions_across_paragraphs(self, detector):
        text = "Plain words.\n\nThe cerulean sky glowed."
        issues = detector.detect(text)
        assert text[issues[0].position:issues[0].position + issues[0].length] == "cerulean"


class TestReadability:
    """Tests for Flesch scoring."""

    def test_syllables(self):
        assert count_syllables("cat") == 1
        assert count_syllables("table") == 2
        assert count_syllables("beautiful") == 3

    def test_no_words(self):
        assert flesch_reading_ease("... !!") is None

    def test_no_terminal_punctuation(self):
        assert flesch_reading_ease("hello there friend")[0] == 30.0

    def test_simple_text_scores_high(self):
        score, words, sentences, _ = flesch_reading_ease("The cat sat. The dog ran.")
        assert words == 6
        assert sentences == 2
        assert score == 100.0

    def test_points_per_paragraph(self):
        text = "One fine day.\n\nTwo more days.\n\nThree."
        assert len(readability_points(text)) == 3
        points = readability_points(text, paragraphs_per_point=2)
        assert len(points) == 2
        assert points[0].start == 0
        assert points[1].start == text.index("Three")
        assert all(0 <= p.score <= 100 for p in points)

    def test_bad_chunk_size(self):
        with pytest.raises(InputValidationError):
            readability_points("Text.", paragraphs_per_point=0)


class TestEchoChamber:
    """Tests for shared dialogue vocabulary."""

    @pytest.fixture
    def stop_words(self):
        return load_table("dialogue")["stop_words"]

    def test_shared_words(self, stop_words):
        segments = [
            line("Alice", "The treasure is hidden."),
            line("Bob", "Treasure? What treasure?"),
            line("Carol", "Hidden treasure!"),
            line(NARRATOR, "The treasure glittered.", kind="narration"),
        ]
        results = detect_echo_chamber(segments, stop_words)

        assert [(r.word, r.frequency) for r in results] == [("treasure", 4), ("hidden", 2)]
        assert results[0].characters == ["Alice", "Bob", "Carol"]
        assert results[1].characters == ["Alice", "Carol"]

    def test_single_speaker_not_reported(self, stop_words):
        segments = [line("Alice", "Gold, gold, gold."), line("Alice", "More gold.")]
        assert detect_echo_chamber(segments, stop_words) == []

    def test_excluded_speakers_and_trimmed_names(self, stop_words):
        segments = [
            line("Unknown", "Dragons everywhere."),
            line(NARRATOR, "Dragons everywhere."),
            line(" Bob ", "Dragons!"),
            line("Bob", "Dragons again."),
            line("Eve", "Quiet dragons.", kind="thought"),
        ]
        assert detect_echo_chamber(segments, stop_words) == []

    def test_curly_apostrophes(self, stop_words):
        segments = [line("Alice", "Ain’t fair."), line("Bob", "Ain't right.")]
        results = detect_echo_chamber(segments, stop_words)
        assert [r.word for r in results] == ["ain't"]

    def test_empty_input(self, analyzer):
        assert analyzer.detect_echo_chamber("").unwrap() == []
        assert analyzer.detect_echo_chamber(segments=[]).unwrap() == []


class TestPowerBalance:
    """Tests for dialogue power scores."""

    @pytest.fixture
    def power(self):
        return PowerBalanceAnalyzer()

    def test_hedged_question_vs_command(self, power):
        text = '"Maybe we could try again?" Alice asked. "Stop! You will do it now." Bob said.'
        turns = power.analyze(text, dialogue_segments(text, ["Alice", "Bob"]))

        alice, bob = turns
        assert alice.power_score == pytest.approx(-1.9375)
        assert alice.metrics.is_question
        assert alice.metrics.hedge_to_intensifier_ratio == 0.0
        assert bob.power_score == pytest.approx(1.125)
        assert not bob.metrics.is_question
        assert bob.detected_tactic is None

    def test_weaponized_politeness(self, power):
        text = (
            '"Stop! You will do it now." Bob said. '
            '"Thank you, sir, I will do it immediately." Alice replied.'
        )
        turns = power.analyze(text, dialogue_segments(text, ["Bob", "Alice"]))

        assert turns[1].detected_tactic == "weaponized_politeness"
        assert turns[1].metrics.topic_changed
        assert turns[1].power_score == pytest.approx(1.5)

    def test_interruption_and_ending(self, power):
        text = '"I was just going to--" Tom began. "Enough." Anna said.'
        tom, anna = power.analyze(text, dialogue_segments(text, ["Tom", "Anna"]))

        assert tom.power_score == pytest.approx(0.0625)
        assert anna.metrics.interruptions == 1
        assert anna.detected_tactic == "exchange_termination"
        assert anna.power_score == pytest.approx(2.5625)

    def test_leaving_after_final_turn(self, power):
        text = '"Fine." Tom walked away.'
        (turn,) = power.analyze(text, dialogue_segments(text, ["Tom"]))
        assert turn.detected_tactic == "exchange_termination"
        assert turn.power_score == pytest.approx(1.5625)

    def test_narrator_and_unknown_skipped(self, power):
        text = '"One." "Two."'
        assert power.analyze(text, dialogue_segments(text, [NARRATOR, "Unknown"])) == []

    def test_scores_bounded(self, power):
        text = '"Go! Go! Get out! Enough! You must leave now, absolutely, definitely!" Tom roared.'
        for turn in power.analyze(text, dialogue_segments(text, ["Tom"])):
            assert -5.0 <= turn.power_score <= 5.0

    def test_empty_text(self, analyzer):
        assert analyzer.analyze_dialogue_power_balance("").unwrap() == []

    def test_parses_when_no_segments_given(self, analyzer):
        result = analyzer.analyze_dialogue_power_balance('"Stop!" shouted Tom. "Why?" asked Anna.')
        assert [t.character_name for t in result.unwrap()] == ["Tom", "Anna"]


class TestColorPalette:
    """Tests for color palette analysis."""

    @pytest.fixture
    def palette(self):
        return ColorPaletteAnalyzer()

    def test_sorted_by_frequency(self, palette):
        result = palette.analyze("red red red blue blue green")

        assert [(c.color, c.frequency) for c in result.palette] == [
            ("red", 3), ("blue", 2), ("green", 1),
        ]
        assert result.palette[0].hex == "#FF0000"
        assert result.palette[0].prominence == pytest.approx(0.5)
        assert len(result.dominant_colors) == 3
        assert result.accent_colors == []
        assert result.overall_mood == "passionate"
        assert result.message == "Successfully generated color palette. Found 3 unique color(s)."

    def test_multi_word_colors_win(self, palette):
        result = palette.analyze("The Forest Green door and the green lawn.")
        assert [(c.color, c.frequency) for c in result.palette] == [
            ("forest green", 1), ("green", 1),
        ]

    def test_hyphenated_names(self, palette):
        result = palette.analyze("A sun-yellow scarf, not a yellow-ish one.")
        assert [c.color for c in result.palette] == ["sun-yellow"]

    def test_top_ten(self, palette):
        text = (
            "red blue green yellow black white purple orange pink brown gray "
            "silver gold, forest green, sky blue, sun-yellow"
        )
        result = palette.analyze(text)
        assert len(result.palette) == 10
        assert result.total_mentions == 16
        assert result.message.endswith("Displaying top 10.")

    def test_empty_and_colorless(self, palette):
        assert palette.analyze("  ").message == "Input text is empty. No colors to analyze."
        assert palette.analyze("Nothing here.").message == "No predefined colors found in the text."


class TestQualityReport:
    """Tests for the composite report."""

    STORY = (
        'The night was dark and stormy night. "Maybe we should wait?" Anna asked.\n\n'
        '"Stop! You will do it now," said Tom. Anna was very angry. '
        "The cerulean sky hung over the red barn and the red door."
    )

    def test_report(self, analyzer):
        report = analyzer.generate_quality_report(self.STORY).unwrap()

        assert report.failed_analyses == []
        assert report.word_count > 0
        assert report.show_tell_issues
        assert report.purple_prose_issues
        assert report.color_palette.palette[0].color == "red"
        assert len(report.readability_points) == 2
        for score in (
            report.overall_score.show_vs_tell,
            report.overall_score.trope_originality,
            report.overall_score.prose_clarity,
        ):
            assert 0.0 <= score <= 100.0

    def test_issues_sorted(self, analyzer):
        report = analyzer.generate_quality_report(self.STORY).unwrap()
        positions = [issue.position for issue in report.issues()]
        assert positions == sorted(positions)

    def test_empty_text_fails(self, analyzer):
        assert not analyzer.generate_quality_report(" ").success

    def test_failing_analyses_are_isolated(self, analyzer, monkeypatch):
        def broken(text):
            raise RuntimeError("table corrupted")

        monkeypatch.setattr(analyzer.tropes, "detect", broken)
        monkeypatch.setattr(analyzer.palette, "analyze", broken)

        result = analyzer.generate_quality_report(self.STORY)
        report = result.unwrap()

        assert report.failed_analyses == ["tropes", "color_palette"]
        assert result.metadata["failed_analyses"] == 2
        assert report.trope_matches == []
        assert report.color_palette is None
        assert report.show_tell_issues
        assert report.purple_prose_issues
        assert len(report.readability_points) == 2
        assert report.overall_score.trope_originality == 100.0

    def test_overall_score(self, analyzer):
        telling = [
            ShowTellIssue(text="was sad", position=0, length=7, type="emotion",
                          severity="low", suggestion="")
        ] * 2
        purple = [
            PurpleProseIssue(text="x", position=0, length=1, type="flowery_language",
                             severity="moderate", suggestion="")
        ]
        score = analyzer.overall_score(100, [], telling, [], purple)

        assert score.show_vs_tell == 70.0
        assert score.trope_originality == 100.0
        assert score.prose_clarity == 95.0

    def test_scores_never_negative(self, analyzer):
        telling = [
            ShowTellIssue(text="was sad", position=0, length=7, type="emotion",
                          severity="low", suggestion="")
        ] * 50
        score = analyzer.overall_score(10, [], telling, [], [])
        assert score.show_vs_tell == 0.0

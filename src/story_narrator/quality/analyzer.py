"""
Quality Analyzer

Bundles every writing-quality analysis behind Result-returning methods and
folds them into a single report with three headline scores.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Optional

from story_narrator.config import Settings, get_settings
from story_narrator.errors import InputValidationError, NarratorError
from story_narrator.models import (
    ColorPalette,
    DialogueTurn,
    EchoChamberResult,
    OverallScore,
    PurpleProseIssue,
    ReadabilityPoint,
    Result,
    ShowTellIssue,
    TextSegment,
    TropeMatch,
    WritingQualityReport,
)
from story_narrator.quality.echo import detect_echo_chamber, tokenize
from story_narrator.quality.palette import ColorPaletteAnalyzer
from story_narrator.quality.power import PowerBalanceAnalyzer
from story_narrator.quality.purple_prose import PurpleProseDetector
from story_narrator.quality.readability import average_score, readability_points
from story_narrator.quality.show_tell import ShowTellDetector
from story_narrator.quality.tropes import TropeDetector
from story_narrator.segment import Segmenter
from story_narrator.tables import load_table

logger = logging.getLogger(__name__)

SHOW_TELL_PENALTY = 15  # per telling issue per 100 words
TROPE_PENALTY = 10  # per trope per 1000 words
SEVERITY_PENALTY = {"mild": 2, "moderate": 5, "severe": 10}


def _bounded(score: float) -> float:
    return round(max(0.0, min(100.0, score)), 1)


class QualityAnalyzer:
    """
    Writing-quality analyses over raw text.

    Usage:
        analyzer = QualityAnalyzer()
        report = analyzer.generate_quality_report(text).unwrap()
        print(report.overall_score.show_vs_tell, len(report.issues()))
    """

    def __init__(self, settings: Optional[Settings] = None, segmenter: Optional[Segmenter] = None):
        self.settings = settings or get_settings()
        tables_dir = self.settings.tables_dir
        self.segmenter = segmenter or Segmenter(self.settings)

        self.show_tell = ShowTellDetector(tables_dir)
        self.tropes = TropeDetector(tables_dir)
        self.purple_prose = PurpleProseDetector(tables_dir)
        self.power = PowerBalanceAnalyzer(tables_dir)
        self.palette = ColorPaletteAnalyzer(tables_dir)
        self.stop_words: list[str] = load_table("dialogue", tables_dir)["stop_words"]

    # ------------------------------------------------------------------
    # Individual analyses
    # ------------------------------------------------------------------

    def analyze_show_vs_tell(self, text: str) -> Result[list[ShowTellIssue]]:
        return self._run("Show-vs-tell analysis", text, self.show_tell.detect)

    def detect_tropes(self, text: str) -> Result[list[TropeMatch]]:
        return self._run("Trope detection", text, self.tropes.detect)

    def detect_purple_prose(self, text: str) -> Result[list[PurpleProseIssue]]:
        return self._run("Purple prose detection", text, self.purple_prose.detect)

    def analyze_readability(
        self, text: str, paragraphs_per_point: Optional[int] = None
    ) -> Result[list[ReadabilityPoint]]:
        chunk = paragraphs_per_point or self.settings.paragraphs_per_point
        return self._run(
            "Readability analysis", text, lambda t: readability_points(t, chunk)
        )

    def detect_echo_chamber(
        self, text: Optional[str] = None, segments: Optional[list[TextSegment]] = None
    ) -> Result[list[EchoChamberResult]]:
        """Shared dialogue vocabulary; parses ``text`` when no segments are given."""
        if segments is None:
            if not text or not text.strip():
                return Result.ok([])
            parsed = self.segmenter.parse(text)
            if not parsed.success:
                return Result.fail(parsed.error or "Segmentation failed")
            segments = parsed.data
        return Result.ok(detect_echo_chamber(segments, self.stop_words))

    def analyze_dialogue_power_balance(
        self, text: str, segments: Optional[list[TextSegment]] = None
    ) -> Result[list[DialogueTurn]]:
        if not text or not text.strip():
            return Result.ok([])
        if segments is None:
            parsed = self.segmenter.parse(text)
            if not parsed.success:
                return Result.fail(parsed.error or "Segmentation failed")
            segments = parsed.data

        try:
            turns = self.power.analyze(text, segments)
        except Exception as e:
            logger.exception("Power balance analysis failed")
            return Result.fail(f"Power balance analysis failed: {e}")
        return Result.ok(turns, total_turns=len(turns))

    def analyze_color_palette(self, text: str) -> Result[ColorPalette]:
        palette = self.palette.analyze(text)
        return Result.ok(palette, unique_colors=len(palette.palette))

    # ------------------------------------------------------------------
    # Composite report
    # ------------------------------------------------------------------

    def generate_quality_report(self, text: str) -> Result[WritingQualityReport]:
        """Every analysis over ``text`` plus the folded headline scores.

        A failing sub-analysis is logged and listed in ``failed_analyses``;
        it does not fail the report.
        """
        if not text or not text.strip():
            return Result.fail("Input text is empty")

        parsed = self.segmenter.parse(text)
        if not parsed.success:
            return Result.fail(parsed.error or "Segmentation failed")
        segments = parsed.data

        jobs: dict[str, Callable[[], Result[Any]]] = {
            "readability": lambda: self.analyze_readability(text),
            "show_tell": lambda: self.analyze_show_vs_tell(text),
            "tropes": lambda: self.detect_tropes(text),
            "purple_prose": lambda: self.detect_purple_prose(text),
            "echo_chamber": lambda: self.detect_echo_chamber(segments=segments),
            "power_balance": lambda: self.analyze_dialogue_power_balance(text, segments),
            "color_palette": lambda: self.analyze_color_palette(text),
        }

        results: dict[str, Any] = {}
        failed: list[str] = []
        with ThreadPoolExecutor(max_workers=self.settings.quality_workers) as pool:
            futures = {name: pool.submit(job) for name, job in jobs.items()}
            for name, future in futures.items():
                try:
                    result = future.result()
                except Exception as e:
                    logger.warning("Quality analysis %s raised: %s", name, e)
                    failed.append(name)
                    continue
                if not result.success:
                    logger.warning("Quality analysis %s failed: %s", name, result.error)
                    failed.append(name)
                    continue
                results[name] = result.data

        word_count = len(tokenize(text))
        points = results.get("readability", [])
        show_tell = results.get("show_tell", [])
        tropes = results.get("tropes", [])
        purple = results.get("purple_prose", [])

        report = WritingQualityReport(
            readability_points=points,
            show_tell_issues=show_tell,
            trope_matches=tropes,
            purple_prose_issues=purple,
            echo_chamber=results.get("echo_chamber", []),
            dialogue_turns=results.get("power_balance", []),
            color_palette=results.get("color_palette"),
            overall_score=self.overall_score(word_count, points, show_tell, tropes, purple),
            failed_analyses=failed,
            word_count=word_count,
        )
        return Result.ok(report, failed_analyses=len(failed))

    def overall_score(
        self,
        word_count: int,
        points: list[ReadabilityPoint],
        show_tell: list[ShowTellIssue],
        tropes: list[TropeMatch],
        purple: list[PurpleProseIssue],
    ) -> OverallScore:
        words = max(word_count, 1)
        show_vs_tell = 100 - SHOW_TELL_PENALTY * len(show_tell) * 100 / words
        originality = 100 - TROPE_PENALTY * len(tropes) * 1000 / words

        penalty = sum(SEVERITY_PENALTY[issue.severity] for issue in purple)
        prose = max(0.0, min(100.0, 100.0 - penalty))
        readability = average_score(points)
        clarity = prose if readability is None else 0.5 * readability + 0.5 * prose

        return OverallScore(
            show_vs_tell=_bounded(show_vs_tell),
            trope_originality=_bounded(originality),
            prose_clarity=_bounded(clarity),
        )

    def _run(self, label: str, text: str, analysis: Callable[[str], list]) -> Result[list]:
        if not text or not text.strip():
            return Result.fail("Input text is empty")
        try:
            items = analysis(text)
        except NarratorError as e:
            return Result.fail(str(e))
        except Exception as e:
            logger.exception("%s failed", label)
            return Result.fail(f"{label} failed: {e}")
        return Result.ok(items, total=len(items))

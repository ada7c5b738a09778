"""
Purple Prose

Detect ornate writing sentence by sentence: stacked adverbs, rare flowery
words, runs of adjectives, redundant pairs, sprawling similes and sentences
that simply go on too long.
"""

import re
from pathlib import Path
from typing import Optional

from story_narrator.ingest.splitter import Span, paragraph_spans, sentence_spans
from story_narrator.models import PurpleProseIssue
from story_narrator.tables import load_table

ADVERB_RUN = re.compile(
    r"\b[A-Za-z]+ly\b(?:(?:\s*,\s*|\s+)(?:(?:and|or)\s+)?[A-Za-z]+ly\b)+"
)
ADVERB = re.compile(r"\b[A-Za-z]+ly\b")
ADJECTIVE_RUN = re.compile(
    r"\b[A-Za-z]+(?:(?:,\s*(?:and\s+)?|\s+and\s+)[A-Za-z]+){2,}"
)
WORD = re.compile(r"[A-Za-z]+(?:'[A-Za-z]+)*")


def _graded(count: int, thresholds: dict[str, int]) -> Optional[str]:
    """Highest severity whose threshold ``count`` reaches."""
    for severity in ("severe", "moderate", "mild"):
        if severity in thresholds and count >= thresholds[severity]:
            return severity
    return None


class PurpleProseDetector:
    """Flags overwritten passages.

    Every check works on one sentence at a time so that a single busy
    paragraph produces issues pinned to the sentences that caused them.
    """

    def __init__(self, tables_dir: Optional[Path] = None):
        table = load_table("purple_prose", tables_dir)
        self.adverb_exceptions = {w.lower() for w in table["adverb_exceptions"]}
        self.adverb_severity = table["adverb_severity"]
        self.flowery_words = {w.lower() for w in table["flowery_words"]}
        self.flowery_severity = table["flowery_severity"]
        self.adjectives = {w.lower() for w in table["adjectives"]}
        self.adjective_suffixes = tuple(table["adjective_suffixes"])
        self.adjective_severity = table["adjective_severity"]
        self.redundancies = [
            (re.compile(entry["pattern"], re.IGNORECASE), entry["simplified"])
            for entry in table["redundancies"]
        ]
        self.simile = re.compile(table["simile_pattern"], re.IGNORECASE)
        self.simile_severity = table["simile_severity"]
        self.long_threshold = table["long_sentence"]["threshold"]
        self.long_severe = table["long_sentence"]["severe"]
        self.suggestions: dict[str, str] = table["suggestions"]

    def detect(self, text: str) -> list[PurpleProseIssue]:
        issues: list[PurpleProseIssue] = []
        for paragraph in paragraph_spans(text):
            for sentence in sentence_spans(paragraph.text, paragraph.start):
                issues.extend(self.check_sentence(sentence))
        return sorted(issues, key=lambda i: i.position)

    def check_sentence(self, sentence: Span) -> list[PurpleProseIssue]:
        issues: list[PurpleProseIssue] = []
        issues.extend(self._adverb_stacking(sentence))
        issues.extend(self._flowery_language(sentence))
        issues.extend(self._excessive_adjectives(sentence))
        issues.extend(self._redundancies(sentence))
        issues.extend(self._similes(sentence))

        length = len(sentence.text)
        if length > self.long_threshold:
            issues.append(self._issue(
                "long_sentence",
                sentence.text,
                sentence.start,
                "severe" if length > self.long_severe else "moderate",
            ))
        return issues

    def _issue(
        self, kind: str, text: str, position: int, severity: str, simplified: str = ""
    ) -> PurpleProseIssue:
        return PurpleProseIssue(
            text=text,
            position=position,
            length=len(text),
            type=kind,
            severity=severity,
            suggestion=self.suggestions.get(kind, ""),
            simplified=simplified,
        )

    def _is_adverb(self, word: str) -> bool:
        word = word.lower()
        return len(word) > 3 and word not in self.adverb_exceptions

    def _adverb_stacking(self, sentence: Span) -> list[PurpleProseIssue]:
        issues = []
        for run in ADVERB_RUN.finditer(sentence.text):
            adverbs = [w for w in ADVERB.findall(run.group(0)) if self._is_adverb(w)]
            if len(adverbs) < 2:
                continue
            severity = _graded(len(adverbs), self.adverb_severity) or "mild"
            issues.append(self._issue(
                "adverb_stacking",
                run.group(0),
                sentence.start + run.start(),
                severity,
                simplified=adverbs[0],
            ))
        return issues

    def _flowery_language(self, sentence: Span) -> list[PurpleProseIssue]:
        found = [
            m for m in WORD.finditer(sentence.text)
            if m.group(0).lower() in self.flowery_words
        ]
        if not found:
            return []
        severity = _graded(len(found), self.flowery_severity) or "mild"
        first, last = found[0], found[-1]
        return [self._issue(
            "flowery_language",
            sentence.text[first.start():last.end()],
            sentence.start + first.start(),
            severity,
        )]

    def _is_adjective(self, word: str) -> bool:
        word = word.lower()
        if word in self.adjectives:
            return True
        return len(word) > 4 and word.endswith(self.adjective_suffixes)

    def _excessive_adjectives(self, sentence: Span) -> list[PurpleProseIssue]:
        issues = []
        for run in ADJECTIVE_RUN.finditer(sentence.text):
            words = WORD.findall(run.group(0))
            adjectives = [w for w in words if w.lower() != "and" and self._is_adjective(w)]
            severity = _graded(len(adjectives), self.adjective_severity)
            if severity is None:
                continue
            issues.append(self._issue(
                "excessive_adjectives",
                run.group(0),
                sentence.start + run.start(),
                severity,
                simplified=adjectives[0],
            ))
        return issues

    def _redundancies(self, sentence: Span) -> list[PurpleProseIssue]:
        issues = []
        for pattern, simplified in self.redundancies:
            for match in pattern.finditer(sentence.text):
                issues.append(self._issue(
                    "redundant_description",
                    match.group(0),
                    sentence.start + match.start(),
                    "mild",
                    simplified=simplified,
                ))
        return issues

    def _similes(self, sentence: Span) -> list[PurpleProseIssue]:
        issues = []
        for match in self.simile.finditer(sentence.text):
            fragment = match.group(0).rstrip()
            severity = _graded(len(WORD.findall(fragment)), self.simile_severity)
            if severity is None:
                continue
            issues.append(self._issue(
                "overwrought_metaphor",
                fragment,
                sentence.start + match.start(),
                severity,
            ))
        return issues

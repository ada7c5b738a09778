"""Show-vs-tell detection.

Flags constructs that name an emotion, state, trait or perception instead
of dramatising it.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from story_narrator.models import ShowTellIssue
from story_narrator.tables import load_table


@dataclass
class TellingFamily:
    """One family of telling patterns sharing a suggestion."""
    name: str
    patterns: list[re.Pattern]
    suggestion: str
    example: str


class ShowTellDetector:
    """Matches telling constructs.

    Severity is high when an intensifier ("very", "so") props up the telling,
    medium for long constructs and low otherwise.
    """

    def __init__(self, tables_dir: Optional[Path] = None):
        table = load_table("show_tell", tables_dir)
        self.families = [
            TellingFamily(
                name=name,
                patterns=[re.compile(p, re.IGNORECASE) for p in family["patterns"]],
                suggestion=family["suggestion"],
                example=family["example"],
            )
            for name, family in table["families"].items()
        ]
        words = "|".join(re.escape(w) for w in table["intensifiers"])
        self._intensifier = re.compile(rf"\b(?:{words})\b", re.IGNORECASE)
        self.medium_length = table["medium_length"]

    def detect(self, text: str) -> list[ShowTellIssue]:
        issues: list[ShowTellIssue] = []
        taken: list[tuple[int, int]] = []

        for family in self.families:
            for pattern in family.patterns:
                for match in pattern.finditer(text):
                    start, end = match.span()
                    # Earlier families win overlapping spans
                    if any(start < t_end and t_start < end for t_start, t_end in taken):
                        continue
                    taken.append((start, end))
                    issues.append(ShowTellIssue(
                        text=match.group(0),
                        position=start,
                        length=end - start,
                        type=family.name,
                        severity=self.severity(match.group(0)),
                        suggestion=family.suggestion,
                        example=family.example,
                    ))

        return sorted(issues, key=lambda i: i.position)

    def severity(self, fragment: str) -> str:
        if self._intensifier.search(fragment):
            return "high"
        if len(fragment) >= self.medium_length:
            return "medium"
        return "low"

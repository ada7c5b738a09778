"""Trope detection against a dictionary of named cliches."""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from story_narrator.models import TropeMatch
from story_narrator.tables import load_table


@dataclass
class Trope:
    name: str
    category: str
    description: str
    triggers: list[re.Pattern]
    subversions: list[str] = field(default_factory=list)
    base_confidence: float = 0.5


class TropeDetector:
    """Finds trope triggers and scores how sure each hit is.

    Confidence starts at the trope's base, rises for every other trigger of
    the same trope found in the text and again when the trope is named
    outright. Hits below the table's minimum are dropped.
    """

    def __init__(self, tables_dir: Optional[Path] = None):
        table = load_table("tropes", tables_dir)
        self.min_confidence = table["min_confidence"]
        self.corroboration_bonus = table["corroboration_bonus"]
        self.name_bonus = table["name_bonus"]
        self.tropes = [
            Trope(
                name=entry["name"],
                category=entry["category"],
                description=entry.get("description", ""),
                triggers=[re.compile(t, re.IGNORECASE) for t in entry["triggers"]],
                subversions=entry.get("subversions", []),
                base_confidence=entry.get("base_confidence", table["default_base_confidence"]),
            )
            for entry in table["tropes"]
        ]

    def detect(self, text: str) -> list[TropeMatch]:
        matches: list[TropeMatch] = []

        for trope in self.tropes:
            hits = [
                (index, match)
                for index, trigger in enumerate(trope.triggers)
                for match in trigger.finditer(text)
            ]
            if not hits:
                continue

            found = {index for index, _ in hits}
            named = re.search(rf"\b{re.escape(trope.name)}\b", text, re.IGNORECASE)

            for index, match in hits:
                confidence = trope.base_confidence
                confidence += self.corroboration_bonus * len(found - {index})
                if named:
                    confidence += self.name_bonus
                confidence = round(min(1.0, confidence), 3)
                if confidence < self.min_confidence:
                    continue

                matches.append(TropeMatch(
                    text=match.group(0),
                    position=match.start(),
                    length=match.end() - match.start(),
                    trope=trope.name,
                    category=trope.category,
                    description=trope.description,
                    confidence=confidence,
                    subversions=trope.subversions,
                ))

        return sorted(matches, key=lambda m: m.position)

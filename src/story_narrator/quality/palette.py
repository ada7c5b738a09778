"""Color palette: the colors a text names, ranked and mapped to a mood."""

import re
from pathlib import Path
from typing import Optional

from story_narrator.models import ColorEntry, ColorPalette
from story_narrator.tables import load_table

EMPTY_MESSAGE = "Input text is empty. No colors to analyze."
NO_COLORS_MESSAGE = "No predefined colors found in the text."


class ColorPaletteAnalyzer:
    """
    Counts mentions of known color names.

    Multi-word names ("forest green") win over their parts, so "forest green"
    is never also counted as "green".
    """

    def __init__(self, tables_dir: Optional[Path] = None):
        table = load_table("colors", tables_dir)
        self.colors: dict[str, str] = {name.lower(): hex_ for name, hex_ in table["colors"].items()}
        self.moods: dict[str, str] = {name.lower(): mood for name, mood in table["moods"].items()}
        self.dominant_count = table["dominant_count"]
        self.small_palette = table["small_palette"]
        self.max_palette = table["max_palette"]

        names = sorted(self.colors, key=len, reverse=True)
        alternation = "|".join(re.escape(n).replace(r"\ ", r"\s+") for n in names)
        self._pattern = re.compile(rf"(?<![\w-])(?:{alternation})(?![\w-])", re.IGNORECASE)

    def analyze(self, text: str) -> ColorPalette:
        if not text or not text.strip():
            return ColorPalette(message=EMPTY_MESSAGE)

        counts: dict[str, int] = {}
        for match in self._pattern.finditer(text):
            name = " ".join(match.group(0).lower().split())
            # dict preserves first-occurrence order for ties
            counts[name] = counts.get(name, 0) + 1

        if not counts:
            return ColorPalette(message=NO_COLORS_MESSAGE)

        ranked = sorted(counts.items(), key=lambda item: -item[1])
        total = sum(counts.values())
        unique = len(ranked)
        top_n = unique if unique < self.small_palette else min(self.max_palette, unique)

        palette = [
            ColorEntry(
                color=name,
                hex=self.colors[name],
                frequency=frequency,
                prominence=round(frequency / total, 3),
            )
            for name, frequency in ranked[:top_n]
        ]

        message = f"Successfully generated color palette. Found {unique} unique color(s)."
        if unique > self.max_palette:
            message += f" Displaying top {self.max_palette}."

        return ColorPalette(
            palette=palette,
            dominant_colors=palette[:self.dominant_count],
            accent_colors=palette[self.dominant_count:],
            overall_mood=self.moods.get(palette[0].color, "neutral"),
            total_mentions=total,
            message=message,
        )

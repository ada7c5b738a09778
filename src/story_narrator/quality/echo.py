"""Echo chamber: content words shared across several speakers' dialogue."""

import re
from collections import Counter, defaultdict
from typing import Iterable

from story_narrator.models import NARRATOR, UNKNOWN_SPEAKER, EchoChamberResult, TextSegment

TOKEN = re.compile(r"[^\W_]+(?:'[^\W_]+)*")


def tokenize(content: str) -> list[str]:
    """Lowercased word tokens; curly apostrophes count as straight ones."""
    return TOKEN.findall(content.lower().replace("’", "'"))


def detect_echo_chamber(
    segments: list[TextSegment], stop_words: Iterable[str]
) -> list[EchoChamberResult]:
    """
    Words that more than one character uses in dialogue.

    Narration, thoughts and unattributed lines are ignored. Results are
    ordered by total frequency, then alphabetically.
    """
    stop = {w.lower() for w in stop_words}
    counts: Counter[str] = Counter()
    speakers: dict[str, set[str]] = defaultdict(set)

    for segment in segments:
        if segment.type != "dialogue":
            continue
        speaker = (segment.speaker or "").strip()
        if not speaker or speaker in (NARRATOR, UNKNOWN_SPEAKER):
            continue

        for word in tokenize(segment.content):
            if word in stop:
                continue
            counts[word] += 1
            speakers[word].add(speaker)

    results = [
        EchoChamberResult(word=word, frequency=counts[word], characters=sorted(names))
        for word, names in speakers.items()
        if len(names) > 1
    ]
    return sorted(results, key=lambda r: (-r.frequency, r.word))

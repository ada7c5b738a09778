"""Writing-quality report models.

Issue kinds form a closed union discriminated on ``kind`` so callers can
dispatch on the issue type without sniffing for fields.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

Score = Annotated[float, Field(ge=0.0, le=100.0)]


class IssueBase(BaseModel):
    """Fields shared by every highlighted issue."""

    text: str
    position: int  # character offset into the analysed text
    length: int


class ShowTellIssue(IssueBase):
    """A telling construct that could be dramatised instead."""

    kind: Literal["show_tell"] = "show_tell"
    type: Literal["emotion", "state", "trait", "thought"]
    severity: Literal["low", "medium", "high"]
    suggestion: str
    example: str = ""


class TropeMatch(IssueBase):
    """A recognised narrative cliche."""

    kind: Literal["trope"] = "trope"
    trope: str
    category: Literal["character", "plot", "setting", "dialogue"]
    description: str = ""
    confidence: float = Field(ge=0.0, le=1.0)
    subversions: list[str] = Field(default_factory=list)


class PurpleProseIssue(IssueBase):
    """Ornate or redundant description flagged for simplification."""

    kind: Literal["purple_prose"] = "purple_prose"
    type: Literal[
        "adverb_stacking",
        "flowery_language",
        "excessive_adjectives",
        "redundant_description",
        "overwrought_metaphor",
        "long_sentence",
    ]
    severity: Literal["mild", "moderate", "severe"]
    suggestion: str
    simplified: str = ""


QualityIssue = Annotated[
    Union[ShowTellIssue, TropeMatch, PurpleProseIssue],
    Field(discriminator="kind"),
]


class ReadabilityPoint(BaseModel):
    """Flesch reading ease for one chunk of paragraphs."""

    index: int
    score: Score
    start: int
    end: int
    word_count: int = 0
    sentence_count: int = 0
    syllable_count: int = 0
    preview: str = ""


class EchoChamberResult(BaseModel):
    """A word several characters lean on in their dialogue."""

    word: str
    frequency: int  # total across all speakers
    characters: list[str]


class TurnMetrics(BaseModel):
    """Raw signals behind a power score."""

    is_question: bool = False
    interruptions: int = 0
    word_count: int = 0
    hedge_to_intensifier_ratio: float = 0.5
    topic_changed: bool = False


class DialogueTurn(BaseModel):
    """One attributed line of dialogue scored for conversational dominance."""

    character_name: str
    content: str
    position: int
    power_score: float = Field(ge=-5.0, le=5.0)
    metrics: TurnMetrics = Field(default_factory=TurnMetrics)
    detected_tactic: Literal["weaponized_politeness", "exchange_termination"] | None = None


class ColorEntry(BaseModel):
    """A color name found in the text."""

    color: str
    hex: str
    frequency: int
    prominence: float = 0.0  # share of all color mentions


class ColorPalette(BaseModel):
    """Colors mentioned in the text ranked by frequency."""

    palette: list[ColorEntry] = Field(default_factory=list)
    dominant_colors: list[ColorEntry] = Field(default_factory=list)
    accent_colors: list[ColorEntry] = Field(default_factory=list)
    overall_mood: str = "neutral"
    total_mentions: int = 0
    message: str = ""


class OverallScore(BaseModel):
    """The three headline sub-scores, each on a 0-100 scale."""

    show_vs_tell: Score
    trope_originality: Score
    prose_clarity: Score

    @property
    def average(self) -> float:
        return (self.show_vs_tell + self.trope_originality + self.prose_clarity) / 3


class WritingQualityReport(BaseModel):
    """Aggregate of every quality analysis for one text."""

    readability_points: list[ReadabilityPoint] = Field(default_factory=list)
    show_tell_issues: list[ShowTellIssue] = Field(default_factory=list)
    trope_matches: list[TropeMatch] = Field(default_factory=list)
    purple_prose_issues: list[PurpleProseIssue] = Field(default_factory=list)
    echo_chamber: list[EchoChamberResult] = Field(default_factory=list)
    dialogue_turns: list[DialogueTurn] = Field(default_factory=list)
    color_palette: ColorPalette | None = None
    overall_score: OverallScore
    failed_analyses: list[str] = Field(default_factory=list)
    word_count: int = 0

    def issues(self) -> list[QualityIssue]:
        """All highlighted issues ordered by position."""
        items: list = [*self.show_tell_issues, *self.trope_matches, *self.purple_prose_issues]
        return sorted(items, key=lambda issue: issue.position)

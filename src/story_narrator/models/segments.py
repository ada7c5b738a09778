"""Text segment models."""

from typing import Literal

from pydantic import BaseModel, Field

SegmentType = Literal["dialogue", "narration", "thought"]

NARRATOR = "Narrator"
UNKNOWN_SPEAKER = "Unknown"


class TextSegment(BaseModel):
    """A contiguous span of source text tagged with a speaker and a type."""

    id: str
    content: str
    speaker: str
    type: SegmentType
    start_position: int = Field(ge=0)
    end_position: int = Field(ge=0)
    attribution_verb: str | None = None  # verb that resolved the speaker
    mood: str | None = None

    @property
    def length(self) -> int:
        return self.end_position - self.start_position


class DialogueMatch(BaseModel):
    """A quoted or thought span found by the segmenter."""

    content: str
    start: int
    end: int
    kind: Literal["quote", "thought"] = "quote"
    verb: str | None = None  # thought verb that produced a thought span
    speaker: str | None = None


class AttributionMatch(BaseModel):
    """A speech or thought verb with the speaker it points at."""

    verb: str
    speaker: str
    position: int
    end: int
    confidence: float = Field(ge=0.0, le=1.0)
    kind: Literal["speech", "thought"] = "speech"
    speaker_follows_verb: bool = False  # "said Bob" rather than "Bob said"
    introduces_quote: bool = False  # directly followed by an opening quote

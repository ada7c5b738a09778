"""Pipeline status and audio output models."""

from typing import Any, Literal

from pydantic import BaseModel, Field

from .characters import VoiceAdjustments
from .quality import WritingQualityReport

Stage = Literal[
    "analyzing", "detecting", "assigning", "generating", "quality_check", "complete", "error"
]
OutputFormat = Literal["mp3", "wav"]


class ProcessingStatus(BaseModel):
    """Snapshot of where a pipeline run is."""

    stage: Stage = "analyzing"
    progress: float = Field(default=0.0, ge=0.0, le=100.0)
    message: str = ""
    current_item: str | None = None


class ProcessingOptions(BaseModel):
    """Caller choices for one pipeline run."""

    enable_manual_correction: bool = False
    output_format: OutputFormat = "mp3"
    include_quality_analysis: bool = False
    # character name -> adjustments; only applied with manual correction on
    voice_overrides: dict[str, VoiceAdjustments] = Field(default_factory=dict)


class AudioSegment(BaseModel):
    """Synthesised audio for one text segment."""

    id: str
    audio_data: bytes
    duration: float  # seconds
    speaker: str
    text: str


class AudioOutput(BaseModel):
    """The combined artifact of a successful run."""

    audio_data: bytes
    duration: float
    segments: list[AudioSegment] = Field(default_factory=list)
    format: OutputFormat = "mp3"
    metadata: dict[str, Any] = Field(default_factory=dict)
    quality_report: WritingQualityReport | None = None

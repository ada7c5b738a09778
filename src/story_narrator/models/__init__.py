"""Data models."""

from .audio import AudioOutput, AudioSegment, ProcessingOptions, ProcessingStatus
from .characters import Character, VoiceAdjustments, VoiceAssignment, VoiceProfile
from .quality import (
    ColorEntry,
    ColorPalette,
    DialogueTurn,
    EchoChamberResult,
    OverallScore,
    PurpleProseIssue,
    QualityIssue,
    ReadabilityPoint,
    ShowTellIssue,
    TropeMatch,
    TurnMetrics,
    WritingQualityReport,
)
from .result import Result
from .segments import NARRATOR, UNKNOWN_SPEAKER, AttributionMatch, DialogueMatch, TextSegment

__all__ = [
    "AttributionMatch",
    "AudioOutput",
    "AudioSegment",
    "Character",
    "ColorEntry",
    "ColorPalette",
    "DialogueMatch",
    "DialogueTurn",
    "EchoChamberResult",
    "NARRATOR",
    "OverallScore",
    "ProcessingOptions",
    "ProcessingStatus",
    "PurpleProseIssue",
    "QualityIssue",
    "ReadabilityPoint",
    "Result",
    "ShowTellIssue",
    "TextSegment",
    "TropeMatch",
    "TurnMetrics",
    "UNKNOWN_SPEAKER",
    "VoiceAdjustments",
    "VoiceAssignment",
    "VoiceProfile",
    "WritingQualityReport",
]

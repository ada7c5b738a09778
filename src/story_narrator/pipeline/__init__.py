"""Narration pipeline: orchestration and speech synthesis backends."""

from .orchestrator import PipelineOrchestrator
from .speech import (
    ElevenLabsSpeechProvider,
    SilentSpeechProvider,
    SpeechProvider,
    get_speech_provider,
)

__all__ = [
    "ElevenLabsSpeechProvider",
    "PipelineOrchestrator",
    "SilentSpeechProvider",
    "SpeechProvider",
    "get_speech_provider",
]

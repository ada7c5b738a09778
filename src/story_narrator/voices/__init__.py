"""Voice casting: automatic assignment and manual overrides."""

from .assigner import VoiceAssigner
from .customizer import VoiceCustomizer

__all__ = ["VoiceAssigner", "VoiceCustomizer"]

"""Writing-quality analyses."""

from .analyzer import QualityAnalyzer
from .echo import detect_echo_chamber
from .palette import ColorPaletteAnalyzer
from .power import PowerBalanceAnalyzer
from .purple_prose import PurpleProseDetector
from .readability import count_syllables, flesch_reading_ease, readability_points
from .show_tell import ShowTellDetector
from .tropes import TropeDetector

__all__ = [
    "ColorPaletteAnalyzer",
    "PowerBalanceAnalyzer",
    "PurpleProseDetector",
    "QualityAnalyzer",
    "ShowTellDetector",
    "TropeDetector",
    "count_syllables",
    "detect_echo_chamber",
    "flesch_reading_ease",
    "readability_points",
]

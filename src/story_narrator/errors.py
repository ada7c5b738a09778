"""Exception hierarchy.

Components raise these internally and convert them to a failed
:class:`~story_narrator.models.result.Result` at their public boundary.
"""


class NarratorError(Exception):
    """Base class for all Story Narrator errors."""


class InputValidationError(NarratorError, ValueError):
    """Empty or malformed text, or a parameter outside its allowed range."""


class ResolutionError(NarratorError):
    """A stage could not produce what the next stage needs (no voice, no characters)."""


class ProcessingCancelled(NarratorError):
    """Raised at a cancellation checkpoint after cancel was requested."""

    def __init__(self, message: str = "Processing cancelled"):
        super().__init__(message)


class TableError(NarratorError):
    """A pattern table is missing, unreadable or has the wrong shape."""

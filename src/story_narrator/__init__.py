"""Story Narrator - attributed segmentation, voice casting and prose quality reports."""

__version__ = "0.1.0"

"""Segmentation of prose into attributed narration, dialogue and thought."""

from .segmenter import Segmenter

__all__ = ["Segmenter"]

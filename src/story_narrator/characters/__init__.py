"""Character roster detection and trait inference."""

from .extractor import CharacterExtractor

__all__ = ["CharacterExtractor"]

"""Text preprocessing and segmentation components.

This package provides deterministic recognition cleanup and chunking building
blocks used before translation and speech synthesis.
"""

from .chunking import TextChunker
from .cleaners import (
    CollapseNewlines,
    CollapseWhitespace,
    FixHyphenation,
    FlattenNewlines,
    TextCleaner,
)

__all__ = [
    "TextCleaner",
    "TextChunker",
    "CollapseWhitespace",
    "CollapseNewlines",
    "FixHyphenation",
    "FlattenNewlines",
]

"""Top-level package for pagevoice.

This package converts selected PDF pages into a narrated WAV audiobook:
crop, recognize, optionally translate, synthesize, and assemble. The main
orchestration entry point is `StageOrchestrator`; `AudiobookBuilder` wires it
from a `PagevoiceConfig`.
"""

from .builder import AudiobookBuilder
from .pipeline import StageOrchestrator

__all__ = ["AudiobookBuilder", "StageOrchestrator", "__version__"]

__version__ = "0.1.0"

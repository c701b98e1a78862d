"""Text-to-speech provider abstractions.

This package contains the synthesizer interfaces and default voice identifiers
used by the pipeline synthesis stage.
"""

from .synthesizer import KokoroSynthesizer, OpenAISpeechSynthesizer, Synthesizer
from .voices import DEFAULT_VOICE_IDS

__all__ = [
    "DEFAULT_VOICE_IDS",
    "KokoroSynthesizer",
    "OpenAISpeechSynthesizer",
    "Synthesizer",
]

"""Audio assembly components.

This package turns synthesized sample buffers into the final playable WAV file.
"""

from .encoder import AudioFrameEncoder

__all__ = ["AudioFrameEncoder"]

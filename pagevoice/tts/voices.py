"""Default narration voices.

Responsibilities:
- Map each synthesizer identifier to its provider-native default voice.
"""

from __future__ import annotations

DEFAULT_VOICE_IDS: dict[str, str] = {
    "kokoro": "af_bella",
    "openai": "echo",
}

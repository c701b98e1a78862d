"""TTS synthesizer interfaces and provider implementations.

Responsibilities:
- Define protocol for chunk-level speech synthesis.
- Provide local Kokoro synthesis and OpenAI-backed synthesis, both returning
  in-memory float sample buffers.
"""

from __future__ import annotations

import io
from typing import Any, Protocol
import wave

import numpy as np

from ..languages import SupportedLanguage
from ..models.datatypes import AudioSegment
from ..providers.clients import OpenAISpeechClient, ProviderError

KOKORO_SAMPLE_RATE = 24000
DEFAULT_OPENAI_TTS_MODEL = "gpt-4o-mini-tts"


class Synthesizer(Protocol):
    """Protocol for TTS provider implementations."""

    def synthesize(self, text: str, voice_id: str) -> AudioSegment:
        """Synthesize one chunk of text into an audio segment."""


class KokoroSynthesizer:
    """Offline neural synthesis with the `kokoro` package."""

    def __init__(
        self,
        language: SupportedLanguage = SupportedLanguage.ENGLISH,
        speed: float = 1.0,
    ) -> None:
        """Initialize narration language and speed; the model loads on first use."""

        self.language = language
        self.speed = speed
        self._pipeline: Any = None

    def synthesize(self, text: str, voice_id: str) -> AudioSegment:
        """Generate speech for `text` and concatenate Kokoro's sentence buffers."""

        pipeline = self._load_pipeline()
        buffers = [
            np.asarray(audio, dtype=np.float32).reshape(-1)
            for _graphemes, _phonemes, audio in pipeline(text, voice=voice_id, speed=self.speed)
            if audio is not None
        ]
        if not buffers:
            raise ProviderError(f"Kokoro produced no audio for {len(text)} characters of text.")
        samples = np.concatenate(buffers)
        if samples.size == 0:
            raise ProviderError(f"Kokoro produced no audio for {len(text)} characters of text.")
        return AudioSegment(samples=samples, sample_rate=KOKORO_SAMPLE_RATE)

    def _load_pipeline(self) -> Any:
        if self._pipeline is None:
            try:
                from kokoro import KPipeline
            except ImportError as exc:
                raise ProviderError(
                    "The `kokoro` package is required for local synthesis. "
                    "Install it with `pip install pagevoice[kokoro]`.",
                    failure_kind="transport",
                ) from exc
            self._pipeline = KPipeline(lang_code=self.language.kokoro_code)
        return self._pipeline


class OpenAISpeechSynthesizer:
    """OpenAI `/audio/speech` synthesizer decoding WAV replies to float samples."""

    def __init__(
        self,
        model: str = DEFAULT_OPENAI_TTS_MODEL,
        api_key: str | None = None,
        speed: float = 1.0,
        client: OpenAISpeechClient | None = None,
    ) -> None:
        """Initialize OpenAI-backed TTS synthesizer settings."""

        self.model = model
        self.speed = max(0.25, min(4.0, speed))
        self.client = client if client is not None else OpenAISpeechClient(api_key=api_key)

    def synthesize(self, text: str, voice_id: str) -> AudioSegment:
        """Request WAV speech for `text` and decode it into an audio segment."""

        audio_bytes = self.client.synthesize_speech(
            model=self.model,
            voice=voice_id,
            text=text,
            response_format="wav",
            speed=self.speed,
        )
        return decode_wav(audio_bytes)


def decode_wav(audio_bytes: bytes) -> AudioSegment:
    """Decode 16-bit PCM WAV bytes (mono or interleaved stereo) to a mono segment."""

    try:
        with wave.open(io.BytesIO(audio_bytes), "rb") as wav_file:
            channels = wav_file.getnchannels()
            sample_width = wav_file.getsampwidth()
            sample_rate = wav_file.getframerate()
            frames = wav_file.readframes(wav_file.getnframes())
    except (wave.Error, EOFError) as exc:
        raise ProviderError("Speech response is not a readable WAV payload.") from exc

    if sample_width != 2:
        raise ProviderError(f"Unsupported WAV sample width: {sample_width * 8} bits.")
    if sample_rate <= 0:
        raise ProviderError("Speech response has invalid WAV sample rate.")

    samples = np.frombuffer(frames, dtype="<i2").astype(np.float32) / 32768.0
    if channels > 1:
        samples = samples[: len(samples) - len(samples) % channels]
        samples = samples.reshape(-1, channels).mean(axis=1)
    if samples.size == 0:
        raise ProviderError("Speech response contains no audio samples.")
    return AudioSegment(samples=samples, sample_rate=sample_rate)

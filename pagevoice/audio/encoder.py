"""Audio assembly stage.

Responsibilities:
- Concatenate per-chunk float sample buffers in chunk order.
- Quantize to 16-bit PCM and wrap the result in a mono WAV container.
"""

from __future__ import annotations

from collections.abc import Sequence
import io
import wave

import numpy as np

from ..errors import NoAudioData, SampleRateMismatch
from ..models.datatypes import AssembledAudio, AudioSegment


class AudioFrameEncoder:
    """Encode ordered audio segments into one 16-bit mono WAV byte stream."""

    CHANNELS = 1
    SAMPLE_WIDTH_BYTES = 2
    HEADER_SIZE_BYTES = 44
    _INT16_SCALE = 32767

    def encode(self, segments: Sequence[AudioSegment]) -> AssembledAudio:
        """Assemble segments into a WAV container.

        Args:
            segments: Segments in chunk order; all must share one sample rate.

        Raises:
            NoAudioData: If there are no segments or no samples at all.
            SampleRateMismatch: If any segment's rate differs from the first one.
        """

        if not segments:
            raise NoAudioData("No audio segments were produced.")

        sample_rate = segments[0].sample_rate
        for position, segment in enumerate(segments):
            if segment.sample_rate != sample_rate:
                raise SampleRateMismatch(
                    f"Segment {position} has sample rate {segment.sample_rate} Hz, "
                    f"expected {sample_rate} Hz."
                )

        samples = np.concatenate([segment.samples for segment in segments])
        if samples.size == 0:
            raise NoAudioData("Audio segments contain no samples.")

        pcm = self.quantize(samples)
        buffer = io.BytesIO()
        with wave.open(buffer, "wb") as wav_file:
            wav_file.setnchannels(self.CHANNELS)
            wav_file.setsampwidth(self.SAMPLE_WIDTH_BYTES)
            wav_file.setframerate(sample_rate)
            wav_file.writeframes(pcm.tobytes())

        return AssembledAudio(
            data=buffer.getvalue(),
            sample_rate=sample_rate,
            sample_count=int(pcm.size),
        )

    @classmethod
    def quantize(cls, samples: np.ndarray) -> np.ndarray:
        """Clamp samples to [-1, 1] and scale them to little-endian int16."""

        values = np.nan_to_num(
            np.asarray(samples, dtype=np.float64), nan=0.0, posinf=1.0, neginf=-1.0
        )
        clipped = np.clip(values, -1.0, 1.0)
        return np.round(clipped * cls._INT16_SCALE).astype("<i2")

    @classmethod
    def expected_size(cls, sample_count: int) -> int:
        """Return the container byte length for a given total sample count."""

        return cls.HEADER_SIZE_BYTES + cls.SAMPLE_WIDTH_BYTES * sample_count

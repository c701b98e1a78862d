"""Unit tests for WAV assembly of synthesized segments."""

from __future__ import annotations

import io
import wave

import numpy as np
import pytest

from pagevoice.audio.encoder import AudioFrameEncoder
from pagevoice.errors import NoAudioData, SampleRateMismatch
from pagevoice.models.datatypes import AudioSegment


def _read_wav(data: bytes) -> tuple[int, int, int, np.ndarray]:
    with wave.open(io.BytesIO(data), "rb") as wav_file:
        frames = wav_file.readframes(wav_file.getnframes())
        return (
            wav_file.getnchannels(),
            wav_file.getsampwidth(),
            wav_file.getframerate(),
            np.frombuffer(frames, dtype="<i2"),
        )


def test_encoder_writes_mono_16bit_container() -> None:
    """The container should be 44 header bytes plus two bytes per sample."""

    segments = [
        AudioSegment(samples=np.zeros(100, dtype=np.float32), sample_rate=24000),
        AudioSegment(samples=np.zeros(50, dtype=np.float32), sample_rate=24000),
    ]

    audio = AudioFrameEncoder().encode(segments)

    assert len(audio.data) == 44 + 2 * 150
    assert audio.data[:4] == b"RIFF"
    assert audio.data[8:12] == b"WAVE"
    assert audio.sample_count == 150
    assert audio.sample_rate == 24000
    assert AudioFrameEncoder.expected_size(150) == len(audio.data)
    channels, width, rate, _ = _read_wav(audio.data)
    assert (channels, width, rate) == (1, 2, 24000)


def test_encoder_quantizes_full_scale_and_silence() -> None:
    """Full-scale floats should map to +/-32767 and zero to zero."""

    audio = AudioFrameEncoder().encode(
        [AudioSegment(samples=np.array([-1.0, 0.0, 1.0]), sample_rate=22050)]
    )

    _, _, rate, pcm = _read_wav(audio.data)
    assert rate == 22050
    assert pcm.tolist() == [-32767, 0, 32767]


def test_encoder_clamps_out_of_range_samples() -> None:
    """Values beyond the unit range should be clipped, not wrapped."""

    pcm = AudioFrameEncoder.quantize(np.array([2.5, -3.0, np.nan, 0.5]))

    assert pcm.tolist() == [32767, -32767, 0, 16384]


def test_encoder_keeps_segment_order() -> None:
    """Segments should be concatenated in the order they are given."""

    audio = AudioFrameEncoder().encode(
        [
            AudioSegment(samples=np.full(2, 0.25), sample_rate=16000),
            AudioSegment(samples=np.full(3, -0.25), sample_rate=16000),
        ]
    )

    _, _, _, pcm = _read_wav(audio.data)
    assert pcm.tolist() == [8192, 8192, -8192, -8192, -8192]
    assert audio.duration_seconds == pytest.approx(5 / 16000)


def test_encoder_rejects_empty_input() -> None:
    """No segments at all is a `NoAudioData` failure in the assembling stage."""

    with pytest.raises(NoAudioData) as exc_info:
        AudioFrameEncoder().encode([])

    assert exc_info.value.stage == "assembling"


def test_encoder_rejects_segments_without_samples() -> None:
    """Segments that hold zero samples in total are also `NoAudioData`."""

    with pytest.raises(NoAudioData):
        AudioFrameEncoder().encode([AudioSegment(samples=np.array([]), sample_rate=24000)])


def test_encoder_rejects_mixed_sample_rates() -> None:
    """Segments must share the first segment's sample rate."""

    segments = [
        AudioSegment(samples=np.zeros(10), sample_rate=24000),
        AudioSegment(samples=np.zeros(10), sample_rate=22050),
    ]

    with pytest.raises(SampleRateMismatch) as exc_info:
        AudioFrameEncoder().encode(segments)

    assert "22050" in exc_info.value.detail
    assert exc_info.value.stage == "assembling"


def test_audio_segment_flattens_samples_and_checks_rate() -> None:
    """Segments hold flat float32 samples and a positive integer rate."""

    segment = AudioSegment(samples=[[0.1, 0.2], [0.3, 0.4]], sample_rate=8000)

    assert segment.samples.dtype == np.float32
    assert segment.samples.shape == (4,)
    assert segment.duration_seconds == pytest.approx(4 / 8000)
    with pytest.raises(ValueError):
        AudioSegment(samples=np.zeros(1), sample_rate=0)

"""Integration-test fixtures for deterministic provider behavior."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator

import numpy as np
import pytest

from pagevoice.providers.clients import OllamaChatClient, OpenAISpeechClient
from pagevoice.tts.synthesizer import KokoroSynthesizer
from tests.fakes import silent_wav_bytes

MOCK_FRAMES_PER_CHUNK = 2400


class InMemoryCredentialStore:
    """Simple in-memory credential store used for CLI tests."""

    def __init__(self, initial_api_key: str | None = None) -> None:
        """Initialize the store with an optional pre-seeded API key."""

        self.api_key = initial_api_key

    def is_available(self) -> bool:
        """Return availability flag expected by the CLI status command."""

        return True

    def get_api_key(self) -> str | None:
        """Return currently stored API key value."""

        return self.api_key

    def set_api_key(self, api_key: str) -> None:
        """Persist a normalized API key value."""

        self.api_key = api_key.strip()

    def clear_api_key(self) -> bool:
        """Clear API key and return whether one existed."""

        existed = self.api_key is not None
        self.api_key = None
        return existed


def _silent_kokoro_pipeline(text: str, voice: str, speed: float) -> Iterator[tuple[str, str, Any]]:
    """Yield one fixed-length silent buffer per chunk."""

    yield text, "", np.zeros(MOCK_FRAMES_PER_CHUNK, dtype=np.float32)


@pytest.fixture(autouse=True)
def _mock_provider_calls(monkeypatch: pytest.MonkeyPatch) -> None:
    """Mock speech and translation providers to avoid models, network and keys."""

    def _mock_chat_structured(self, **kwargs: object) -> dict[str, Any]:
        """Return a deterministic translation reply."""

        _ = self
        _ = kwargs
        return {"translatedText": "Texte traduit pour le test."}

    def _mock_synthesize_speech(self, **kwargs: object) -> bytes:
        """Return a deterministic WAV payload for the speech stage."""

        _ = self
        _ = kwargs
        return silent_wav_bytes()

    monkeypatch.setattr(OllamaChatClient, "chat_structured", _mock_chat_structured)
    monkeypatch.setattr(OpenAISpeechClient, "synthesize_speech", _mock_synthesize_speech)
    monkeypatch.setattr(
        KokoroSynthesizer, "_load_pipeline", lambda self: _silent_kokoro_pipeline
    )
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)


@pytest.fixture(autouse=True)
def credential_store(monkeypatch: pytest.MonkeyPatch) -> InMemoryCredentialStore:
    """Keep CLI credential lookups away from the real OS keyring."""

    store = InMemoryCredentialStore()
    monkeypatch.setattr("pagevoice.cli.create_credential_store", lambda: store)
    return store


@pytest.fixture
def book_pdf_path(tmp_path: Path, two_page_book_pdf: bytes) -> Path:
    """Write the two-page fixture PDF to disk for CLI invocations."""

    path = tmp_path / "book.pdf"
    path.write_bytes(two_page_book_pdf)
    return path

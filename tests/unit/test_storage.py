"""Unit tests for filesystem artifact storage."""

from __future__ import annotations

from pathlib import Path

import pytest

from pagevoice.io.storage import DEFAULT_OUTPUT_NAME, ArtifactStore


def test_persist_creates_directory_and_writes_bytes(tmp_path: Path) -> None:
    """Persisting should create the output directory on demand."""

    store = ArtifactStore(tmp_path / "nested" / "out")

    path = store.persist(b"RIFF....WAVE")

    assert path == tmp_path / "nested" / "out" / DEFAULT_OUTPUT_NAME
    assert path.read_bytes() == b"RIFF....WAVE"


def test_persist_overwrites_existing_file(tmp_path: Path) -> None:
    """A second persist under the same name replaces the file."""

    store = ArtifactStore(tmp_path)
    store.persist(b"old", "book.wav")

    path = store.persist(b"new", "book.wav")

    assert path.read_bytes() == b"new"


@pytest.mark.parametrize("name", ["", "   ", "../escape.wav", "sub/book.wav"])
def test_persist_rejects_non_plain_names(tmp_path: Path, name: str) -> None:
    """Destination names must be plain file names."""

    with pytest.raises(ValueError):
        ArtifactStore(tmp_path).persist(b"x", name)

    assert not (tmp_path.parent / "escape.wav").exists()

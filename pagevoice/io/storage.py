"""Artifact storage.

Responsibilities:
- Persist the assembled audiobook bytes under a deterministic output directory.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_OUTPUT_NAME = "audiobook.wav"


class ArtifactStore:
    """Filesystem-backed store for finished audio files."""

    def __init__(self, root: Path) -> None:
        """Initialize the store with a root output directory."""

        self.root = root

    def persist(self, data: bytes, destination_name: str = DEFAULT_OUTPUT_NAME) -> Path:
        """Write bytes to `root/destination_name` and return the final path."""

        name = destination_name.strip()
        if not name or Path(name).name != name:
            raise ValueError(
                f"Destination name must be a plain file name, got `{destination_name}`."
            )
        path = self.root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path

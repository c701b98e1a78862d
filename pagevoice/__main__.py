"""Module entrypoint for running pagevoice as ``python -m pagevoice``."""

from __future__ import annotations

from pagevoice.cli import main


if __name__ == "__main__":
    main()

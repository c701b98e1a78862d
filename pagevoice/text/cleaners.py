"""Deterministic text cleaning rules for recognizer output.

Responsibilities:
- Provide composable cleanup rules for OCR and text-layer artifacts.
- Apply them exactly once, in a fixed order, before chunking.
"""

from __future__ import annotations

import re
from typing import Protocol


class CleanerRule(Protocol):
    """Protocol for text cleaning rules."""

    def apply(self, text: str) -> str:
        """Apply a single cleaning transformation."""


class CollapseWhitespace:
    """Collapse runs of non-newline whitespace to one space."""

    _RUN_RE = re.compile(r"[^\S\n]+")

    def apply(self, text: str) -> str:
        """Replace tab/space/form-feed runs with a single space."""

        return self._RUN_RE.sub(" ", text)


class CollapseNewlines:
    """Collapse newline runs, including blank lines with stray spaces, to one newline."""

    _RUN_RE = re.compile(r" ?\n(?:[ \n]*\n)? ?")

    def apply(self, text: str) -> str:
        """Replace each newline run with a single newline."""

        return self._RUN_RE.sub("\n", text)


class FixHyphenation:
    """Rejoin words split by a hyphen at a line break or before a space."""

    _BREAK_RE = re.compile(r"(\w)-[ \n]+(\w)")

    def apply(self, text: str) -> str:
        """Join `word-<break>word` into `wordword`."""

        return self._BREAK_RE.sub(r"\1\2", text)


class FlattenNewlines:
    """Turn the remaining line breaks into spaces."""

    def apply(self, text: str) -> str:
        """Replace newlines with spaces."""

        return text.replace("\n", " ")


class TextCleaner:
    """Apply a sequence of deterministic cleaner rules."""

    def __init__(self, rules: list[CleanerRule] | None = None) -> None:
        """Initialize with custom rules or the default recognition cleanup sequence."""

        self.rules = rules or [
            CollapseWhitespace(),
            CollapseNewlines(),
            FixHyphenation(),
            FlattenNewlines(),
        ]

    def clean(self, text: str) -> str:
        """Apply all configured rules in order and trim the result."""

        current = text
        for rule in self.rules:
            current = rule.apply(current)
        return current.strip()

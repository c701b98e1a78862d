"""Text-to-chunk segmentation logic.

Responsibilities:
- Split recognized text into bounded, speech-safe chunks for provider calls.
- Keep boundary selection deterministic so identical input yields identical chunks.
"""

from __future__ import annotations

from collections.abc import Iterator

from ..models.datatypes import TextChunk

DEFAULT_MAX_CHUNK_SIZE = 400


class TextChunker:
    """Create bounded chunks, preferring sentence ends, then word gaps, then hard cuts."""

    _SENTENCE_TERMINATORS = frozenset(".!?")
    _SENTENCE_SEARCH_RATIO = 0.5
    _WORD_SEARCH_RATIO = 0.7

    def __init__(self, max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE) -> None:
        """Initialize the chunker with a positive per-chunk character bound."""

        if isinstance(max_chunk_size, bool) or int(max_chunk_size) <= 0:
            raise ValueError("`max_chunk_size` must be a positive integer.")
        self.max_chunk_size = int(max_chunk_size)

    def split(self, text: str) -> list[TextChunk]:
        """Split text into ordered, 0-indexed chunk records.

        Args:
            text: Cleaned recognition output.

        Returns:
            Chunk list; empty when the text holds no non-whitespace characters.
        """

        return [
            TextChunk(index=index, text=chunk_text)
            for index, chunk_text in enumerate(self.iter_chunk_texts(text))
        ]

    def iter_chunk_texts(self, text: str) -> Iterator[str]:
        """Yield trimmed, non-empty chunk strings in text order."""

        position = self._skip_whitespace(text, 0)
        text_length = len(text)
        while position < text_length:
            if position + self.max_chunk_size >= text_length:
                tail = text[position:].strip()
                if tail:
                    yield tail
                return

            cut = self._resolve_cut(text, position)
            chunk_text = text[position:cut].strip()
            if chunk_text:
                yield chunk_text
            position = self._skip_whitespace(text, cut)

    def _resolve_cut(self, text: str, position: int) -> int:
        """Return the exclusive end index of the chunk starting at `position`."""

        naive_cut = position + self.max_chunk_size
        sentence_floor = int(position + self.max_chunk_size * self._SENTENCE_SEARCH_RATIO)
        for index in range(naive_cut - 1, sentence_floor, -1):
            if text[index] in self._SENTENCE_TERMINATORS and text[index + 1].isspace():
                return index + 1

        word_floor = int(position + self.max_chunk_size * self._WORD_SEARCH_RATIO)
        for index in range(naive_cut, word_floor, -1):
            if text[index].isspace():
                return index

        return naive_cut

    @staticmethod
    def _skip_whitespace(text: str, index: int) -> int:
        """Advance past any whitespace starting at `index`."""

        text_length = len(text)
        while index < text_length and text[index].isspace():
            index += 1
        return index

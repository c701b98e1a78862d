"""Supported languages and their per-engine codes.

The language set is fixed: recognition, translation and synthesis all need a
code for each entry, so adding a language means adding a row to every table.
"""

from __future__ import annotations

from enum import Enum

from .errors import InvalidRequest


class SupportedLanguage(str, Enum):
    """Languages accepted for source text and narration output."""

    ENGLISH = "English"
    SPANISH = "Spanish"
    FRENCH = "French"
    HINDI = "Hindi"
    ITALIAN = "Italian"
    JAPANESE = "Japanese"
    PORTUGUESE = "Portuguese"
    CHINESE = "Chinese"

    @property
    def kokoro_code(self) -> str:
        """Return the single-letter Kokoro pipeline language code."""

        return KOKORO_CODES[self]

    @property
    def tesseract_code(self) -> str:
        """Return the Tesseract traineddata language code."""

        return TESSERACT_CODES[self]


KOKORO_CODES: dict[SupportedLanguage, str] = {
    SupportedLanguage.ENGLISH: "a",
    SupportedLanguage.SPANISH: "e",
    SupportedLanguage.FRENCH: "f",
    SupportedLanguage.HINDI: "h",
    SupportedLanguage.ITALIAN: "i",
    SupportedLanguage.JAPANESE: "j",
    SupportedLanguage.PORTUGUESE: "p",
    SupportedLanguage.CHINESE: "z",
}

TESSERACT_CODES: dict[SupportedLanguage, str] = {
    SupportedLanguage.ENGLISH: "eng",
    SupportedLanguage.SPANISH: "spa",
    SupportedLanguage.FRENCH: "fra",
    SupportedLanguage.HINDI: "hin",
    SupportedLanguage.ITALIAN: "ita",
    SupportedLanguage.JAPANESE: "jpn",
    SupportedLanguage.PORTUGUESE: "por",
    SupportedLanguage.CHINESE: "chi_sim",
}


def parse_language(value: str | SupportedLanguage) -> SupportedLanguage:
    """Resolve a language from its name, enum member, or engine code.

    Matching is case-insensitive and accepts the English name (`"French"`),
    the Kokoro code (`"f"`) or the Tesseract code (`"fra"`).

    Raises:
        InvalidRequest: If the value does not name a supported language.
    """

    if isinstance(value, SupportedLanguage):
        return value

    token = str(value).strip().lower()
    for language in SupportedLanguage:
        if token in {
            language.value.lower(),
            language.name.lower(),
            language.kokoro_code,
            language.tesseract_code,
        }:
            return language

    supported = ", ".join(language.value for language in SupportedLanguage)
    raise InvalidRequest(
        f"Unsupported language `{value}`.",
        hint=f"Use one of: {supported}.",
    )

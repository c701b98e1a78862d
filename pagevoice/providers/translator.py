"""Translation interfaces and provider integrations.

Responsibilities:
- Define a protocol for chunk translation implementations.
- Provide an Ollama-backed translator using a structured JSON reply.
"""

from __future__ import annotations

import json
from typing import Protocol

from ..languages import SupportedLanguage
from .clients import OllamaChatClient, ProviderError

DEFAULT_TRANSLATE_MODEL = "qwen3:14b"

TRANSLATION_SYSTEM_PROMPT = (
    "Translate the following user text from the input language to the output language."
)

TRANSLATION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {"translatedText": {"type": "string"}},
    "required": ["translatedText"],
    "additionalProperties": False,
}


class Translator(Protocol):
    """Protocol for translation providers."""

    def translate(
        self,
        source_language: SupportedLanguage,
        target_language: SupportedLanguage,
        text: str,
    ) -> str:
        """Translate one chunk of text between two supported languages."""


class OllamaTranslator:
    """Translator backed by a local Ollama chat model."""

    def __init__(
        self,
        model: str = DEFAULT_TRANSLATE_MODEL,
        base_url: str = "http://localhost:11434",
        client: OllamaChatClient | None = None,
    ) -> None:
        """Initialize model selection and the chat client."""

        self.model = model
        self.client = client if client is not None else OllamaChatClient(base_url=base_url)

    def translate(
        self,
        source_language: SupportedLanguage,
        target_language: SupportedLanguage,
        text: str,
    ) -> str:
        """Translate `text` and return the model's `translatedText` field."""

        user_content = json.dumps(
            {
                "inputLanguage": source_language.value,
                "outputLanguage": target_language.value,
                "textToTranslate": text,
            },
            ensure_ascii=False,
        )
        reply = self.client.chat_structured(
            model=self.model,
            system_prompt=TRANSLATION_SYSTEM_PROMPT,
            user_content=user_content,
            response_schema=TRANSLATION_SCHEMA,
        )
        translated = reply.get("translatedText")
        if not isinstance(translated, str):
            raise ProviderError("Ollama reply is missing string field `translatedText`.")
        normalized = translated.strip()
        if not normalized:
            raise ProviderError("Ollama returned an empty translation.")
        return normalized

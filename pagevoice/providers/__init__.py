"""Remote service integrations for translation and speech."""

from .clients import OllamaChatClient, OpenAISpeechClient, ProviderError
from .translator import OllamaTranslator, Translator

__all__ = [
    "OllamaChatClient",
    "OllamaTranslator",
    "OpenAISpeechClient",
    "ProviderError",
    "Translator",
]

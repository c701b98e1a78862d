"""Collaborator factory helpers for the rendering, recognition, translation and TTS stages.

Responsibilities:
- Resolve identifiers to concrete collaborator implementations.
- Pair each recognizer with the renderer whose output it can read.

Notes:
- `text-layer` reads cropped PDF pages, `tesseract` reads PNG rasters.
"""

from __future__ import annotations

from .io.page_renderers import PageRenderer, PdfPageCropper, PopplerPageRasterizer
from .io.recognizers import PdfTextLayerRecognizer, TesseractRecognizer, TextRecognizer
from .languages import SupportedLanguage
from .providers.translator import OllamaTranslator, Translator
from .tts.synthesizer import KokoroSynthesizer, OpenAISpeechSynthesizer, Synthesizer


class ProviderFactory:
    """Factory for collaborators used by the pipeline."""

    @staticmethod
    def create_renderer(recognizer_id: str, dpi: int = 150) -> PageRenderer:
        """Create the page renderer matching a recognizer identifier."""

        if recognizer_id == "text-layer":
            return PdfPageCropper()
        if recognizer_id == "tesseract":
            return PopplerPageRasterizer(dpi=dpi)
        raise ValueError(f"Unsupported recognizer `{recognizer_id}`.")

    @staticmethod
    def create_recognizer(recognizer_id: str) -> TextRecognizer:
        """Create a text recognizer for a configured identifier."""

        if recognizer_id == "text-layer":
            return PdfTextLayerRecognizer()
        if recognizer_id == "tesseract":
            return TesseractRecognizer()
        raise ValueError(f"Unsupported recognizer `{recognizer_id}`.")

    @staticmethod
    def create_translator(provider_id: str, model: str, base_url: str) -> Translator:
        """Create a translator client for a configured provider identifier."""

        if provider_id == "ollama":
            return OllamaTranslator(model=model, base_url=base_url)
        raise ValueError(f"Unsupported translator provider `{provider_id}`.")

    @staticmethod
    def create_synthesizer(
        provider_id: str,
        language: SupportedLanguage,
        model: str,
        api_key: str | None = None,
    ) -> Synthesizer:
        """Create a TTS synthesizer for a configured provider identifier."""

        if provider_id == "kokoro":
            return KokoroSynthesizer(language=language)
        if provider_id == "openai":
            return OpenAISpeechSynthesizer(model=model, api_key=api_key)
        raise ValueError(f"Unsupported synthesizer provider `{provider_id}`.")

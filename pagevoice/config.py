"""Configuration model and loaders for pagevoice.

Responsibilities:
- Define runtime configuration as a typed dataclass.
- Provide deterministic precedence resolution for the provider API key.
- Provide loader entry points for file- and environment-based configuration.

Key types:
- `PagevoiceConfig`: normalized runtime settings for one conversion run.
- `RuntimeConfigSources`: optional value sources for precedence resolution.
- `ConfigLoader`: static construction helpers for `PagevoiceConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import InvalidRequest
from .io.storage import DEFAULT_OUTPUT_NAME
from .languages import SupportedLanguage, parse_language
from .parsing import normalize_optional_string, parse_non_negative_float, parse_page_range
from .providers.translator import DEFAULT_TRANSLATE_MODEL
from .text.chunking import DEFAULT_MAX_CHUNK_SIZE
from .tts.synthesizer import DEFAULT_OPENAI_TTS_MODEL
from .tts.voices import DEFAULT_VOICE_IDS

_DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434"
_DEFAULT_RENDERER_DPI = 150
_DEFAULT_MAX_MARGIN_FRACTION = 0.4
SUPPORTED_RECOGNIZERS = frozenset({"text-layer", "tesseract"})
SUPPORTED_TRANSLATORS = frozenset({"ollama"})
SUPPORTED_SYNTHESIZERS = frozenset({"kokoro", "openai"})


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for deterministic runtime value precedence.

    Attributes:
        cli: Values explicitly provided by CLI arguments.
        secure: Values loaded from secure local credential storage.
        env: Values loaded from environment variables.
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    secure: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class PagevoiceConfig:
    """Runtime configuration for one conversion run.

    Attributes:
        input_pdf: Path to the source PDF.
        output_dir: Directory receiving the finished audio file.
        output_name: File name of the finished audio file.
        page_range: Optional `N` or `N-M` expression; all pages when unset.
        crop_top: Header margin in source page units; 8% of page height when unset.
        crop_bottom: Footer margin in source page units; 8% of page height when unset.
        source_language: Language of the document text.
        target_language: Narration language.
        chunk_size_chars: Maximum chunk length in characters.
        renderer_dpi: Rasterization resolution for the OCR path.
        recognizer: `text-layer` or `tesseract`.
        translator: Translator provider identifier.
        translate_model: Translation model identifier.
        ollama_base_url: Base URL of the Ollama server.
        synthesizer: `kokoro` or `openai`.
        tts_model: OpenAI speech model identifier.
        voice: Voice identifier; engine default when unset.
        api_key: Optional OpenAI API key.
        max_margin_fraction: Per-edge crop cap as a fraction of page height.
        runtime_sources: Optional runtime source overrides injected by CLI.
    """

    input_pdf: Path
    output_dir: Path = Path("out")
    output_name: str = DEFAULT_OUTPUT_NAME
    page_range: str | None = None
    crop_top: float | None = None
    crop_bottom: float | None = None
    source_language: str = SupportedLanguage.ENGLISH.value
    target_language: str = SupportedLanguage.ENGLISH.value
    chunk_size_chars: int = DEFAULT_MAX_CHUNK_SIZE
    renderer_dpi: int = _DEFAULT_RENDERER_DPI
    recognizer: str = "text-layer"
    translator: str = "ollama"
    translate_model: str = DEFAULT_TRANSLATE_MODEL
    ollama_base_url: str = _DEFAULT_OLLAMA_BASE_URL
    synthesizer: str = "kokoro"
    tts_model: str = DEFAULT_OPENAI_TTS_MODEL
    voice: str | None = None
    api_key: str | None = None
    max_margin_fraction: float | None = _DEFAULT_MAX_MARGIN_FRACTION
    runtime_sources: RuntimeConfigSources = field(default_factory=RuntimeConfigSources)

    def validate(self) -> None:
        """Validate runtime configuration values before pipeline execution."""

        self._validate_choice(self.recognizer, "recognizer", SUPPORTED_RECOGNIZERS)
        self._validate_choice(self.translator, "translator", SUPPORTED_TRANSLATORS)
        self._validate_choice(self.synthesizer, "synthesizer", SUPPORTED_SYNTHESIZERS)
        self._require_non_empty(self.translate_model, "translate_model")
        self._require_non_empty(self.tts_model, "tts_model")
        self._require_non_empty(self.ollama_base_url, "ollama_base_url")
        self._require_non_empty(self.output_name, "output_name")
        if Path(self.output_name).name != self.output_name:
            raise ValueError("`output_name` must be a file name without directories.")
        if self.chunk_size_chars <= 0:
            raise ValueError("`chunk_size_chars` must be a positive integer.")
        if self.renderer_dpi <= 0:
            raise ValueError("`renderer_dpi` must be a positive integer.")
        if self.page_range is not None:
            parse_page_range(self.page_range)
        for name in ("crop_top", "crop_bottom"):
            value = getattr(self, name)
            if value is not None:
                parse_non_negative_float(value, name)
        if self.max_margin_fraction is not None and not 0 < self.max_margin_fraction <= 1:
            raise ValueError("`max_margin_fraction` must be within (0, 1].")
        for name in ("source_language", "target_language"):
            try:
                parse_language(getattr(self, name))
            except InvalidRequest as exc:
                raise ValueError(f"`{name}`: {exc.detail} {exc.hint or ''}".strip()) from exc

    @property
    def source(self) -> SupportedLanguage:
        """Return the parsed source language."""

        return parse_language(self.source_language)

    @property
    def target(self) -> SupportedLanguage:
        """Return the parsed target language."""

        return parse_language(self.target_language)

    def resolved_voice(self) -> str:
        """Return the configured voice or the synthesizer's default voice."""

        return normalize_optional_string(self.voice) or DEFAULT_VOICE_IDS[self.synthesizer]

    def resolved_api_key(self, sources: RuntimeConfigSources | None = None) -> str | None:
        """Resolve the OpenAI API key.

        Precedence is `cli` > `secure` > `env` (`OPENAI_API_KEY`) > config field.
        """

        resolved_sources = sources if sources is not None else self.runtime_sources
        for mapping, key in (
            (resolved_sources.cli, "api_key"),
            (resolved_sources.secure, "api_key"),
            (resolved_sources.env, "OPENAI_API_KEY"),
        ):
            value = self._normalized_lookup(mapping, key)
            if value is not None:
                return value
        return normalize_optional_string(self.api_key)

    @staticmethod
    def _normalized_lookup(mapping: Mapping[str, str], key: str) -> str | None:
        """Return a stripped mapping value for a key or `None` when missing/blank."""

        if key not in mapping:
            return None
        return normalize_optional_string(mapping.get(key))

    @staticmethod
    def _validate_choice(value: str, field_name: str, supported: frozenset[str]) -> None:
        """Validate an identifier against the implemented choices."""

        if value not in supported:
            choices = ", ".join(sorted(supported))
            raise ValueError(f"Unsupported `{field_name}` value `{value}`; supported: {choices}.")

    @staticmethod
    def _require_non_empty(value: str, field_name: str) -> None:
        """Validate that runtime string fields are not empty."""

        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"`{field_name}` must be a non-empty string.")


class ConfigLoader:
    """Factory methods for creating `PagevoiceConfig` from external sources."""

    _REQUIRED_YAML_KEYS = frozenset({"input_pdf", "output_dir"})
    _STRING_KEYS = (
        "output_name",
        "page_range",
        "source_language",
        "target_language",
        "recognizer",
        "translator",
        "translate_model",
        "ollama_base_url",
        "synthesizer",
        "tts_model",
        "voice",
        "api_key",
    )
    _FLOAT_KEYS = ("crop_top", "crop_bottom", "max_margin_fraction")
    _INT_KEYS = ("chunk_size_chars", "renderer_dpi")
    _SUPPORTED_YAML_KEYS = frozenset(
        {"input_pdf", "output_dir", *_STRING_KEYS, *_FLOAT_KEYS, *_INT_KEYS}
    )
    _ENV_PREFIX = "PAGEVOICE_"
    _RUNTIME_ENV_KEYS = frozenset({"OPENAI_API_KEY"})

    @staticmethod
    def from_yaml(path: Path) -> PagevoiceConfig:
        """Create a validated config from a YAML file."""

        path_text = path.read_text(encoding="utf-8")
        payload = ConfigLoader._parse_yaml_payload(path_text, path)
        return ConfigLoader._build_config_from_mapping(payload, source_label=f"YAML `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> PagevoiceConfig:
        """Create a validated config from `PAGEVOICE_*` environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        payload: dict[str, Any] = {}
        for key in ConfigLoader._SUPPORTED_YAML_KEYS:
            env_key = f"{ConfigLoader._ENV_PREFIX}{key.upper()}"
            value = normalize_optional_string(env_map.get(env_key))
            if value is not None:
                payload[key] = value
        if "input_pdf" not in payload:
            raise ValueError(f"Environment variable `{ConfigLoader._ENV_PREFIX}INPUT_PDF` is required.")
        payload.setdefault("output_dir", "out")

        runtime_env = {
            key: value
            for key, value in env_map.items()
            if key in ConfigLoader._RUNTIME_ENV_KEYS
            and normalize_optional_string(value) is not None
        }
        config = ConfigLoader._build_config_from_mapping(payload, source_label="Environment")
        config.runtime_sources = RuntimeConfigSources(env=runtime_env)
        return config

    @staticmethod
    def _parse_yaml_payload(raw_text: str, path: Path) -> Mapping[str, Any]:
        """Parse YAML text and enforce a mapping root payload."""

        try:
            payload = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise ValueError(f"YAML config `{path}` could not be parsed: {exc}") from exc
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        return payload

    @staticmethod
    def _build_config_from_mapping(
        payload: Mapping[str, Any], source_label: str
    ) -> PagevoiceConfig:
        """Build a validated config from a normalized mapping payload."""

        ConfigLoader._validate_keys(payload, source_label)

        values: dict[str, Any] = {
            "input_pdf": ConfigLoader._required_path(payload, "input_pdf", source_label),
            "output_dir": ConfigLoader._required_path(payload, "output_dir", source_label),
        }
        for key in ConfigLoader._STRING_KEYS:
            value = ConfigLoader._optional_non_empty_string(payload, key)
            if value is not None:
                values[key] = value
        for key in ConfigLoader._FLOAT_KEYS:
            value = ConfigLoader._optional_non_negative_float(payload, key, source_label)
            if value is not None:
                values[key] = value
        for key in ConfigLoader._INT_KEYS:
            value = ConfigLoader._optional_positive_int(payload, key, source_label)
            if value is not None:
                values[key] = value

        config = PagevoiceConfig(**values)
        config.validate()
        return config

    @staticmethod
    def _validate_keys(payload: Mapping[str, Any], source_label: str) -> None:
        """Validate supported and required keys."""

        unknown = sorted(str(key) for key in set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS))
        if unknown:
            key_list = ", ".join(unknown)
            raise ValueError(f"{source_label} includes unsupported key(s): {key_list}.")

        missing = sorted(key for key in ConfigLoader._REQUIRED_YAML_KEYS if key not in payload)
        if missing:
            key_list = ", ".join(missing)
            raise ValueError(f"{source_label} is missing required key(s): {key_list}.")

    @staticmethod
    def _required_path(payload: Mapping[str, Any], key: str, source_label: str) -> Path:
        """Read a required non-empty path-like field from a payload."""

        value = ConfigLoader._optional_non_empty_string(payload, key)
        if value is None:
            raise ValueError(f"{source_label} requires non-empty `{key}`.")
        return Path(value)

    @staticmethod
    def _optional_non_empty_string(payload: Mapping[str, Any], key: str) -> str | None:
        """Read an optional string field and normalize blank values to `None`."""

        if key not in payload:
            return None
        return normalize_optional_string(payload[key])

    @staticmethod
    def _optional_non_negative_float(
        payload: Mapping[str, Any], key: str, source_label: str
    ) -> float | None:
        """Read an optional finite, non-negative number."""

        if key not in payload or normalize_optional_string(payload[key]) is None:
            return None
        try:
            return parse_non_negative_float(payload[key], key)
        except ValueError as exc:
            raise ValueError(f"{source_label} field {exc}") from exc

    @staticmethod
    def _optional_positive_int(
        payload: Mapping[str, Any], key: str, source_label: str
    ) -> int | None:
        """Read and validate a positive integer payload field."""

        if key not in payload:
            return None

        raw_value = payload[key]
        if isinstance(raw_value, bool):
            raise ValueError(f"{source_label} field `{key}` must be a positive integer.")
        if isinstance(raw_value, int):
            parsed = raw_value
        else:
            normalized = normalize_optional_string(raw_value)
            if normalized is None:
                return None
            try:
                parsed = int(normalized)
            except ValueError as exc:
                raise ValueError(
                    f"{source_label} field `{key}` must be a positive integer."
                ) from exc

        if parsed <= 0:
            raise ValueError(f"{source_label} field `{key}` must be a positive integer.")
        return parsed

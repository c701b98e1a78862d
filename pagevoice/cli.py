"""Command-line interface for pagevoice.

Responsibilities:
- Expose user-facing commands for building, inspecting and configuring runs.
- Convert CLI arguments into `PagevoiceConfig` and execute the builder.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

from dataclasses import replace
import os
from pathlib import Path
from typing import Annotated

import typer

from .builder import AudiobookBuilder
from .cli_rendering import (
    echo_language_table,
    echo_page_inspection,
    echo_progress,
    exit_with_command_error,
)
from .config import ConfigLoader, PagevoiceConfig, RuntimeConfigSources
from .credentials import create_credential_store
from .errors import PipelineStageError
from .parsing import normalize_optional_string
from .telemetry.logger import RunLogger

app = typer.Typer(
    name="pagevoice",
    no_args_is_help=True,
    help="Convert PDF pages into a narrated WAV audiobook.",
)


def _load_yaml_config(config_path: Path | None) -> PagevoiceConfig | None:
    """Load a YAML config file when requested and map failures to stage errors."""

    if config_path is None:
        return None

    try:
        return ConfigLoader.from_yaml(config_path)
    except FileNotFoundError as exc:
        raise PipelineStageError(
            f"Config file not found: `{config_path}`.",
            stage="config",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise PipelineStageError(
            f"Invalid config file `{config_path}`: {exc}",
            stage="config",
            hint="Fix config schema/values and rerun.",
        ) from exc
    except OSError as exc:
        raise PipelineStageError(
            f"Failed to load config file `{config_path}`: {exc}",
            stage="config",
            hint="Verify file permissions.",
        ) from exc


def _resolve_command_config(
    config_file: Path | None,
    input_pdf: Path | None,
    overrides: dict[str, object],
) -> PagevoiceConfig:
    """Resolve effective command config from YAML defaults and explicit CLI overrides."""

    loaded_config = _load_yaml_config(config_file)
    if loaded_config is None:
        if input_pdf is None:
            raise PipelineStageError(
                "Input PDF path is required when `--config` is not provided.",
                stage="config",
                hint="Pass `<input.pdf>` or use `--config <path.yaml>` with `input_pdf`.",
            )
        loaded_config = PagevoiceConfig(input_pdf=input_pdf)
    elif input_pdf is not None:
        loaded_config = replace(loaded_config, input_pdf=input_pdf)

    explicit = {key: value for key, value in overrides.items() if value is not None}
    config = replace(loaded_config, **explicit)
    try:
        config.validate()
    except ValueError as exc:
        raise PipelineStageError(str(exc), stage="config") from exc
    return config


def _attach_runtime_sources(config: PagevoiceConfig, api_key: str | None) -> PagevoiceConfig:
    """Attach CLI, keyring and environment sources used to resolve the API key."""

    runtime_cli_values: dict[str, str] = {}
    normalized_key = normalize_optional_string(api_key)
    if normalized_key is not None:
        runtime_cli_values["api_key"] = normalized_key

    runtime_secure_values: dict[str, str] = {}
    if config.synthesizer == "openai" and normalized_key is None:
        stored_api_key = create_credential_store().get_api_key()
        if stored_api_key is not None:
            runtime_secure_values["api_key"] = stored_api_key

    return replace(
        config,
        runtime_sources=RuntimeConfigSources(
            cli=runtime_cli_values,
            secure=runtime_secure_values,
            env=os.environ,
        ),
    )


@app.command("build")
def build_command(
    input_pdf: Annotated[
        Path | None,
        typer.Argument(help="Path to source PDF. Required unless provided by `--config`."),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to YAML config file with command defaults."),
    ] = None,
    out: Annotated[
        Path | None,
        typer.Option("--out", help="Output directory (overrides config file value)."),
    ] = None,
    output_name: Annotated[
        str | None,
        typer.Option("--output-name", help="Output WAV file name."),
    ] = None,
    pages: Annotated[
        str | None,
        typer.Option("--pages", help="1-based inclusive page range: `5` or `3-10`."),
    ] = None,
    crop_top: Annotated[
        float | None,
        typer.Option("--crop-top", min=0.0, help="Header margin in page points."),
    ] = None,
    crop_bottom: Annotated[
        float | None,
        typer.Option("--crop-bottom", min=0.0, help="Footer margin in page points."),
    ] = None,
    source_language: Annotated[
        str | None,
        typer.Option("--source-language", help="Language of the document text."),
    ] = None,
    target_language: Annotated[
        str | None,
        typer.Option("--target-language", help="Narration language."),
    ] = None,
    recognizer: Annotated[
        str | None,
        typer.Option("--recognizer", help="`text-layer` or `tesseract`."),
    ] = None,
    synthesizer: Annotated[
        str | None,
        typer.Option("--synthesizer", help="`kokoro` or `openai`."),
    ] = None,
    voice: Annotated[
        str | None,
        typer.Option("--voice", help="Voice id override."),
    ] = None,
    chunk_size: Annotated[
        int | None,
        typer.Option("--chunk-size", min=1, help="Maximum chunk length in characters."),
    ] = None,
    api_key: Annotated[
        str | None,
        typer.Option("--api-key", help="OpenAI API key override for the `openai` synthesizer."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Log per-page and per-chunk progress events."),
    ] = False,
) -> None:
    """Run the full pipeline and write the audiobook WAV file."""

    try:
        config = _resolve_command_config(
            config_file=config_file,
            input_pdf=input_pdf,
            overrides={
                "output_dir": out,
                "output_name": output_name,
                "page_range": pages,
                "crop_top": crop_top,
                "crop_bottom": crop_bottom,
                "source_language": source_language,
                "target_language": target_language,
                "recognizer": recognizer,
                "synthesizer": synthesizer,
                "voice": voice,
                "chunk_size_chars": chunk_size,
            },
        )
        config = _attach_runtime_sources(config, api_key)
        builder = AudiobookBuilder(run_logger=RunLogger(level="DEBUG" if verbose else "INFO"))
        result = builder.build(config, on_progress=echo_progress)
    except Exception as exc:
        exit_with_command_error("build", exc)

    audio = result.audio
    typer.echo(f"Chunks: {len(result.chunks)}")
    if audio is not None:
        typer.echo(f"Duration: {audio.duration_seconds:.2f}s at {audio.sample_rate} Hz")
    typer.echo(f"Audiobook: {result.output_path}")


@app.command("inspect")
def inspect_command(
    input_pdf: Annotated[Path, typer.Argument(help="Path to source PDF.")],
    page: Annotated[
        int | None,
        typer.Option("--page", min=1, help="Page to inspect (defaults to the first page)."),
    ] = None,
    crop_top: Annotated[
        float | None,
        typer.Option("--crop-top", min=0.0, help="Header margin in page points."),
    ] = None,
    crop_bottom: Annotated[
        float | None,
        typer.Option("--crop-bottom", min=0.0, help="Footer margin in page points."),
    ] = None,
) -> None:
    """Show page geometry and the effect of crop margins."""

    try:
        config = PagevoiceConfig(input_pdf=input_pdf, crop_top=crop_top, crop_bottom=crop_bottom)
        inspection = AudiobookBuilder().inspect(config, page_number=page)
    except Exception as exc:
        exit_with_command_error("inspect", exc)

    echo_page_inspection(inspection)


@app.command("languages")
def languages_command() -> None:
    """List supported languages with their speech and OCR codes."""

    echo_language_table()


@app.command("credentials")
def credentials_command(
    set_api_key: Annotated[
        bool,
        typer.Option(
            "--set-api-key",
            help="Prompt for API key with hidden input and store it securely.",
        ),
    ] = False,
    clear_api_key: Annotated[
        bool,
        typer.Option(
            "--clear-api-key",
            help="Clear stored API key from secure credential storage.",
        ),
    ] = False,
) -> None:
    """Manage securely stored CLI credentials."""

    if set_api_key and clear_api_key:
        exit_with_command_error(
            "credentials",
            PipelineStageError(
                "`--set-api-key` and `--clear-api-key` cannot be used together.",
                stage="credentials",
                hint="Run one credentials action per command invocation.",
            ),
        )

    credential_store = create_credential_store()
    if set_api_key:
        prompted_api_key = normalize_optional_string(
            typer.prompt(
                "OpenAI API key (hidden input)",
                default="",
                hide_input=True,
                show_default=False,
            )
        )
        if prompted_api_key is None:
            exit_with_command_error(
                "credentials",
                PipelineStageError(
                    "No API key entered.",
                    stage="credentials",
                    hint="Provide a non-empty API key when using `--set-api-key`.",
                ),
            )
        try:
            credential_store.set_api_key(prompted_api_key)
        except (RuntimeError, ValueError) as exc:
            exit_with_command_error(
                "credentials",
                PipelineStageError(
                    f"Failed to store API key securely: {exc}",
                    stage="credentials",
                    hint="Install and configure a keyring backend and retry.",
                ),
            )
        typer.echo("API key stored in secure credential storage.")
        return

    if clear_api_key:
        removed = credential_store.clear_api_key()
        if removed:
            typer.echo("Stored API key cleared from secure credential storage.")
        else:
            typer.echo("No stored API key found in secure credential storage.")
        return

    availability = "available" if credential_store.is_available() else "unavailable"
    has_stored_key = credential_store.get_api_key() is not None
    status = "present" if has_stored_key else "not set"
    typer.echo(f"Secure credential storage: {availability}")
    typer.echo(f"Stored OpenAI API key: {status}")


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()

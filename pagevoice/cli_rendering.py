"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
pipeline progress lines, page inspection summaries, and the language table.
"""

from __future__ import annotations

from typing import NoReturn

import typer

from .builder import PageInspection
from .errors import PagevoiceError, PipelineStageError
from .languages import SupportedLanguage
from .models.datatypes import PipelineStage, ProgressEvent


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, PipelineStageError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    if isinstance(exc, PagevoiceError) and exc.hint:
        typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    raise typer.Exit(code=1) from exc


def echo_progress(event: ProgressEvent) -> None:
    """Print one deterministic progress line for a pipeline event."""

    line = (
        f"[progress] {event.percent_complete:5.1f}% "
        f"stage={event.stage.value} {event.message}"
    )
    if event.stage is PipelineStage.FAILED:
        typer.secho(line, fg=typer.colors.RED)
        return
    typer.echo(line)


def echo_page_inspection(inspection: PageInspection) -> None:
    """Print page geometry, effective crop margins and preview overlay offsets."""

    typer.echo(f"Pages: {inspection.page_count}")
    typer.echo(
        f"Page {inspection.page_number} size: "
        f"{inspection.width:g} x {inspection.height:g}"
    )
    typer.echo(
        f"Crop margins: top={inspection.margins.top:g} bottom={inspection.margins.bottom:g}"
    )
    typer.echo(f"Remaining text height: {inspection.remaining_height:g}")
    overlay = inspection.overlay
    typer.echo(
        f"Preview overlay (scale {overlay.scale_factor:.4f}): "
        f"top={overlay.top:.1f}px bottom={overlay.bottom:.1f}px"
    )


def echo_language_table() -> None:
    """Print supported languages with their speech and OCR codes."""

    typer.echo(f"{'Language':<12} {'Kokoro':<7} Tesseract")
    for language in SupportedLanguage:
        typer.echo(f"{language.value:<12} {language.kokoro_code:<7} {language.tesseract_code}")

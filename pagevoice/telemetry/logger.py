"""Structured run logging utilities.

Responsibilities:
- Emit concise, deterministic phase-level runtime logs through `loguru`.
- Keep payload text (page text, chunk text, audio) out of every log record.
"""

from __future__ import annotations

import sys
from typing import TextIO

from loguru import logger


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
    ]
    return " " + " ".join(tokens)


class RunLogger:
    """Emit deterministic phase logs for CLI-observable pipeline activity."""

    def __init__(self, sink: TextIO | None = None, level: str = "INFO") -> None:
        """Initialize logger sink and configure deterministic formatting."""

        self._sink = sink or sys.stderr
        logger.remove()
        logger.add(self._sink, format="{message}", level=level, colorize=False)

    def _emit(self, level: str, event: str, stage: str, **context: object) -> None:
        """Emit one structured runtime log line."""

        line = f"[phase] level={level} stage={stage} event={event}{_format_context(context)}"
        logger.log(level, line)

    def log_stage_start(self, stage: str) -> None:
        """Emit a stage-start runtime event."""

        self._emit("INFO", "start", stage)

    def log_stage_complete(self, stage: str, **context: object) -> None:
        """Emit a stage-complete runtime event."""

        self._emit("INFO", "complete", stage, **context)

    def log_stage_failure(self, stage: str, error_type: str) -> None:
        """Emit a stage-failure runtime event without sensitive payload details."""

        self._emit("ERROR", "failure", stage, error_type=error_type)

    def log_unit_progress(self, stage: str, done: int, total: int) -> None:
        """Emit a per-page or per-chunk progress event at debug level."""

        self._emit("DEBUG", "progress", stage, done=done, total=total)

    def log_page_dropped(self, page_number: int, page_count: int) -> None:
        """Emit a warning for a requested page beyond the document end."""

        self._emit("WARNING", "page_dropped", "extracting_pages", page=page_number, page_count=page_count)

    def log_callback_failure(self, stage: str, error_type: str) -> None:
        """Emit a warning for a progress callback that raised."""

        self._emit("WARNING", "callback_failure", stage, error_type=error_type)

    def log_run_result(self, outcome: str, **context: object) -> None:
        """Emit the terminal outcome of one request."""

        level = "INFO" if outcome == "complete" else "ERROR"
        self._emit(level, outcome, "pipeline", **context)

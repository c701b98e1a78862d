"""External tool lookup and invocation helpers.

Responsibilities:
- Resolve Poppler/Tesseract executables, preferring copies bundled next to the app.
- Run a tool and convert missing-binary and non-zero-exit outcomes into one error type.
"""

from __future__ import annotations

from pathlib import Path
import shutil
import subprocess
import sys


class ExternalToolError(RuntimeError):
    """Raised when an external command is missing or exits unsuccessfully."""

    def __init__(self, message: str, *, missing: bool = False) -> None:
        """Initialize the error with a flag telling whether the binary was absent."""

        super().__init__(message)
        self.missing = missing


def resolve_executable(command_name: str) -> str:
    """Resolve an executable from `<app>/bin`, then `PATH`, else return the bare name."""

    normalized = command_name.strip()
    if not normalized:
        return command_name

    bin_dir = _app_root() / "bin"
    for name in (normalized, f"{normalized}.exe"):
        candidate = bin_dir / name
        if candidate.is_file():
            return str(candidate)

    return shutil.which(normalized) or normalized


def run_tool(arguments: list[str], *, text: bool = True) -> subprocess.CompletedProcess:
    """Run a resolved tool and return the completed process.

    Raises:
        ExternalToolError: If the binary is missing or the command fails.
    """

    tool = arguments[0]
    command = [resolve_executable(tool), *arguments[1:]]
    try:
        result = subprocess.run(command, check=False, capture_output=True, text=text)
    except FileNotFoundError as exc:
        raise ExternalToolError(
            f"The `{tool}` command is required but was not found.", missing=True
        ) from exc

    if result.returncode != 0:
        stderr = result.stderr if text else result.stderr.decode("utf-8", errors="replace")
        details = stderr.strip() or "unknown error"
        raise ExternalToolError(f"{tool} failed: {details}")
    return result


def _app_root() -> Path:
    """Resolve the application root for frozen and source layouts."""

    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[1]

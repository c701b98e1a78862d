"""Shared parsing helpers for config, env and CLI value normalization."""

from __future__ import annotations

import math
import re

_PAGE_RANGE_PATTERN = re.compile(r"^\s*(\d+)\s*(?:-\s*(\d+)\s*)?$")


def normalize_optional_string(value: object) -> str | None:
    """Normalize an optional value to a stripped non-empty string.

    Args:
        value: Arbitrary input value.

    Returns:
        Stripped string value, or `None` when the value is empty after trimming.
    """

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text


def parse_page_range(expression: str) -> tuple[int, int]:
    """Parse a 1-based inclusive page range expression.

    Accepted forms are `"N"` (a single page) and `"N-M"`.

    Raises:
        ValueError: If the expression is malformed, starts below 1, or is reversed.
    """

    match = _PAGE_RANGE_PATTERN.match(expression)
    if match is None:
        raise ValueError(
            f"Invalid page range `{expression}`; use `N` or `N-M` (for example `3-10`)."
        )
    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) is not None else start
    if start < 1:
        raise ValueError(f"Invalid page range `{expression}`; pages start at 1.")
    if start > end:
        raise ValueError(f"Invalid page range `{expression}`; start page is after end page.")
    return start, end


def parse_non_negative_float(value: object, field_name: str) -> float:
    """Parse a finite, non-negative float.

    Raises:
        ValueError: If the value is not numeric, negative, or not finite.
    """

    if isinstance(value, bool):
        raise ValueError(f"`{field_name}` must be a non-negative number.")
    try:
        parsed = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"`{field_name}` must be a non-negative number.") from exc
    if not math.isfinite(parsed) or parsed < 0:
        raise ValueError(f"`{field_name}` must be a non-negative number.")
    return parsed

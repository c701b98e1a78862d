"""Telemetry and observability helpers.

This package emits deterministic run events for CLI and test auditing.
"""

from .logger import RunLogger

__all__ = ["RunLogger"]

"""pagevoice pipeline package.

This package contains the stage orchestrator and its progress, telemetry and
stage execution helpers.
"""

from .orchestrator import StageOrchestrator
from .progress import STAGE_ANCHORS, ProgressTracker

__all__ = ["STAGE_ANCHORS", "ProgressTracker", "StageOrchestrator"]

"""Typed domain models used across pagevoice stages."""

from .datatypes import (
    AssembledAudio,
    AudiobookRequest,
    AudioSegment,
    CropMargins,
    PipelineResult,
    PipelineStage,
    ProcessedPage,
    ProgressEvent,
    TextChunk,
)

__all__ = [
    "AssembledAudio",
    "AudiobookRequest",
    "AudioSegment",
    "CropMargins",
    "PipelineResult",
    "PipelineStage",
    "ProcessedPage",
    "ProgressEvent",
    "TextChunk",
]

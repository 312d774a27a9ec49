"""Data models for segments, pipeline statistics, and configuration."""

from .config_models import PipelineConfig, PipelineTimings, TranscodeProfile
from .segment_models import PipelineStats, ProcessedSegment, ResolvedManifest, SegmentReference

__all__ = [
    "SegmentReference",
    "ResolvedManifest",
    "ProcessedSegment",
    "PipelineStats",
    "PipelineConfig",
    "PipelineTimings",
    "TranscodeProfile",
]

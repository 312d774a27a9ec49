"""Pydantic models that describe playlist segments and pipeline progress."""

from pydantic import BaseModel, ConfigDict


class SegmentReference(BaseModel):
    """A segment line from a leaf playlist, resolved to an absolute location."""

    model_config = ConfigDict(frozen=True)

    key: str
    location: str


class ResolvedManifest(BaseModel):
    """Leaf playlist text together with the URL it was fetched from."""

    content: str
    effective_url: str


class ProcessedSegment(BaseModel):
    """Transformed segment payload tagged with its production order."""

    sequence_index: int
    payload: bytes


class PipelineStats(BaseModel):
    """Progress counters shared by the producer and consumer loops."""

    currently_playing_index: int = -1
    currently_processing_index: int = -1
    buffer_size: int = 0
    total_segments_produced: int = 0
    playback_started: bool = False

    def snapshot(self) -> "PipelineStats":
        return self.model_copy()

"""Configuration models for the segment pipeline."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

DEFAULT_PROXY_URL = "/proxy?url="


class PipelineTimings(BaseModel):
    """Wait intervals (seconds) that bound how long each loop stays idle."""

    buffer_full_wait: float = 1.0
    busy_wait: float = 0.1
    empty_manifest_wait: float = 2.0
    cycle_wait: float = 0.1
    manifest_error_wait: float = 3.0
    warmup_poll: float = 0.1
    underrun_wait: float = 0.5
    priming_delay: float = 1.0


class TranscodeProfile(BaseModel):
    """ffmpeg output settings for the playable MPEG-TS stream."""

    container: str = "mpegts"
    video_codec: str = "mpeg1video"
    size: str = "640x360"
    video_bitrate: str = "600k"
    frame_rate: int = 25
    b_frames: int = 0
    quality: int = 5
    audio_codec: str = "mp2"
    audio_rate: int = 48000
    audio_channels: int = 2
    audio_bitrate: str = "96k"

    def output_args(self) -> List[str]:
        return [
            "-f", self.container,
            "-codec:v", self.video_codec,
            "-s", self.size,
            "-b:v", self.video_bitrate,
            "-r", str(self.frame_rate),
            "-bf", str(self.b_frames),
            "-q:v", str(self.quality),
            "-codec:a", self.audio_codec,
            "-ar", str(self.audio_rate),
            "-ac", str(self.audio_channels),
            "-b:a", self.audio_bitrate,
        ]


class PipelineConfig(BaseModel):
    """Recognized pipeline options with their defaults."""

    manifest_url: str
    min_buffer: int = Field(default=2, ge=1)
    max_buffer: int = Field(default=5, ge=1)
    segment_duration: int = Field(default=2000, gt=0, description="Pacing interval in milliseconds")
    proxy_url: str = DEFAULT_PROXY_URL
    proxy_origin: Optional[str] = Field(default=None, description="Origin a relative proxy_url is joined to")
    max_variant_depth: int = Field(default=8, ge=1)
    dedup_horizon: Optional[int] = Field(default=None, ge=1)
    timings: PipelineTimings = Field(default_factory=PipelineTimings)

    @model_validator(mode="after")
    def _check_buffer_bounds(self) -> "PipelineConfig":
        if self.max_buffer < self.min_buffer:
            raise ValueError("max_buffer must be at least min_buffer")
        return self

    @model_validator(mode="after")
    def _check_proxy_origin(self) -> "PipelineConfig":
        if self.proxy_url and "://" not in self.proxy_url and not self.proxy_origin:
            raise ValueError("a relative proxy_url needs proxy_origin (or use an empty proxy_url)")
        return self

    @property
    def segment_duration_seconds(self) -> float:
        return self.segment_duration / 1000.0

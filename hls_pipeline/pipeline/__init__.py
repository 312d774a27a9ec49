"""Producer/consumer segment pipeline."""

from .buffered_queue import BufferedQueue, BufferFullError
from .consumer import ConsumerLoop, ConsumerState
from .context import PipelineContext
from .controller import PipelineController
from .deduplicator import SegmentDeduplicator
from .events import SEGMENT_PLAYED, SEGMENT_READY, PipelineEvents
from .manifest_resolver import ManifestError, ManifestResolver, parse_segments, segment_key
from .producer import ProducerLoop, ProducerState
from .sinks import BaseSink, FileSink, NullSink
from .transformer import EngineInitError, FFmpegEngine, SegmentTransformer, TransformError

__all__ = [
    "BufferedQueue",
    "BufferFullError",
    "ConsumerLoop",
    "ConsumerState",
    "PipelineContext",
    "PipelineController",
    "SegmentDeduplicator",
    "PipelineEvents",
    "SEGMENT_READY",
    "SEGMENT_PLAYED",
    "ManifestError",
    "ManifestResolver",
    "parse_segments",
    "segment_key",
    "ProducerLoop",
    "ProducerState",
    "BaseSink",
    "FileSink",
    "NullSink",
    "EngineInitError",
    "FFmpegEngine",
    "SegmentTransformer",
    "TransformError",
]

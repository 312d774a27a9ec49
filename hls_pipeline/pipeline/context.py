"""Per-run state handed to the producer and consumer loops."""

from __future__ import annotations

import asyncio
from typing import Optional

from ..models import PipelineConfig, PipelineStats
from .buffered_queue import BufferedQueue
from .deduplicator import SegmentDeduplicator
from .events import PipelineEvents
from .sinks import BaseSink


class PipelineContext:
    """Owns the queue, stats record, and stop signal of one pipeline run.

    Stats fields have one writer each: the producer sets
    ``currently_processing_index`` and ``total_segments_produced``, the consumer sets
    ``currently_playing_index`` and ``playback_started``. ``buffer_size`` is refreshed
    by whichever side just changed the queue.
    """

    def __init__(self, config: PipelineConfig, events: Optional[PipelineEvents] = None) -> None:
        self.config = config
        self.timings = config.timings
        self.queue = BufferedQueue(config.max_buffer)
        self.stats = PipelineStats()
        self.events = events or PipelineEvents()
        self.deduplicator = SegmentDeduplicator()
        self.sink: Optional[BaseSink] = None
        self._stopped = asyncio.Event()

    @property
    def running(self) -> bool:
        return not self._stopped.is_set()

    def request_stop(self) -> None:
        self._stopped.set()

    def sync_buffer_size(self) -> None:
        self.stats.buffer_size = self.queue.size()

    async def wait(self, seconds: float) -> None:
        """Sleeps for ``seconds`` unless a stop is requested first."""

        if seconds <= 0 or not self.running:
            return
        try:
            await asyncio.wait_for(self._stopped.wait(), seconds)
        except asyncio.TimeoutError:
            pass

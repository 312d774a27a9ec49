"""Consumer loop: drains the buffered queue into the sink at playback pace."""

from __future__ import annotations

import enum
import logging

from .context import PipelineContext
from .events import SEGMENT_PLAYED


class ConsumerState(str, enum.Enum):
    WARMING_UP = "warming_up"
    PLAYING = "playing"
    BUFFER_EMPTY = "buffer_empty"
    STOPPED = "stopped"


class ConsumerLoop:
    """Emits buffered segments in order once the warm-up threshold is reached."""

    def __init__(self, context: PipelineContext) -> None:
        self._context = context
        self.state = ConsumerState.WARMING_UP
        self.emitted = 0

    async def run(self) -> None:
        context = self._context
        timings = context.timings
        min_buffer = context.config.min_buffer

        self.state = ConsumerState.WARMING_UP
        while context.running and context.queue.size() < min_buffer:
            await context.queue.wait_for_items(min_buffer, timings.warmup_poll)

        if context.running:
            logging.info("Starting playback (buffer: %s)", context.queue.size())

        while context.running:
            if context.queue.size() < 1:
                if self.state is not ConsumerState.BUFFER_EMPTY:
                    logging.warning("Buffer empty, waiting...")
                self.state = ConsumerState.BUFFER_EMPTY
                await context.wait(timings.underrun_wait)
                continue

            sink = context.sink
            if sink is None:
                # Nothing to play into; leave segments buffered for backpressure.
                await context.wait(timings.underrun_wait)
                continue

            self.state = ConsumerState.PLAYING
            segment = context.queue.pop()
            stats = context.stats
            stats.currently_playing_index = segment.sequence_index
            context.sync_buffer_size()

            try:
                sink.write(segment.payload)
            except Exception as exc:
                logging.error("Sink write failed for #%s: %s", segment.sequence_index, exc)
                await context.wait(context.config.segment_duration_seconds)
                continue
            self.emitted += 1

            if not stats.playback_started:
                stats.playback_started = True
                logging.info("First segment playing (#%s)", segment.sequence_index)
                await context.wait(timings.priming_delay)
            else:
                logging.info("Playing #%s (buffer: %s)", segment.sequence_index, context.queue.size())
                await context.wait(context.config.segment_duration_seconds)

            if not context.running:
                break
            await context.events.emit(SEGMENT_PLAYED, stats)

        self.state = ConsumerState.STOPPED

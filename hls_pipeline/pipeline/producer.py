"""Producer loop: discovers, downloads, and transforms one new segment per cycle."""

from __future__ import annotations

import enum
import logging
from typing import Optional

from ..models import ProcessedSegment, SegmentReference
from ..utils.http_client import HttpClient
from .context import PipelineContext
from .events import SEGMENT_READY
from .manifest_resolver import ManifestResolver, parse_segments
from .transformer import SegmentTransformer


class ProducerState(str, enum.Enum):
    IDLE = "idle"
    RESOLVING_MANIFEST = "resolving_manifest"
    SELECTING_SEGMENT = "selecting_segment"
    DOWNLOADING = "downloading"
    TRANSFORMING = "transforming"
    ENQUEUING = "enqueuing"
    BUFFER_FULL = "buffer_full"
    ERROR_BACKOFF = "error_backoff"
    STOPPED = "stopped"


class ProducerLoop:
    """Feeds the buffered queue in manifest order, at most one transform at a time."""

    def __init__(
        self,
        context: PipelineContext,
        resolver: ManifestResolver,
        http_client: HttpClient,
        transformer: SegmentTransformer,
    ) -> None:
        self._context = context
        self._resolver = resolver
        self._http_client = http_client
        self._transformer = transformer
        self.state = ProducerState.IDLE
        self.next_index = 0
        self._transform_in_flight = False

    def _enter(self, state: ProducerState) -> None:
        if state is not self.state:
            logging.debug("Producer %s -> %s", self.state.value, state.value)
        self.state = state

    async def run(self) -> None:
        context = self._context
        timings = context.timings
        while context.running:
            self._enter(ProducerState.IDLE)
            if context.queue.is_full():
                self._enter(ProducerState.BUFFER_FULL)
                logging.debug("Buffer full (%s), waiting...", context.queue.size())
                await context.queue.wait_for_space(timings.buffer_full_wait)
                continue

            if self._transform_in_flight:
                await context.wait(timings.busy_wait)
                continue

            try:
                self._enter(ProducerState.RESOLVING_MANIFEST)
                resolved = await self._resolver.resolve(context.config.manifest_url)
                segments = parse_segments(resolved.content, resolved.effective_url)
            except Exception as exc:
                logging.error("Manifest resolution failed: %s", exc)
                self._enter(ProducerState.ERROR_BACKOFF)
                await context.wait(timings.manifest_error_wait)
                continue

            if not context.running:
                break
            if not segments:
                logging.info("Playlist %s has no segments yet", resolved.effective_url)
                await context.wait(timings.empty_manifest_wait)
                continue

            self._enter(ProducerState.SELECTING_SEGMENT)
            segment = self._select(segments)
            if segment is not None:
                await self._process(segment)

            await context.wait(timings.cycle_wait)

        self._enter(ProducerState.STOPPED)

    def _select(self, segments: list[SegmentReference]) -> Optional[SegmentReference]:
        deduplicator = self._context.deduplicator
        for segment in segments:
            if not deduplicator.has_seen(segment.key):
                deduplicator.mark_seen(segment.key, self.next_index)
                return segment
        return None

    async def _process(self, segment: SegmentReference) -> None:
        context = self._context
        stats = context.stats
        index = self.next_index
        self.next_index += 1

        self._transform_in_flight = True
        stats.currently_processing_index = index
        try:
            self._enter(ProducerState.DOWNLOADING)
            logging.info("Downloading #%s (%s)", index, segment.key)
            raw = await self._http_client.fetch_binary(segment.location)

            self._enter(ProducerState.TRANSFORMING)
            logging.info("Converting #%s", index)
            payload = await self._transformer.transform(raw, index)
            if payload is None:
                logging.warning("Skipping segment #%s after failed conversion", index)
                return
            if not context.running:
                return

            self._enter(ProducerState.ENQUEUING)
            context.queue.push(ProcessedSegment(sequence_index=index, payload=payload))
            context.sync_buffer_size()
            stats.total_segments_produced += 1
            logging.info("Segment #%s ready (buffer: %s)", index, context.queue.size())
            await context.events.emit(SEGMENT_READY, stats)
        except Exception as exc:
            logging.error("Error processing #%s: %s", index, exc)
        finally:
            self._transform_in_flight = False
            stats.currently_processing_index = -1
            self._evict_stale_keys()

    def _evict_stale_keys(self) -> None:
        horizon = self._context.config.dedup_horizon
        if horizon is None:
            return
        playing = self._context.stats.currently_playing_index
        if playing < 0:
            return
        evicted = self._context.deduplicator.evict_before(playing - horizon)
        if evicted:
            logging.debug("Evicted %s stale segment keys", evicted)

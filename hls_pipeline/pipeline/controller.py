"""Lifecycle owner for one producer/consumer pipeline run."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from ..models import PipelineConfig, PipelineStats
from ..utils.http_client import HttpClient
from .consumer import ConsumerLoop
from .context import PipelineContext
from .events import SEGMENT_PLAYED, SEGMENT_READY, Handler, PipelineEvents
from .manifest_resolver import ManifestResolver
from .producer import ProducerLoop
from .sinks import BaseSink
from .transformer import SegmentTransformer, TransformEngine


class PipelineController:
    """Starts and stops the producer and consumer loops around a shared queue."""

    def __init__(
        self,
        config: PipelineConfig,
        engine: TransformEngine,
        http_client: Optional[HttpClient] = None,
        on_segment_ready: Optional[Handler] = None,
        on_segment_played: Optional[Handler] = None,
    ) -> None:
        self.config = config
        self.http_client = http_client or HttpClient(proxy_url=config.proxy_url, origin=config.proxy_origin)
        self.resolver = ManifestResolver(self.http_client, max_depth=config.max_variant_depth)
        self.transformer = SegmentTransformer(engine)
        self.events = PipelineEvents()
        if on_segment_ready:
            self.events.subscribe(SEGMENT_READY, on_segment_ready)
        if on_segment_played:
            self.events.subscribe(SEGMENT_PLAYED, on_segment_played)

        self.context: Optional[PipelineContext] = None
        self.producer: Optional[ProducerLoop] = None
        self.consumer: Optional[ConsumerLoop] = None
        self._sink: Optional[BaseSink] = None
        self._tasks: List[asyncio.Task] = []

        logging.info(
            "Pipeline configured: min_buffer=%s max_buffer=%s segment_duration=%sms",
            config.min_buffer,
            config.max_buffer,
            config.segment_duration,
        )

    @property
    def is_running(self) -> bool:
        return self.context is not None and self.context.running

    def connect(self, sink: BaseSink) -> None:
        self._sink = sink
        if self.context is not None:
            self.context.sink = sink

    def subscribe(self, name: str, handler: Handler):
        return self.events.subscribe(name, handler)

    async def start(self) -> None:
        """Initializes the codec engine, then launches both loops.

        Raises whatever the engine raised if it cannot be initialized; in that case
        neither loop is started.
        """

        if self.is_running:
            return

        # Set before the engine await; start() and stop() both check it.
        context = PipelineContext(self.config, events=self.events)
        context.sink = self._sink
        self.context = context

        logging.info("Starting pipeline for %s", self.config.manifest_url)
        try:
            await self.transformer.initialize()
        except Exception:
            context.request_stop()
            raise
        if not context.running:
            logging.info("Pipeline stopped during start-up")
            return
        logging.info("Transform engine ready")

        self.producer = ProducerLoop(context, self.resolver, self.http_client, self.transformer)
        self.consumer = ConsumerLoop(context)
        self._tasks = [
            asyncio.create_task(self.producer.run(), name="segment-producer"),
            asyncio.create_task(self.consumer.run(), name="segment-consumer"),
        ]

    def stop(self) -> None:
        if self.context is None:
            return
        logging.info("Stopping pipeline...")
        self.context.request_stop()
        self.context.sink = None
        self._sink = None
        self.context.queue.clear()
        self.context.sync_buffer_size()

    destroy = stop

    async def wait_stopped(self, timeout: Optional[float] = None) -> bool:
        """Waits for both loops to exit.

        Returns ``False`` if they are still running after ``timeout`` seconds; the
        loops are never cancelled here, only :meth:`stop` ends them.
        """

        if not self._tasks:
            return True
        done, pending = await asyncio.wait(self._tasks, timeout=timeout)
        if pending:
            return False
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logging.error("%s exited with %r", task.get_name(), task.exception())
        self._tasks = []
        return True

    def get_stats(self) -> PipelineStats:
        if self.context is None:
            return PipelineStats()
        return self.context.stats.snapshot()

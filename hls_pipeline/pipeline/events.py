"""Subscription interface for pipeline progress notifications."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Dict, List

from ..models import PipelineStats

SEGMENT_READY = "segment_ready"
SEGMENT_PLAYED = "segment_played"
EVENT_NAMES = (SEGMENT_READY, SEGMENT_PLAYED)

Handler = Callable[[PipelineStats], Any]


class PipelineEvents:
    """Dispatches stats snapshots to handlers subscribed by event name."""

    def __init__(self) -> None:
        self._handlers: Dict[str, List[Handler]] = {name: [] for name in EVENT_NAMES}

    def subscribe(self, name: str, handler: Handler) -> Callable[[], None]:
        """Registers ``handler`` and returns a callable that removes it again."""

        if name not in self._handlers:
            raise ValueError(f"Unknown pipeline event: {name}")
        self._handlers[name].append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers[name]:
                self._handlers[name].remove(handler)

        return unsubscribe

    async def emit(self, name: str, stats: PipelineStats) -> None:
        for handler in list(self._handlers[name]):
            try:
                result = handler(stats.snapshot())
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logging.exception("Handler for %s failed", name)

"""Bounded FIFO of transformed segments shared by the producer and consumer."""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Callable, Deque, Optional

from ..models import ProcessedSegment


class BufferFullError(Exception):
    """Raised when pushing into a queue that already holds ``max_buffer`` segments."""


class BufferedQueue:
    """Order-preserving segment buffer with occupancy-based waits.

    Both loops run on one event loop, so the deque is never touched concurrently.
    Waiters are woken whenever occupancy changes; ``timeout`` bounds every wait.
    """

    def __init__(self, max_buffer: int) -> None:
        if max_buffer < 1:
            raise ValueError("max_buffer must be positive")
        self.max_buffer = max_buffer
        self._items: Deque[ProcessedSegment] = deque()
        self._last_index: Optional[int] = None
        self._changed = asyncio.Event()

    def push(self, segment: ProcessedSegment) -> None:
        if self.is_full():
            raise BufferFullError(f"buffer already holds {len(self._items)} segments")
        if self._last_index is not None and segment.sequence_index <= self._last_index:
            raise ValueError(
                f"segment #{segment.sequence_index} pushed after #{self._last_index}"
            )
        self._items.append(segment)
        self._last_index = segment.sequence_index
        self._notify()

    def pop(self) -> Optional[ProcessedSegment]:
        if not self._items:
            return None
        segment = self._items.popleft()
        self._notify()
        return segment

    def size(self) -> int:
        return len(self._items)

    def is_full(self) -> bool:
        return len(self._items) >= self.max_buffer

    def clear(self) -> None:
        self._items.clear()
        self._notify()

    async def wait_for_space(self, timeout: float) -> bool:
        """Waits until a push would be accepted; ``False`` on timeout."""

        return await self._wait_until(lambda: not self.is_full(), timeout)

    async def wait_for_items(self, count: int, timeout: float) -> bool:
        """Waits until at least ``count`` segments are buffered; ``False`` on timeout."""

        return await self._wait_until(lambda: len(self._items) >= count, timeout)

    async def _wait_until(self, predicate: Callable[[], bool], timeout: float) -> bool:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            remaining = deadline - loop.time()
            if remaining <= 0:
                return False
            changed = self._changed
            try:
                await asyncio.wait_for(changed.wait(), remaining)
            except asyncio.TimeoutError:
                return predicate()
        return True

    def _notify(self) -> None:
        # Waiters hold the old event; swapping keeps later waits blocking.
        self._changed.set()
        self._changed = asyncio.Event()

    def __len__(self) -> int:
        return len(self._items)

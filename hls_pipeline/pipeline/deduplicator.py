"""In-memory record of segment keys already scheduled during one run."""

from __future__ import annotations

from typing import Dict, Optional


class SegmentDeduplicator:
    """Tracks scheduled segment keys so each one is processed at most once."""

    def __init__(self) -> None:
        self._seen: Dict[str, Optional[int]] = {}

    def has_seen(self, key: str) -> bool:
        return key in self._seen

    def mark_seen(self, key: str, sequence_index: Optional[int] = None) -> None:
        if key in self._seen and self._seen[key] is not None:
            return
        self._seen[key] = sequence_index

    def evict_before(self, sequence_index: int) -> int:
        """Forgets keys scheduled with an index lower than ``sequence_index``.

        Keys marked without an index are kept. Returns the number of evicted keys.
        """

        stale = [
            key
            for key, index in self._seen.items()
            if index is not None and index < sequence_index
        ]
        for key in stale:
            del self._seen[key]
        return len(stale)

    def clear(self) -> None:
        self._seen.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._seen

    def __len__(self) -> int:
        return len(self._seen)

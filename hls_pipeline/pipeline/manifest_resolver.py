"""Follows master playlists down to a leaf playlist and extracts its segments."""

from __future__ import annotations

import logging
from typing import List, Optional, Set
from urllib.parse import urljoin, urlsplit

from ..models import ResolvedManifest, SegmentReference
from ..utils.http_client import HttpClient

VARIANT_MARKER = "#EXT-X-STREAM-INF"


class ManifestError(Exception):
    """Raised when a playlist chain cannot be resolved to a usable leaf playlist."""


def _playlist_lines(content: str) -> List[str]:
    lines = []
    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        lines.append(line)
    return lines


def segment_key(location: str) -> str:
    """Stable dedup identity: last path component without the query string."""

    path = urlsplit(location).path
    return path.rsplit("/", 1)[-1]


def parse_segments(content: str, base_url: str) -> List[SegmentReference]:
    """Returns one reference per non-comment line, in playlist order."""

    segments = []
    for line in _playlist_lines(content):
        location = urljoin(base_url, line)
        segments.append(SegmentReference(key=segment_key(location), location=location))
    return segments


class ManifestResolver:
    """Fetches a playlist URL, descending into the first variant of master playlists."""

    def __init__(self, http_client: HttpClient, max_depth: int = 8) -> None:
        self._http_client = http_client
        self.max_depth = max_depth

    async def resolve(self, url: str) -> ResolvedManifest:
        visited: Set[str] = set()
        current = url
        while True:
            self._enter(current, visited)
            content = await self._http_client.fetch_text_async(current)
            variant_url = self._select_variant(content, current)
            if variant_url is None:
                return ResolvedManifest(content=content, effective_url=current)
            current = variant_url

    def resolve_blocking(self, url: str) -> ResolvedManifest:
        """Synchronous variant of :meth:`resolve` for one-off previews."""

        visited: Set[str] = set()
        current = url
        while True:
            self._enter(current, visited)
            content = self._http_client.fetch_text(current)
            variant_url = self._select_variant(content, current)
            if variant_url is None:
                return ResolvedManifest(content=content, effective_url=current)
            current = variant_url

    def _enter(self, url: str, visited: Set[str]) -> None:
        if url in visited:
            raise ManifestError(f"Playlist chain loops back to {url}")
        if len(visited) >= self.max_depth:
            raise ManifestError(f"Playlist chain deeper than {self.max_depth} levels at {url}")
        visited.add(url)

    def _select_variant(self, content: str, url: str) -> Optional[str]:
        if VARIANT_MARKER not in content:
            return None
        logging.info("Master playlist detected at %s", url)
        lines = _playlist_lines(content)
        if not lines:
            raise ManifestError(f"Master playlist {url} lists no variant streams")
        return urljoin(url, lines[0])

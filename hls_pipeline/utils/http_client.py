"""HTTP transport for playlists and segments, routed through an optional proxy."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional
from urllib.parse import quote, urljoin

import aiohttp
import requests

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_HEADERS: Dict[str, str] = {
    "user-agent": USER_AGENT,
    "accept": "*/*",
}


class FetchError(Exception):
    """Raised when the transport answers with a non-success status."""

    def __init__(self, url: str, status: int) -> None:
        super().__init__(f"Fetch failed: {status} ({url})")
        self.url = url
        self.status = status


class HttpClient:
    """Fetches playlists (text) and segments (bytes) through the configured proxy."""

    def __init__(self, proxy_url: str = "", origin: Optional[str] = None, timeout: int = 10) -> None:
        self.proxy_url = proxy_url or ""
        self.origin = origin
        self.timeout = timeout
        self._session = requests.Session()
        self._session.headers.update(DEFAULT_HEADERS)

        self._async_session: Optional[aiohttp.ClientSession] = None
        self._async_lock: Optional[asyncio.Lock] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def proxied(self, url: str) -> str:
        """Returns the address actually requested for ``url``."""

        if not self.proxy_url:
            return url
        target = self.proxy_url + quote(url, safe="")
        if self.origin and "://" not in self.proxy_url:
            target = urljoin(self.origin, target)
        return target

    def fetch_text(self, url: str) -> str:
        """Blocking fetch of a text resource (e.g., m3u8)."""

        target = self.proxied(url)
        try:
            response = self._session.get(target, timeout=self.timeout)
        except requests.RequestException as exc:  # pragma: no cover - network errors
            logging.error("Text download from %s failed: %s", url, exc)
            raise
        if not response.ok:
            raise FetchError(url, response.status_code)
        return response.text

    async def fetch_text_async(self, url: str) -> str:
        session = await self._get_async_session()
        async with session.get(self.proxied(url)) as resp:
            if resp.status >= 400:
                raise FetchError(url, resp.status)
            return await resp.text()

    async def fetch_binary(self, url: str) -> bytes:
        """Download a whole segment into memory."""

        session = await self._get_async_session()
        async with session.get(self.proxied(url)) as resp:
            if resp.status >= 400:
                raise FetchError(url, resp.status)
            return await resp.read()

    async def _get_async_session(self) -> aiohttp.ClientSession:
        current_loop = asyncio.get_running_loop()
        if self._async_session:
            if (
                self._async_session.closed
                or not self._loop
                or self._loop.is_closed()
                or self._loop is not current_loop
            ):
                await self.aclose()

        if self._async_lock is None:
            self._async_lock = asyncio.Lock()

        async with self._async_lock:
            if self._async_session and not self._async_session.closed:
                return self._async_session
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self._async_session = aiohttp.ClientSession(
                timeout=timeout,
                headers=DEFAULT_HEADERS.copy(),
            )
            self._loop = current_loop
        return self._async_session

    async def aclose(self) -> None:
        if self._async_session and not self._async_session.closed:
            await self._async_session.close()
        self._async_session = None
        self._loop = None
        self._async_lock = None

    def close(self) -> None:
        self._session.close()

        if self._async_session and not self._async_session.closed:
            try:
                asyncio.run(self._async_session.close())
            except RuntimeError:
                loop = asyncio.get_running_loop()
                loop.create_task(self._async_session.close())
        self._async_session = None
        self._loop = None

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

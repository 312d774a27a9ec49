"""Downstream destinations for transformed segments."""

from __future__ import annotations

import logging
import os
import sys
from abc import ABC, abstractmethod
from typing import BinaryIO, Optional

from ..utils.file_utils import ensure_directory


class BaseSink(ABC):
    """Receives each transformed segment once, in playback order."""

    @abstractmethod
    def write(self, data: bytes) -> None:
        ...

    def close(self) -> None:
        return


class NullSink(BaseSink):
    """A sink that discards everything. Useful for dry runs."""

    def write(self, data: bytes) -> None:
        return


class FileSink(BaseSink):
    """Appends segments to a file, or to stdout when the path is ``-``."""

    def __init__(self, path: str) -> None:
        self.path = path
        self._handle: Optional[BinaryIO] = None
        self.bytes_written = 0

    def _open(self) -> BinaryIO:
        if self._handle is None:
            if self.path == "-":
                self._handle = sys.stdout.buffer
            else:
                ensure_directory(os.path.dirname(os.path.abspath(self.path)) or ".")
                self._handle = open(self.path, "wb")
                logging.info("Writing stream to %s", self.path)
        return self._handle

    def write(self, data: bytes) -> None:
        handle = self._open()
        handle.write(data)
        handle.flush()
        self.bytes_written += len(data)

    def close(self) -> None:
        if self._handle is not None and self.path != "-":
            self._handle.close()
        self._handle = None

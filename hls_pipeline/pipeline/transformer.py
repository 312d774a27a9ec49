"""Converts raw HLS segments into the playable MPEG-TS flavour via ffmpeg."""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from typing import List, Optional, Protocol

from ..models import TranscodeProfile
from ..utils.file_utils import build_segment_workdir, cleanup_directory


class TransformError(Exception):
    """Raised when the codec step fails for a single segment."""


class EngineInitError(TransformError):
    """Raised when the codec engine cannot be prepared at start-up."""


class TransformEngine(Protocol):
    async def initialize(self) -> None:
        ...

    async def run(self, raw: bytes, sequence_index: int) -> bytes:
        ...


class FFmpegEngine:
    """Runs one ffmpeg process per segment inside a private scratch directory."""

    def __init__(
        self,
        ffmpeg_bin: Optional[str] = None,
        profile: Optional[TranscodeProfile] = None,
        scratch_root: Optional[str] = None,
    ) -> None:
        self.ffmpeg_bin = ffmpeg_bin
        self.profile = profile or TranscodeProfile()
        self.scratch_root = scratch_root
        self._binary: Optional[str] = None

    @property
    def ready(self) -> bool:
        return self._binary is not None

    async def initialize(self) -> None:
        if self._binary:
            return
        binary = shutil.which(self.ffmpeg_bin or "ffmpeg")
        if not binary:
            raise EngineInitError(f"ffmpeg not found (looked for {self.ffmpeg_bin or 'ffmpeg'})")
        self._binary = binary
        logging.info("Using ffmpeg at %s", binary)

    def build_command(self, input_path: str, output_path: str) -> List[str]:
        if not self._binary:
            raise TransformError("ffmpeg engine used before initialize()")
        return [
            self._binary,
            "-loglevel", "error",
            "-y",
            "-i", input_path,
            *self.profile.output_args(),
            output_path,
        ]

    async def run(self, raw: bytes, sequence_index: int) -> bytes:
        workdir = build_segment_workdir(sequence_index, self.scratch_root)
        input_path = os.path.join(workdir, f"segment_{sequence_index}.ts")
        output_path = os.path.join(workdir, f"output_{sequence_index}.ts")
        try:
            with open(input_path, "wb") as handle:
                handle.write(raw)

            cmd = self.build_command(input_path, output_path)
            logging.debug("Converting segment #%s: %s", sequence_index, " ".join(cmd))
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
            _, stderr = await process.communicate()
            if process.returncode != 0:
                message = stderr.decode("utf-8", errors="replace").strip()
                raise TransformError(f"ffmpeg exited with {process.returncode}: {message}")

            if not os.path.exists(output_path):
                raise TransformError(f"ffmpeg produced no output for segment #{sequence_index}")
            with open(output_path, "rb") as handle:
                output = handle.read()
            if not output:
                raise TransformError(f"ffmpeg produced an empty segment #{sequence_index}")
            return output
        finally:
            cleanup_directory(workdir)


class SegmentTransformer:
    """Wraps a :class:`TransformEngine`, reporting failures as ``None``."""

    def __init__(self, engine: TransformEngine) -> None:
        self.engine = engine

    async def initialize(self) -> None:
        await self.engine.initialize()

    async def transform(self, raw: bytes, sequence_index: int) -> Optional[bytes]:
        try:
            return await self.engine.run(raw, sequence_index)
        except Exception as exc:
            logging.error("Conversion error for segment #%s: %s", sequence_index, exc)
            return None

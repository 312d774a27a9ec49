"""Filesystem helpers for transform scratch space and output files."""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path


def ensure_directory(path: str) -> str:
    """Creates a directory (and its parents) if needed."""

    Path(path).mkdir(parents=True, exist_ok=True)
    return path


def cleanup_directory(path: str) -> None:
    """Deletes a directory tree if it exists."""

    if os.path.isdir(path):
        shutil.rmtree(path, ignore_errors=True)


def build_segment_workdir(sequence_index: int, root: str | None = None) -> str:
    """Creates a private scratch folder for transforming one segment."""

    if root:
        ensure_directory(root)
    return tempfile.mkdtemp(prefix=f"segment_{sequence_index}_", dir=root)

"""Utility helpers for HTTP and filesystem operations."""

from .http_client import FetchError, HttpClient
from .file_utils import build_segment_workdir, cleanup_directory, ensure_directory

__all__ = ["HttpClient", "FetchError", "ensure_directory", "cleanup_directory", "build_segment_workdir"]

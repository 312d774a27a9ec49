"""Pytest configuration and fixtures."""

import pytest

from fakes import FakeEngine, FakeHttpClient, RecordingSink


@pytest.fixture
def http_client():
    """Fake transport with no playlists published yet."""
    return FakeHttpClient()


@pytest.fixture
def engine():
    """Fake codec engine that succeeds on every segment."""
    return FakeEngine()


@pytest.fixture
def sink():
    return RecordingSink()

"""Tests for the command line entry point."""

import logging

from fakes import FakeHttpClient, media_playlist
from hls_pipeline import main as cli


def test_parse_args_defaults(monkeypatch):
    for name in ("MANIFEST_URL", "PROXY_URL", "MIN_BUFFER", "MAX_BUFFER", "SEGMENT_DURATION", "PLAY", "OUTPUT", "RUN_SECONDS"):
        monkeypatch.delenv(name, raising=False)

    args = cli.parse_args([])

    assert args.manifest_url is None
    assert args.min_buffer == 2
    assert args.max_buffer == 5
    assert args.segment_duration == 2000
    assert args.output == "-"
    assert args.proxy_url == "/proxy?url="
    assert args.run_seconds is None
    assert not args.play


def test_parse_args_reads_environment(monkeypatch):
    monkeypatch.setenv("MANIFEST_URL", "https://cdn.example.com/live.m3u8")
    monkeypatch.setenv("MAX_BUFFER", "8")
    monkeypatch.setenv("PLAY", "yes")
    monkeypatch.setenv("RUN_SECONDS", "1.5")

    args = cli.parse_args([])

    assert args.manifest_url == "https://cdn.example.com/live.m3u8"
    assert args.max_buffer == 8
    assert args.run_seconds == 1.5
    assert args.play


def test_build_config_requires_manifest(caplog):
    args = cli.parse_args(["--manifest-url", ""])
    with caplog.at_level(logging.ERROR):
        assert cli.build_config(args) is None
    assert "required" in caplog.text


def test_build_config_rejects_inverted_buffers(caplog):
    args = cli.parse_args(["--manifest-url", "https://cdn.example.com/a.m3u8", "--min-buffer", "6", "--max-buffer", "3"])
    with caplog.at_level(logging.ERROR):
        assert cli.build_config(args) is None
    assert "Invalid pipeline options" in caplog.text


def test_preview_lists_segments(caplog):
    url = "https://cdn.example.com/live/index.m3u8"
    client = FakeHttpClient(texts={url: media_playlist(["a.ts", "b.ts"])})
    config = cli.build_config(cli.parse_args(["--manifest-url", url, "--proxy-url", ""]))

    with caplog.at_level(logging.INFO):
        cli.preview(config, client)

    assert "Found 2 segments." in caplog.text
    assert "https://cdn.example.com/live/b.ts" in caplog.text


def test_preview_reports_unreachable_manifest(caplog):
    config = cli.build_config(cli.parse_args(["--manifest-url", "https://cdn.example.com/gone.m3u8", "--proxy-url", ""]))

    with caplog.at_level(logging.ERROR):
        cli.preview(config, FakeHttpClient())

    assert "Unable to resolve" in caplog.text


def test_build_config_relative_proxy_needs_origin(monkeypatch, caplog):
    monkeypatch.delenv("PROXY_URL", raising=False)
    monkeypatch.delenv("PROXY_ORIGIN", raising=False)
    url = "https://cdn.example.com/a.m3u8"

    with caplog.at_level(logging.ERROR):
        assert cli.build_config(cli.parse_args(["--manifest-url", url])) is None

    config = cli.build_config(cli.parse_args(["--manifest-url", url, "--proxy-origin", "http://localhost:8080"]))
    assert config.proxy_url == "/proxy?url="
    assert config.proxy_origin == "http://localhost:8080"

from __future__ import annotations

import argparse
import asyncio
import logging
import os

from dotenv import load_dotenv
from pydantic import ValidationError

from .models import PipelineConfig, PipelineStats
from .models.config_models import DEFAULT_PROXY_URL
from .pipeline.controller import PipelineController
from .pipeline.events import SEGMENT_PLAYED, SEGMENT_READY
from .pipeline.manifest_resolver import ManifestError, ManifestResolver, parse_segments
from .pipeline.sinks import FileSink
from .pipeline.transformer import EngineInitError, FFmpegEngine
from .utils.http_client import FetchError, HttpClient

load_dotenv()


def _env_str(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return None
    return value


def _env_int(name: str) -> int | None:
    value = _env_str(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _env_float(name: str) -> float | None:
    value = _env_str(name)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _env_bool(name: str) -> bool:
    value = _env_str(name)
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Relay an HLS stream through ffmpeg at playback pace.")
    parser.add_argument("--manifest-url", default=_env_str("MANIFEST_URL"), help="Master or media playlist URL")
    parser.add_argument(
        "--proxy-url",
        default=os.getenv("PROXY_URL", DEFAULT_PROXY_URL),
        help="Proxy prefix the encoded URL is appended to (default: %(default)s); empty fetches directly",
    )
    parser.add_argument("--proxy-origin", default=_env_str("PROXY_ORIGIN"), help="Origin used when --proxy-url is relative")
    parser.add_argument("--min-buffer", type=int, default=_env_int("MIN_BUFFER") or 2, help="Segments buffered before playback starts")
    parser.add_argument("--max-buffer", type=int, default=_env_int("MAX_BUFFER") or 5, help="Maximum buffered segments")
    parser.add_argument(
        "--segment-duration",
        type=int,
        default=_env_int("SEGMENT_DURATION") or 2000,
        help="Pause between emitted segments in milliseconds",
    )
    parser.add_argument("--output", default=_env_str("OUTPUT") or "-", help="File for the relayed MPEG-TS stream ('-' for stdout)")
    parser.add_argument("--ffmpeg-bin", default=_env_str("FFMPEG_BIN"), help="ffmpeg executable to use")
    parser.add_argument("--run-seconds", type=float, default=_env_float("RUN_SECONDS"), help="Stop after this many seconds")
    parser.add_argument("--timeout", type=int, default=_env_int("HTTP_TIMEOUT") or 10, help="HTTP timeout in seconds")
    parser.add_argument(
        "--play",
        action="store_true",
        default=_env_bool("PLAY"),
        help="Run the pipeline instead of only listing the playlist segments",
    )
    parser.add_argument("--verbose", action="store_true", default=_env_bool("VERBOSE"), help="Enable debug logging")
    return parser.parse_args(argv)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def build_config(args: argparse.Namespace) -> PipelineConfig | None:
    if not args.manifest_url:
        logging.error("--manifest-url (or MANIFEST_URL) is required")
        return None
    try:
        return PipelineConfig(
            manifest_url=args.manifest_url,
            min_buffer=args.min_buffer,
            max_buffer=args.max_buffer,
            segment_duration=args.segment_duration,
            proxy_url=args.proxy_url,
            proxy_origin=args.proxy_origin,
        )
    except ValidationError as exc:
        logging.error("Invalid pipeline options: %s", exc)
        return None


def preview(config: PipelineConfig, http_client: HttpClient) -> None:
    resolver = ManifestResolver(http_client, max_depth=config.max_variant_depth)
    try:
        resolved = resolver.resolve_blocking(config.manifest_url)
    except (FetchError, ManifestError) as exc:
        logging.error("Unable to resolve %s: %s", config.manifest_url, exc)
        return
    segments = parse_segments(resolved.content, resolved.effective_url)
    logging.info("Leaf playlist: %s", resolved.effective_url)
    logging.info("Found %s segments.", len(segments))
    for index, segment in enumerate(segments):
        logging.info("  %3d | %s", index, segment.location)
    logging.info("Preview complete. Re-run with --play to start the pipeline.")


def _log_stats(label: str):
    def handler(stats: PipelineStats) -> None:
        logging.debug(
            "%s: playing=%s processing=%s buffer=%s produced=%s",
            label,
            stats.currently_playing_index,
            stats.currently_processing_index,
            stats.buffer_size,
            stats.total_segments_produced,
        )

    return handler


async def play(config: PipelineConfig, http_client: HttpClient, args: argparse.Namespace) -> None:
    engine = FFmpegEngine(ffmpeg_bin=args.ffmpeg_bin)
    controller = PipelineController(config, engine, http_client=http_client)
    controller.subscribe(SEGMENT_READY, _log_stats("ready"))
    controller.subscribe(SEGMENT_PLAYED, _log_stats("played"))

    sink = FileSink(args.output)
    controller.connect(sink)
    try:
        await controller.start()
    except EngineInitError as exc:
        logging.error("Transform engine failed to start: %s", exc)
        return

    try:
        if not await controller.wait_stopped(args.run_seconds):
            logging.info("Run time of %ss reached", args.run_seconds)
    finally:
        controller.stop()
        await controller.wait_stopped()
        await http_client.aclose()
        sink.close()

    stats = controller.get_stats()
    logging.info("Produced %s segments; last played #%s", stats.total_segments_produced, stats.currently_playing_index)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging(args.verbose)

    config = build_config(args)
    if config is None:
        return

    with HttpClient(proxy_url=config.proxy_url, origin=config.proxy_origin, timeout=args.timeout) as http_client:
        if not args.play:
            preview(config, http_client)
            return
        try:
            asyncio.run(play(config, http_client, args))
        except KeyboardInterrupt:
            logging.info("Interrupted; pipeline stopped.")


if __name__ == "__main__":
    main()

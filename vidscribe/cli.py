"""
Command line interface.

    vidscribe run PATH [--count N] [--output STORE.json] [--env-file FILE]
    vidscribe serve [--host H] [--port P]

Exit codes: 0 success, 1 pipeline error, 2 configuration or persistence
error, 130 cancelled.
"""

import argparse
import asyncio
import json
import logging
import os
import signal
import sys
from pathlib import Path

from pydantic import ValidationError

from vidscribe.config import Settings, get_settings
from vidscribe.logging_config import setup_logging
from vidscribe.services.pipeline import (
    DirectoryPipeline,
    PipelineError,
    ProcessingStrategy,
    ProgressStoreError,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PIPELINE_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_CANCELLED = 130


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vidscribe",
        description="Generate and rank natural-language descriptions for video files",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Process a video file or a directory tree")
    run.add_argument("path", type=Path, help="Video file or directory to scan")
    run.add_argument(
        "--count",
        type=_positive_int,
        default=None,
        help="Descriptions per video (default: CANDIDATE_COUNT, 3)",
    )
    run.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Progress store JSON for directory runs (default: STORE_PATH)",
    )
    run.add_argument("--env-file", type=Path, default=None, help="Read settings from this file")

    serve = subparsers.add_parser("serve", help="Start the read-only status API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8801)

    return parser


def _collaborators(settings: Settings):
    """Production collaborators as an async context manager."""
    return ProcessingStrategy(settings).open_collaborators()


def _install_signal_handlers(cancel_event: asyncio.Event) -> list[int]:
    """
    First SIGINT/SIGTERM requests cancellation, the second exits immediately.

    Returns:
        Signals that got a handler (none on platforms without support)
    """
    loop = asyncio.get_running_loop()
    task = asyncio.current_task()

    def _on_signal() -> None:
        if cancel_event.is_set():
            os._exit(EXIT_CANCELLED)
        logger.warning("Interrupted, cleaning up (repeat to quit immediately)")
        cancel_event.set()
        if task is not None:
            task.cancel()

    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _on_signal)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            pass
    return installed


async def _run(path: Path, count: int, output: Path, settings: Settings) -> int:
    cancel_event = asyncio.Event()
    installed = _install_signal_handlers(cancel_event)
    try:
        async with _collaborators(settings) as collaborators:
            pipeline = DirectoryPipeline(collaborators, settings)
            if path.is_file():
                record = await pipeline.process_single(path, count, cancel_event)
                print(json.dumps(record.model_dump(mode="json"), ensure_ascii=False, indent=2))
            else:
                store = await pipeline.run(path, output, count, cancel_event)
                print(f"{len(store)} record(s) in {output}")
    finally:
        loop = asyncio.get_running_loop()
        for sig in installed:
            loop.remove_signal_handler(sig)
    return EXIT_OK


def run_command(args: argparse.Namespace) -> int:
    try:
        settings = Settings(_env_file=args.env_file) if args.env_file else get_settings()
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    # stdout carries command output
    setup_logging(settings, stream=sys.stderr)
    count = args.count or settings.candidate_count
    output = args.output or settings.store_path

    if not args.path.exists():
        print(f"Path not found: {args.path}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        return asyncio.run(_run(args.path, count, output, settings))
    except PipelineError as e:
        print(f"Failed: {e}", file=sys.stderr)
        return EXIT_PIPELINE_ERROR
    except ProgressStoreError as e:
        print(f"Progress store error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except (asyncio.CancelledError, KeyboardInterrupt):
        print("Cancelled", file=sys.stderr)
        return EXIT_CANCELLED


def serve_command(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("vidscribe.main:app", host=args.host, port=args.port)
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "run":
        return run_command(args)
    return serve_command(args)


if __name__ == "__main__":
    sys.exit(main())

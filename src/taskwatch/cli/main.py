# src/taskwatch/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds the engine + console renderer, then polls the task until
it finishes, observation fails, or the user interrupts.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
from typing import Sequence

from ..cli.bootstrap import apply_overrides, create_provider, create_watch
from ..config import get_settings
from ..core.errors import InvalidConfiguration
from ..engine.poller import Failed, PollingEngine, Terminal
from ..logging_setup import setup_logging
from ..status.status_models import TaskStatus

logger = logging.getLogger(__name__)

EXIT_COMPLETE = 0
EXIT_TASK_FAILED = 1
EXIT_OBSERVE_FAILED = 2
EXIT_INTERRUPTED = 130


def _label(raw: str) -> tuple[str, str]:
    stage, sep, name = raw.partition("=")
    if not sep or not stage.strip():
        raise argparse.ArgumentTypeError(f"expected STAGE=NAME, got {raw!r}")
    return stage.strip().lower(), name


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskwatch",
        description="Poll a map/reduce task's status endpoint and show its progress.",
    )
    parser.add_argument("task_id", help="id of the task to watch")
    parser.add_argument("--url", dest="status_url", help="status endpoint URL")
    parser.add_argument("--interval-ms", type=int, help="delay between polls in milliseconds")
    parser.add_argument(
        "--max-errors",
        dest="max_consecutive_errors",
        type=int,
        help="give up after this many consecutive fetch errors (0 = never)",
    )
    parser.add_argument(
        "--hide",
        action="append",
        default=None,
        choices=("map", "reduce", "summarize"),
        help="hide a stage's progress bar (repeatable)",
    )
    parser.add_argument(
        "--label",
        action="append",
        type=_label,
        default=[],
        metavar="STAGE=NAME",
        help="rename a stage's progress bar (repeatable)",
    )
    parser.add_argument("--log-level", help="console log level (default from TASKWATCH_LOG_LEVEL)")
    return parser


def exit_code_for(engine: PollingEngine) -> int:
    state = engine.state
    if isinstance(state, Terminal):
        return EXIT_COMPLETE if state.snapshot.status == TaskStatus.COMPLETE else EXIT_TASK_FAILED
    if isinstance(state, Failed):
        return EXIT_OBSERVE_FAILED
    return EXIT_INTERRUPTED


async def watch(engine: PollingEngine) -> int:
    """Run engine until it closes. SIGINT/SIGTERM stop it."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Some platforms (Windows) do not support loop signal handlers.
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, engine.stop)

    try:
        engine.start()
        await engine.wait_closed()
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError, RuntimeError):
                loop.remove_signal_handler(sig)

    return exit_code_for(engine)


async def _run(args: argparse.Namespace) -> int:
    settings = apply_overrides(
        get_settings(),
        status_url=args.status_url,
        interval_ms=args.interval_ms,
        max_consecutive_errors=args.max_consecutive_errors,
        hidden_stages=args.hide,
    )

    provider = create_provider(settings)
    async with provider:
        engine, _renderer = create_watch(
            args.task_id,
            settings=settings,
            provider=provider,
            extra_labels=dict(args.label),
        )
        return await watch(engine)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    level_name = str(args.log_level or settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.log_dir, console_level=console_level)

    # keep noisy libs readable
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger.info("Starting %s for task %s", settings.app_name, args.task_id)

    try:
        return asyncio.run(_run(args))
    except InvalidConfiguration as exc:
        print(f"taskwatch: {exc}", file=sys.stderr)
        return EXIT_OBSERVE_FAILED
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    raise SystemExit(main())

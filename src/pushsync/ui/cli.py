from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from pushsync.app import (
    describe_state,
    set_new_user_cutoff,
    sync_in_app_messages,
    watch_in_app_messages,
)
from pushsync.config import configure_logging, get_app_config
from pushsync.domain.timestamps import parse_timestamp, to_iso8601

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Keep scheduled in-app messages in sync")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("sync", help="Fetch remote data once and reconcile schedules")

    watch = subparsers.add_parser("watch", help="Poll remote data and reconcile every change")
    watch.add_argument(
        "--interval",
        type=float,
        help="Seconds between polls (defaults to config)",
    )
    watch.add_argument(
        "--max-polls",
        type=int,
        help="Stop after this many polls",
    )

    cutoff = subparsers.add_parser("cutoff", help="Show or set the new-user cutoff")
    cutoff.add_argument(
        "--set",
        dest="value",
        type=str,
        help="ISO-8601 timestamp (UTC) or 'now'",
    )

    subparsers.add_parser("status", help="Show the reconciliation state and schedules")

    return parser.parse_args(list(argv))


def _parse_cutoff(value: str) -> int | None:
    """Return epoch milliseconds, or ``None`` for ``now``."""

    if value.strip().lower() == "now":
        return None
    return parse_timestamp(value)


def _validate(args: argparse.Namespace) -> None:
    if args.command == "watch":
        if args.interval is not None and args.interval <= 0:
            raise ValueError("Poll interval must be positive")
        if args.max_polls is not None and args.max_polls < 1:
            raise ValueError("Max polls must be at least 1")
    if args.command == "cutoff" and args.value is not None:
        _parse_cutoff(args.value)


def _format_millis(value: int) -> str:
    return "not set" if value < 0 else f"{to_iso8601(value)}Z"


def _log_status() -> None:
    state = describe_state()
    log.info(
        "Last applied payload: %s (metadata=%s)",
        _format_millis(state.cursor_timestamp),
        dict(state.cursor_metadata),
    )
    log.info("New-user cutoff: %s", _format_millis(state.new_user_cutoff))
    log.info("Tracked messages: %s", len(state.identity_map))
    for schedule in state.schedules:
        log.info(
            "Schedule %s message=%s start=%s end=%s priority=%s active=%s",
            schedule.id,
            schedule.message_id,
            schedule.info.start,
            schedule.info.end,
            schedule.info.priority,
            schedule.id in state.active_schedule_ids,
        )


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command in {"sync", "watch"}:
            configure_logging(level=get_app_config().log_level, force=True)

        if parsed_args.command == "sync":
            outcome = sync_in_app_messages()
            if outcome is not None:
                log.info(
                    "Sync finished: created=%s, updated=%s, cancelled=%s, skipped=%s",
                    len(outcome.created),
                    len(outcome.updated),
                    len(outcome.cancelled),
                    outcome.skipped,
                )
        elif parsed_args.command == "watch":
            watch_in_app_messages(
                poll_interval_seconds=parsed_args.interval,
                max_polls=parsed_args.max_polls,
            )
        elif parsed_args.command == "cutoff":
            if parsed_args.value is None:
                state = describe_state()
                log.info("New-user cutoff: %s", _format_millis(state.new_user_cutoff))
            else:
                cutoff = set_new_user_cutoff(_parse_cutoff(parsed_args.value))
                log.info("New-user cutoff set to %s", _format_millis(cutoff))
        elif parsed_args.command == "status":
            _log_status()
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during sync")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()

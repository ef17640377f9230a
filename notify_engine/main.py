"""Command line entry point for the notification engine."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import asyncio
import json
import os
import signal
import sys
import threading
import time
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from notify_engine.config.environment import EnvironmentConfig
from notify_engine.config.exceptions import ConfigurationError
from notify_engine.config.loader import load_config
from notify_engine.config.models import AppConfig
from notify_engine.domain.models import Preference
from notify_engine.logging import get_logger
from notify_engine.logging.config import configure_logging
from notify_engine.notifications.builder import ServiceRuntime, build_service
from notify_engine.scheduler import PendingSweep, SchedulerService

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Path, log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and settle the effective log level.

    Log level priority: CLI > environment > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level or "INFO"

    return app_config, env_config


def parse_assignments(pairs: Optional[Sequence[str]], option: str) -> Dict[str, str]:
    """
    Parse ``key=value`` arguments.

    Values are kept exactly as typed, so ``10:30`` and ``007`` reach the
    template unchanged. Only the first ``=`` separates key and value.

    Raises:
        ValueError: If an argument has no ``=`` or an empty key
    """
    parsed = {}
    for pair in pairs or []:
        key, sep, raw = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"{option} expects key=value, got: {pair!r}")
        parsed[key] = raw
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notify-engine",
        description="Notification engine - templated notifications with recipient preferences",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to configuration file (default: config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    send = subparsers.add_parser("send", help="Send one notification")
    send.add_argument("--recipient", required=True, help="Recipient identifier")
    send.add_argument("--event-type", required=True, help="Event type, e.g. interview-scheduled")
    send.add_argument(
        "--var", action="append", default=[], metavar="KEY=VALUE", help="Template variable"
    )
    send.add_argument(
        "--meta", action="append", default=[], metavar="KEY=VALUE", help="Record metadata"
    )
    send.add_argument(
        "--email", default=None, help="Delivery address stored for a recipient without preferences"
    )

    stats = subparsers.add_parser("stats", help="Print delivery statistics as JSON")
    stats.add_argument("--recipient", default=None, help="Restrict to one recipient")

    history = subparsers.add_parser("history", help="Print a recipient's history as JSON")
    history.add_argument("--recipient", required=True, help="Recipient identifier")
    history.add_argument("--limit", type=int, default=None, help="Maximum records to print")

    subparsers.add_parser("sweep", help="Report stale pending records on the configured interval")

    return parser


async def run_send(runtime: ServiceRuntime, args: argparse.Namespace) -> int:
    service = runtime.service
    variables = parse_assignments(args.var, "--var")
    metadata = parse_assignments(args.meta, "--meta")

    if args.email and service.get_preferences(args.recipient) is None:
        service.set_preferences(Preference(recipient_id=args.recipient, email=args.email))

    result = await service.send(args.recipient, args.event_type, variables, metadata)
    print(json.dumps(result.model_dump(mode="json"), indent=2))
    return 0 if result.success else 1


def run_stats(runtime: ServiceRuntime, args: argparse.Namespace) -> int:
    stats = runtime.service.get_stats(args.recipient)
    print(json.dumps(stats.model_dump(mode="json"), indent=2))
    return 0


def run_history(runtime: ServiceRuntime, args: argparse.Namespace) -> int:
    if args.limit is not None and args.limit < 0:
        print("--limit must be non-negative", file=sys.stderr)
        return 2

    records = runtime.service.get_history(args.recipient, args.limit)
    print(json.dumps([record.model_dump(mode="json") for record in records], indent=2))
    return 0


def run_sweep(runtime: ServiceRuntime, app_config: AppConfig) -> int:
    sweep = PendingSweep(
        runtime.service.history_store,
        stale_after_seconds=app_config.sweeper.stale_after_seconds,
    )

    shutdown_event = threading.Event()
    scheduler_service = SchedulerService(
        job_callable=sweep.run_once,
        interval_seconds=app_config.sweeper.interval_seconds,
        shutdown_event=shutdown_event,
    )

    def signal_handler(signum, frame):
        logger.info(
            f"Received signal {signum}, shutting down",
            extra={"event": "service.signal_received", "signal": signum},
        )
        scheduler_service.shutdown(wait=False)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    scheduler_service.start()
    logger.info(
        "Sweeper started. Press Ctrl+C to stop",
        extra={"event": "service.daemon_mode.started"},
    )

    try:
        shutdown_event.wait()
    except KeyboardInterrupt:
        scheduler_service.shutdown(wait=False)

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the notify-engine CLI.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    start_time = time.time()
    args = build_parser().parse_args(argv)

    runtime = None
    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=os.environ.get("ENVIRONMENT", "local"),
        )

        logger.info(
            "Notification engine starting",
            extra={
                "event": "service.starting",
                "command": args.command,
                "config_path": str(args.config),
                "log_level": env_config.log_level,
            },
        )

        runtime = build_service(app_config, env_config)

        if args.command in ("stats", "history", "sweep") and runtime.database is None:
            print(
                "Warning: no database configured; history is empty in a fresh process",
                file=sys.stderr,
            )

        if args.command == "send":
            return asyncio.run(run_send(runtime, args))
        if args.command == "stats":
            return run_stats(runtime, args)
        if args.command == "history":
            return run_history(runtime, args)
        return run_sweep(runtime, app_config)

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error",
            extra={
                "event": "service.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return 1
    finally:
        if runtime is not None:
            runtime.close()
            logger.info(
                "Notification engine stopped",
                extra={
                    "event": "service.stopping",
                    "uptime_seconds": round(time.time() - start_time, 2),
                },
            )


if __name__ == "__main__":
    sys.exit(main())

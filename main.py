"""Entry point for running the speedtest exporter."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

from speedtest_exporter import bootstrap
from speedtest_exporter.config import ConfigError

LOGGER = logging.getLogger("speedtest_exporter.main")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Prometheus exporter for the Ookla speedtest CLI")
    parser.add_argument("--config", help="Path to config.yaml", default="config.yaml")
    parser.add_argument(
        "--test-interval-minutes",
        type=int,
        default=None,
        help="Speedtest interval in minutes (env TEST_INTERVAL_MINUTES, default 60)",
    )
    parser.add_argument("--http-host", default=None, help="Host to bind to (env HTTP_HOST)")
    parser.add_argument(
        "--http-port", type=int, default=None, help="Metrics port (env HTTP_PORT, default 9516)"
    )
    parser.add_argument(
        "--speedtest-binary", default=None, help="Speedtest CLI to run (env SPEEDTEST_BINARY)"
    )
    parser.add_argument("--log-level", default=None, help="Log level (env LOG_LEVEL)")
    return parser.parse_args(argv)


def cli_overrides(args: argparse.Namespace) -> dict:
    return {
        ("scheduler", "interval_minutes"): args.test_interval_minutes,
        ("web", "host"): args.http_host,
        ("web", "port"): args.http_port,
        ("speedtest", "binary"): args.speedtest_binary,
        ("logging", "level"): args.log_level,
    }


def exit_process(status: int = 0) -> None:
    """Exit without joining the scheduler's worker threads.

    A probe still running at shutdown would otherwise keep the interpreter
    alive until the speedtest process finishes.
    """

    logging.shutdown()
    sys.stdout.flush()
    sys.stderr.flush()
    os._exit(status)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    try:
        context = bootstrap(args.config, cli_overrides(args))
    except ConfigError as exc:
        sys.exit(f"Invalid configuration: {exc}")

    try:
        context.run()
    except OSError as exc:
        LOGGER.critical(
            "Cannot serve on %s:%s: %s", context.config.web.host, context.config.web.port, exc
        )
        sys.exit(1)

    LOGGER.info("Shutdown complete")
    exit_process(0)


if __name__ == "__main__":
    main()

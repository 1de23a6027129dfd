"""
Node health verifier CLI entry point.

Check that an execution layer node, a consensus layer node, or both are
synced and still following the chain.

Usage::

    python -m node_health --el --cl
    python -m node_health --el --el-rpc-endpoint http://localhost:8545
    python -m node_health --cl --cl-rpc-endpoint http://localhost:3500 --timeout 600
    python -m node_health --el --cl --pending --config verifier.yaml

Options:
    --el                 Require and poll the execution layer node
    --cl                 Require and poll the consensus layer node
    --el-rpc-endpoint    Execution layer JSON-RPC URL (default: http://localhost:8545)
    --cl-rpc-endpoint    Consensus layer Beacon API URL (default: http://localhost:3500)
    --pending            Accept a node that is still syncing (infrastructure-is-up check)
    --stale-threshold    Maximum head age in seconds for a synced node (default: 60)
    --interval           Seconds between polls (default: 5)
    --timeout            Overall deadline in seconds (default: 300)
    --request-timeout    Per-request timeout in seconds (default: 5)
    --config             YAML file with any of the settings above
    --metrics-file       Write Prometheus metrics for the run to this file

Exit codes:
    0  every required node is healthy
    1  at least one required node is not
    2  invalid invocation or configuration
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from collections.abc import Callable, Sequence
from pathlib import Path

import httpx

from node_health.errors import ConfigurationError
from node_health.metrics import write_metrics
from node_health.poll import ConfigFile, PollController, VerifierConfig
from node_health.verdict import (
    EXIT_FAIL,
    EXIT_USAGE,
    Verdict,
    aggregate,
    exit_code,
    record_verdict,
    render,
)

logger = logging.getLogger(__name__)


class ColoredFormatter(logging.Formatter):
    """Logging formatter with ANSI colors for better readability."""

    # ANSI color codes
    GREY = "\x1b[38;5;244m"
    BLUE = "\x1b[38;5;39m"
    GREEN = "\x1b[38;5;40m"
    YELLOW = "\x1b[38;5;220m"
    RED = "\x1b[38;5;196m"
    BOLD_RED = "\x1b[38;5;196;1m"
    CYAN = "\x1b[38;5;51m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: GREY,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)

        timestamp = self.formatTime(record, self.datefmt)
        colored_time = f"{self.CYAN}{timestamp}{self.RESET}"
        levelname = f"{color}{record.levelname:8}{self.RESET}"
        name = f"{self.BLUE}{record.name}{self.RESET}"

        return f"{colored_time} {levelname} {name}: {record.getMessage()}"


def setup_logging(verbose: bool = False, no_color: bool = False) -> None:
    """Configure logging for the verifier with optional colors."""
    level = logging.DEBUG if verbose else logging.INFO

    handler = logging.StreamHandler()
    handler.setLevel(level)

    if no_color:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = ColoredFormatter(datefmt="%Y-%m-%d %H:%M:%S")
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)

    # Per-request lines from the HTTP stack drown out the poll progress.
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="node-health",
        description="Verify that Ethereum EL/CL nodes are synced and progressing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--el", action="store_true", help="Require and poll the EL node")
    parser.add_argument("--cl", action="store_true", help="Require and poll the CL node")
    parser.add_argument(
        "--el-rpc-endpoint",
        default=None,
        help="Execution layer JSON-RPC URL (default: http://localhost:8545)",
    )
    parser.add_argument(
        "--cl-rpc-endpoint",
        default=None,
        help="Consensus layer Beacon API URL (default: http://localhost:3500)",
    )
    parser.add_argument(
        "--pending",
        action="store_true",
        default=None,
        help="Treat a syncing node as healthy (infrastructure-is-up check)",
    )
    parser.add_argument(
        "--stale-threshold",
        type=float,
        default=None,
        help="Maximum head age in seconds before a synced node is stale (default: 60)",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between polls of one node (default: 5)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Overall deadline in seconds (default: 300)",
    )
    parser.add_argument(
        "--request-timeout",
        type=float,
        default=None,
        help="Per-request HTTP timeout in seconds (default: 5)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML config file; command line flags take precedence",
    )
    parser.add_argument(
        "--metrics-file",
        type=Path,
        default=None,
        help="Write Prometheus metrics for this run to a textfile",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> VerifierConfig:
    """
    Build the run configuration from parsed arguments.

    Raises:
        ConfigurationError: If the arguments or the config file are invalid.
    """
    config_file = ConfigFile.from_yaml(args.config) if args.config is not None else None
    return VerifierConfig.from_sources(
        check_el=args.el,
        check_cl=args.cl,
        config_file=config_file,
        el_rpc_endpoint=args.el_rpc_endpoint,
        cl_rpc_endpoint=args.cl_rpc_endpoint,
        accept_pending=args.pending,
        stale_threshold=args.stale_threshold,
        interval=args.interval,
        timeout=args.timeout,
        request_timeout=args.request_timeout,
    )


async def verify(
    config: VerifierConfig,
    transport: httpx.AsyncBaseTransport | None = None,
    time_fn: Callable[[], float] = time.time,
) -> Verdict:
    """
    Run a complete verification and return its verdict.

    Args:
        config: Validated run settings.
        transport: Optional HTTP transport override (for tests).
        time_fn: Wall-clock source used for head age.
    """
    controller = PollController(config=config, transport=transport, time_fn=time_fn)
    statuses = await controller.run()
    verdict = aggregate(statuses, config.accept_pending)
    record_verdict(verdict)
    return verdict


def execute(args: argparse.Namespace, transport: httpx.AsyncBaseTransport | None = None) -> int:
    """Verify, print the report and return the exit code."""
    try:
        config = config_from_args(args)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        print(f"node-health: error: {e}", file=sys.stderr)
        return EXIT_USAGE

    verdict = asyncio.run(verify(config, transport=transport))

    for line in render(verdict, color=not args.no_color and sys.stdout.isatty(), now=time.time()):
        print(line)

    if args.metrics_file is not None:
        try:
            write_metrics(args.metrics_file)
        except OSError as e:
            # Does not change the verdict.
            logger.error("Failed to write metrics to %s: %s", args.metrics_file, e)

    return exit_code(verdict)


def run(
    argv: Sequence[str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """
    Parse arguments and execute a run.

    Logging is not configured here; ``main`` does that.
    """
    return execute(build_parser().parse_args(argv), transport)


def main() -> None:
    """CLI entry point."""
    args = build_parser().parse_args()
    setup_logging(args.verbose, args.no_color)

    try:
        code = execute(args)
    except KeyboardInterrupt:
        logger.info("Interrupted before a verdict was reached")
        code = EXIT_FAIL
    sys.exit(code)


if __name__ == "__main__":
    main()

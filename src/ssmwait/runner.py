#!/usr/bin/env python3
"""Main entry point for ssmwait."""

from __future__ import annotations

import argparse
import asyncio
import logging
import shutil
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from .config import TRANSPORTS, Config, load_config, parse_targets
from .dispatcher import dispatch
from .errors import ConfigurationError, SsmWaitError
from .models import Invocation
from .tracker import CompletionTracker, OutputCallback, StatusCallback, TargetStatus
from .transport import Transport, create_transport

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Outcome of one dispatch-and-wait run."""

    success: bool
    message: str = ""
    command_id: str | None = None
    invocations: dict[str, Invocation] = field(default_factory=dict)
    summary_lines: list[str] = field(default_factory=list)
    error: SsmWaitError | None = None


async def run(
    config: Config,
    transport: Transport | None = None,
    on_output: OutputCallback | None = None,
    on_status: StatusCallback | None = None,
    enable_logging: bool = True,
) -> RunResult:
    """Send the configured document to every target and wait for all of them.

    Never raises for expected failures: configuration, submission and
    per-target errors all come back as a failed ``RunResult``.
    """
    try:
        config.validate()
    except ConfigurationError as e:
        return _failure(e)

    if transport is None:
        transport = create_transport(config)

    log_dir = _setup_log_dir(config) if enable_logging else None
    tracker = CompletionTracker(
        transport,
        poll_interval=config.poll_interval,
        on_output=on_output,
        on_status=on_status,
        log_dir=log_dir,
    )

    command_id = None
    failed = True
    try:
        command_id = await dispatch(
            transport, config.document_name, config.target_ids, config.timeout_seconds
        )
        invocations = await tracker.track(
            config.target_ids, command_id, config.max_retries
        )
        failed = False
    except SsmWaitError as e:
        result = _failure(e)
        result.command_id = command_id
        return result
    finally:
        # A failed run reports at once; remote work still running is abandoned
        await transport.close(wait=not failed)

    summary_lines = [invocation.summary_line() for invocation in invocations.values()]
    for line in summary_lines:
        logger.info(line)

    return RunResult(
        success=True,
        command_id=command_id,
        invocations=invocations,
        summary_lines=summary_lines,
    )


def _failure(error: SsmWaitError) -> RunResult:
    logger.error("%s", error)
    return RunResult(success=False, message=str(error), error=error)


def _setup_log_dir(config: Config) -> Path | None:
    """Create a timestamped log directory for this run."""
    if not config.log_dir:
        return None
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_dir = config.log_dir / timestamp
    log_dir.mkdir(parents=True, exist_ok=True)

    # Copy the source config file to the log directory
    if config.source_path and config.source_path.exists():
        shutil.copy(config.source_path, log_dir / "config.yaml")
    return log_dir


def configure_logging(verbose: bool = False) -> None:
    """Set up console logging and quiet noisy third-party loggers."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    for name in ("asyncssh", "boto3", "botocore", "urllib3"):
        logging.getLogger(name).setLevel(logging.WARNING)


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Send a command to a fleet of hosts and wait for every host to finish"
    )
    parser.add_argument(
        "config",
        type=Path,
        nargs="?",
        help="Path to YAML configuration file (defaults to environment variables)",
    )
    parser.add_argument("--document", help="Name of the document to run")
    parser.add_argument("--targets", help="Comma-separated target ids")
    parser.add_argument("--max-retries", type=int, help="Status polls per target")
    parser.add_argument("--timeout", type=int, help="Command timeout in seconds")
    parser.add_argument("--poll-interval", type=float, help="Seconds between polls")
    parser.add_argument("--transport", choices=TRANSPORTS, help="Remote execution backend")
    parser.add_argument("--region", help="AWS region for the ssm transport")
    parser.add_argument(
        "--no-logs",
        action="store_true",
        help="Disable logging to files",
    )
    parser.add_argument(
        "--dashboard",
        action="store_true",
        help="Run with the TUI dashboard",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    configure_logging(args.verbose)

    # Load configuration
    try:
        config = load_config(args.config) if args.config else Config.from_env()
        _apply_overrides(config, args)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    enable_logging = not args.no_logs

    if not args.dashboard:
        # Run without TUI dashboard (default)
        return _run_headless(config, enable_logging)

    from .dashboard import Dashboard

    app = Dashboard(config, enable_logging=enable_logging)
    app.run()

    result = app.result
    if result is None:
        print("\nAborted before all targets finished", file=sys.stderr)
        return 1
    return _report(result)


def _apply_overrides(config: Config, args: argparse.Namespace) -> None:
    """Apply command line overrides on top of the loaded config."""
    if args.document:
        config.document_name = args.document
    if args.targets:
        config.target_ids = parse_targets(args.targets)
    if args.max_retries is not None:
        config.max_retries = args.max_retries
    if args.timeout is not None:
        config.timeout_seconds = args.timeout
    if args.poll_interval is not None:
        config.poll_interval = args.poll_interval
    if args.transport:
        config.transport = args.transport
    if args.region:
        config.region = args.region


def _report(result: RunResult) -> int:
    """Print the per-target summary or the failure. Returns the exit status."""
    if not result.success:
        print(f"\nFailed: {result.message}", file=sys.stderr)
        return 1

    for line in result.summary_lines:
        print(line)
    return 0


def _run_headless(config: Config, enable_logging: bool) -> int:
    """Run dispatch and tracking without TUI dashboard."""
    # ANSI colors for different targets
    colors = [
        "\033[36m",  # Cyan
        "\033[33m",  # Yellow
        "\033[35m",  # Magenta
        "\033[32m",  # Green
        "\033[34m",  # Blue
        "\033[91m",  # Light Red
        "\033[96m",  # Light Cyan
        "\033[93m",  # Light Yellow
    ]
    reset = "\033[0m"

    # Assign colors to targets
    target_colors = {
        target: colors[i % len(colors)] for i, target in enumerate(config.target_ids)
    }

    def on_output(target: str, line: str) -> None:
        color = target_colors.get(target, "")
        print(f"{color}[{target}]{reset} {line}")

    def on_status(target: str, status: TargetStatus) -> None:
        color = target_colors.get(target, "")
        print(f"{color}[{target}]{reset} Status: {status.value}")

    result = asyncio.run(
        run(
            config,
            on_output=on_output,
            on_status=on_status,
            enable_logging=enable_logging,
        )
    )
    return _report(result)


if __name__ == "__main__":
    sys.exit(main())

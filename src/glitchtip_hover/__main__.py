"""Command-line entry point for glitchtip-hover.

Subcommands:
- check: verify configuration and API connectivity
- sync: run one sync cycle and list the attributions
- lookup: run one sync cycle and show the hover text for a file and line
- watch: keep the index fresh on a schedule until interrupted
"""

import argparse
import asyncio
import signal
import sys
from pathlib import Path

import structlog

from glitchtip_hover._version import __version__
from glitchtip_hover.config.schema import HoverConfig

log = structlog.get_logger()


def setup_logging(debug: bool = False, log_format: str = "console") -> None:
    """Configure structured logging with secret sanitization.

    Args:
        debug: Enable debug logging if True
        log_format: Output format ("json" or "console")
    """
    from glitchtip_hover.utils.logging import LogFormat, LogLevel, configure_logging

    configure_logging(
        level=LogLevel.DEBUG if debug else LogLevel.INFO,
        log_format=LogFormat(log_format.lower()),
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="glitchtip-hover",
        description="Map unresolved GlitchTip issues to lines in a local source tree",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: environment variables only)",
    )
    parser.add_argument(
        "-w",
        "--workspace",
        type=Path,
        default=None,
        help="Workspace root to search for source files (overrides config)",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--format",
        choices=["json", "console"],
        default="console",
        help="Log output format (default: console)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("check", help="Verify configuration and API connectivity")
    subparsers.add_parser("sync", help="Run one sync cycle and list attributions")

    lookup = subparsers.add_parser("lookup", help="Show the issues at a file and line")
    lookup.add_argument("file", type=Path, help="Local source file")
    lookup.add_argument("line", type=int, help="1-based line number")

    subparsers.add_parser("watch", help="Sync on a schedule until interrupted")

    return parser


def load_settings(config_path: Path | None, workspace: Path | None) -> HoverConfig:
    """Load configuration and apply command line overrides."""
    from glitchtip_hover.config.loader import load_config

    config = load_config(config_path)
    if workspace is not None:
        config = config.model_copy(
            update={"workspace": config.workspace.model_copy(update={"root": workspace})}
        )
    return config


async def run_check(config: HoverConfig) -> int:
    """Print the result of every health check."""
    from glitchtip_hover.utils.health import HealthChecker, HealthStatus

    report = await HealthChecker(config).run_all_checks()
    for check in report.checks:
        marker = "OK  " if check.status == HealthStatus.HEALTHY else "FAIL"
        print(f"{marker} {check.name}: {check.message}")
        if "sample" in check.details:
            print(f"     Sample issue: {check.details['sample']}")
    return 0 if report.healthy else 1


async def run_sync(config: HoverConfig) -> int:
    """Run one cycle and print every attribution."""
    from glitchtip_hover.core.formatting import format_issue_line
    from glitchtip_hover.core.sync import IssueSync

    sync = IssueSync.from_config(config)
    try:
        result = await sync.run_cycle()
    finally:
        await sync.aclose()

    if result is None:
        print(_failure_message(config, sync.last_error), file=sys.stderr)
        return 1

    for path, line, issues in sync.index.items():
        for issue in issues:
            print(f"{path}:{line}  {format_issue_line(issue)}")

    print(
        f"Synced {result.issues_fetched} issues: "
        f"{result.attributed} attributed, {result.skipped} skipped"
    )
    return 0


async def run_lookup(config: HoverConfig, file: Path, line: int) -> int:
    """Run one cycle and print the hover text for ``file:line``."""
    from glitchtip_hover.core.formatting import render_hover_markdown
    from glitchtip_hover.core.sync import IssueSync

    sync = IssueSync.from_config(config)
    try:
        result = await sync.run_cycle()
    finally:
        await sync.aclose()

    if result is None:
        print(_failure_message(config, sync.last_error), file=sys.stderr)
        return 1

    path = file.expanduser().resolve()
    hover = render_hover_markdown(sync.lookup(path, line))
    print(hover or f"No issues at {path}:{line}")
    return 0


async def run_watch(config: HoverConfig) -> int:
    """Keep syncing on the configured interval until SIGINT or SIGTERM."""
    from glitchtip_hover.core.scheduler import SyncScheduler
    from glitchtip_hover.core.sync import IssueSync

    sync = IssueSync.from_config(config)
    scheduler = SyncScheduler(
        sync,
        interval_seconds=config.sync.interval_seconds,
        run_on_start=config.sync.run_on_start,
    )

    loop = asyncio.get_running_loop()
    stop_requested = asyncio.Event()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, stop_requested.set)

    await scheduler.start()
    try:
        await stop_requested.wait()
        log.info("shutdown_signal_received")
    finally:
        await scheduler.stop()
        await sync.aclose()
    return 0


def _failure_message(config: HoverConfig, error: str | None) -> str:
    if not config.glitchtip.is_complete:
        missing = ", ".join(config.glitchtip.missing_fields)
        return f"GlitchTip configuration incomplete, missing: {missing}"
    return f"Sync failed: {error}"


async def run(args: argparse.Namespace) -> int:
    """Dispatch the selected subcommand.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    try:
        config = load_settings(args.config, args.workspace)
    except FileNotFoundError as e:
        log.error("configuration_file_not_found", path=str(args.config), error=str(e))
        return 1
    except ValueError as e:
        log.error("configuration_invalid", error=str(e))
        return 1

    if args.config is not None:
        # Reconfigure logging from config file settings
        from glitchtip_hover.utils.logging import configure_from_settings

        try:
            configure_from_settings(config.logging, debug=args.debug)
        except OSError as e:
            log.error("log_file_unavailable", path=str(config.logging.file.path), error=str(e))
            return 1

    if args.command == "check":
        return await run_check(config)
    if args.command == "sync":
        return await run_sync(config)
    if args.command == "lookup":
        return await run_lookup(config, args.file, args.line)
    if args.command == "watch":
        return await run_watch(config)

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(debug=args.debug, log_format=args.format)

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        log.info("shutting_down_gracefully")
        return 0


if __name__ == "__main__":
    sys.exit(main())

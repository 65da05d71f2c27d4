"""
host-update command line interface.

Usage:
    host-update                 # Discover, confirm, upgrade
    host-update --dry-run       # Show what would be upgraded
    host-update --yes           # Upgrade without asking
    host-update --primary-only  # Query winget only
"""

from __future__ import annotations

import argparse
import functools
import json
import logging
import os
import sys
from typing import Callable, Sequence, TextIO

from . import __version__
from .config import Config, load_config, load_exclusions, validate_config
from .discovery import discover_all
from .environment import is_elevated, is_windows
from .logging_config import audit_log_path, log_file_of, setup_logging
from .models import UpgradeCandidate
from .package_managers import PACKAGE_MANAGERS, PackageManagerSpec, get_enabled_package_managers
from .prompts import confirm_upgrades
from .reconcile import reconcile_with_report
from .render import render_candidates, render_results
from .runner import CommandRunner
from .upgrade import bulk_upgrade


def run_update(
    config: Config,
    specs: Sequence[PackageManagerSpec],
    runner: CommandRunner,
    logger: logging.Logger,
    exclusions: frozenset[str],
    assume_yes: bool = False,
    dry_run: bool = False,
    json_output: bool = False,
    confirm_fn: Callable[[Sequence[UpgradeCandidate]], bool] = confirm_upgrades,
    stream: TextIO | None = None,
) -> int:
    """
    Run one discovery-filter-execute pass.

    Args:
        config: Loaded configuration
        specs: Package managers to query, in order
        runner: Command execution facility
        logger: Run logger
        exclusions: Lower-cased excluded identifiers
        assume_yes: Skip the confirmation prompt
        dry_run: Show the plan and commands without upgrading
        json_output: Print a JSON report instead of tables
        confirm_fn: Confirmation prompt
        stream: Output stream for tables and reports

    Returns:
        Process exit status
    """
    stream = stream or sys.stdout
    discovered = discover_all(specs, runner, logger, timeout=config.preferences.timeout_seconds)
    report = reconcile_with_report(discovered, exclusions, logger)

    def emit_json(results: list | None = None) -> None:
        if json_output:
            payload = report.to_dict()
            payload["results"] = results
            print(json.dumps(payload, indent=2), file=stream)

    if not report.accepted:
        logger.info("Nothing to upgrade")
        emit_json()
        return 0

    logger.info(f"{len(report.accepted)} package(s) to upgrade, {len(report.excluded)} excluded")
    if not json_output:
        render_candidates(report.accepted, stream=stream)

    needs_confirmation = config.preferences.confirm and not assume_yes and not dry_run
    if needs_confirmation and not confirm_fn(report.accepted):
        logger.info("Upgrade cancelled by user")
        emit_json()
        return 0

    extra_args = {
        spec.name: config.get_manager_config(spec.name).extra_upgrade_args
        for spec in specs
    }
    bulk = bulk_upgrade(
        report.accepted,
        specs,
        runner,
        logger,
        timeout=config.preferences.upgrade_timeout_seconds,
        extra_args=extra_args,
        dry_run=dry_run,
    )

    if dry_run:
        emit_json()
        return 0

    if json_output:
        emit_json([r.to_dict() for r in bulk.results])
    else:
        render_results(bulk.results, stream=stream)

    for line in bulk.summary().strip().splitlines():
        logger.info(line)
    for result in bulk.failures + bulk.errors:
        logger.warning(f"Not upgraded: {result.name} ({result.id}), exit code {result.exit_code}")

    return bulk.exit_status()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="host-update",
        description="Upgrade packages installed through winget and Chocolatey",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Upgrade without asking for confirmation",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show pending upgrades and commands without running them",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Configuration file (YAML or JSON)",
    )
    parser.add_argument(
        "--exclusions",
        metavar="PATH",
        help="Exclusion list overriding the configured one",
    )
    parser.add_argument(
        "--log-dir",
        metavar="PATH",
        help="Directory for the timestamped audit log",
    )
    parser.add_argument(
        "--no-log-file",
        action="store_true",
        help="Do not write an audit log file",
    )
    parser.add_argument(
        "--primary-only",
        action="store_true",
        help="Only query the primary package manager (winget)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print a JSON report",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only print warnings and errors",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for host-update."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    log_file = None
    if not args.no_log_file:
        log_file = str(audit_log_path(args.log_dir or config.log_dir))

    logger = setup_logging(
        log_file=log_file,
        verbose=args.verbose or os.environ.get("HOST_UPDATE_DEBUG", "0") == "1",
        quiet=args.quiet,
        console_stream=sys.stderr if args.json else None,
    )
    if log_file_of(logger):
        logger.debug(f"Audit log: {log_file_of(logger)}")
    if config.source:
        logger.debug(f"Using config: {config.source}")

    for warning in validate_config(config, {pm.name for pm in PACKAGE_MANAGERS}):
        logger.warning(warning)

    if is_windows() and not is_elevated():
        logger.warning("Not running as administrator; some upgrades may fail or prompt for elevation")

    exclusions = load_exclusions(args.exclusions or config.exclusions_file, logger)
    specs = get_enabled_package_managers(config, primary_only=args.primary_only)
    # Keep stdout a pure JSON document
    confirm_fn = functools.partial(confirm_upgrades, stream=sys.stderr) if args.json else confirm_upgrades

    return run_update(
        config,
        specs,
        CommandRunner(),
        logger,
        exclusions,
        assume_yes=args.yes,
        dry_run=args.dry_run,
        json_output=args.json,
        confirm_fn=confirm_fn,
    )


def run() -> None:
    """Console script entry point."""
    # Package names and status icons are not representable in legacy Windows code pages
    for stream in (sys.stdout, sys.stderr):
        if (getattr(stream, "encoding", None) or "").lower() != "utf-8" and hasattr(stream, "reconfigure"):
            stream.reconfigure(encoding="utf-8", errors="replace")

    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(130)

"""
Upgrade execution and outcome classification.

Runs one upgrade command per accepted candidate, strictly sequentially
(installers commonly hold a machine-wide lock), and classifies each attempt
with a layered success policy.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from typing import Mapping, Sequence

from .errors import CommandError
from .models import (
    SPAWN_FAILURE_EXIT_CODE,
    UpgradeCandidate,
    UpgradeResult,
    UpgradeStatus,
)
from .package_managers import PackageManagerSpec, spec_for_candidate
from .reconcile import normalize_id
from .runner import CommandRunner


# winget APPINSTALLER_CLI_ERROR_UPDATE_NOT_APPLICABLE (0x8A15002B): the package
# is already current. Reported signed or unsigned depending on the caller.
UPDATE_NOT_APPLICABLE = 0x8A15002B
UPDATE_NOT_APPLICABLE_SIGNED = UPDATE_NOT_APPLICABLE - (1 << 32)

SUCCESS_EXIT_CODES = frozenset({0, UPDATE_NOT_APPLICABLE, UPDATE_NOT_APPLICABLE_SIGNED})

# Older tool versions report success only through their output text
SUCCESS_PATTERNS = (
    re.compile(r"successfully\s+(installed|upgraded)", re.IGNORECASE),
    re.compile(r"already\s+up[\s-]to[\s-]date", re.IGNORECASE),
    re.compile(r"no\s+applicable\s+(update|upgrade)", re.IGNORECASE),
    re.compile(r"no\s+updates?\s+found", re.IGNORECASE),
    re.compile(r"no\s+available\s+upgrade\s+found", re.IGNORECASE),
)

DEFAULT_UPGRADE_TIMEOUT = 1800


@dataclass(frozen=True)
class BulkUpgradeResult:
    """
    Result of executing every accepted candidate.

    Attributes:
        results: One result per attempted candidate, in execution order
        duration_seconds: Total execution time
    """
    results: tuple[UpgradeResult, ...]
    duration_seconds: float

    @property
    def upgrades(self) -> tuple[UpgradeResult, ...]:
        return tuple(r for r in self.results if r.succeeded)

    @property
    def failures(self) -> tuple[UpgradeResult, ...]:
        return tuple(r for r in self.results if r.status is UpgradeStatus.FAILED)

    @property
    def errors(self) -> tuple[UpgradeResult, ...]:
        return tuple(r for r in self.results if r.status is UpgradeStatus.ERROR)

    def exit_status(self) -> int:
        """Process exit status: 0 when nothing failed, 1 otherwise."""
        return 1 if self.failures or self.errors else 0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "results": [r.to_dict() for r in self.results],
            "succeeded": len(self.upgrades),
            "failed": len(self.failures),
            "errors": len(self.errors),
            "duration_seconds": self.duration_seconds,
        }

    def summary(self) -> str:
        """Human-readable summary."""
        return f"""
Upgrade Summary:
  ✅ Upgraded: {len(self.upgrades)}
  ❌ Failed: {len(self.failures)}
  💥 Errors: {len(self.errors)}
  ⏱️  Duration: {self.duration_seconds:.1f}s
"""


def classify_outcome(exit_code: int, output: str) -> UpgradeStatus:
    """
    Classify an upgrade attempt.

    Evaluated in order:
    1. Exit code 0 → SUCCESS
    2. winget "update not applicable" code → SUCCESS (already current)
    3. Output matches a SUCCESS_PATTERNS entry → SUCCESS
    4. Otherwise → FAILED

    Args:
        exit_code: Raw process exit code
        output: Combined process output

    Returns:
        UpgradeStatus.SUCCESS or UpgradeStatus.FAILED
    """
    if exit_code in SUCCESS_EXIT_CODES:
        return UpgradeStatus.SUCCESS

    text = output or ""
    if any(pattern.search(text) for pattern in SUCCESS_PATTERNS):
        return UpgradeStatus.SUCCESS

    return UpgradeStatus.FAILED


def build_upgrade_command(
    spec: PackageManagerSpec,
    candidate: UpgradeCandidate,
    extra_args: Sequence[str] = (),
) -> tuple[str, ...]:
    """
    Build the manager-specific upgrade command for a candidate.

    Args:
        spec: Package manager that reported the candidate
        candidate: Candidate to upgrade
        extra_args: Additional arguments from configuration

    Returns:
        Command tuple targeting the candidate's normalized id
    """
    return spec.get_upgrade_command(normalize_id(candidate.id), extra_args)


def execute_upgrade(
    candidate: UpgradeCandidate,
    spec: PackageManagerSpec,
    runner: CommandRunner,
    logger: logging.Logger,
    timeout: int | None = DEFAULT_UPGRADE_TIMEOUT,
    extra_args: Sequence[str] = (),
) -> UpgradeResult:
    """
    Upgrade a single candidate.

    Args:
        candidate: Candidate to upgrade
        spec: Package manager routing the upgrade
        runner: Command execution facility
        logger: Run logger
        timeout: Command timeout in seconds
        extra_args: Additional arguments from configuration

    Returns:
        UpgradeResult; ERROR with SPAWN_FAILURE_EXIT_CODE if the command never ran
    """
    command = build_upgrade_command(spec, candidate, extra_args)
    logger.info(f"Upgrading {candidate.name} ({candidate.id}) via {spec.display_name}")
    logger.debug(f"Executing: {' '.join(command)}")

    start_time = time.time()
    try:
        result = runner.run(command, timeout=timeout)
    except CommandError as e:
        logger.error(f"{candidate.id}: {e.message}")
        return UpgradeResult(
            name=candidate.name,
            id=candidate.id,
            manager=candidate.manager,
            status=UpgradeStatus.ERROR,
            exit_code=SPAWN_FAILURE_EXIT_CODE,
            output=e.message,
            duration_seconds=time.time() - start_time,
        )

    status = classify_outcome(result.exit_code, result.output)
    duration = time.time() - start_time

    if status is UpgradeStatus.SUCCESS:
        logger.info(f"{candidate.id}: upgraded (exit code {result.exit_code})")
    else:
        logger.error(f"{candidate.id}: upgrade failed with exit code {result.exit_code}")
        if result.output:
            logger.debug(f"{candidate.id} output:\n{result.output.strip()}")

    return UpgradeResult(
        name=candidate.name,
        id=candidate.id,
        manager=candidate.manager,
        status=status,
        exit_code=result.exit_code,
        output=result.output,
        duration_seconds=duration,
    )


def execute_all(
    candidates: Sequence[UpgradeCandidate],
    specs: Sequence[PackageManagerSpec],
    runner: CommandRunner,
    logger: logging.Logger,
    timeout: int | None = DEFAULT_UPGRADE_TIMEOUT,
    extra_args: Mapping[str, Sequence[str]] | None = None,
    dry_run: bool = False,
) -> list[UpgradeResult]:
    """
    Upgrade every candidate, one at a time.

    A failing candidate never stops the batch.

    Args:
        candidates: Accepted candidates, in execution order
        specs: Package managers available for routing
        runner: Command execution facility
        logger: Run logger
        timeout: Per-command timeout in seconds
        extra_args: Extra upgrade arguments keyed by manager name
        dry_run: Log the commands instead of running them

    Returns:
        One UpgradeResult per candidate (empty for a dry run)
    """
    extra_args = extra_args or {}
    results: list[UpgradeResult] = []

    for index, candidate in enumerate(candidates, start=1):
        spec = spec_for_candidate(candidate, specs)
        if spec is None:
            logger.error(f"{candidate.id}: no package manager configured for {candidate.manager.value}")
            results.append(UpgradeResult(
                name=candidate.name,
                id=candidate.id,
                manager=candidate.manager,
                status=UpgradeStatus.ERROR,
                exit_code=SPAWN_FAILURE_EXIT_CODE,
                output=f"No package manager configured for {candidate.manager.value}",
            ))
            continue

        manager_args = extra_args.get(spec.name, ())
        if dry_run:
            command = build_upgrade_command(spec, candidate, manager_args)
            logger.info(f"[dry-run] Would execute: {' '.join(command)}")
            continue

        logger.info(f"[{index}/{len(candidates)}] {candidate.name}")
        results.append(execute_upgrade(
            candidate, spec, runner, logger, timeout=timeout, extra_args=manager_args,
        ))

    return results


def bulk_upgrade(
    candidates: Sequence[UpgradeCandidate],
    specs: Sequence[PackageManagerSpec],
    runner: CommandRunner,
    logger: logging.Logger,
    timeout: int | None = DEFAULT_UPGRADE_TIMEOUT,
    extra_args: Mapping[str, Sequence[str]] | None = None,
    dry_run: bool = False,
) -> BulkUpgradeResult:
    """
    Execute all candidates and wrap the results with timing.

    Args:
        candidates: Accepted candidates, in execution order
        specs: Package managers available for routing
        runner: Command execution facility
        logger: Run logger
        timeout: Per-command timeout in seconds
        extra_args: Extra upgrade arguments keyed by manager name
        dry_run: Log the commands instead of running them

    Returns:
        BulkUpgradeResult
    """
    start_time = time.time()
    results = execute_all(
        candidates, specs, runner, logger,
        timeout=timeout, extra_args=extra_args, dry_run=dry_run,
    )
    return BulkUpgradeResult(results=tuple(results), duration_seconds=time.time() - start_time)

"""
Upgrade discovery across package managers.

Each manager is queried for a structured (JSON) report first and falls back
to its human-readable report. Every failure degrades to an empty list for
that manager; discovery for other managers is never affected.
"""

from __future__ import annotations

import logging
import re
from typing import Sequence

from .errors import CommandError, ParseError, ParseFailure
from .models import UpgradeCandidate
from .package_managers import PackageManagerSpec
from .parsers import parse_delimited, parse_structured, parse_tabular
from .runner import CommandRunner


# Phrases a tool prints when it does not understand the structured-output flag
UNSUPPORTED_OPTION_PATTERNS = (
    "unrecognized option",
    "unknown option",
    "argument name was not recognized",
)

# Phrases meaning "nothing to upgrade" in a report without a table
NO_UPGRADES_PATTERN = re.compile(
    r"no applicable upgrade|no installed package found|no available upgrade"
    r"|all packages (are )?up[- ]to[- ]date|0 upgrades? available",
    re.IGNORECASE,
)

# Longest raw-output excerpt included in a warning
EXCERPT_LENGTH = 300

DEFAULT_QUERY_TIMEOUT = 300


def _excerpt(text: str) -> str:
    text = (text or "").strip()
    if len(text) > EXCERPT_LENGTH:
        return text[:EXCERPT_LENGTH] + "..."
    return text


def structured_output_unsupported(output: str) -> bool:
    """
    Check whether a structured query was rejected by the tool.

    Args:
        output: Raw output of the structured query

    Returns:
        True when the output names an unknown option and is not JSON
    """
    lowered = (output or "").lower()
    if not any(phrase in lowered for phrase in UNSUPPORTED_OPTION_PATTERNS):
        return False
    return not (output or "").lstrip().startswith(("[", "{"))


def _query_structured(
    spec: PackageManagerSpec,
    runner: CommandRunner,
    logger: logging.Logger,
    timeout: int,
) -> list[UpgradeCandidate] | None:
    """Run the structured query; None signals the caller to fall back."""
    if spec.structured_query is None:
        return None

    try:
        result = runner.run(spec.structured_query, timeout=timeout)
    except CommandError as e:
        logger.warning(f"{spec.display_name}: structured query failed: {e.message}")
        return None

    if structured_output_unsupported(result.output):
        logger.debug(f"{spec.display_name}: structured output not supported, using text report")
        return None

    try:
        return parse_structured(result.output)
    except ParseError as e:
        logger.debug(
            f"{spec.display_name}: structured report unusable ({e.reason.value}); "
            f"output: {_excerpt(result.output)!r}"
        )
        return None


def _query_tabular(
    spec: PackageManagerSpec,
    runner: CommandRunner,
    logger: logging.Logger,
    timeout: int,
) -> list[UpgradeCandidate]:
    """Run the text query and parse it; failures yield an empty list."""
    try:
        result = runner.run(spec.tabular_query, timeout=timeout)
    except CommandError as e:
        logger.warning(f"{spec.display_name}: upgrade query failed: {e.message}")
        return []

    if spec.tabular_format == "delimited":
        return parse_delimited(result.output)

    skipped: list[str] = []
    try:
        candidates = parse_tabular(result.output, skipped=skipped)
    except ParseError as e:
        if e.reason is ParseFailure.NO_SEPARATOR and NO_UPGRADES_PATTERN.search(result.output or ""):
            logger.debug(f"{spec.display_name}: no pending upgrades reported")
            return []
        logger.warning(
            f"{spec.display_name}: could not parse upgrade report ({e.reason.value}); "
            f"exit code {result.exit_code}, output: {_excerpt(result.output)!r}"
        )
        return []

    for line in skipped:
        logger.warning(f"{spec.display_name}: skipped unparseable row: {line!r}")

    return candidates


def discover_upgrades(
    spec: PackageManagerSpec,
    runner: CommandRunner,
    logger: logging.Logger,
    timeout: int = DEFAULT_QUERY_TIMEOUT,
) -> list[UpgradeCandidate]:
    """
    Discover pending upgrades reported by one package manager.

    Args:
        spec: Package manager to query
        runner: Command execution facility
        logger: Run logger
        timeout: Timeout in seconds for each query

    Returns:
        Candidates tagged with spec.manager (empty when unavailable or unparseable)
    """
    if not runner.is_available(spec.executable):
        logger.info(f"{spec.display_name} ({spec.executable}) not found, skipping")
        return []

    logger.info(f"Checking {spec.display_name} for upgrades...")

    candidates = _query_structured(spec, runner, logger, timeout)
    if not candidates:
        candidates = _query_tabular(spec, runner, logger, timeout)

    tagged = [candidate.with_manager(spec.manager) for candidate in candidates]
    logger.info(f"{spec.display_name}: {len(tagged)} upgrade(s) available")
    for candidate in tagged:
        logger.debug(
            f"  {candidate.name} ({candidate.id}) {candidate.version_jump_description()}"
        )
    return tagged


def discover_all(
    specs: Sequence[PackageManagerSpec],
    runner: CommandRunner,
    logger: logging.Logger,
    timeout: int = DEFAULT_QUERY_TIMEOUT,
) -> dict[str, list[UpgradeCandidate]]:
    """
    Query every package manager sequentially, in the given order.

    Args:
        specs: Package managers to query
        runner: Command execution facility
        logger: Run logger
        timeout: Timeout in seconds for each query

    Returns:
        Mapping of manager name to its candidates, in query order
    """
    discovered: dict[str, list[UpgradeCandidate]] = {}
    for spec in specs:
        try:
            discovered[spec.name] = discover_upgrades(spec, runner, logger, timeout)
        except Exception as e:
            logger.error(f"{spec.display_name}: discovery aborted: {e}")
            discovered[spec.name] = []
    return discovered

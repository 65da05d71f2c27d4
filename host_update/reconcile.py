"""
Reconciliation of discovered upgrades into one execution plan.

Concatenates candidates from every package manager (keeping duplicates that
two managers report independently) and drops excluded packages.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from .models import UpgradeCandidate


# Identifier ends at the first whitespace or "[" (e.g. "Vendor.App [winget]")
_ID_TERMINATOR = re.compile(r"[\s\[]")


@dataclass(frozen=True)
class ReconcileReport:
    """
    Result of reconciling discovered candidates.

    Attributes:
        accepted: Candidates to upgrade, in discovery order
        excluded: Candidates dropped by the exclusion list, in discovery order
    """
    accepted: tuple[UpgradeCandidate, ...]
    excluded: tuple[UpgradeCandidate, ...]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "accepted": [c.to_dict() for c in self.accepted],
            "excluded": [c.to_dict() for c in self.excluded],
        }


def normalize_id(raw_id: str) -> str:
    """
    Strip embedded annotations from a package identifier.

    Args:
        raw_id: Identifier as reported (e.g. "Vendor.App [winget]")

    Returns:
        Identifier truncated at the first whitespace or "[" (e.g. "Vendor.App")
    """
    text = (raw_id or "").strip()
    match = _ID_TERMINATOR.search(text)
    if match:
        text = text[:match.start()]
    return text.strip()


def is_excluded(candidate: UpgradeCandidate, exclusions: frozenset[str] | set[str]) -> bool:
    """
    Check a candidate against the exclusion set.

    Args:
        candidate: Candidate to check
        exclusions: Lower-cased excluded identifiers

    Returns:
        True when the normalized or raw id matches case-insensitively
    """
    if not exclusions:
        return False
    normalized = normalize_id(candidate.id).lower()
    raw = candidate.id.strip().lower()
    return normalized in exclusions or raw in exclusions


def _flatten(
    candidate_lists: Mapping[str, Sequence[UpgradeCandidate]] | Iterable[Sequence[UpgradeCandidate]],
) -> list[UpgradeCandidate]:
    lists = candidate_lists.values() if isinstance(candidate_lists, Mapping) else candidate_lists
    return [candidate for candidates in lists for candidate in candidates]


def reconcile_with_report(
    candidate_lists: Mapping[str, Sequence[UpgradeCandidate]] | Iterable[Sequence[UpgradeCandidate]],
    exclusions: frozenset[str] | set[str],
    logger: logging.Logger | None = None,
) -> ReconcileReport:
    """
    Merge per-manager candidate lists and apply the exclusion list.

    No cross-manager deduplication is performed: a package visible to two
    managers yields two candidates, since each manager upgrades independently.

    Args:
        candidate_lists: Per-manager candidate lists, in manager-query order
        exclusions: Excluded identifiers (matched case-insensitively)
        logger: Run logger

    Returns:
        ReconcileReport with accepted and excluded candidates
    """
    lowered = frozenset(e.lower() for e in exclusions)
    accepted = []
    excluded = []

    for candidate in _flatten(candidate_lists):
        if is_excluded(candidate, lowered):
            excluded.append(candidate)
            if logger:
                logger.info(f"Excluded: {candidate.name} ({candidate.id})")
        else:
            accepted.append(candidate)

    return ReconcileReport(accepted=tuple(accepted), excluded=tuple(excluded))


def reconcile(
    candidate_lists: Mapping[str, Sequence[UpgradeCandidate]] | Iterable[Sequence[UpgradeCandidate]],
    exclusions: frozenset[str] | set[str],
    logger: logging.Logger | None = None,
) -> list[UpgradeCandidate]:
    """
    Merge per-manager candidate lists and drop excluded packages.

    Args:
        candidate_lists: Per-manager candidate lists, in manager-query order
        exclusions: Excluded identifiers (matched case-insensitively)
        logger: Run logger

    Returns:
        Accepted candidates in original discovery order
    """
    return list(reconcile_with_report(candidate_lists, exclusions, logger).accepted)

"""
Interactive confirmation before upgrades run.
"""

from __future__ import annotations

import sys
from typing import Sequence, TextIO

from .models import UpgradeCandidate


def confirm(message: str, stream: TextIO | None = None) -> bool:
    """
    Ask a yes/no question.

    Args:
        message: Question to display (a " [y/N]: " suffix is appended)
        stream: Where the question is written (defaults to stdout)

    Returns:
        True if user confirms, False otherwise (always False when non-interactive)
    """
    if not sys.stdin.isatty():
        return False

    stream = stream or sys.stdout
    print(f"{message} [y/N]: ", end="", flush=True, file=stream)
    try:
        response = input().strip().lower()
    except EOFError:
        return False
    return response in ('y', 'yes')


def confirm_upgrades(
    candidates: Sequence[UpgradeCandidate],
    stream: TextIO | None = None,
) -> bool:
    """
    Confirm the upgrade plan, calling out major version jumps.

    Args:
        candidates: Accepted candidates about to be upgraded
        stream: Where the plan warnings and question are written (defaults to stdout)

    Returns:
        True if user confirms, False otherwise
    """
    stream = stream or sys.stdout
    major = [c for c in candidates if c.is_major_upgrade]
    if major:
        print(f"\n⚠️  {len(major)} package(s) jump a MAJOR version:\n", file=stream)
        for candidate in major:
            print(f"  • {candidate.name}: {candidate.version_jump_description()}", file=stream)
        print(file=stream)

    return confirm(f"Upgrade {len(candidates)} package(s)?", stream=stream)

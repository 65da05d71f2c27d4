"""
Value objects shared by discovery, reconciliation and execution.

Each stage produces one of these and hands it read-only to the next.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


class Manager(Enum):
    """Which package manager produced (and will upgrade) a record."""

    PRIMARY = "primary"
    SECONDARY = "secondary"


class UpgradeStatus(Enum):
    """Outcome of a single upgrade attempt."""

    SUCCESS = "success"
    FAILED = "failed"
    ERROR = "error"


# Exit code reported when the upgrade process could not be started at all
SPAWN_FAILURE_EXIT_CODE = -1


def is_major_upgrade(v1: str | None, v2: str | None) -> bool:
    """
    Check if upgrade from v1 to v2 is a major version bump.

    Args:
        v1: Current version
        v2: Target version

    Returns:
        True if v2 is a major version ahead of v1, False when undeterminable
    """
    if not v1 or not v2:
        return False
    try:
        from packaging import version
        ver1 = version.parse(v1)
        ver2 = version.parse(v2)
        return ver2.major > ver1.major
    except Exception:
        # Windows package versions are often not PEP 440 ("<1.2", "Unknown")
        parts1 = v1.split(".")
        parts2 = v2.split(".")
        if parts1[0].isdigit() and parts2[0].isdigit():
            return int(parts2[0]) > int(parts1[0])
        return False


@dataclass(frozen=True)
class UpgradeCandidate:
    """
    A pending upgrade discovered from one package manager.

    Attributes:
        name: Display name (may contain spaces)
        id: Package identifier; may still carry annotations like "[winget]"
        current_version: Installed version, if the report includes it
        available_version: Version the manager would upgrade to, if known
        source: Provenance token reported by the manager (informational)
        manager: Package manager that reported the record
    """
    name: str
    id: str
    current_version: str | None = None
    available_version: str | None = None
    source: str = ""
    manager: Manager = Manager.PRIMARY

    def with_manager(self, manager: Manager) -> UpgradeCandidate:
        """Return a copy tagged with the given manager."""
        return replace(self, manager=manager)

    @property
    def is_major_upgrade(self) -> bool:
        return is_major_upgrade(self.current_version, self.available_version)

    def version_jump_description(self) -> str:
        """Human-readable version jump description."""
        current = self.current_version or "?"
        available = self.available_version or "?"
        if self.is_major_upgrade:
            return f"{current} → {available} (MAJOR)"
        return f"{current} → {available}"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "id": self.id,
            "current_version": self.current_version,
            "available_version": self.available_version,
            "source": self.source,
            "manager": self.manager.value,
        }


@dataclass(frozen=True)
class UpgradeResult:
    """
    Result of attempting one candidate's upgrade.

    Attributes:
        name: Display name copied from the candidate
        id: Identifier copied from the candidate
        manager: Manager copied from the candidate
        status: Classified outcome
        exit_code: Raw process exit code, or SPAWN_FAILURE_EXIT_CODE
        output: Combined stdout/stderr, or the spawn failure description
        duration_seconds: Wall time spent on the attempt
    """
    name: str
    id: str
    manager: Manager
    status: UpgradeStatus
    exit_code: int
    output: str = ""
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status is UpgradeStatus.SUCCESS

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "id": self.id,
            "manager": self.manager.value,
            "status": self.status.value,
            "exit_code": self.exit_code,
            "duration_seconds": self.duration_seconds,
        }

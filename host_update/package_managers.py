"""
Package manager registry.

Describes how each supported package manager is queried for pending
upgrades and how a single package is upgraded:

1. winget (Windows Package Manager) - primary
2. Chocolatey - optional secondary
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence

from .config import Config
from .models import Manager, UpgradeCandidate


@dataclass(frozen=True)
class PackageManagerSpec:
    """
    Package manager definition.

    Attributes:
        name: Package manager identifier (e.g., "winget", "choco")
        display_name: Human-readable name
        executable: Tool that must resolve on PATH
        manager: Role of this manager in the pipeline
        structured_query: Command producing a JSON report, or None if unsupported
        tabular_query: Command producing a human-readable report
        tabular_format: "table" (dash-separated columns) or "delimited" (pipe rows)
        upgrade_command_template: Upgrade command (use {id} placeholder)
    """
    name: str
    display_name: str
    executable: str
    manager: Manager
    structured_query: tuple[str, ...] | None
    tabular_query: tuple[str, ...]
    tabular_format: str = "table"
    upgrade_command_template: tuple[str, ...] = ()

    def __post_init__(self):
        """Validate spec after initialization."""
        if self.tabular_format not in {"table", "delimited"}:
            raise ValueError(
                f"Invalid tabular_format: {self.tabular_format}. "
                "Must be 'table' or 'delimited'"
            )

    def get_upgrade_command(
        self,
        package_id: str,
        extra_args: Sequence[str] = (),
    ) -> tuple[str, ...]:
        """
        Get upgrade command for a package.

        Args:
            package_id: Normalized package identifier
            extra_args: Additional arguments appended to the command

        Returns:
            Command tuple to upgrade the package
        """
        command = [part.replace("{id}", package_id) for part in self.upgrade_command_template]
        command.extend(extra_args)
        return tuple(command)

    def with_extra_query_args(self, *args: str) -> PackageManagerSpec:
        """Return a copy whose query commands carry additional arguments."""
        return replace(
            self,
            structured_query=self.structured_query + args if self.structured_query else None,
            tabular_query=self.tabular_query + args,
        )


# Package Manager Registry
# Ordered by query order; primary first

WINGET = PackageManagerSpec(
    name="winget",
    display_name="Windows Package Manager",
    executable="winget",
    manager=Manager.PRIMARY,
    structured_query=("winget", "upgrade", "--output", "json", "--accept-source-agreements"),
    tabular_query=("winget", "upgrade", "--accept-source-agreements"),
    tabular_format="table",
    upgrade_command_template=(
        "winget", "upgrade", "--id", "{id}", "--exact", "--silent",
        "--accept-package-agreements", "--accept-source-agreements",
    ),
)

CHOCOLATEY = PackageManagerSpec(
    name="choco",
    display_name="Chocolatey",
    executable="choco",
    manager=Manager.SECONDARY,
    structured_query=None,
    tabular_query=("choco", "outdated", "--limit-output"),
    tabular_format="delimited",
    upgrade_command_template=("choco", "upgrade", "{id}", "-y"),
)

PACKAGE_MANAGERS = (WINGET, CHOCOLATEY)

_PM_BY_NAME = {pm.name: pm for pm in PACKAGE_MANAGERS}


def get_package_manager(name: str) -> PackageManagerSpec | None:
    """
    Get package manager by name.

    Args:
        name: Package manager name

    Returns:
        PackageManagerSpec object or None if not found
    """
    return _PM_BY_NAME.get(name)


def get_enabled_package_managers(
    config: Config,
    primary_only: bool = False,
) -> list[PackageManagerSpec]:
    """
    Get package managers to query for this run, in query order.

    Args:
        config: Configuration object
        primary_only: Skip secondary managers

    Returns:
        List of enabled PackageManagerSpec objects
    """
    enabled = []
    for pm in PACKAGE_MANAGERS:
        if primary_only and pm.manager is not Manager.PRIMARY:
            continue
        if not config.get_manager_config(pm.name).enabled:
            continue
        if pm is WINGET and config.preferences.include_unknown:
            pm = pm.with_extra_query_args("--include-unknown")
        enabled.append(pm)
    return enabled


def spec_for_candidate(
    candidate: UpgradeCandidate,
    specs: Sequence[PackageManagerSpec],
) -> PackageManagerSpec | None:
    """Find the package manager that routes upgrades for a candidate's manager."""
    return next((pm for pm in specs if pm.manager is candidate.manager), None)

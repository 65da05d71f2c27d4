"""
host-update - Discover, filter and apply pending package upgrades.

Core Modules:
- Parsing: JSON and column-aligned report parsers
- Discovery: Per-manager queries with structured/text fallback
- Reconciliation: Merging manager results and applying the exclusion list
- Upgrade Execution: Sequential upgrades with layered outcome classification
- Foundation: Configuration, logging, command execution
"""

__version__ = "1.0.0"
__author__ = "host-update Contributors"

VERSION = __version__

# Data model
from .models import (
    Manager,
    UpgradeCandidate,
    UpgradeResult,
    UpgradeStatus,
    SPAWN_FAILURE_EXIT_CODE,
)
from .errors import HostUpdateError, ParseError, ParseFailure, CommandError

# Parsing
from .parsers import parse_structured, parse_tabular, parse_delimited

# Foundation
from .config import (
    Config,
    ManagerConfig,
    Preferences,
    load_config,
    load_config_file,
    load_exclusions,
    validate_config,
)
from .runner import CommandRunner, CommandResult
from .package_managers import (
    PackageManagerSpec,
    PACKAGE_MANAGERS,
    WINGET,
    CHOCOLATEY,
    get_package_manager,
    get_enabled_package_managers,
)

# Discovery
from .discovery import discover_upgrades, discover_all

# Reconciliation
from .reconcile import ReconcileReport, normalize_id, reconcile, reconcile_with_report

# Upgrade Execution
from .upgrade import (
    BulkUpgradeResult,
    classify_outcome,
    build_upgrade_command,
    execute_upgrade,
    execute_all,
    bulk_upgrade,
)

# Logging configuration
from .logging_config import setup_logging, audit_log_path

__all__ = [
    # Version
    "__version__",
    "VERSION",
    # Data model
    "Manager",
    "UpgradeCandidate",
    "UpgradeResult",
    "UpgradeStatus",
    "SPAWN_FAILURE_EXIT_CODE",
    "HostUpdateError",
    "ParseError",
    "ParseFailure",
    "CommandError",
    # Parsing
    "parse_structured",
    "parse_tabular",
    "parse_delimited",
    # Foundation
    "Config",
    "ManagerConfig",
    "Preferences",
    "load_config",
    "load_config_file",
    "load_exclusions",
    "validate_config",
    "CommandRunner",
    "CommandResult",
    "PackageManagerSpec",
    "PACKAGE_MANAGERS",
    "WINGET",
    "CHOCOLATEY",
    "get_package_manager",
    "get_enabled_package_managers",
    # Discovery
    "discover_upgrades",
    "discover_all",
    # Reconciliation
    "ReconcileReport",
    "normalize_id",
    "reconcile",
    "reconcile_with_report",
    # Upgrade Execution
    "BulkUpgradeResult",
    "classify_outcome",
    "build_upgrade_command",
    "execute_upgrade",
    "execute_all",
    "bulk_upgrade",
    # Logging
    "setup_logging",
    "audit_log_path",
]

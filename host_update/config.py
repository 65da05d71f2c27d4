"""
Configuration file parsing and management.

Supports YAML configuration files, and JSON for files with a .json extension.
Merges configurations from multiple sources (explicit path → project → user → defaults).
Also loads the exclusion list consulted by the reconciler.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any

import yaml


# Configuration file locations (in priority order)
CONFIG_LOCATIONS = [
    ".host-update.yml",                                    # Project/working dir (highest priority)
    ".host-update.yaml",                                   # Alternative extension
    os.path.expanduser("~/.config/host-update/config.yml"),  # User global
    os.path.expanduser("~/.config/host-update/config.yaml"),
]

DEFAULT_EXCLUSIONS_FILE = os.path.expanduser("~/.config/host-update/exclusions.json")
DEFAULT_LOG_DIR = os.path.expanduser("~/.host-update/logs")

# Keys under which an exclusion file may store its identifier list
EXCLUSION_KEYS = ("exclusions", "excluded", "ids")

_log = logging.getLogger("host_update.config")


@dataclass(frozen=True)
class ManagerConfig:
    """
    Configuration for one package manager.

    Attributes:
        enabled: Whether the manager is queried at all
        extra_upgrade_args: Arguments appended to every upgrade command
    """
    enabled: bool = True
    extra_upgrade_args: tuple[str, ...] = ()

    @staticmethod
    def from_dict(data: dict[str, Any]) -> ManagerConfig:
        """Create ManagerConfig from dictionary."""
        return ManagerConfig(
            enabled=bool(data.get("enabled", True)),
            extra_upgrade_args=tuple(str(a) for a in data.get("extra_upgrade_args", ())),
        )


@dataclass(frozen=True)
class Preferences:
    """
    Run behavior preferences.

    Attributes:
        timeout_seconds: Timeout for discovery queries
        upgrade_timeout_seconds: Timeout for a single upgrade command
        confirm: Ask before executing upgrades
        include_unknown: Also report packages whose installed version is unknown
    """
    timeout_seconds: int = 300
    upgrade_timeout_seconds: int = 1800
    confirm: bool = True
    include_unknown: bool = False

    def __post_init__(self):
        """Validate preferences after initialization."""
        if self.timeout_seconds < 10 or self.timeout_seconds > 3600:
            raise ValueError(
                f"Invalid timeout_seconds: {self.timeout_seconds}. "
                "Must be between 10 and 3600"
            )

        if self.upgrade_timeout_seconds < 60 or self.upgrade_timeout_seconds > 7200:
            raise ValueError(
                f"Invalid upgrade_timeout_seconds: {self.upgrade_timeout_seconds}. "
                "Must be between 60 and 7200"
            )

    @staticmethod
    def from_dict(data: dict[str, Any]) -> Preferences:
        """Create Preferences from dictionary."""
        return Preferences(
            timeout_seconds=data.get("timeout_seconds", 300),
            upgrade_timeout_seconds=data.get("upgrade_timeout_seconds", 1800),
            confirm=data.get("confirm", True),
            include_unknown=data.get("include_unknown", False),
        )


@dataclass(frozen=True)
class Config:
    """
    Complete configuration for a host update run.

    Attributes:
        version: Config schema version
        exclusions_file: Path to the exclusion list
        log_dir: Directory receiving timestamped audit logs
        managers: Per-manager configuration, keyed by manager name
        preferences: Run behavior preferences
        source: Path to the configuration file that was loaded
    """
    version: int = 1
    exclusions_file: str = DEFAULT_EXCLUSIONS_FILE
    log_dir: str = DEFAULT_LOG_DIR
    managers: dict[str, ManagerConfig] = field(default_factory=dict)
    preferences: Preferences = field(default_factory=Preferences)
    source: str = ""

    def __post_init__(self):
        """Validate config after initialization."""
        if self.version != 1:
            raise ValueError(f"Unsupported config version: {self.version}. Expected version 1")

    @staticmethod
    def from_dict(data: dict[str, Any], source: str = "") -> Config:
        """Create Config from dictionary."""
        managers_data = data.get("managers", {}) or {}
        managers = {
            name: ManagerConfig.from_dict(manager_config or {})
            for name, manager_config in managers_data.items()
        }

        preferences = Preferences.from_dict(data.get("preferences", {}) or {})

        return Config(
            version=data.get("version", 1),
            exclusions_file=os.path.expanduser(data.get("exclusions_file", DEFAULT_EXCLUSIONS_FILE)),
            log_dir=os.path.expanduser(data.get("log_dir", DEFAULT_LOG_DIR)),
            managers=managers,
            preferences=preferences,
            source=source,
        )

    def get_manager_config(self, name: str) -> ManagerConfig:
        """
        Get configuration for a specific package manager.

        Args:
            name: Package manager name (e.g., "winget")

        Returns:
            ManagerConfig for the manager, or default ManagerConfig if not configured
        """
        return self.managers.get(name, ManagerConfig())

    def merge_with(self, other: Config) -> Config:
        """
        Merge this config with another, preferring values from this config.

        Args:
            other: Other config to merge (lower priority)

        Returns:
            New merged Config object
        """
        merged_managers = dict(other.managers)
        merged_managers.update(self.managers)

        defaults = Preferences()
        mine, theirs = self.preferences, other.preferences
        merged_preferences = Preferences(
            timeout_seconds=mine.timeout_seconds if mine.timeout_seconds != defaults.timeout_seconds else theirs.timeout_seconds,
            upgrade_timeout_seconds=mine.upgrade_timeout_seconds if mine.upgrade_timeout_seconds != defaults.upgrade_timeout_seconds else theirs.upgrade_timeout_seconds,
            confirm=mine.confirm,
            include_unknown=mine.include_unknown or theirs.include_unknown,
        )

        return Config(
            version=self.version,
            exclusions_file=self.exclusions_file if self.exclusions_file != DEFAULT_EXCLUSIONS_FILE else other.exclusions_file,
            log_dir=self.log_dir if self.log_dir != DEFAULT_LOG_DIR else other.log_dir,
            managers=merged_managers,
            preferences=merged_preferences,
            source=self.source or other.source,
        )


def _load_yaml(file_path: str) -> Any:
    """
    Load a YAML document.

    Args:
        file_path: Path to YAML file

    Returns:
        Parsed document, or None if the file is unreadable or invalid
    """
    try:
        with open(file_path, "r", encoding="utf-8-sig") as f:
            return yaml.safe_load(f)
    except (OSError, yaml.YAMLError):
        return None


def _load_json(file_path: str) -> Any:
    """
    Load a JSON document.

    Args:
        file_path: Path to JSON file

    Returns:
        Parsed document, or None if the file is unreadable or invalid
    """
    try:
        # utf-8-sig tolerates a leading BOM
        with open(file_path, "r", encoding="utf-8-sig") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError):
        return None


def _load_document(file_path: str) -> Any:
    """Load a configuration document, choosing the parser by extension."""
    if file_path.lower().endswith(".json"):
        return _load_json(file_path)
    return _load_yaml(file_path)


def load_config_file(file_path: str, logger: logging.Logger | None = None) -> Config | None:
    """
    Load configuration from a single file.

    Args:
        file_path: Path to configuration file
        logger: Logger for diagnostics

    Returns:
        Config object, or None if file cannot be loaded
    """
    log = logger or _log
    if not os.path.exists(file_path):
        return None

    log.debug(f"Loading config from: {file_path}")

    data = _load_document(file_path)
    if data is None:
        log.debug(f"Invalid config file: {file_path}")
        return None
    if not isinstance(data, dict):
        log.debug(f"Config file is not a mapping: {file_path}")
        return None

    try:
        config = Config.from_dict(data, source=file_path)
        log.debug(f"Loaded config successfully: {file_path}")
        return config
    except (ValueError, TypeError, AttributeError) as e:
        log.debug(f"Config validation failed for {file_path}: {e}")
        return None


def load_config(
    custom_path: str | None = None,
    logger: logging.Logger | None = None,
) -> Config:
    """
    Load and merge configuration from all sources.

    Configuration precedence (highest to lowest):
    1. Custom path (if provided)
    2. Project .host-update.yml
    3. User ~/.config/host-update/config.yml
    4. Default configuration

    Args:
        custom_path: Optional path to custom configuration file
        logger: Logger for diagnostics

    Returns:
        Merged Config object (never None, returns defaults if no config found)

    Raises:
        ValueError: If custom_path is provided but file cannot be loaded
    """
    log = logger or _log
    configs: list[Config] = []

    if custom_path:
        config = load_config_file(custom_path, log)
        if config is None:
            raise ValueError(f"Could not load config from specified path: {custom_path}")
        configs.append(config)
        log.debug(f"Using custom config: {custom_path}")

    for location in CONFIG_LOCATIONS:
        config = load_config_file(location, log)
        if config is not None:
            configs.append(config)
            log.debug(f"Found config at: {location}")

    if not configs:
        log.debug("No config files found, using defaults")
        return Config()

    # First config has highest priority
    merged = configs[0]
    for config in configs[1:]:
        merged = merged.merge_with(config)

    log.debug(f"Merged {len(configs)} config files")
    return merged


def validate_config(config: Config, known_managers: set[str] | None = None) -> list[str]:
    """
    Validate configuration and return list of warnings.

    Args:
        config: Config object to validate
        known_managers: Names of package managers this build knows about

    Returns:
        List of validation warning messages (empty if valid)
    """
    warnings = []

    if known_managers is not None:
        for name in config.managers:
            if name not in known_managers:
                warnings.append(f"Unknown package manager in config: {name}")

        enabled = [
            name for name in known_managers
            if config.get_manager_config(name).enabled
        ]
        if not enabled:
            warnings.append("All package managers are disabled; nothing will be upgraded")

    for name, manager_config in config.managers.items():
        if len(manager_config.extra_upgrade_args) != len(set(manager_config.extra_upgrade_args)):
            warnings.append(f"Duplicate extra_upgrade_args for {name}")

    return warnings


def load_exclusions(path: str | None, logger: logging.Logger | None = None) -> frozenset[str]:
    """
    Load the exclusion list.

    Accepts a JSON/YAML list of identifiers, or a mapping holding such a list
    under one of EXCLUSION_KEYS. Identifiers are lower-cased for
    case-insensitive matching.

    Args:
        path: Path to the exclusion file
        logger: Logger for diagnostics

    Returns:
        Frozen set of lower-cased identifiers (empty when missing or malformed)
    """
    log = logger or _log
    if not path:
        return frozenset()

    if not os.path.exists(path):
        log.warning(f"Exclusion file not found, no packages excluded: {path}")
        return frozenset()

    data = _load_document(path)
    if isinstance(data, dict):
        data = next((data[k] for k in EXCLUSION_KEYS if isinstance(data.get(k), list)), None)

    if not isinstance(data, list):
        log.warning(f"Exclusion file is malformed, no packages excluded: {path}")
        return frozenset()

    exclusions = frozenset(
        str(entry).strip().lower()
        for entry in data
        if entry is not None and str(entry).strip()
    )
    log.info(f"Loaded {len(exclusions)} exclusion(s) from {path}")
    return exclusions

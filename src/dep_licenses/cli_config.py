"""
Configuration management for dep-licenses.

Provides project settings (which sources run, which dependencies are ignored),
external command limits and logging options, loaded from a project config
file and environment variable overrides.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import toml
import yaml
from rich.console import Console

from .error_handling import ErrorCategory, get_error_handler

console = Console(stderr=True)

CONFIG_FILE_NAMES = [
    ".dep-licenses.yml",
    ".dep-licenses.yaml",
    ".dep-licenses.json",
    ".dep-licenses.toml",
]


@dataclass
class ShellConfig:
    """External command execution configuration."""

    timeout_seconds: Optional[float] = None


@dataclass
class LoggingConfig:
    """Logging configuration."""

    log_level: str = "WARNING"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    enable_json: bool = True


@dataclass
class BundlerConfig:
    """Settings for the bundler source."""

    # None keeps the default excluded groups (development, test)
    without: Optional[List[str]] = None


@dataclass
class LicensedConfig:
    """Main configuration containing all subsections."""

    root: str = "."
    sources: Dict[str, bool] = field(default_factory=dict)
    ignored: Dict[str, List[str]] = field(default_factory=dict)
    shell: ShellConfig = field(default_factory=ShellConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    bundler: BundlerConfig = field(default_factory=BundlerConfig)

    @property
    def pwd(self) -> Path:
        """Absolute project root."""
        return Path(self.root).expanduser().resolve()

    def enabled(self, source_type: str) -> bool:
        """
        Whether a source type may run for this project.

        When any source is explicitly enabled, only explicitly enabled sources
        run. Otherwise every source runs unless explicitly disabled.
        """
        if any(self.sources.values()):
            return bool(self.sources.get(source_type, False))
        return self.sources.get(source_type, True)

    def is_ignored(self, attributes: Mapping[str, str]) -> bool:
        """
        Check a dependency against the ignore policy.

        Args:
            attributes: Identifying attributes, at least ``type`` and ``name``

        Returns:
            bool: True if the dependency should be excluded
        """
        source_type = attributes.get("type")
        name = attributes.get("name")
        if not source_type or not name:
            return False
        return name in self.ignored.get(source_type, [])

    def ignore(self, attributes: Mapping[str, str]) -> None:
        """Add an ignore rule for ``{type, name}``."""
        names = self.ignored.setdefault(attributes["type"], [])
        if attributes["name"] not in names:
            names.append(attributes["name"])


# Global configuration instance
_global_config: Optional[LicensedConfig] = None


def validate_config_values(config: LicensedConfig) -> List[str]:
    """
    Validate configuration values and return any errors.

    Args:
        config: Configuration to validate

    Returns:
        List[str]: List of validation errors (empty if valid)
    """
    errors = []

    if config.shell.timeout_seconds is not None and config.shell.timeout_seconds <= 0:
        errors.append("shell.timeout_seconds must be positive")

    if config.logging.log_level.upper() not in {
        "DEBUG",
        "INFO",
        "WARNING",
        "ERROR",
        "CRITICAL",
    }:
        errors.append(f"logging.log_level is not a valid level: {config.logging.log_level}")

    for source_type, value in config.sources.items():
        if not isinstance(value, bool):
            errors.append(f"sources.{source_type} must be true or false")

    for source_type, names in config.ignored.items():
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            errors.append(f"ignored.{source_type} must be a list of package names")

    if config.bundler.without is not None and not isinstance(config.bundler.without, list):
        errors.append("bundler.without must be a list of group names")

    if not config.pwd.is_dir():
        errors.append(f"root is not a directory: {config.root}")

    return errors


def load_config_file(config_path: Path) -> Optional[Dict[str, Any]]:
    """Load config from a YAML, JSON or TOML file."""
    if not config_path.exists():
        return None

    try:
        with open(config_path, encoding="utf-8") as f:
            suffix = config_path.suffix.lower()
            if suffix in [".yaml", ".yml"]:
                return yaml.safe_load(f) or {}
            elif suffix == ".json":
                return json.load(f)
            elif suffix == ".toml":
                return toml.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        console.print(
            f"⚠️  Error loading config from {config_path}: {e}", style="yellow"
        )
        get_error_handler().warning(
            ErrorCategory.PARSING,
            f"Could not load config file {config_path}",
            "cli_config",
            "load_config_file",
            exception=e,
        )

    return None


def find_config_file(root: Optional[Path] = None) -> Optional[Path]:
    """Find config file in the project root or the user config directory."""
    root = root or Path.cwd()
    locations = [root / name for name in CONFIG_FILE_NAMES] + [
        Path.home() / ".config" / "dep-licenses" / "config.yml",
    ]

    for location in locations:
        if location.exists():
            return location

    return None


def load_environment_overrides(config: LicensedConfig) -> None:
    """Load environment variable overrides."""

    def get_env_float(key: str) -> Optional[float]:
        try:
            return float(os.environ[key]) if key in os.environ else None
        except ValueError:
            console.print(f"⚠️  Invalid float value for {key}, using default", style="yellow")
            return None

    if root := os.environ.get("DEP_LICENSES_ROOT"):
        config.root = root
    if log_level := os.environ.get("DEP_LICENSES_LOG_LEVEL"):
        config.logging.log_level = log_level.upper()
    if timeout := get_env_float("DEP_LICENSES_SHELL_TIMEOUT"):
        config.shell.timeout_seconds = timeout
    if sources := os.environ.get("DEP_LICENSES_SOURCES"):
        config.sources = {
            source_type.strip(): True
            for source_type in sources.split(",")
            if source_type.strip()
        }


def apply_config_section(
    config: Any, section_data: Dict[str, Any], section_name: str
) -> None:
    """Apply configuration from dictionary to config section."""
    if not isinstance(section_data, dict):
        console.print(f"⚠️  Config section {section_name} must be a mapping", style="yellow")
        return

    for key, value in section_data.items():
        if hasattr(config, key):
            setattr(config, key, value)
        else:
            console.print(
                f"⚠️  Unknown config key in {section_name}: {key}", style="yellow"
            )


def _normalize_ignored(data: Any) -> Dict[str, List[str]]:
    if not isinstance(data, dict):
        return {}
    return {
        str(source_type): [str(name) for name in (names or [])]
        for source_type, names in data.items()
    }


def build_config(file_config: Optional[Dict[str, Any]], root: Optional[Union[str, Path]] = None) -> LicensedConfig:
    """Build a configuration from parsed file contents."""
    config = LicensedConfig()
    if root is not None:
        config.root = str(root)

    if file_config:
        if "root" in file_config and root is None:
            config.root = str(file_config["root"])
        if "sources" in file_config and isinstance(file_config["sources"], dict):
            config.sources = dict(file_config["sources"])
        if "ignored" in file_config:
            config.ignored = _normalize_ignored(file_config["ignored"])
        if "shell" in file_config:
            apply_config_section(config.shell, file_config["shell"], "shell")
        if "logging" in file_config:
            apply_config_section(config.logging, file_config["logging"], "logging")
        if "bundler" in file_config:
            apply_config_section(config.bundler, file_config["bundler"], "bundler")
            without = config.bundler.without
            if isinstance(without, str):
                config.bundler.without = [g for g in without.replace(":", " ").split() if g]

    return config


def load_config(root: Optional[Union[str, Path]] = None) -> LicensedConfig:
    """Load configuration from file and environment."""
    global _global_config

    if _global_config is not None and root is None:
        return _global_config

    if root is not None:
        search_root = Path(root).resolve()
    elif os.environ.get("DEP_LICENSES_ROOT"):
        search_root = Path(os.environ["DEP_LICENSES_ROOT"]).expanduser().resolve()
    else:
        search_root = Path.cwd()
    config_file = find_config_file(search_root)
    file_config = load_config_file(config_file) if config_file else None
    config = build_config(file_config, root)

    load_environment_overrides(config)
    if root is not None:
        config.root = str(root)

    validation_errors = validate_config_values(config)
    if validation_errors:
        console.print("⚠️  Configuration validation errors:", style="red")
        for error in validation_errors:
            console.print(f"  • {error}", style="red")
        get_error_handler().warning(
            ErrorCategory.CONFIGURATION,
            "Invalid configuration values",
            "cli_config",
            "load_config",
            details={"errors": validation_errors},
            suggestions=["Run 'dep-licenses config validate' on the config file"],
        )

    _global_config = config
    return config


def get_config() -> LicensedConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = load_config()
    return _global_config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _global_config
    _global_config = None


def create_sample_config() -> str:
    """Generate a sample YAML configuration."""
    sample_config = {
        "sources": {
            "npm": True,
            "bundler": True,
        },
        "ignored": {
            "npm": ["fsevents"],
            "bundler": [],
        },
        "shell": {
            "timeout_seconds": None,
        },
        "logging": {
            "log_level": "WARNING",
            "enable_json": True,
        },
        "bundler": {
            "without": ["development", "test"],
        },
    }

    return yaml.safe_dump(sample_config, sort_keys=False)

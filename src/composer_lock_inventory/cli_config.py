"""
Configuration management for composer-lock-inventory.

Settings come from defaults, an optional JSON or YAML config file, and
environment variable overrides, in that order.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from rich.console import Console

console = Console(stderr=True)

ENV_PREFIX = "COMPOSER_LOCK_INVENTORY_"


@dataclass
class AnalyzerConfig:
    """Composer lock analyzer configuration."""

    composer_lock_enabled: bool = True
    hash_algorithm: str = "sha1"


@dataclass
class ScanConfig:
    """Core scanning configuration."""

    output_format: str = "console"
    quiet: bool = False
    verbose: bool = False
    fail_on_skip: bool = False
    exclude_dirs: List[str] = field(
        default_factory=lambda: ["vendor", ".git", "node_modules"]
    )


@dataclass
class SecurityConfig:
    """Input validation limits."""

    max_file_size_mb: int = 50

    @property
    def max_file_size_bytes(self) -> int:
        """Convert MB to bytes for internal use."""
        return self.max_file_size_mb * 1024 * 1024


@dataclass
class LoggingConfig:
    """Logging and error handling configuration."""

    log_level: str = "WARNING"
    enable_json: bool = True
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class ComprehensiveConfig:
    """Main configuration containing all subsections."""

    analyzers: AnalyzerConfig = field(default_factory=AnalyzerConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def is_enabled(self, setting_key: str) -> bool:
        """Resolve a dotted boolean setting such as ``analyzers.composer_lock_enabled``."""
        section_name, _, key = setting_key.partition(".")
        section = getattr(self, section_name, None)
        if section is None or not hasattr(section, key):
            return False
        return bool(getattr(section, key))


# Global configuration instance
_global_config: Optional[ComprehensiveConfig] = None

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_OUTPUT_FORMATS = {"console", "json"}


def validate_config_values(config: ComprehensiveConfig) -> List[str]:
    """
    Validate configuration values and return any errors.

    Args:
        config: Configuration to validate

    Returns:
        List[str]: List of validation errors (empty if valid)
    """
    errors = []

    if not config.analyzers.hash_algorithm:
        errors.append("analyzers.hash_algorithm must be a non-empty string")

    if config.scan.output_format not in _OUTPUT_FORMATS:
        errors.append(
            f"scan.output_format must be one of {sorted(_OUTPUT_FORMATS)}"
        )

    if config.security.max_file_size_mb <= 0:
        errors.append("security.max_file_size_mb must be positive")

    if str(config.logging.log_level).upper() not in _LOG_LEVELS:
        errors.append(f"logging.log_level must be one of {sorted(_LOG_LEVELS)}")

    return errors


def load_config_file(config_path: Path) -> Optional[Dict[str, Any]]:
    """Load config from file."""
    if not config_path.exists():
        return None

    try:
        with open(config_path, encoding="utf-8") as f:
            if config_path.suffix.lower() in [".yaml", ".yml"]:
                return yaml.safe_load(f)
            elif config_path.suffix.lower() == ".json":
                return json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        console.print(
            f"⚠️  Error loading config from {config_path}: {e}", style="yellow"
        )

    return None


def find_config_file() -> Optional[Path]:
    """Find config file in standard locations."""
    locations = [
        Path.cwd() / ".composer-lock-inventory.json",
        Path.cwd() / ".composer-lock-inventory.yaml",
        Path.cwd() / ".composer-lock-inventory.yml",
        Path.home() / ".config" / "composer-lock-inventory" / "config.json",
        Path.home() / ".config" / "composer-lock-inventory" / "config.yaml",
    ]

    for location in locations:
        if location.exists():
            return location

    return None


def load_environment_overrides(config: ComprehensiveConfig) -> None:
    """Load environment variable overrides."""

    def get_env_bool(key: str, default: bool = False) -> bool:
        value = os.environ.get(ENV_PREFIX + key, "").lower()
        return value in ["true", "1", "yes", "on"] if value else default

    def get_env_int(key: str, default: Optional[int] = None) -> Optional[int]:
        try:
            name = ENV_PREFIX + key
            return int(os.environ[name]) if name in os.environ else default
        except ValueError:
            console.print(
                f"⚠️  Invalid integer value for {ENV_PREFIX}{key}, using default",
                style="yellow",
            )
            return default

    config.analyzers.composer_lock_enabled = get_env_bool(
        "ENABLED", config.analyzers.composer_lock_enabled
    )
    if hash_algorithm := os.environ.get(ENV_PREFIX + "HASH_ALGORITHM"):
        config.analyzers.hash_algorithm = hash_algorithm.strip().lower()

    if max_file_size := get_env_int("MAX_FILE_SIZE_MB"):
        config.security.max_file_size_mb = max_file_size

    if log_level := os.environ.get(ENV_PREFIX + "LOG_LEVEL"):
        config.logging.log_level = log_level.upper()

    config.scan.fail_on_skip = get_env_bool("FAIL_ON_SKIP", config.scan.fail_on_skip)


def apply_config_section(
    config: Any, section_data: Dict[str, Any], section_name: str
) -> List[str]:
    """
    Apply configuration from dictionary to config section.

    Values whose type differs from the field default are not applied.

    Returns:
        List[str]: One error per rejected value
    """
    errors = []
    for key, value in section_data.items():
        if not hasattr(config, key):
            console.print(
                f"⚠️  Unknown config key in {section_name}: {key}", style="yellow"
            )
            continue

        expected = type(getattr(config, key))
        if type(value) is not expected:
            error = (
                f"{section_name}.{key} must be of type {expected.__name__}, "
                f"got {type(value).__name__}"
            )
            console.print(f"⚠️  {error}, using default", style="yellow")
            errors.append(error)
            continue

        setattr(config, key, value)
    return errors


def apply_config_data(
    config: ComprehensiveConfig, file_config: Dict[str, Any]
) -> List[str]:
    """Apply every known section of a loaded config file."""
    errors = []
    for section_name in ("analyzers", "scan", "security", "logging"):
        section_data = file_config.get(section_name)
        if isinstance(section_data, dict):
            errors.extend(
                apply_config_section(
                    getattr(config, section_name), section_data, section_name
                )
            )
    return errors


def load_config(config_path: Optional[Path] = None) -> ComprehensiveConfig:
    """Load configuration from file and environment."""
    global _global_config

    if _global_config is not None and config_path is None:
        return _global_config

    config = ComprehensiveConfig()

    config_file = config_path or find_config_file()
    if config_file:
        file_config = load_config_file(config_file)
        if isinstance(file_config, dict):
            apply_config_data(config, file_config)

    load_environment_overrides(config)

    validation_errors = validate_config_values(config)
    if validation_errors:
        console.print("⚠️  Configuration validation errors:", style="red")
        for error in validation_errors:
            console.print(f"  • {error}", style="red")
        console.print("Using default values for invalid settings.", style="yellow")
        _restore_invalid_defaults(config)

    _global_config = config
    return config


def _restore_invalid_defaults(config: ComprehensiveConfig) -> None:
    defaults = ComprehensiveConfig()
    if not config.analyzers.hash_algorithm:
        config.analyzers.hash_algorithm = defaults.analyzers.hash_algorithm
    if config.scan.output_format not in _OUTPUT_FORMATS:
        config.scan.output_format = defaults.scan.output_format
    if config.security.max_file_size_mb <= 0:
        config.security.max_file_size_mb = defaults.security.max_file_size_mb
    if str(config.logging.log_level).upper() not in _LOG_LEVELS:
        config.logging.log_level = defaults.logging.log_level


def get_config() -> ComprehensiveConfig:
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
    """Generate a sample configuration."""
    sample_config = {
        "analyzers": {
            "composer_lock_enabled": True,
            "hash_algorithm": "sha1",
        },
        "scan": {
            "output_format": "console",
            "quiet": False,
            "verbose": False,
            "fail_on_skip": False,
            "exclude_dirs": ["vendor", ".git", "node_modules"],
        },
        "security": {
            "max_file_size_mb": 50,
        },
        "logging": {
            "log_level": "WARNING",
            "enable_json": True,
            "log_format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        },
    }

    return json.dumps(sample_config, indent=2)

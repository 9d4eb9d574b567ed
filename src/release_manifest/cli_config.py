"""
Configuration management for release-manifest.

Settings come from built-in defaults, an optional config file (JSON, YAML or
TOML) and RELEASE_MANIFEST_* environment variables, in that order.
"""

import codecs
import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import toml
import yaml
from rich.console import Console

from .error_handling import ErrorCategory, get_error_handler

console = Console(stderr=True)

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@dataclass
class PipelineConfig:
    """Where and how pipeline artifacts are written."""

    results_dir_name: str = "results"
    encoding: str = "utf-8"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    log_level: str = "WARNING"
    json_format: bool = True


@dataclass
class ToolConfig:
    """Main configuration containing all subsections."""

    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# Global configuration instance
_global_config: Optional[ToolConfig] = None


def _is_known_encoding(name: str) -> bool:
    try:
        codecs.lookup(name)
    except LookupError:
        return False
    return True


def validate_config_values(config: ToolConfig) -> List[str]:
    """
    Validate configuration values and return any errors.

    Args:
        config: Configuration to validate

    Returns:
        List[str]: List of validation errors (empty if valid)
    """
    errors = []

    results_dir = config.pipeline.results_dir_name
    if not isinstance(results_dir, str) or not results_dir.strip():
        errors.append("pipeline.results_dir_name must be a non-empty string")
    elif results_dir in (".", "..") or "/" in results_dir or "\\" in results_dir:
        errors.append("pipeline.results_dir_name must be a plain directory name")

    if not isinstance(config.pipeline.encoding, str) or not _is_known_encoding(
        config.pipeline.encoding
    ):
        errors.append(f"pipeline.encoding is not a known codec: {config.pipeline.encoding}")

    if str(config.logging.log_level).upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"logging.log_level must be one of {', '.join(VALID_LOG_LEVELS)}"
        )

    if not isinstance(config.logging.json_format, bool):
        errors.append("logging.json_format must be true or false")

    return errors


def load_config_file(config_path: Path) -> Optional[Dict[str, Any]]:
    """
    Load a config file, choosing the parser from its suffix.

    Raises:
        ValueError: If the file cannot be read or parsed
    """
    if not config_path.exists():
        return None

    suffix = config_path.suffix.lower()
    try:
        with open(config_path, encoding="utf-8") as f:
            if suffix in [".yaml", ".yml"]:
                data = yaml.safe_load(f)
            elif suffix == ".toml":
                data = toml.load(f)
            elif suffix == ".json":
                data = json.load(f)
            else:
                raise ValueError(f"Unsupported config file type: {config_path.suffix}")
    except (OSError, json.JSONDecodeError, yaml.YAMLError, toml.TomlDecodeError) as e:
        raise ValueError(f"Error loading config from {config_path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")
    return data


def find_config_file() -> Optional[Path]:
    """Find config file in standard locations."""
    locations = [
        Path.cwd() / ".release-manifest.json",
        Path.cwd() / ".release-manifest.yaml",
        Path.cwd() / ".release-manifest.yml",
        Path.cwd() / ".release-manifest.toml",
        Path.home() / ".config" / "release-manifest" / "config.json",
        Path.home() / ".config" / "release-manifest" / "config.yaml",
    ]

    for location in locations:
        if location.exists():
            return location

    return None


def load_environment_overrides(config: ToolConfig) -> None:
    """Apply RELEASE_MANIFEST_* environment variables."""

    def get_env_bool(key: str, default: bool) -> bool:
        value = os.environ.get(key, "").lower()
        return value in ["true", "1", "yes", "on"] if value else default

    if results_dir := os.environ.get("RELEASE_MANIFEST_RESULTS_DIR"):
        config.pipeline.results_dir_name = results_dir
    if encoding := os.environ.get("RELEASE_MANIFEST_ENCODING"):
        config.pipeline.encoding = encoding
    if log_level := os.environ.get("RELEASE_MANIFEST_LOG_LEVEL"):
        config.logging.log_level = log_level.upper()

    config.logging.json_format = get_env_bool(
        "RELEASE_MANIFEST_JSON_LOGS", config.logging.json_format
    )


def apply_config_section(
    config: Any, section_data: Dict[str, Any], section_name: str
) -> None:
    """Apply configuration from dictionary to config section."""
    for key, value in section_data.items():
        if hasattr(config, key):
            setattr(config, key, value)
        else:
            console.print(
                f"⚠️  Unknown config key in {section_name}: {key}", style="yellow"
            )


def config_from_mapping(file_config: Optional[Dict[str, Any]]) -> ToolConfig:
    """Overlay a parsed config mapping on the defaults, without validation."""
    config = ToolConfig()

    if file_config:
        if isinstance(file_config.get("pipeline"), dict):
            apply_config_section(config.pipeline, file_config["pipeline"], "pipeline")
        if isinstance(file_config.get("logging"), dict):
            apply_config_section(config.logging, file_config["logging"], "logging")

    return config


def build_config(file_config: Optional[Dict[str, Any]] = None) -> ToolConfig:
    """Build settings from defaults, a parsed config mapping and the environment."""
    config = config_from_mapping(file_config)
    load_environment_overrides(config)

    validation_errors = validate_config_values(config)
    if validation_errors:
        console.print("⚠️  Configuration validation errors:", style="red")
        for error in validation_errors:
            console.print(f"  • {error}", style="red")
            get_error_handler().warning(
                ErrorCategory.CONFIGURATION, error, "cli_config", "build_config"
            )
        console.print("Using default values for invalid settings.", style="yellow")
        _restore_invalid_defaults(config, validation_errors)

    config.logging.log_level = str(config.logging.log_level).upper()
    return config


def _restore_invalid_defaults(config: ToolConfig, errors: List[str]) -> None:
    defaults = ToolConfig()
    for error in errors:
        section_name, _, rest = error.partition(".")
        key = rest.split(" ", 1)[0]
        section = getattr(config, section_name)
        setattr(section, key, getattr(getattr(defaults, section_name), key))


def load_config() -> ToolConfig:
    """Load configuration from file and environment, caching the result."""
    global _global_config

    if _global_config is not None:
        return _global_config

    file_config = None
    config_file = find_config_file()
    if config_file:
        try:
            file_config = load_config_file(config_file)
        except ValueError as e:
            console.print(f"⚠️  {e}", style="yellow")

    _global_config = build_config(file_config)
    return _global_config


def get_config() -> ToolConfig:
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
    """Generate a sample JSON configuration with every default spelled out."""
    return json.dumps(ToolConfig().to_dict(), indent=2)

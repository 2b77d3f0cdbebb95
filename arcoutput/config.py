from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from arcoutput.envelope import ENVELOPE_TYPES

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


@dataclass
class ParserConfig:
    """Envelope recognition and delivery settings."""

    queue_size: int = 64
    extra_envelope_types: dict[str, str] = field(default_factory=dict)

    def envelope_types(self) -> dict[str, str]:
        """Built-in envelope types merged with the configured extras."""
        return {**ENVELOPE_TYPES, **self.extra_envelope_types}


@dataclass
class OutputConfig:
    """Terminal rendering settings for the CLI."""

    color: bool = False
    success_message: str = ""
    failure_message: str = "Command failed"


@dataclass
class DebugConfig:
    """Debug mode settings."""

    enabled: bool = False
    trace: bool = False
    verbose: bool = False


@dataclass
class AppConfig:
    """Top-level configuration aggregating all subsections."""

    parser: ParserConfig = field(default_factory=ParserConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    debug: DebugConfig = field(default_factory=DebugConfig)


def load_config(path: str) -> AppConfig:
    """Load and validate configuration from a YAML file.

    Every section is optional. Missing or null sections fall back to the
    dataclass defaults.

    Args:
        path: Filesystem path to the YAML configuration file.

    Returns:
        A fully populated AppConfig instance.

    Raises:
        ConfigError: If the file does not exist, is not a mapping, or holds
            invalid values.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {path}")

    with open(config_path) as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    # An empty file loads as None
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ConfigError("Config root must be a mapping")

    # `or {}` fallback handles YAML null values for optional sections
    parser_raw = raw.get("parser", {}) or {}
    output_raw = raw.get("output", {}) or {}
    debug_raw = raw.get("debug", {}) or {}

    queue_size = parser_raw.get("queue_size", 64)
    if not isinstance(queue_size, int) or queue_size < 1:
        raise ConfigError("parser.queue_size must be a positive integer")

    extra_types = parser_raw.get("extra_envelope_types", {}) or {}
    if not isinstance(extra_types, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in extra_types.items()
    ):
        raise ConfigError("parser.extra_envelope_types must map type names to levels")

    logger.debug("Loaded config from %s", path)
    logger.debug("queue_size=%d extra_envelope_types=%s", queue_size, sorted(extra_types))

    return AppConfig(
        parser=ParserConfig(
            queue_size=queue_size,
            extra_envelope_types=extra_types,
        ),
        output=OutputConfig(
            color=bool(output_raw.get("color", False)),
            success_message=output_raw.get("success_message", "") or "",
            failure_message=output_raw.get("failure_message", "Command failed") or "",
        ),
        debug=DebugConfig(
            enabled=bool(debug_raw.get("enabled", False)),
            trace=bool(debug_raw.get("trace", False)),
            verbose=bool(debug_raw.get("verbose", False)),
        ),
    )

"""Configuration file support for diskhound.

Scan defaults can be kept in a YAML file so that recurring options (for
example a standard exclusion list) need not be repeated on the command
line. The schema is validated with Pydantic; ``${VARIABLE}`` references in
string values are resolved from the environment before validation.

Example file::

    scan:
      top: 15
      depth: 2
      min_size: "10MiB"
      exclude: [".git", "node_modules", "${EXTRA_EXCLUDE}"]
      size_mode: disk_usage
    logging:
      level: INFO
      file: /var/log/diskhound.log
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Annotated, Final

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from diskhound.core.exceptions import ConfigurationError
from diskhound.core.filesystem.size_calculator import SizeMode
from diskhound.core.report import DEFAULT_TOP_N
from diskhound.utils.formatting import parse_size

# Matches ${VARIABLE_NAME} where VARIABLE_NAME is letters, digits and underscores
ENV_VAR_PATTERN: Final[re.Pattern[str]] = re.compile(r"\$\{([A-Za-z0-9_]+)\}")

# Searched in order when no --config is given
DEFAULT_CONFIG_LOCATIONS: Final[tuple[Path, ...]] = (
    Path("diskhound.yaml"),
    Path("diskhound.yml"),
    Path("~/.config/diskhound/config.yaml").expanduser(),
    Path("~/.diskhound.yaml").expanduser(),
)


class BaseConfig(BaseModel):
    """Base configuration model with common settings."""

    model_config: ConfigDict = ConfigDict(  # pyright: ignore[reportIncompatibleVariableOverride]
        extra="forbid",
        validate_assignment=True,
        str_strip_whitespace=True,
        validate_default=True,
    )


class ScanConfig(BaseConfig):
    """Default scan options."""

    top: Annotated[int, Field(gt=0, description="Number of entries shown per depth level")] = DEFAULT_TOP_N
    depth: Annotated[int, Field(ge=1, description="Grouping depth below the root")] = 1
    min_size: Annotated[int, Field(ge=0, description="Minimum group size in bytes")] = 0
    exclude: Annotated[list[str], Field(description="Directory names whose subtrees are skipped")] = []
    size_mode: Annotated[SizeMode, Field(description="apparent or disk_usage")] = SizeMode.APPARENT
    workers: Annotated[Annotated[int, Field(ge=1)] | None, Field(description="Traversal thread count")] = None

    @field_validator("min_size", mode="before")
    @classmethod
    def parse_min_size(cls, v: object) -> object:
        """Accept human-readable size strings such as ``"10MiB"``.

        Args:
            v: Raw value from the file

        Returns:
            Byte count for strings, the value unchanged otherwise

        Raises:
            ValueError: If the string is not a valid size
        """
        if isinstance(v, str):
            return parse_size(v)
        return v

    @field_validator("exclude", mode="after")
    @classmethod
    def drop_blank_names(cls, v: list[str]) -> list[str]:
        return [name.strip() for name in v if name.strip()]


class LoggingConfig(BaseConfig):
    """Logging options."""

    level: Annotated[
        str,
        Field(
            description="Logging level",
            pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        ),
    ] = "WARNING"
    file: Annotated[Path | None, Field(description="Optional rotating log file")] = None

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().upper()
        return v


class DiskhoundConfig(BaseConfig):
    """Top-level configuration file schema."""

    scan: ScanConfig = ScanConfig()
    logging: LoggingConfig = LoggingConfig()


def resolve_env_var(value: str) -> str:
    """Resolve ``${VARIABLE}`` references in a string value.

    Args:
        value: String potentially containing environment variable references

    Returns:
        String with every reference replaced by its value

    Raises:
        ConfigurationError: If a referenced variable is not set

    Examples:
        >>> os.environ["DISKHOUND_SKIP"] = "node_modules"
        >>> resolve_env_var("${DISKHOUND_SKIP}")
        'node_modules'
    """

    def replace_match(match: re.Match[str]) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            msg = f"Required environment variable '{var_name}' is not set."
            raise ConfigurationError(msg, {"env_var": var_name})
        return env_value

    return ENV_VAR_PATTERN.sub(replace_match, value)


def resolve_env_vars(data: object) -> object:
    """Recursively resolve environment variables in YAML data.

    Strings are resolved and containers are walked; other values pass
    through unchanged.
    """
    if isinstance(data, str):
        return resolve_env_var(data)
    if isinstance(data, Mapping):
        return {key: resolve_env_vars(value) for key, value in data.items()}
    if isinstance(data, list):
        return [resolve_env_vars(item) for item in data]
    return data


def discover_config_file() -> Path | None:
    """Return the first existing file among the default locations, if any."""
    for candidate in DEFAULT_CONFIG_LOCATIONS:
        try:
            if candidate.is_file():
                return candidate
        except OSError:
            continue
    return None


def load_config(config_path: Path) -> DiskhoundConfig:
    """Load and validate a configuration file.

    An empty file yields the defaults.

    Args:
        config_path: Path to the YAML file

    Returns:
        Validated configuration

    Raises:
        ConfigurationError: If the file is missing, unreadable, not valid
            YAML, references an unset environment variable, or fails
            validation
    """
    if not config_path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise ConfigurationError(msg, {"file_path": str(config_path)})

    try:
        with config_path.open("r", encoding="utf-8") as f:
            raw_data: object = yaml.safe_load(f)  # pyright: ignore[reportAny]  # YAML boundary
    except yaml.YAMLError as e:
        msg = (
            f"Failed to parse YAML configuration file: {config_path}\n"
            f"YAML parsing error: {e}"
        )
        raise ConfigurationError(msg, {"file_path": str(config_path)}) from e
    except OSError as e:
        msg = f"Failed to read configuration file: {config_path}\nError: {e}"
        raise ConfigurationError(msg, {"file_path": str(config_path)}) from e

    if raw_data is None:
        return DiskhoundConfig()

    if not isinstance(raw_data, dict):
        msg = (
            f"Invalid configuration file format: {config_path}\n"
            f"Expected a mapping at the top level, got: {type(raw_data).__name__}"
        )
        raise ConfigurationError(msg, {"file_path": str(config_path)})

    resolved = resolve_env_vars(raw_data)

    try:
        return DiskhoundConfig.model_validate(resolved)
    except ValidationError as e:
        error_lines = ["Configuration validation failed:", ""]
        for error in e.errors():
            field_path = ".".join(str(loc) for loc in error["loc"])
            error_lines.append(f"  Field: {field_path}")
            error_lines.append(f"  Error: {error['msg']}")
            error_lines.append("")
        error_lines.append(f"Configuration file: {config_path}")
        raise ConfigurationError("\n".join(error_lines), {"file_path": str(config_path)}) from e

"""
Configuration loader (``club_config.loader``).

Responsibility
--------------
Reads the packaged defaults, an optional user YAML file and environment
overrides, merges them in that order and parses the result into the
frozen ``club_config.schema`` dataclasses.  Runtime code goes through
``club_config.get_active_config()`` instead of calling this directly.

Failure modes
-------------
* Missing user file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown section or key  -> ``ValueError``.
* Wrongly typed value  -> ``ValueError``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from club_config.schema import (
    AccountingConfig,
    ClubConfig,
    DatabaseConfig,
    LoggingConfig,
)

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

ENV_CONFIG_FILE = "CLUB_LEDGER_CONFIG"
ENV_DATABASE_URL = "CLUB_LEDGER_DATABASE_URL"
ENV_LOG_LEVEL = "CLUB_LEDGER_LOG_LEVEL"

_SECTIONS = {
    "database": DatabaseConfig,
    "logging": LoggingConfig,
    "accounting": AccountingConfig,
}

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge override into a copy of base, recursing into nested mappings."""
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(result.get(key), Mapping):
            result[key] = merge(result[key], value)
        else:
            result[key] = value
    return result


def env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    """Config fragment built from the CLUB_LEDGER_* environment variables."""
    data: dict[str, Any] = {}
    if environ.get(ENV_DATABASE_URL):
        data["database"] = {"url": environ[ENV_DATABASE_URL]}
    if environ.get(ENV_LOG_LEVEL):
        data["logging"] = {"level": environ[ENV_LOG_LEVEL]}
    return data


def _parse_section(name: str, data: Any) -> Any:
    cls = _SECTIONS[name]
    if data is None:
        return cls()
    if not isinstance(data, Mapping):
        raise ValueError(f"Config section '{name}' must be a mapping")

    known = {f.name: f for f in fields(cls)}
    unknown = sorted(set(data) - set(known))
    if unknown:
        raise ValueError(f"Unknown keys in config section '{name}': {unknown}")

    values = {}
    for key, value in data.items():
        expected = type(getattr(cls(), key))
        if expected is int and isinstance(value, bool):
            raise ValueError(f"{name}.{key} must be an integer, got {value!r}")
        if not isinstance(value, expected):
            raise ValueError(
                f"{name}.{key} must be {expected.__name__}, got {value!r}"
            )
        values[key] = value
    return cls(**values)


def parse_config(data: Mapping[str, Any], source: tuple[str, ...] = ()) -> ClubConfig:
    """
    Parse a merged config dict into a ClubConfig.

    Raises:
        ValueError: On unknown sections or keys, wrong types or an unknown
            log level.
    """
    unknown = sorted(set(data) - set(_SECTIONS))
    if unknown:
        raise ValueError(f"Unknown config sections: {unknown}")

    sections = {name: _parse_section(name, data.get(name)) for name in _SECTIONS}

    level = sections["logging"].level.upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"Unknown log level: {sections['logging'].level!r}")
    sections["logging"] = LoggingConfig(level=level)

    return ClubConfig(source=source, **sections)


def load_config(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> ClubConfig:
    """
    Assemble the configuration from defaults, file and environment.

    Args:
        path: User config file.  Falls back to $CLUB_LEDGER_CONFIG; no
            user file is read when neither is set.
        environ: Environment to read overrides from (os.environ if None).
    """
    if environ is None:
        environ = os.environ

    data = load_yaml_file(DEFAULTS_PATH)
    source = [str(DEFAULTS_PATH)]

    if path is None and environ.get(ENV_CONFIG_FILE):
        path = Path(environ[ENV_CONFIG_FILE])
    if path is not None:
        data = merge(data, load_yaml_file(path))
        source.append(str(path))

    data = merge(data, env_overrides(environ))
    return parse_config(data, source=tuple(source))

"""
club_config -- single public entrypoint for club-ledger configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables directly.

Architecture position:
    Configuration.  This package sits above ``club_kernel``; the kernel
    MUST NEVER import from ``club_config``.  ``club_config.bridges`` turns
    the configuration into kernel inputs.

Failure modes:
    - ``FileNotFoundError`` -- the configured user file does not exist.
    - ``yaml.YAMLError`` -- malformed YAML.
    - ``ValueError`` -- unknown keys, wrong types, unknown log level.
"""

from __future__ import annotations

import logging
from pathlib import Path

from club_config.loader import load_config
from club_config.schema import (
    AccountingConfig,
    ClubConfig,
    DatabaseConfig,
    LoggingConfig,
)

_logger = logging.getLogger("club_kernel.config")


def get_active_config(config_path: Path | None = None) -> ClubConfig:
    """The ONLY public configuration entrypoint.

    Merges, in increasing precedence: the packaged defaults, the user file
    (``config_path`` or ``$CLUB_LEDGER_CONFIG``) and the
    ``CLUB_LEDGER_DATABASE_URL`` / ``CLUB_LEDGER_LOG_LEVEL`` environment
    variables.

    Non-goals:
        - No caching; callers hold the returned config for the duration of
          a run.

    Returns:
        Frozen ClubConfig.
    """
    config = load_config(config_path)
    _logger.info(
        "CLUB_CONFIG_TRACE",
        extra={
            "trace_type": "CLUB_CONFIG_TRACE",
            "config_source": list(config.source),
            "dialect": config.database.url.split(":", 1)[0],
            "log_level": config.logging.level,
        },
    )
    return config


__all__ = [
    "AccountingConfig",
    "ClubConfig",
    "DatabaseConfig",
    "LoggingConfig",
    "get_active_config",
]

"""
Configuration schema.

Frozen dataclasses the loader parses YAML into.  Every field has a default
so that a partial user file is valid; required values are supplied by the
packaged defaults.yaml.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DatabaseConfig:
    """Where the ledger lives."""

    url: str = "sqlite:///club_ledger.db"
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10


@dataclass(frozen=True)
class LoggingConfig:
    """Structured log output."""

    level: str = "INFO"


@dataclass(frozen=True)
class AccountingConfig:
    """Bookkeeping conventions."""

    fee_account_name: str = "Membership fee"


@dataclass(frozen=True)
class ClubConfig:
    """
    The complete runtime configuration.

    ``source`` lists the files it was assembled from, in load order.
    """

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    accounting: AccountingConfig = field(default_factory=AccountingConfig)
    source: tuple[str, ...] = ()

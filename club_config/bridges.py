"""
Config -> Kernel bridges.

Functions that turn a ClubConfig into kernel objects.  They live in
club_config (the producer) because the kernel must NEVER import
club_config.

Usage:
    from club_config import get_active_config
    from club_config.bridges import build_fee_service, init_kernel

    config = get_active_config()
    init_kernel(config)
    with session_scope() as session:
        build_fee_service(SqlStores(session), config).run()
"""

from __future__ import annotations

from sqlalchemy.engine import Engine

from club_config.schema import ClubConfig
from club_kernel.db.engine import init_engine_from_url
from club_kernel.domain.clock import Clock
from club_kernel.logging_config import configure_logging
from club_kernel.services.fee_service import FeeService
from club_kernel.stores.protocols import Stores


def init_kernel(config: ClubConfig) -> Engine:
    """Configure kernel logging and the module-level database engine."""
    configure_logging(level=config.logging.level)
    return init_engine_from_url(
        config.database.url,
        echo=config.database.echo,
        pool_size=config.database.pool_size,
        max_overflow=config.database.max_overflow,
    )


def build_fee_service(
    stores: Stores,
    config: ClubConfig,
    clock: Clock | None = None,
) -> FeeService:
    """FeeService posting to the configured fee account."""
    return FeeService(
        stores,
        clock=clock,
        account_name=config.accounting.fee_account_name,
    )

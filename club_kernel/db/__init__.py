"""Database layer - engine, base classes and monetary helpers."""

from club_kernel.db.base import Base, TrackedBase
from club_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)
from club_kernel.db.types import EPOCH, ZERO, round_money, to_money

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "EPOCH",
    "ZERO",
    "round_money",
    "to_money",
]

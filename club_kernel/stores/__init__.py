"""Persistence capabilities consumed by the kernel services."""

from club_kernel.stores.protocols import (
    MemberStore,
    RuleStore,
    StateStore,
    Stores,
    TransactionStore,
)
from club_kernel.stores.sql import SqlStores

__all__ = [
    "MemberStore",
    "RuleStore",
    "SqlStores",
    "StateStore",
    "Stores",
    "TransactionStore",
]

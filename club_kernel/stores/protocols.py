"""
Store protocols -- the persistence capabilities the kernel consumes.

Responsibility:
    Narrow, per-entity interfaces that services depend on instead of a
    concrete database.  SqlStores implements them over a SQLAlchemy
    Session; the test suite ships an in-memory implementation.

Architecture position:
    Kernel > Stores.  May import from models/ and domain/.

Contract shared by all implementations:
    - add()/update() persist immediately within the current unit of work
      and return the stored object with its identity assigned.
    - list() results are ordered by id (insertion order).
    - Stores.atomic() is all-or-nothing: on exception every write made
      inside the block is undone and the exception re-raised.  Blocks may
      nest.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from datetime import date
from typing import Protocol, runtime_checkable

from club_kernel.models import AccountingState, BankImportRule, Member, Transaction


@runtime_checkable
class MemberStore(Protocol):
    """Read and write members."""

    def get(self, member_id: int, for_update: bool = False) -> Member:
        """
        Load a member.

        Args:
            for_update: Lock the member row until the unit of work ends.

        Raises:
            MemberNotFoundError: If no member has this id.
        """
        ...

    def find_by_name(self, name: str) -> list[Member]:
        """Members whose name equals ``name`` ignoring case and padding."""
        ...

    def list(self) -> list[Member]:
        ...

    def add(self, member: Member) -> Member:
        ...

    def update(self, member: Member) -> Member:
        ...

    def delete(self, member: Member) -> None:
        ...


@runtime_checkable
class TransactionStore(Protocol):
    """Append and query ledger entries."""

    def add(self, transaction: Transaction) -> Transaction:
        ...

    def list(
        self,
        member_id: int | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[Transaction]:
        """Transactions filtered by member and inclusive date range."""
        ...

    def latest_date(self, since: date | None = None) -> date | None:
        """Most recent transaction date on or after ``since``."""
        ...


@runtime_checkable
class RuleStore(Protocol):
    """Read and write bank import rules."""

    def list(
        self,
        iban: str | None = None,
        member_id: int | None = None,
    ) -> list[BankImportRule]:
        ...

    def get(self, member_id: int, iban: str) -> BankImportRule | None:
        ...

    def add(self, rule: BankImportRule) -> BankImportRule:
        ...

    def delete(self, rule: BankImportRule) -> None:
        ...


@runtime_checkable
class StateStore(Protocol):
    """Read and write the accounting state row."""

    def get(self) -> AccountingState:
        ...

    def update(self, state: AccountingState) -> AccountingState:
        ...


@runtime_checkable
class Stores(Protocol):
    """The full set of stores plus the unit-of-work boundary."""

    members: MemberStore
    transactions: TransactionStore
    rules: RuleStore
    state: StateStore

    def atomic(self) -> AbstractContextManager[None]:
        ...

"""
SqlStores -- store protocols implemented over a SQLAlchemy Session.

Responsibility:
    Translates the kernel's store capabilities into ORM queries.  Writes are
    flushed, never committed: the caller owns the transaction (see
    club_kernel.db.engine.session_scope).

Architecture position:
    Kernel > Stores -- imperative shell infrastructure.

Invariants enforced:
    - atomic() maps to Session.begin_nested(): a SAVEPOINT that is released
      on success and rolled back on error, leaving the rest of the caller's
      transaction intact.
    - get(for_update=True) issues SELECT ... FOR UPDATE on PostgreSQL, so
      concurrent imports touching the same member serialize on the member
      row until the outer transaction ends.

Failure modes:
    - sqlalchemy.exc.SQLAlchemyError subclasses propagate unchanged.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from club_kernel.exceptions import MemberNotFoundError
from club_kernel.logging_config import get_logger
from club_kernel.models import AccountingState, BankImportRule, Member, Transaction

logger = get_logger("stores.sql")


class _SqlStore:
    def __init__(self, session: Session):
        self.session = session

    def _persist(self, obj):
        self.session.add(obj)
        self.session.flush()
        return obj


class SqlMemberStore(_SqlStore):
    """MemberStore over the members table."""

    def get(self, member_id: int, for_update: bool = False) -> Member:
        stmt = select(Member).where(Member.id == member_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        member = self.session.execute(stmt).scalar_one_or_none()
        if member is None:
            raise MemberNotFoundError(member_id)
        return member

    def find_by_name(self, name: str) -> list[Member]:
        stmt = (
            select(Member)
            .where(func.lower(func.trim(Member.name)) == name.strip().lower())
            .order_by(Member.id)
        )
        return list(self.session.execute(stmt).scalars().all())

    def list(self) -> list[Member]:
        stmt = select(Member).order_by(Member.id)
        return list(self.session.execute(stmt).scalars().all())

    def add(self, member: Member) -> Member:
        return self._persist(member)

    def update(self, member: Member) -> Member:
        return self._persist(member)

    def delete(self, member: Member) -> None:
        self.session.delete(member)
        self.session.flush()


class SqlTransactionStore(_SqlStore):
    """TransactionStore over the transactions table."""

    def add(self, transaction: Transaction) -> Transaction:
        return self._persist(transaction)

    def list(
        self,
        member_id: int | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[Transaction]:
        stmt = select(Transaction)
        if member_id is not None:
            stmt = stmt.where(Transaction.member_id == member_id)
        if date_from is not None:
            stmt = stmt.where(Transaction.date >= date_from)
        if date_to is not None:
            stmt = stmt.where(Transaction.date <= date_to)
        stmt = stmt.order_by(Transaction.date, Transaction.id)
        return list(self.session.execute(stmt).scalars().all())

    def latest_date(self, since: date | None = None) -> date | None:
        stmt = select(func.max(Transaction.date))
        if since is not None:
            stmt = stmt.where(Transaction.date >= since)
        return self.session.execute(stmt).scalar_one_or_none()


class SqlRuleStore(_SqlStore):
    """RuleStore over the bank_import_rules table."""

    def list(
        self,
        iban: str | None = None,
        member_id: int | None = None,
    ) -> list[BankImportRule]:
        stmt = select(BankImportRule)
        if iban is not None:
            stmt = stmt.where(BankImportRule.iban == iban)
        if member_id is not None:
            stmt = stmt.where(BankImportRule.member_id == member_id)
        stmt = stmt.order_by(BankImportRule.id)
        return list(self.session.execute(stmt).scalars().all())

    def get(self, member_id: int, iban: str) -> BankImportRule | None:
        stmt = select(BankImportRule).where(
            BankImportRule.member_id == member_id,
            BankImportRule.iban == iban,
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def add(self, rule: BankImportRule) -> BankImportRule:
        return self._persist(rule)

    def delete(self, rule: BankImportRule) -> None:
        self.session.delete(rule)
        self.session.flush()


class SqlStateStore(_SqlStore):
    """StateStore over the single accounting_state row."""

    def get(self) -> AccountingState:
        state = self.session.get(AccountingState, AccountingState.SINGLETON_ID)
        if state is None:
            # Databases created without create_tables() lack the seed row.
            state = self._persist(AccountingState(id=AccountingState.SINGLETON_ID))
        return state

    def update(self, state: AccountingState) -> AccountingState:
        return self._persist(state)


class SqlStores:
    """
    All stores bound to one Session.

    Usage:
        with session_scope() as session:
            stores = SqlStores(session)
            BankImportService(stores).import_statement(lines)
    """

    def __init__(self, session: Session):
        self.session = session
        self.members = SqlMemberStore(session)
        self.transactions = SqlTransactionStore(session)
        self.rules = SqlRuleStore(session)
        self.state = SqlStateStore(session)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Run a block inside a SAVEPOINT."""
        savepoint = self.session.begin_nested()
        try:
            yield
        except Exception:
            savepoint.rollback()
            logger.debug("savepoint_rolled_back")
            raise
        else:
            savepoint.commit()

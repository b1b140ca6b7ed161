"""
Tests for the SQLAlchemy store implementation.

Covers:
- Schema creation and the seeded accounting state row
- Column defaults, ordering and filtering of queries
- SAVEPOINT semantics of atomic()
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from club_kernel.db.types import EPOCH
from club_kernel.exceptions import MemberNotFoundError
from club_kernel.models import AccountingState, BankImportRule, Member, Transaction
from club_kernel.stores.protocols import Stores
from club_kernel.stores.sql import SqlStores
from tests.fakes import InMemoryStores


def _member(name="Eris Discordia") -> Member:
    return Member(name=name, membership_start=date(2022, 1, 1), fee=Decimal("23.00"))


class TestProtocolConformance:
    def test_sql_stores(self, sql_stores):
        assert isinstance(sql_stores, Stores)

    def test_memory_stores(self):
        assert isinstance(InMemoryStores(), Stores)


class TestSchema:
    def test_state_row_seeded(self, session):
        state = session.get(AccountingState, AccountingState.SINGLETON_ID)
        assert state is not None
        assert state.accounts_calculated_at == EPOCH

    def test_member_defaults(self, sql_stores):
        member = sql_stores.members.add(_member())
        assert member.id is not None
        assert member.account == Decimal("0.00")
        assert member.last_payment_at == EPOCH
        assert member.last_bank_transaction_number == 0

    def test_money_round_trip(self, sql_stores, session):
        member = sql_stores.members.add(_member())
        sql_stores.transactions.add(
            Transaction(member_id=member.id, date=date(2023, 1, 1), amount=Decimal("23.42"))
        )
        session.expire_all()
        tx = sql_stores.transactions.list()[0]
        assert tx.amount == Decimal("23.42")
        assert isinstance(tx.amount, Decimal)

    def test_duplicate_rule_rejected_by_database(self, sql_stores):
        member = sql_stores.members.add(_member())
        sql_stores.rules.add(BankImportRule(member_id=member.id, iban="DE01"))
        with pytest.raises(IntegrityError):
            with sql_stores.atomic():
                sql_stores.rules.add(BankImportRule(member_id=member.id, iban="DE01"))


class TestMemberStore:
    def test_get_missing(self, sql_stores):
        with pytest.raises(MemberNotFoundError):
            sql_stores.members.get(1)

    def test_get_for_update(self, sql_stores):
        member = sql_stores.members.add(_member())
        assert sql_stores.members.get(member.id, for_update=True).id == member.id

    def test_delete(self, sql_stores):
        kept = sql_stores.members.add(_member("Kept Member"))
        gone = sql_stores.members.add(_member("Gone Member"))
        sql_stores.members.delete(gone)

        with pytest.raises(MemberNotFoundError):
            sql_stores.members.get(gone.id)
        assert [m.id for m in sql_stores.members.list()] == [kept.id]

    def test_rolled_back_delete_is_reverted(self, stores):
        member = stores.members.add(_member())
        with pytest.raises(RuntimeError):
            with stores.atomic():
                stores.members.delete(member)
                raise RuntimeError("boom")
        assert stores.members.get(member.id).name == "Eris Discordia"


class TestTransactionStore:
    def test_list_ordered_by_date_then_id(self, sql_stores):
        member = sql_stores.members.add(_member())
        for day in (20, 5, 5):
            sql_stores.transactions.add(
                Transaction(member_id=member.id, date=date(2023, 5, day), amount=Decimal("1"))
            )
        txs = sql_stores.transactions.list()
        assert [t.date.day for t in txs] == [5, 5, 20]
        assert txs[0].id < txs[1].id

    def test_latest_date(self, sql_stores):
        member = sql_stores.members.add(_member())
        assert sql_stores.transactions.latest_date() is None
        for day in (1, 10):
            sql_stores.transactions.add(
                Transaction(member_id=member.id, date=date(2023, 5, day), amount=Decimal("1"))
            )
        assert sql_stores.transactions.latest_date() == date(2023, 5, 10)
        assert sql_stores.transactions.latest_date(since=date(2023, 5, 10)) == date(2023, 5, 10)
        assert sql_stores.transactions.latest_date(since=date(2023, 5, 11)) is None


class TestAtomic:
    def test_commits_block_on_success(self, sql_stores):
        with sql_stores.atomic():
            sql_stores.members.add(_member())
        assert len(sql_stores.members.list()) == 1

    def test_rolls_back_block_only(self, sql_stores):
        sql_stores.members.add(_member("Kept Member"))
        with pytest.raises(RuntimeError):
            with sql_stores.atomic():
                sql_stores.members.add(_member("Dropped Member"))
                raise RuntimeError("boom")
        assert [m.name for m in sql_stores.members.list()] == ["Kept Member"]

    def test_nested_inner_failure(self, sql_stores):
        with sql_stores.atomic():
            sql_stores.members.add(_member("Outer Member"))
            with pytest.raises(RuntimeError):
                with sql_stores.atomic():
                    sql_stores.members.add(_member("Inner Member"))
                    raise RuntimeError("boom")
        assert [m.name for m in sql_stores.members.list()] == ["Outer Member"]

    def test_rolled_back_update_is_reverted(self, sql_stores):
        member = sql_stores.members.add(_member())
        with pytest.raises(RuntimeError):
            with sql_stores.atomic():
                member.account = Decimal("99.00")
                sql_stores.members.update(member)
                raise RuntimeError("boom")
        assert sql_stores.members.get(member.id).account == Decimal("0.00")


class TestStateStore:
    def test_update(self, sql_stores):
        state = sql_stores.state.get()
        state.accounts_calculated_at = date(2023, 12, 1)
        sql_stores.state.update(state)
        assert sql_stores.state.get().accounts_calculated_at == date(2023, 12, 1)

    def test_seeds_missing_row(self, sql_stores, session):
        session.delete(session.get(AccountingState, AccountingState.SINGLETON_ID))
        session.flush()
        assert sql_stores.state.get().accounts_calculated_at == EPOCH

"""Tests for MemberService."""

from datetime import date
from decimal import Decimal

import pytest

from club_kernel.db.types import EPOCH, ZERO
from club_kernel.exceptions import (
    MemberInUseError,
    MemberNotFoundError,
    ProtectedFieldError,
)
from club_kernel.models import Transaction
from club_kernel.services.ledger_service import LedgerService
from club_kernel.services.member_service import MemberService
from club_kernel.services.rule_service import ImportRuleService


class TestCreateMember:
    def test_defaults(self, stores):
        member = MemberService(stores).create_member(
            " Eris Discordia ", "eris@example.org", date(2022, 3, 15), 23.42
        )
        assert member.id is not None
        assert member.name == "Eris Discordia"
        assert member.fee == Decimal("23.42")
        assert member.account == ZERO
        assert member.interval == 1
        assert member.membership_end is None
        assert member.account_calculated_at == EPOCH
        assert member.last_payment_at == EPOCH
        assert member.last_bank_transaction_at == EPOCH
        assert member.last_bank_transaction_number == 0

    def test_logs_creation(self, stores, captured_logs):
        MemberService(stores).create_member("A B", "a@b.c", date(2022, 1, 1), "5")
        assert any(r["message"] == "member_created" for r in captured_logs())


class TestQueries:
    def test_get_member(self, stores, make_member):
        member = make_member()
        assert MemberService(stores).get_member(member.id) is member

    def test_get_missing_member(self, stores):
        with pytest.raises(MemberNotFoundError) as exc_info:
            MemberService(stores).get_member(404)
        assert exc_info.value.member_id == 404
        assert exc_info.value.code == "MEMBER_NOT_FOUND"

    def test_find_by_name_ignores_case_and_padding(self, stores, make_member):
        member = make_member("Eris Discordia")
        make_member("Eris")
        assert MemberService(stores).find_by_name("  ERIS discordia") == [member]

    def test_list_members_in_id_order(self, stores, make_member):
        first = make_member("Alice Example")
        second = make_member("Bob Example")
        assert [m.id for m in MemberService(stores).list_members()] == [first.id, second.id]

    def test_transactions_for_window(self, stores, make_member):
        member = make_member()
        ledger = LedgerService(stores)
        for day in (1, 10, 20):
            ledger.apply_transaction(
                member, Transaction(date=date(2023, 5, day), amount=Decimal("1.00"))
            )
        service = MemberService(stores)

        assert len(service.transactions_for(member.id)) == 3
        window = service.transactions_for(
            member.id, date_from=date(2023, 5, 5), date_to=date(2023, 5, 20)
        )
        assert [t.date for t in window] == [date(2023, 5, 10), date(2023, 5, 20)]

    def test_transactions_for_missing_member(self, stores):
        with pytest.raises(MemberNotFoundError):
            MemberService(stores).transactions_for(1)

    def test_rules_for(self, stores, make_member):
        member = make_member()
        ImportRuleService(stores).add_rule(member.id, "DE01")
        assert [r.iban for r in MemberService(stores).rules_for(member.id)] == ["DE01"]


class TestUpdateProfile:
    def test_updates_profile_fields(self, stores, make_member):
        member = make_member()
        updated = MemberService(stores).update_profile(
            member.id,
            email="new@example.org",
            fee="30",
            membership_end=date(2024, 12, 31),
            last_payment_at=date(2023, 12, 1),
        )
        assert updated.email == "new@example.org"
        assert updated.fee == Decimal("30.00")
        assert updated.membership_end == date(2024, 12, 31)
        assert updated.last_payment_at == date(2023, 12, 1)

    @pytest.mark.parametrize(
        "field_name",
        [
            "account",
            "account_calculated_at",
            "last_bank_transaction_at",
            "last_bank_transaction_number",
        ],
    )
    def test_ledger_fields_are_protected(self, stores, make_member, field_name):
        member = make_member()
        with pytest.raises(ProtectedFieldError) as exc_info:
            MemberService(stores).update_profile(member.id, email="x@y.z", **{field_name: 1})
        assert exc_info.value.field_name == field_name
        assert stores.members.get(member.id).email != "x@y.z"

    def test_unknown_field(self, stores, make_member):
        member = make_member()
        with pytest.raises(ValueError):
            MemberService(stores).update_profile(member.id, nickname="E")


class TestDeleteMember:
    def test_deletes_unreferenced_member(self, stores, make_member, captured_logs):
        keep = make_member("Alice Example")
        member = make_member()
        MemberService(stores).delete_member(member.id)

        with pytest.raises(MemberNotFoundError):
            stores.members.get(member.id)
        assert [m.id for m in stores.members.list()] == [keep.id]
        records = [r for r in captured_logs() if r["message"] == "member_deleted"]
        assert records[0]["member_id"] == member.id

    def test_refused_with_transactions(self, stores, make_member):
        member = make_member()
        LedgerService(stores).apply_transaction(
            member, Transaction(date=date(2023, 5, 1), amount=Decimal("-23.00"))
        )
        with pytest.raises(MemberInUseError) as exc_info:
            MemberService(stores).delete_member(member.id)

        assert exc_info.value.code == "MEMBER_IN_USE"
        assert exc_info.value.transactions == 1
        assert exc_info.value.rules == 0
        assert stores.members.get(member.id).id == member.id

    def test_refused_with_rule(self, stores, make_member):
        member = make_member()
        ImportRuleService(stores).add_rule(member.id, "DE01")
        with pytest.raises(MemberInUseError) as exc_info:
            MemberService(stores).delete_member(member.id)

        assert exc_info.value.transactions == 0
        assert exc_info.value.rules == 1
        assert stores.members.get(member.id).id == member.id

    def test_allowed_after_rule_removed(self, stores, make_member):
        member = make_member()
        rules = ImportRuleService(stores)
        rules.add_rule(member.id, "DE01")
        rules.remove_rule(member.id, "DE01")

        MemberService(stores).delete_member(member.id)
        assert stores.members.list() == []

    def test_missing_member(self, stores):
        with pytest.raises(MemberNotFoundError):
            MemberService(stores).delete_member(999)

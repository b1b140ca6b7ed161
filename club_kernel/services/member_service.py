"""
MemberService -- member administration.

Responsibility:
    Creates and deletes members, edits their profile and answers the
    usual questions about them: who is this, what was posted, which IBANs
    map here.

Architecture position:
    Kernel > Services.

Invariants enforced:
    - The balance and the fee/bank watermarks are never edited here; an
      update naming one of them is refused as a whole.
    - New members start with a zero balance and epoch watermarks.
    - A member is only deleted once no transaction or rule refers to it.

Failure modes:
    - MemberNotFoundError: unknown member id.
    - MemberInUseError: delete of a member that is still referenced.
    - ProtectedFieldError: profile update touches a ledger-owned field.
    - ValueError: profile update names an attribute that does not exist.
"""

from datetime import date
from decimal import Decimal

from club_kernel.db.types import to_money
from club_kernel.exceptions import MemberInUseError, ProtectedFieldError
from club_kernel.logging_config import get_logger
from club_kernel.models import BankImportRule, Member, Transaction
from club_kernel.services.base import BaseService

logger = get_logger("services.members")

PROFILE_FIELDS = frozenset(
    {
        "name",
        "email",
        "notes",
        "membership_start",
        "membership_end",
        "fee",
        "interval",
        "last_payment_at",
    }
)

PROTECTED_FIELDS = frozenset(
    {
        "id",
        "account",
        "account_calculated_at",
        "last_bank_transaction_at",
        "last_bank_transaction_number",
    }
)


class MemberService(BaseService):
    """Creates, edits, deletes and queries members."""

    def create_member(
        self,
        name: str,
        email: str,
        membership_start: date,
        fee: Decimal | float | str,
        membership_end: date | None = None,
        interval: int = 1,
        notes: str = "",
    ) -> Member:
        member = self.stores.members.add(
            Member(
                name=name.strip(),
                email=email.strip(),
                notes=notes,
                membership_start=membership_start,
                membership_end=membership_end,
                fee=to_money(fee),
                interval=interval,
            )
        )
        logger.info(
            "member_created",
            extra={
                "member_id": member.id,
                "membership_start": membership_start,
                "fee": member.fee,
            },
        )
        return member

    def get_member(self, member_id: int) -> Member:
        return self.stores.members.get(member_id)

    def find_by_name(self, name: str) -> list[Member]:
        return self.stores.members.find_by_name(name)

    def list_members(self) -> list[Member]:
        return self.stores.members.list()

    def update_profile(self, member_id: int, **fields) -> Member:
        """
        Change profile fields of a member.

        Args:
            member_id: The member to edit.
            **fields: New values keyed by attribute name.

        Raises:
            MemberNotFoundError: If the member does not exist.
            ProtectedFieldError: If a field belongs to the ledger.
            ValueError: If a field is not a member attribute.
        """
        for field_name in fields:
            if field_name in PROTECTED_FIELDS:
                raise ProtectedFieldError(field_name)
            if field_name not in PROFILE_FIELDS:
                raise ValueError(f"Unknown member field: {field_name}")

        member = self.stores.members.get(member_id)
        if "fee" in fields:
            fields["fee"] = to_money(fields["fee"])
        for field_name, value in fields.items():
            setattr(member, field_name, value)
        member = self.stores.members.update(member)

        logger.info(
            "member_updated",
            extra={"member_id": member.id, "fields": sorted(fields)},
        )
        return member

    def transactions_for(
        self,
        member_id: int,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[Transaction]:
        """A member's ledger entries in date order, optionally windowed."""
        member = self.stores.members.get(member_id)
        return self.stores.transactions.list(
            member_id=member.id, date_from=date_from, date_to=date_to
        )

    def rules_for(self, member_id: int) -> list[BankImportRule]:
        member = self.stores.members.get(member_id)
        return self.stores.rules.list(member_id=member.id)

    def delete_member(self, member_id: int) -> None:
        """
        Remove a member that nothing references.

        Raises:
            MemberNotFoundError: If the member does not exist.
            MemberInUseError: If ledger entries or import rules still point
                at the member.
        """
        member = self.stores.members.get(member_id, for_update=True)
        transactions = len(self.stores.transactions.list(member_id=member.id))
        rules = len(self.stores.rules.list(member_id=member.id))
        if transactions or rules:
            raise MemberInUseError(member.id, transactions, rules)

        self.stores.members.delete(member)
        logger.info("member_deleted", extra={"member_id": member_id})

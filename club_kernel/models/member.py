"""
Module: club_kernel.models.member
Responsibility: ORM persistence for club members: profile data, the running
    account balance and the watermarks that make fee runs and bank imports
    repeatable.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - account equals the sum of all Transaction amounts of the member.  Only
      LedgerService.apply_transaction changes it.
    - account_calculated_at is month-aligned; it is advanced by the fee
      service after all fees of a run are posted.
    - (last_bank_transaction_at, last_bank_transaction_number) only grows;
      the import service refuses statement lines at or below it.

Failure modes:
    - IntegrityError when a member referenced by transactions or import
      rules is deleted.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from club_kernel.db.base import TrackedBase
from club_kernel.db.types import EPOCH, ZERO
from club_kernel.domain.watermark import BankWatermark


class Member(TrackedBase):
    """
    A club account.

    Contract:
        Profile fields (name, email, notes, membership dates, fee, interval,
        last_payment_at) are edited through MemberService.  The balance and
        the fee/bank watermarks belong to the ledger, fee and import
        services.

    Non-goals:
        - interval is carried for reference only; fees are always monthly.
    """

    __tablename__ = "members"

    __table_args__ = (Index("idx_member_name", "name"),)

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    email: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    membership_start: Mapped[date] = mapped_column(nullable=False)

    membership_end: Mapped[date | None] = mapped_column(nullable=True)

    # Monthly fee
    fee: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)

    interval: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Running balance, positive = credit
    account: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)

    # Last month folded into the balance by a fee run
    account_calculated_at: Mapped[date] = mapped_column(
        nullable=False,
        default=EPOCH,
    )

    # Last month that is settled; no fee is charged up to here
    last_payment_at: Mapped[date] = mapped_column(nullable=False, default=EPOCH)

    last_bank_transaction_at: Mapped[date] = mapped_column(
        nullable=False,
        default=EPOCH,
    )

    last_bank_transaction_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    @property
    def bank_watermark(self) -> BankWatermark:
        """The most recent statement line applied to this member."""
        return BankWatermark(
            self.last_bank_transaction_at,
            self.last_bank_transaction_number,
        )

    def __repr__(self) -> str:
        return f"<Member {self.id}: {self.name} ({self.account})>"

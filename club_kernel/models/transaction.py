"""
Module: club_kernel.models.transaction
Responsibility: ORM persistence for ledger entries.  One row is one signed
    movement on a member account: a fee (debit) or a bank payment (credit).
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Append-only.  Rows are created by LedgerService.apply_transaction and
      never updated by the kernel.
    - member_id is always the member the ledger posted to; a caller-supplied
      value is overwritten.
"""

import datetime
from decimal import Decimal

from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from club_kernel.db.base import TrackedBase


class Transaction(TrackedBase):
    """Immutable ledger entry; positive amount = credit to the member."""

    __tablename__ = "transactions"

    __table_args__ = (
        Index("idx_transaction_member", "member_id"),
        Index("idx_transaction_date", "date"),
    )

    member_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("members.id"),
        nullable=False,
    )

    date: Mapped[datetime.date] = mapped_column(nullable=False)

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    # Counterpart name on the bank side
    account_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default="",
    )

    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    def __repr__(self) -> str:
        return (
            f"<Transaction {self.id}: member={self.member_id} "
            f"{self.date} {self.amount}>"
        )

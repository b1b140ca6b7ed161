"""
Module: club_kernel.models.state
Responsibility: Single-row system state.  Holds the month up to which the
    last system-wide fee run calculated the member accounts.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Exactly one row, id = SINGLETON_ID, seeded by create_tables().
    - accounts_calculated_at only moves forward; FeeService.run refuses an
      end date at or before it.
"""

from datetime import date

from sqlalchemy.orm import Mapped, mapped_column

from club_kernel.db.base import Base
from club_kernel.db.types import EPOCH


class AccountingState(Base):
    """Global accounting watermark."""

    __tablename__ = "accounting_state"

    SINGLETON_ID = 1

    accounts_calculated_at: Mapped[date] = mapped_column(
        nullable=False,
        default=EPOCH,
    )

    def __repr__(self) -> str:
        return f"<AccountingState calculated_at={self.accounts_calculated_at}>"

"""
Membership fee calculation.

Responsibility:
    Derives the monthly fees a member owes up to an end date from the
    member's billing state.  Pure functions only; posting the fees is the
    job of FeeService.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - No fee for a month already folded into account_calculated_at.
    - No fee before membership_start or after membership_end.
    - No fee for a month at or before last_payment_at.

Two watermarks are involved.  account_calculated_at is advanced after every
fee run; last_payment_at records that a month is settled and may be set by
hand independently of the runs, so it is checked for every month.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from club_kernel.domain.months import add_months, align_month, iter_months

if TYPE_CHECKING:
    from club_kernel.models.member import Member

FEE_DESCRIPTION = "Monthly member fee for {month}"


@dataclass(frozen=True)
class MemberFee:
    """One month's fee owed by a member."""

    amount: Decimal
    date: date

    @property
    def description(self) -> str:
        return FEE_DESCRIPTION.format(month=self.date.strftime("%B %Y"))

    @property
    def ledger_amount(self) -> Decimal:
        """Signed amount for the ledger; a fee is a debit."""
        return -self.amount


def is_member_active(member: Member, month: date) -> bool:
    """
    Check if the membership covers a month.

    Membership counts for the entire month: all dates are month-aligned
    before comparing.
    """
    month = align_month(month)
    if month < align_month(member.membership_start):
        return False
    if member.membership_end is not None and month > align_month(member.membership_end):
        return False
    return True


def calculate_fees(member: Member, end_date: date) -> list[MemberFee]:
    """
    Calculate the fees a member owes up to and including end_date's month.

    Args:
        member: Member with fee, membership dates and watermarks.
        end_date: Any date in the last month to charge.

    Returns:
        Fees in month order; empty if nothing is owed.
    """
    end = align_month(end_date)
    last_payment = align_month(member.last_payment_at)
    start = max(
        align_month(member.membership_start),
        add_months(align_month(member.account_calculated_at), 1),
    )
    if start > end:
        return []

    return [
        MemberFee(amount=member.fee, date=month)
        for month in iter_months(start, end)
        if is_member_active(member, month) and month > last_payment
    ]

"""
FeeService -- posts monthly membership fees.

Responsibility:
    Turns the fees computed by ``calculate_fees`` into ledger postings and
    advances the fee watermarks: per member (``account_calculated_at``) and
    system-wide (``AccountingState.accounts_calculated_at``).

Architecture position:
    Kernel > Services.  Composes LedgerService; the fee arithmetic lives in
    club_kernel.domain.fees.

Invariants enforced:
    - One member's postings and watermark advance are atomic.
    - Running twice for the same month posts nothing the second time:
      per member via the watermark, system-wide via the date-order guard.
    - A member's fee watermark only moves forward.

Failure modes:
    - CalculationDateOrderError: run() end date at or before the last run.
      Raised before anything is posted.
"""

from datetime import date
from uuid import uuid4

from club_kernel.db.types import ZERO
from club_kernel.domain.clock import Clock, SystemClock
from club_kernel.domain.fees import MemberFee, calculate_fees
from club_kernel.domain.months import align_month, last_month
from club_kernel.domain.results import FeeRunResult
from club_kernel.exceptions import CalculationDateOrderError
from club_kernel.logging_config import LogContext, get_logger
from club_kernel.models import Member, Transaction
from club_kernel.services.base import BaseService
from club_kernel.services.ledger_service import LedgerService
from club_kernel.stores.protocols import Stores

logger = get_logger("services.fees")

DEFAULT_FEE_ACCOUNT_NAME = "Membership fee"


def fee_to_transaction(fee: MemberFee, account_name: str) -> Transaction:
    """Ledger entry for a fee: negated amount, fixed description."""
    return Transaction(
        date=fee.date,
        amount=fee.ledger_amount,
        account_name=account_name,
        description=fee.description,
    )


class FeeService(BaseService):
    """Posts membership fees for one member or for all members."""

    def __init__(
        self,
        stores: Stores,
        clock: Clock | None = None,
        account_name: str = DEFAULT_FEE_ACCOUNT_NAME,
    ):
        super().__init__(stores)
        self._clock = clock or SystemClock()
        self._account_name = account_name
        self._ledger = LedgerService(stores)

    def post_fees(self, member: Member, end_date: date) -> FeeRunResult:
        """
        Charge a member all fees owed up to end_date's month.

        Postconditions:
            - One debit per owed month is posted.
            - ``member.account_calculated_at`` is end_date's month, even if
              nothing was owed.  An earlier end_date never moves it back.

        Returns:
            FeeRunResult with the posted fees and the new balance.
        """
        end = align_month(end_date)
        with self.stores.atomic():
            fees = calculate_fees(member, end)
            for fee in fees:
                member = self._ledger.apply_transaction(
                    member, fee_to_transaction(fee, self._account_name)
                )
            end = max(end, align_month(member.account_calculated_at))
            member.account_calculated_at = end
            member = self.stores.members.update(member)

        total = sum((fee.amount for fee in fees), ZERO)
        logger.info(
            "fees_posted",
            extra={
                "member_id": member.id,
                "months": len(fees),
                "total": total,
                "balance": member.account,
                "calculated_at": end,
            },
        )
        return FeeRunResult(
            member_id=member.id,
            member_name=member.name,
            fees=tuple(fees),
            total=total,
            balance=member.account,
            calculated_at=end,
        )

    def run(self, end_date: date | None = None) -> list[FeeRunResult]:
        """
        Calculate the accounts of all members up to end_date's month.

        Args:
            end_date: Last month to charge; defaults to the previous month.

        Returns:
            One FeeRunResult per member, ordered by member id.

        Raises:
            CalculationDateOrderError: If end_date's month is not after the
                last completed run.
        """
        end = align_month(end_date) if end_date else last_month(self._clock)

        with LogContext.bind(run_id=uuid4().hex):
            with self.stores.atomic():
                state = self.stores.state.get()
                if end <= state.accounts_calculated_at:
                    raise CalculationDateOrderError(end, state.accounts_calculated_at)

                results = []
                for member in self.stores.members.list():
                    with LogContext.bind(member_id=str(member.id)):
                        results.append(self.post_fees(member, end))

                state.accounts_calculated_at = end
                self.stores.state.update(state)

            logger.info(
                "fee_run_completed",
                extra={
                    "calculated_at": end,
                    "members": len(results),
                    "total": sum((r.total for r in results), ZERO),
                },
            )
        return results

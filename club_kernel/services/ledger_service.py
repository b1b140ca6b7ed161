"""
LedgerService -- the single path that changes a member's balance.

Responsibility:
    Posts one monetary movement for a member: inserts the Transaction and
    adds its amount to the member's running balance.  The fee and import
    services compose through this service; nothing else writes
    ``Member.account``.

Architecture position:
    Kernel > Services.  Leaf service, depends only on the stores.

Invariants enforced:
    - member.account == sum(Transaction.amount for the member).
    - The posted transaction always belongs to the member it is applied
      to; a caller-supplied member_id is overwritten.
    - Insert and balance update happen in one atomic unit.

Failure modes:
    - Store errors propagate unchanged; the atomic unit leaves neither the
      transaction nor the balance change behind.
"""

from club_kernel.db.types import round_money
from club_kernel.logging_config import get_logger
from club_kernel.models import Member, Transaction
from club_kernel.services.base import BaseService

logger = get_logger("services.ledger")


class LedgerService(BaseService):
    """Applies transactions to member accounts."""

    def apply_transaction(self, member: Member, transaction: Transaction) -> Member:
        """
        Post a transaction for a member and update the balance.

        Preconditions:
            - ``member`` is persisted (has an id).
            - ``transaction`` is new (not yet stored).

        Postconditions:
            - ``transaction.member_id == member.id`` and it has an id.
            - ``member.account`` grew by ``transaction.amount``.

        Args:
            member: The member to post for.
            transaction: The movement; positive amounts credit the member.

        Returns:
            The updated member.
        """
        with self.stores.atomic():
            transaction.member_id = member.id
            transaction.amount = round_money(transaction.amount)
            self.stores.transactions.add(transaction)

            member.account = round_money(member.account + transaction.amount)
            member = self.stores.members.update(member)

        logger.info(
            "transaction_applied",
            extra={
                "member_id": member.id,
                "transaction_id": transaction.id,
                "amount": transaction.amount,
                "balance": member.account,
            },
        )
        return member

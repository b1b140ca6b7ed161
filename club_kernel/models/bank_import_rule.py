"""
Module: club_kernel.models.bank_import_rule
Responsibility: ORM persistence for the sticky IBAN -> member mappings used
    to route incoming bank transactions.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - At most one rule per (member_id, iban) (uq_rule_member_iban).
    - Several rules may share an IBAN (co-payers on one bank account).
      Their order is the insertion order (id); the first one receives any
      overflow of a split transaction.
    - match_subject is stored lower-cased.

Failure modes:
    - IntegrityError on a duplicate (member_id, iban) pair; the rule service
      checks first and raises DuplicateImportRuleError instead.
"""

from decimal import Decimal

from sqlalchemy import ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from club_kernel.db.base import TrackedBase


class BankImportRule(TrackedBase):
    """
    Maps an IBAN to a member, optionally refined by split and subject.

    Contract:
        - split_amount set: only this much of an incoming transaction is
          allocated to the member.
        - match_subject set: the rule only applies when the transaction
          subject contains it (case-insensitive).
    """

    __tablename__ = "bank_import_rules"

    __table_args__ = (
        UniqueConstraint("member_id", "iban", name="uq_rule_member_iban"),
        Index("idx_rule_iban", "iban"),
    )

    member_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("members.id"),
        nullable=False,
    )

    iban: Mapped[str] = mapped_column(String(100), nullable=False)

    split_amount: Mapped[Decimal | None] = mapped_column(nullable=True)

    match_subject: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def matches_subject(self, subject: str) -> bool:
        """
        Test the subject filter against a transaction subject.

        Returns:
            True if the rule has no subject filter, otherwise whether the
            filter is a case-insensitive substring of ``subject``.
        """
        if self.match_subject is None:
            return True
        return self.match_subject.lower() in subject.lower()

    def __repr__(self) -> str:
        return f"<BankImportRule {self.id}: {self.iban} -> member {self.member_id}>"

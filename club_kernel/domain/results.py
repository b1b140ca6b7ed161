"""
Result DTOs returned by the import and fee services.

Services hand these frozen records to callers instead of ORM rows, so a
report stays valid after the session that produced it is closed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from club_kernel.db.types import ZERO
from club_kernel.domain.bank_transaction import BankTransaction
from club_kernel.domain.fees import MemberFee
from club_kernel.exceptions import ClubKernelError


@dataclass(frozen=True)
class PostingInfo:
    """A ledger entry written by a service."""

    transaction_id: int
    member_id: int
    date: date
    amount: Decimal
    description: str


@dataclass(frozen=True)
class RuleExclusion:
    """An import rule skipped because its subject filter did not match."""

    rule_id: int
    member_id: int
    match_subject: str
    subject: str


@dataclass(frozen=True)
class ImportResult:
    """Outcome of importing one bank transaction."""

    bank_transaction: BankTransaction
    postings: tuple[PostingInfo, ...] = ()
    excluded: tuple[RuleExclusion, ...] = ()
    overflow: Decimal = ZERO

    @property
    def total_posted(self) -> Decimal:
        return sum((p.amount for p in self.postings), ZERO)


@dataclass(frozen=True)
class ImportFailure:
    """A statement line that was not imported."""

    bank_transaction: BankTransaction
    error: ClubKernelError

    @property
    def code(self) -> str:
        return self.error.code


@dataclass
class ImportReport:
    """
    Outcome of importing a whole statement.

    stale lines were already imported before and are safe no-ops; failed
    lines need operator attention.
    """

    imported: list[ImportResult] = field(default_factory=list)
    stale: list[ImportFailure] = field(default_factory=list)
    failed: list[ImportFailure] = field(default_factory=list)
    skipped: list[BankTransaction] = field(default_factory=list)

    @property
    def exclusions(self) -> list[RuleExclusion]:
        return [e for result in self.imported for e in result.excluded]

    @property
    def total_imported(self) -> Decimal:
        return sum((r.total_posted for r in self.imported), ZERO)

    @property
    def ok(self) -> bool:
        return not self.failed


@dataclass(frozen=True)
class FeeRunResult:
    """Fees posted for one member by a fee run."""

    member_id: int
    member_name: str
    fees: tuple[MemberFee, ...]
    total: Decimal
    balance: Decimal
    calculated_at: date

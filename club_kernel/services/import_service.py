"""
BankImportService -- reconciles bank statement lines with member accounts.

Responsibility:
    Maps an incoming bank transaction to one or more members through the
    import rules of its IBAN, allocates the amount across split rules,
    guards against re-imports and posts the resulting credits through the
    ledger.  Also runs the statement-level plausibility check and imports
    whole statements, collecting per-line failures.

Architecture position:
    Kernel > Services.  Composes ImportRuleService and LedgerService.

Invariants enforced:
    - A statement line is applied to a member at most once: the member's
      bank watermark (date, serial number) must be strictly lower than the
      line's, checked with the member row locked.
    - Each line is all-or-nothing: rule creation, postings, watermark
      updates and the overflow posting share one atomic unit.
    - The postings of a line sum to its amount unless every rule was
      excluded by its subject filter and none remained to take the rest
      (then the first rule still receives the overflow).

Failure modes:
    - NonCreditTransactionError: debit or zero line passed directly.
    - AccountMatchFailedError: IBAN unknown, name ambiguous.
    - MoreRecentTransactionPresentError: line already imported (benign).
    - InsufficientAmountForSplitError: split rule exceeds the remainder.
    - NewerTransactionsPresentError: statement predates recorded data.
    - Store errors propagate unchanged.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

from club_kernel.db.types import ZERO
from club_kernel.domain.bank_transaction import BankTransaction
from club_kernel.domain.iban import hash_iban
from club_kernel.domain.results import (
    ImportFailure,
    ImportReport,
    ImportResult,
    PostingInfo,
    RuleExclusion,
)
from club_kernel.exceptions import (
    ClubKernelError,
    InsufficientAmountForSplitError,
    MoreRecentTransactionPresentError,
    NewerTransactionsPresentError,
    NonCreditTransactionError,
)
from club_kernel.logging_config import LogContext, get_logger
from club_kernel.models import BankImportRule, Member, Transaction
from club_kernel.services.base import BaseService
from club_kernel.services.ledger_service import LedgerService
from club_kernel.services.rule_service import ImportRuleService
from club_kernel.stores.protocols import Stores

logger = get_logger("services.bank_import")

SPLIT_SUFFIX = " (split)"
OVERFLOW_SUFFIX = " (overflow)"


def check_member_watermark(member: Member, bank_tx: BankTransaction) -> None:
    """
    Refuse a line the member's bank watermark already covers.

    Raises:
        MoreRecentTransactionPresentError: If the stored (date, serial)
            pair is greater than or equal to the line's.
    """
    if member.bank_watermark >= bank_tx.watermark:
        raise MoreRecentTransactionPresentError(
            member.id,
            present=str(member.bank_watermark),
            incoming=str(bank_tx.watermark),
        )


def _to_posting(tx: Transaction) -> PostingInfo:
    return PostingInfo(
        transaction_id=tx.id,
        member_id=tx.member_id,
        date=tx.date,
        amount=tx.amount,
        description=tx.description,
    )


class BankImportService(BaseService):
    """Imports bank transactions into member accounts."""

    def __init__(self, stores: Stores):
        super().__init__(stores)
        self._ledger = LedgerService(stores)
        self._rules = ImportRuleService(stores)

    def check_import_date(self, import_date: date) -> None:
        """
        Refuse statements older than data already in the ledger.

        Raises:
            NewerTransactionsPresentError: If any transaction is dated on
                or after import_date.
        """
        latest = self.stores.transactions.latest_date(since=import_date)
        if latest is not None and latest >= import_date:
            raise NewerTransactionsPresentError(import_date, latest)

    def import_transaction(self, bank_tx: BankTransaction) -> ImportResult:
        """
        Import one bank transaction.

        Rules of the IBAN are visited in order.  A rule whose subject filter
        does not match is skipped.  A split rule takes its split amount, any
        other rule takes the whole remainder.  After posting, a positive
        remainder goes to the member of the first rule as overflow; the
        overflow does not move that member's bank watermark.

        Returns:
            ImportResult with the postings and exclusions.

        Raises:
            NonCreditTransactionError, AccountMatchFailedError,
            MoreRecentTransactionPresentError,
            InsufficientAmountForSplitError: nothing is changed.
        """
        if not bank_tx.is_credit:
            raise NonCreditTransactionError(bank_tx)

        with LogContext.bind(
            statement_line=str(bank_tx.watermark),
            iban_hash=hash_iban(bank_tx.iban, bank_tx.name),
        ):
            with self.stores.atomic():
                result = self._import(bank_tx)

            logger.info(
                "bank_transaction_imported",
                extra={
                    "amount": bank_tx.amount,
                    "postings": len(result.postings),
                    "excluded": len(result.excluded),
                    "overflow": result.overflow,
                },
            )
        return result

    def _import(self, bank_tx: BankTransaction) -> ImportResult:
        rules = self._rules.resolve_rules(bank_tx)

        remaining = bank_tx.amount
        pending: list[tuple[Member, Transaction, int]] = []
        excluded: list[RuleExclusion] = []

        for rule in rules:
            if not rule.matches_subject(bank_tx.subject):
                excluded.append(self._exclude(rule, bank_tx))
                continue

            member = self.stores.members.get(rule.member_id, for_update=True)
            check_member_watermark(member, bank_tx)

            amount, description = self._allocate(rule, bank_tx, remaining)
            tx = Transaction(
                date=bank_tx.date,
                amount=amount,
                account_name=bank_tx.name,
                description=description,
            )
            pending.append((member, tx, bank_tx.serial_number))
            remaining -= amount

        postings = []
        for member, tx, serial_number in pending:
            member = self._ledger.apply_transaction(member, tx)
            member.last_bank_transaction_at = tx.date
            member.last_bank_transaction_number = serial_number
            self.stores.members.update(member)
            postings.append(_to_posting(tx))

        overflow = ZERO
        if remaining > 0:
            overflow = remaining
            postings.append(self._post_overflow(rules[0], bank_tx, remaining))

        return ImportResult(
            bank_transaction=bank_tx,
            postings=tuple(postings),
            excluded=tuple(excluded),
            overflow=overflow,
        )

    def _allocate(
        self,
        rule: BankImportRule,
        bank_tx: BankTransaction,
        remaining: Decimal,
    ) -> tuple[Decimal, str]:
        if rule.split_amount is None:
            return remaining, bank_tx.subject
        if rule.split_amount > remaining:
            raise InsufficientAmountForSplitError(
                bank_tx, split_amount=rule.split_amount, remaining=remaining
            )
        return rule.split_amount, bank_tx.subject + SPLIT_SUFFIX

    def _exclude(self, rule: BankImportRule, bank_tx: BankTransaction) -> RuleExclusion:
        logger.info(
            "import_rule_excluded",
            extra={
                "rule_id": rule.id,
                "member_id": rule.member_id,
                "match_subject": rule.match_subject,
            },
        )
        return RuleExclusion(
            rule_id=rule.id,
            member_id=rule.member_id,
            match_subject=rule.match_subject,
            subject=bank_tx.subject,
        )

    def _post_overflow(
        self,
        rule: BankImportRule,
        bank_tx: BankTransaction,
        amount: Decimal,
    ) -> PostingInfo:
        member = self.stores.members.get(rule.member_id, for_update=True)
        tx = Transaction(
            date=bank_tx.date,
            amount=amount,
            account_name=bank_tx.name,
            description=bank_tx.subject + OVERFLOW_SUFFIX,
        )
        self._ledger.apply_transaction(member, tx)
        logger.warning(
            "import_overflow_posted",
            extra={"member_id": member.id, "rule_id": rule.id, "amount": amount},
        )
        return _to_posting(tx)

    def import_statement(self, bank_txs: list[BankTransaction]) -> ImportReport:
        """
        Import all lines of a statement.

        The plausibility check runs once with the earliest date of the
        statement and aborts the whole import.  After that every credit line
        is imported on its own, in (date, serial number) order; a failing
        line is recorded in the report and does not stop the others.

        Raises:
            NewerTransactionsPresentError: From the plausibility check.
        """
        report = ImportReport()
        if not bank_txs:
            return report

        with LogContext.bind(run_id=uuid4().hex):
            self.check_import_date(min(tx.date for tx in bank_txs))

            for bank_tx in sorted(bank_txs, key=lambda tx: tx.watermark):
                if not bank_tx.is_credit:
                    report.skipped.append(bank_tx)
                    continue
                try:
                    report.imported.append(self.import_transaction(bank_tx))
                except ClubKernelError as exc:
                    failure = ImportFailure(bank_transaction=bank_tx, error=exc)
                    if exc.is_benign:
                        report.stale.append(failure)
                        logger.info(
                            "bank_transaction_stale",
                            extra={"serial_number": bank_tx.serial_number},
                        )
                    else:
                        report.failed.append(failure)
                        logger.warning(
                            "bank_transaction_failed",
                            extra={
                                "serial_number": bank_tx.serial_number,
                                "error_code": exc.code,
                                "error": str(exc),
                            },
                        )

            logger.info(
                "statement_imported",
                extra={
                    "lines": len(bank_txs),
                    "imported": len(report.imported),
                    "stale": len(report.stale),
                    "failed": len(report.failed),
                    "skipped": len(report.skipped),
                    "total": report.total_imported,
                },
            )
        return report

"""
ImportRuleService -- administration and resolution of bank import rules.

Responsibility:
    Maintains the IBAN -> member rules and resolves the rules that apply to
    an incoming bank transaction.  Resolution is a WRITE operation: for an
    IBAN seen for the first time it creates a default rule when the
    counterpart name identifies exactly one member.

Architecture position:
    Kernel > Services.  Used by BankImportService.

Invariants enforced:
    - One rule per (member, IBAN).
    - Rules for an IBAN are returned in insertion order; the first one is
      the overflow target of split transactions.
    - match_subject is stored lower-cased and stripped.

Failure modes:
    - AccountMatchFailedError: no rule and zero or several name matches.
    - DuplicateImportRuleError / ImportRuleNotFoundError /
      InvalidSplitAmountError / MemberNotFoundError on administration.
"""

from decimal import Decimal

from club_kernel.db.types import to_money
from club_kernel.domain.bank_transaction import BankTransaction
from club_kernel.domain.iban import hash_iban
from club_kernel.exceptions import (
    AccountMatchFailedError,
    DuplicateImportRuleError,
    ImportRuleNotFoundError,
    InvalidSplitAmountError,
)
from club_kernel.logging_config import get_logger
from club_kernel.models import BankImportRule, Member
from club_kernel.services.base import BaseService

logger = get_logger("services.rules")


def make_default_rule(member: Member, iban: str) -> BankImportRule:
    """Rule without split and subject filter."""
    return BankImportRule(member_id=member.id, iban=iban)


class ImportRuleService(BaseService):
    """Creates, lists, removes and resolves bank import rules."""

    def resolve_rules(self, bank_tx: BankTransaction) -> list[BankImportRule]:
        """
        Rules that apply to a bank transaction, creating one if needed.

        Existing rules for the IBAN are returned unchanged.  Otherwise the
        counterpart name is looked up among the members (case-insensitive,
        exact); on a single match a default rule is stored and returned.

        Raises:
            AccountMatchFailedError: If no rule exists and the name does not
                identify exactly one member.
        """
        rules = self.stores.rules.list(iban=bank_tx.iban)
        if rules:
            return rules

        members = self.stores.members.find_by_name(bank_tx.name)
        if len(members) != 1:
            raise AccountMatchFailedError(bank_tx, candidates=len(members))

        rule = self.stores.rules.add(make_default_rule(members[0], bank_tx.iban))
        logger.info(
            "import_rule_created",
            extra={
                "member_id": rule.member_id,
                "rule_id": rule.id,
                "iban_hash": hash_iban(bank_tx.iban, bank_tx.name),
                "implicit": True,
            },
        )
        return [rule]

    def add_rule(
        self,
        member_id: int,
        iban: str,
        split_amount: Decimal | float | str | None = None,
        match_subject: str | None = None,
    ) -> BankImportRule:
        """
        Create a rule for a member and IBAN.

        Raises:
            MemberNotFoundError: If the member does not exist.
            DuplicateImportRuleError: If the pair already has a rule.
            InvalidSplitAmountError: If split_amount is zero or negative.
        """
        member = self.stores.members.get(member_id)
        iban = iban.strip()
        if self.stores.rules.get(member.id, iban) is not None:
            raise DuplicateImportRuleError(member.id, iban)

        split = to_money(split_amount) if split_amount is not None else None
        if split is not None and split <= 0:
            raise InvalidSplitAmountError(split)

        subject = (match_subject or "").strip().lower() or None

        rule = self.stores.rules.add(
            BankImportRule(
                member_id=member.id,
                iban=iban,
                split_amount=split,
                match_subject=subject,
            )
        )
        logger.info(
            "import_rule_created",
            extra={
                "member_id": member.id,
                "rule_id": rule.id,
                "iban_hash": hash_iban(iban, member.name),
                "split_amount": split,
                "match_subject": subject,
                "implicit": False,
            },
        )
        return rule

    def remove_rule(self, member_id: int, iban: str) -> None:
        """
        Delete the rule for a member and IBAN.

        Raises:
            ImportRuleNotFoundError: If there is no such rule.
        """
        rule = self.stores.rules.get(member_id, iban.strip())
        if rule is None:
            raise ImportRuleNotFoundError(member_id, iban)
        self.stores.rules.delete(rule)
        logger.info(
            "import_rule_removed",
            extra={"member_id": member_id, "rule_id": rule.id},
        )

    def list_rules(
        self,
        member_id: int | None = None,
        iban: str | None = None,
    ) -> list[BankImportRule]:
        """Rules filtered by member and/or IBAN, in insertion order."""
        return self.stores.rules.list(iban=iban, member_id=member_id)

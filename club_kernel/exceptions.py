"""
Typed exception hierarchy for the club kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the import and fee engines must react differently to different
failures: a stale statement line is a harmless no-op on re-import, an
unresolved account needs an operator to add an import rule, and a storage
failure must stop the run.  Parsing messages for this is fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        importer.import_transaction(bank_tx)
    except MoreRecentTransactionPresentError:
        pass  # already imported, safe to ignore
    except AccountMatchFailedError as e:
        ask_operator_for_rule(e.bank_transaction)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    ClubKernelError (base)
    |
    +-- MemberError
    |   +-- MemberNotFoundError
    |   +-- MemberInUseError
    |   +-- ProtectedFieldError
    |
    +-- ImportRuleError
    |   +-- ImportRuleNotFoundError
    |   +-- DuplicateImportRuleError
    |   +-- InvalidSplitAmountError
    |
    +-- BankImportError
    |   +-- NonCreditTransactionError
    |   +-- AccountMatchFailedError
    |   +-- InsufficientAmountForSplitError
    |   +-- MoreRecentTransactionPresentError
    |   +-- NewerTransactionsPresentError
    |
    +-- FeeCalculationError
        +-- CalculationDateOrderError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                             | When Raised
-------------|----------------------------------|--------------------------------
Member       | MEMBER_NOT_FOUND                 | Member ID doesn't exist
             | MEMBER_IN_USE                    | Delete while transactions or
             |                                  | rules reference the member
             | PROTECTED_FIELD                  | Profile edit touches balance
             |                                  | or a watermark
-------------|----------------------------------|--------------------------------
Import rule  | IMPORT_RULE_NOT_FOUND            | No rule for (member, IBAN)
             | DUPLICATE_IMPORT_RULE            | Rule for (member, IBAN) exists
             | INVALID_SPLIT_AMOUNT             | Split amount is not positive
-------------|----------------------------------|--------------------------------
Bank import  | NON_CREDIT_TRANSACTION           | Line amount is zero or negative
             | ACCOUNT_MATCH_FAILED             | IBAN has no rule and the name
             |                                  | matches zero or many members
             | INSUFFICIENT_AMOUNT_FOR_SPLIT    | Split exceeds remaining amount
             | MORE_RECENT_TRANSACTION_PRESENT  | Member watermark covers line
             |                                  | (benign on re-import)
             | NEWER_TRANSACTIONS_PRESENT       | Statement predates ledger data
-------------|----------------------------------|--------------------------------
Fees         | CALCULATION_DATE_ORDER           | Fee run at/before last run

Storage errors (``sqlalchemy.exc.SQLAlchemyError``) are never wrapped; they
propagate unchanged to the caller.
===============================================================================
"""

from datetime import date
from decimal import Decimal


class ClubKernelError(Exception):
    """
    Base exception for all club kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "CLUB_KERNEL_ERROR"

    # True for errors that signal a safe no-op rather than a problem.
    is_benign: bool = False


# Member-related exceptions


class MemberError(ClubKernelError):
    """Base exception for member-related errors."""

    code: str = "MEMBER_ERROR"


class MemberNotFoundError(MemberError):
    """Member with given ID was not found."""

    code: str = "MEMBER_NOT_FOUND"

    def __init__(self, member_id: int):
        self.member_id = member_id
        super().__init__(f"Member not found: {member_id}")


class MemberInUseError(MemberError):
    """
    A member cannot be deleted while ledger entries or import rules
    reference it.
    """

    code: str = "MEMBER_IN_USE"

    def __init__(self, member_id: int, transactions: int, rules: int):
        self.member_id = member_id
        self.transactions = transactions
        self.rules = rules
        super().__init__(
            f"Member {member_id} is still referenced by "
            f"{transactions} transactions and {rules} import rules"
        )


class ProtectedFieldError(MemberError):
    """
    A profile update tried to modify a ledger-owned field.

    The balance and the watermarks are only changed by the ledger, fee and
    import services.
    """

    code: str = "PROTECTED_FIELD"

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Field cannot be edited directly: {field_name}")


# Import rule exceptions


class ImportRuleError(ClubKernelError):
    """Base exception for bank import rule administration."""

    code: str = "IMPORT_RULE_ERROR"


class ImportRuleNotFoundError(ImportRuleError):
    """No import rule exists for the member and IBAN."""

    code: str = "IMPORT_RULE_NOT_FOUND"

    def __init__(self, member_id: int, iban: str):
        self.member_id = member_id
        self.iban = iban
        super().__init__(f"No import rule for member {member_id} and IBAN {iban}")


class DuplicateImportRuleError(ImportRuleError):
    """An import rule for the member and IBAN already exists."""

    code: str = "DUPLICATE_IMPORT_RULE"

    def __init__(self, member_id: int, iban: str):
        self.member_id = member_id
        self.iban = iban
        super().__init__(
            f"Import rule for member {member_id} and IBAN {iban} already exists"
        )


class InvalidSplitAmountError(ImportRuleError):
    """Split amount must be strictly positive."""

    code: str = "INVALID_SPLIT_AMOUNT"

    def __init__(self, split_amount: Decimal):
        self.split_amount = split_amount
        super().__init__(f"Split amount must be positive, got {split_amount}")


# Bank import exceptions


class BankImportError(ClubKernelError):
    """Base exception for bank transaction import errors."""

    code: str = "BANK_IMPORT_ERROR"


class NonCreditTransactionError(BankImportError):
    """
    The statement line is a debit or zero amount.

    Only incoming payments are credited to members; outgoing lines are left
    for the club's own bookkeeping.
    """

    code: str = "NON_CREDIT_TRANSACTION"

    def __init__(self, bank_transaction):
        self.bank_transaction = bank_transaction
        self.amount = bank_transaction.amount
        super().__init__(
            f"Only credits can be imported, got amount {bank_transaction.amount}"
        )


class AccountMatchFailedError(BankImportError):
    """
    The transaction could not be resolved to exactly one member.

    Raised when no import rule exists for the IBAN and the counterpart name
    matches zero or several members.  Carries the bank transaction so an
    operator can create a rule for it.
    """

    code: str = "ACCOUNT_MATCH_FAILED"

    def __init__(self, bank_transaction, candidates: int):
        self.bank_transaction = bank_transaction
        self.candidates = candidates
        super().__init__(
            f"Could not resolve member for '{bank_transaction.name}' "
            f"({candidates} candidates)"
        )


class InsufficientAmountForSplitError(BankImportError):
    """A split rule demands more than what remains of the transaction."""

    code: str = "INSUFFICIENT_AMOUNT_FOR_SPLIT"

    def __init__(self, bank_transaction, split_amount: Decimal, remaining: Decimal):
        self.bank_transaction = bank_transaction
        self.split_amount = split_amount
        self.remaining = remaining
        super().__init__(
            f"Insufficient amount for split transaction: "
            f"split {split_amount} > remaining {remaining}"
        )


class MoreRecentTransactionPresentError(BankImportError):
    """
    The member's bank watermark already covers this statement line.

    Expected on re-imports of overlapping statements: the line has been
    imported before, so nothing was changed.
    """

    code: str = "MORE_RECENT_TRANSACTION_PRESENT"
    is_benign: bool = True

    def __init__(self, member_id: int, present: str, incoming: str):
        self.member_id = member_id
        self.present = present
        self.incoming = incoming
        super().__init__(
            f"A more recent transaction ({present} >= {incoming}) "
            f"is present for member {member_id}"
        )


class NewerTransactionsPresentError(BankImportError):
    """The statement is older than transactions already recorded."""

    code: str = "NEWER_TRANSACTIONS_PRESENT"

    def __init__(self, import_date: date, latest_date: date):
        self.import_date = import_date
        self.latest_date = latest_date
        super().__init__(
            f"Newer transactions present: latest {latest_date} >= {import_date}"
        )


# Fee calculation exceptions


class FeeCalculationError(ClubKernelError):
    """Base exception for membership fee calculation errors."""

    code: str = "FEE_CALCULATION_ERROR"


class CalculationDateOrderError(FeeCalculationError):
    """The requested fee run does not advance past the last completed run."""

    code: str = "CALCULATION_DATE_ORDER"

    def __init__(self, end_date: date, calculated_at: date):
        self.end_date = end_date
        self.calculated_at = calculated_at
        super().__init__(
            f"Accounts are already calculated until {calculated_at}, "
            f"cannot calculate until {end_date}"
        )

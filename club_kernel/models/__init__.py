"""ORM models for the club kernel."""

from club_kernel.models.bank_import_rule import BankImportRule
from club_kernel.models.member import Member
from club_kernel.models.state import AccountingState
from club_kernel.models.transaction import Transaction

__all__ = [
    "AccountingState",
    "BankImportRule",
    "Member",
    "Transaction",
]

"""
Kernel services -- the imperative shell around the domain layer.

All services take a ``Stores`` bundle and never commit.
"""

from club_kernel.services.fee_service import FeeService
from club_kernel.services.import_service import BankImportService
from club_kernel.services.ledger_service import LedgerService
from club_kernel.services.member_service import MemberService
from club_kernel.services.rule_service import ImportRuleService

__all__ = [
    "BankImportService",
    "FeeService",
    "ImportRuleService",
    "LedgerService",
    "MemberService",
]

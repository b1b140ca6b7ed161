"""Pure domain layer: value objects, fee calculation and result DTOs."""

from club_kernel.domain.bank_transaction import BankTransaction
from club_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from club_kernel.domain.fees import MemberFee, calculate_fees, is_member_active
from club_kernel.domain.iban import hash_iban
from club_kernel.domain.watermark import BankWatermark

__all__ = [
    "BankTransaction",
    "BankWatermark",
    "Clock",
    "DeterministicClock",
    "MemberFee",
    "SystemClock",
    "calculate_fees",
    "hash_iban",
    "is_member_active",
]

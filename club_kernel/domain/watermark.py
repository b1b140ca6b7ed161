"""
BankWatermark -- ordering key of bank statement lines.

Responsibility:
    Models the (date, serial number) pair that identifies how far bank
    imports have progressed for a member.  Serial numbers are positions
    within one statement, so they are only meaningful together with the
    date; comparing the pair lexicographically is the only correct order.

Architecture position:
    Kernel > Domain -- pure value object, zero I/O.
"""

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True, order=True)
class BankWatermark:
    """
    Comparable (date, serial_number) pair.

    Guarantees:
        - Ordering is lexicographic: date first, serial number second.
    """

    date: date
    serial_number: int

    def __str__(self) -> str:
        return f"{self.date.isoformat()}-{self.serial_number}"

"""
BankTransaction -- a normalized bank statement line.

Produced by an external statement parser and handed to the import service.
Never persisted as-is; the import service turns it into member Transactions.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from club_kernel.db.types import to_money
from club_kernel.domain.watermark import BankWatermark


@dataclass(frozen=True)
class BankTransaction:
    """
    One line of an imported bank statement.

    Attributes:
        serial_number: Position within the statement (not unique across
            statements).
        date: Booking date.
        name: Counterpart account holder as printed by the bank.
        iban: Counterpart IBAN.
        amount: Signed amount; only credits are imported.
        subject: Free-text payment reference.
    """

    serial_number: int
    date: date
    name: str
    iban: str
    amount: Decimal
    subject: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_money(self.amount))

    @property
    def watermark(self) -> BankWatermark:
        return BankWatermark(self.date, self.serial_number)

    @property
    def is_credit(self) -> bool:
        return self.amount > 0

"""
Common Value Objects

Value objects used across multiple booking contexts:
- Money: Represents monetary amounts with currency
- SlotKey: Identifies one bookable (package, date, time-of-day) unit
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from shared.domain.base import ValueObject

SUPPORTED_CURRENCIES = ('MYR', 'USD', 'EUR', 'SGD')

CENT = Decimal('0.01')


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    Represents a monetary amount with currency.
    Immutable and supports arithmetic operations.
    """
    amount: Decimal
    currency: str = 'MYR'

    def __post_init__(self):
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")
        if not self.currency:
            raise ValueError("Currency is required")
        # Stripe reports lowercase ISO codes
        object.__setattr__(self, 'currency', self.currency.upper())
        if self.currency not in SUPPORTED_CURRENCIES:
            raise ValueError(f"Unsupported currency: {self.currency}")

    @classmethod
    def from_minor_units(cls, minor: int, currency: str) -> 'Money':
        """Build from the processor's smallest-unit integer (sen, cents)."""
        return cls(Decimal(minor) / 100, currency)

    def to_minor_units(self) -> int:
        return int((self.amount * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))

    def fee(self, rate: Decimal) -> 'Money':
        """Percentage fee on this amount, rounded to the cent."""
        return Money((self.amount * Decimal(str(rate))).quantize(CENT, rounding=ROUND_HALF_UP), self.currency)

    def __add__(self, other: 'Money') -> 'Money':
        """Add two money objects"""
        if not isinstance(other, Money):
            raise TypeError("Can only add Money to Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot add different currencies: {self.currency} and {other.currency}")
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, factor) -> 'Money':
        """Multiply money by a factor"""
        if not isinstance(factor, (int, float, Decimal)):
            raise TypeError("Can only multiply Money by number")
        return Money(self.amount * Decimal(str(factor)), self.currency)

    def __str__(self):
        return f"{self.amount:,.2f} {self.currency}"

    def __repr__(self):
        return f"Money({self.amount}, '{self.currency}')"


@dataclass(frozen=True)
class SlotKey(ValueObject):
    """
    Slot key value object

    A slot is addressed by package type, package id, the operator-local
    calendar date ("YYYY-MM-DD", no timezone component) and the
    departure time label exactly as stored on the slot entry ("08:00 AM").
    """
    package_type: str
    package_id: int
    date: str
    time: str

    def __post_init__(self):
        if not self.date or len(self.date) != 10:
            raise ValueError(f"Slot date must be YYYY-MM-DD, got {self.date!r}")
        if not self.time:
            raise ValueError("Slot time label is required")

    def __str__(self):
        return f"{self.package_type}:{self.package_id}@{self.date} {self.time}"

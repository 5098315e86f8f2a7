"""
Base Value Object Classes

Value Objects are immutable domain primitives that have no identity.
They are compared by their values, not by reference.
"""

import re
from abc import ABC
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Self

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for all value objects.

    Value objects are:
    - Immutable (frozen=True)
    - Compared by value (dataclass equality)
    - Have no identity
    """

    def __post_init__(self):
        self._validate()

    def _validate(self) -> None:
        """Validate the value object. Override in subclasses."""
        pass


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object held in integer minor currency units.

    All arithmetic stays in minor units; conversion to major units
    happens only for display via ``to_major``.

    Example:
        ```python
        price = Money(amount=1999, currency="USD")  # $19.99
        line_total = price.multiply(3)              # 5997
        total = line_total.add(Money(500, "USD"))   # 6497
        ```
    """

    amount: int
    currency: str = "USD"

    def _validate(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise ValueError("Money amount must be an integer number of minor units")
        if self.amount < 0:
            raise ValueError("Money amount cannot be negative")
        if not self.currency or len(self.currency) != 3:
            raise ValueError("Currency must be a 3-letter ISO code")
        object.__setattr__(self, "currency", self.currency.upper())

    @classmethod
    def zero(cls, currency: str = "USD") -> "Money":
        return cls(amount=0, currency=currency)

    def _check_currency(self, other: "Money") -> None:
        if self.currency != other.currency:
            raise ValueError(f"Currency mismatch: {self.currency} vs {other.currency}")

    def add(self, other: "Money") -> "Money":
        """Add two Money values (must be same currency)."""
        self._check_currency(other)
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def subtract(self, other: "Money") -> "Money":
        """Subtract Money (must be same currency, result must be non-negative)."""
        self._check_currency(other)
        result = self.amount - other.amount
        if result < 0:
            raise ValueError("Result cannot be negative")
        return Money(amount=result, currency=self.currency)

    def multiply(self, factor: int) -> "Money":
        """Multiply by an integer quantity."""
        if factor < 0:
            raise ValueError("Factor cannot be negative")
        return Money(amount=self.amount * factor, currency=self.currency)

    def is_zero(self) -> bool:
        return self.amount == 0

    def is_greater_than(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.amount > other.amount

    def to_major(self) -> Decimal:
        """Amount in major units (display only)."""
        return Decimal(self.amount) / Decimal(100)

    def __str__(self) -> str:
        return f"{self.currency} {self.to_major():.2f}"


@dataclass(frozen=True)
class Email(ValueObject):
    """
    Email address value object.

    Validates and normalizes email addresses.
    """

    address: str

    def _validate(self) -> None:
        normalized = (self.address or "").strip().lower()
        if not _EMAIL_PATTERN.match(normalized):
            raise ValueError(f"Invalid email address: {self.address}")
        object.__setattr__(self, "address", normalized)

    def __str__(self) -> str:
        return self.address


class StatusEnum(str, Enum):
    """
    Base class for status enumerations.

    Provides common functionality for status values.
    """

    @classmethod
    def values(cls) -> list[str]:
        """Get all status values."""
        return [e.value for e in cls]

    @classmethod
    def from_string(cls, value: str) -> Self:
        """Create status from string (case-insensitive)."""
        for member in cls:
            if member.value.lower() == value.lower():
                return member
        raise ValueError(f"Invalid {cls.__name__}: {value}")

    def __str__(self) -> str:
        return self.value

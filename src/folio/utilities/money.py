"""Money and quantity primitives.

Money pairs an exact Decimal value with an ISO 4217 currency code. Adding or
subtracting amounts of different currencies is an error: conversion only
happens explicitly, through an exchange rate (see Snapshot.convert).

The empty currency "" is weak: it adopts the other operand's currency. It is
what an undeclared entity's zero looks like.

Usage:
    >>> from folio.utilities.money import Money
    >>> Money(1500, "EUR") - Money("250.5", "EUR")
    Money(value=Decimal('1249.5'), currency='EUR')
    >>> Money(1500, "EUR") / Decimal("10")
    Money(value=Decimal('150'), currency='EUR')
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Union

from pydantic_core import core_schema

from folio.errors import CurrencyMismatchError

Number = Union[int, float, str, Decimal]

ZERO = Decimal("0")
ONE = Decimal("1")


def to_decimal(value: Number) -> Decimal:
    """
    Convert a number to Decimal without binary float noise.

    Floats go through str() so that 0.1 becomes Decimal("0.1").
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a number")
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, str):
        try:
            return Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f"invalid number {value!r}") from None
    raise TypeError(f"Cannot convert {type(value).__name__} to Decimal")


def _merge_currency(a: str, b: str) -> str:
    if not a:
        return b
    if not b:
        return a
    if a != b:
        raise CurrencyMismatchError(f"currency mismatch: {a} != {b}")
    return a


@dataclass(frozen=True, init=False)
class Money:
    """
    Immutable monetary amount.

    Attributes:
        value: Amount in major units (exact, unrounded)
        currency: ISO 4217 code, or "" for a currency-less zero
    """

    value: Decimal
    currency: str

    def __init__(self, value: Number = ZERO, currency: str = "") -> None:
        object.__setattr__(self, "value", to_decimal(value))
        object.__setattr__(self, "currency", currency)

    @classmethod
    def zero(cls, currency: str = "") -> "Money":
        return cls(ZERO, currency)

    @classmethod
    def parse(cls, value: Any) -> "Money":
        """
        Build Money from an instance, a mapping or text.

        Accepted forms:
            - Money(...)
            - {"value": "12.50", "currency": "EUR"} ("amount" also accepted)
            - "12.50 EUR"

        Raises:
            ValueError: If value has none of these forms
        """
        if isinstance(value, Money):
            return value
        if isinstance(value, dict):
            raw = value.get("value", value.get("amount"))
            if raw is None:
                raise ValueError(f"money mapping needs a value: {value!r}")
            return cls(to_decimal(raw), str(value.get("currency", "")))
        if isinstance(value, str):
            parts = value.split()
            if len(parts) == 2:
                return cls(to_decimal(parts[0]), parts[1])
            raise ValueError(f"money text must look like '12.50 EUR', got {value!r}")
        raise ValueError(f"cannot build Money from {type(value).__name__}")

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: Any) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls.parse,
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda m: {"value": str(m.value), "currency": m.currency}
            ),
        )

    # ==================== Predicates ====================

    def is_zero(self) -> bool:
        return self.value == 0

    def is_positive(self) -> bool:
        return self.value > 0

    def is_negative(self) -> bool:
        return self.value < 0

    # ==================== Arithmetic ====================

    def __add__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.value + other.value, _merge_currency(self.currency, other.currency))

    def __sub__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.value - other.value, _merge_currency(self.currency, other.currency))

    def __neg__(self) -> "Money":
        return Money(-self.value, self.currency)

    def __mul__(self, factor: Number) -> "Money":
        if isinstance(factor, Money):
            return NotImplemented
        return Money(self.value * to_decimal(factor), self.currency)

    __rmul__ = __mul__

    def __truediv__(self, other: Union[Number, "Money"]) -> Union["Money", Decimal]:
        """
        Divide by a number (scaled Money) or by Money of the same currency (plain ratio).

        Raises:
            CurrencyMismatchError: If dividing by Money of another currency
            decimal.DivisionByZero / InvalidOperation: On zero divisor
        """
        if isinstance(other, Money):
            _merge_currency(self.currency, other.currency)
            return self.value / other.value
        return Money(self.value / to_decimal(other), self.currency)

    def neg(self) -> "Money":
        return -self

    def round(self, places: int = 2) -> "Money":
        return Money(self.value.quantize(Decimal(1).scaleb(-places)), self.currency)

    # ==================== Comparison ====================

    def _check(self, other: "Money") -> None:
        _merge_currency(self.currency, other.currency)

    def __lt__(self, other: "Money") -> bool:
        self._check(other)
        return self.value < other.value

    def __le__(self, other: "Money") -> bool:
        self._check(other)
        return self.value <= other.value

    def __gt__(self, other: "Money") -> bool:
        self._check(other)
        return self.value > other.value

    def __ge__(self, other: "Money") -> bool:
        self._check(other)
        return self.value >= other.value

    # ==================== Display ====================

    def __str__(self) -> str:
        amount = f"{self.value.quantize(Decimal('0.01')):,}"
        return f"{amount} {self.currency}" if self.currency else amount

    def signed(self) -> str:
        """String with explicit sign; "-" for zero."""
        if self.is_zero():
            return "-"
        if self.is_positive():
            return f"+{self}"
        return str(self)

"""Shared primitives: money and calendar helpers."""

from folio.utilities.dates import Period, Range, end_of, parse_date, start_of
from folio.utilities.money import ONE, ZERO, Money, Number, to_decimal

__all__ = [
    "Money",
    "Number",
    "ONE",
    "Period",
    "Range",
    "ZERO",
    "end_of",
    "parse_date",
    "start_of",
    "to_decimal",
]

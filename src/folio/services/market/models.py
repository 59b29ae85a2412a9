"""Market data store: price histories and split records keyed by security ID.

MarketData is filled by provider collaborators (fetchers, importers) before a
journal is built. The journal builder only reads it.
"""

from bisect import bisect_left, bisect_right
from datetime import date
from decimal import Decimal
from typing import Iterator

from pydantic import BaseModel, ConfigDict, field_validator

from folio.services.market.identifiers import Security
from folio.utilities.money import Number, to_decimal


class SplitRecord(BaseModel):
    """
    Stock split effective on a date: every share becomes numerator/denominator shares.

    Example:
        >>> SplitRecord(on=date(2020, 8, 31), numerator=4, denominator=1)
    """

    on: date
    numerator: int
    denominator: int = 1

    @field_validator("numerator", "denominator")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate ratio terms are positive."""
        if v <= 0:
            raise ValueError(f"split ratio terms must be positive, got {v}")
        return v

    model_config = ConfigDict(frozen=True)


class PriceHistory:
    """
    Date-indexed price series kept in chronological order.

    Appending a value for an existing date replaces it.
    """

    def __init__(self, items: dict[date, Number] | None = None) -> None:
        self._days: list[date] = []
        self._values: list[Decimal] = []
        for on, value in (items or {}).items():
            self.append(on, value)

    def append(self, on: date, value: Number) -> None:
        index = bisect_left(self._days, on)
        if index < len(self._days) and self._days[index] == on:
            self._values[index] = to_decimal(value)
            return
        self._days.insert(index, on)
        self._values.insert(index, to_decimal(value))

    def get(self, on: date) -> Decimal | None:
        """Value recorded exactly on that day."""
        index = bisect_left(self._days, on)
        if index < len(self._days) and self._days[index] == on:
            return self._values[index]
        return None

    def value_as_of(self, on: date) -> Decimal | None:
        """Last value recorded on or before that day."""
        index = bisect_right(self._days, on)
        if index == 0:
            return None
        return self._values[index - 1]

    def latest(self) -> tuple[date, Decimal] | None:
        if not self._days:
            return None
        return self._days[-1], self._values[-1]

    def items(self) -> Iterator[tuple[date, Decimal]]:
        return zip(list(self._days), list(self._values))

    def clear(self) -> None:
        self._days.clear()
        self._values.clear()

    def __len__(self) -> int:
        return len(self._days)


class MarketData:
    """
    Repository of security definitions, price histories and splits.

    Example:
        >>> md = MarketData()
        >>> md.add(Security(id="US0378331005.XNAS", ticker="AAPL", currency="USD"))
        >>> md.append_price("US0378331005.XNAS", date(2025, 1, 2), "243.85")
        >>> md.price_as_of("US0378331005.XNAS", date(2025, 1, 5))
        Decimal('243.85')
    """

    def __init__(self) -> None:
        self._securities: dict[str, Security] = {}
        self._tickers: dict[str, str] = {}
        self._prices: dict[str, PriceHistory] = {}
        self._splits: dict[str, list[SplitRecord]] = {}

    def add(self, security: Security) -> None:
        """Register a security; a second registration of the same ID is ignored."""
        if security.id in self._securities:
            return
        self._securities[security.id] = security
        self._tickers[security.ticker] = security.id
        self._prices.setdefault(security.id, PriceHistory())
        self._splits.setdefault(security.id, [])

    def get(self, security_id: str) -> Security | None:
        return self._securities.get(security_id)

    def resolve(self, ticker: str) -> str | None:
        """Ticker to security ID."""
        return self._tickers.get(ticker)

    def has(self, ticker: str) -> bool:
        return ticker in self._tickers

    def securities(self) -> list[Security]:
        return list(self._securities.values())

    def ids(self) -> list[str]:
        """Every ID holding price or split data, in insertion order."""
        seen = dict.fromkeys(self._prices)
        seen.update(dict.fromkeys(self._splits))
        return list(seen)

    # ==================== Prices ====================

    def append_price(self, security_id: str, on: date, price: Number) -> None:
        """Record a price, creating the history if needed (currency-pair quotes need no declaration)."""
        self._prices.setdefault(security_id, PriceHistory()).append(on, price)

    def set_price(self, security_id: str, on: date, price: Number) -> None:
        """
        Record a price for a registered security.

        Raises:
            KeyError: If the security is not registered
        """
        if security_id not in self._securities:
            raise KeyError(f"security with ID {security_id!r} not found")
        self.append_price(security_id, on, price)

    def prices(self, security_id: str) -> PriceHistory:
        history = self._prices.get(security_id)
        return history if history is not None else PriceHistory()

    def price_as_of(self, security_id: str, on: date) -> Decimal | None:
        history = self._prices.get(security_id)
        if history is None:
            return None
        return history.value_as_of(on)

    # ==================== Splits ====================

    def add_split(self, security_id: str, split: SplitRecord) -> None:
        self._splits.setdefault(security_id, []).append(split)

    def set_splits(self, security_id: str, splits: list[SplitRecord]) -> None:
        """Replace every split known for a security."""
        self._splits[security_id] = list(splits)

    def splits(self, security_id: str) -> list[SplitRecord]:
        return list(self._splits.get(security_id, []))

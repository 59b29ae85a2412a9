"""Data models for portfolio read-models.

Defines the plain values Snapshots and Reviews hand out:
- Lot: FIFO building block (transient, only lives inside a replay)
- Holding: one held security valued on a day
- Performance: a value at both ends of a period plus its time-weighted return
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from folio.utilities.money import Money


class Lot(BaseModel):
    """
    Shares acquired together, consumed oldest first on disposal.

    Attributes:
        acquired_on: Day the shares were acquired
        quantity: Shares still held from this acquisition
        cost: Cost of those shares in the security's currency

    Example:
        >>> lot = Lot(acquired_on=date(2025, 1, 10), quantity=Decimal("100"), cost=Decimal("15000"))
    """

    acquired_on: date
    quantity: Decimal
    cost: Decimal

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v: Decimal) -> Decimal:
        """Validate quantity is not negative."""
        if v < 0:
            raise ValueError(f"Lot quantity cannot be negative, got {v}")
        return v

    model_config = ConfigDict(frozen=True)


class Holding(BaseModel):
    """
    A held security valued on a given day.

    Attributes:
        ticker: Ledger ticker
        security_id: Standardized security ID
        currency: Currency the security is priced in
        quantity: Shares held
        price: Last known price per share
        market_value: quantity x price
        cost_basis: Cost of the shares held (per the chosen method)
        unrealized_gains: market_value - cost_basis
    """

    ticker: str
    security_id: str
    currency: str
    quantity: Decimal
    price: Money
    market_value: Money
    cost_basis: Money
    unrealized_gains: Money

    model_config = ConfigDict(frozen=True)


class Performance(BaseModel):
    """
    Value of something at the start and end of a period, with its TWR.

    Attributes:
        start: Value the day before the period starts
        end: Value on the last day of the period
        return_: Time-weighted return over the period (NaN when undefined)
    """

    start: Money
    end: Money
    return_: Decimal = Field(allow_inf_nan=True)

    model_config = ConfigDict(frozen=True)

    def change(self) -> Money:
        return self.end - self.start

    def percent(self) -> Decimal:
        """Relative change of value; NaN when the start value is zero."""
        if self.start.is_zero():
            return Decimal("NaN")
        return self.change().value / self.start.value


class AssetReview(BaseModel):
    """
    One security's activity over a review period.

    Attributes:
        ticker: Ledger ticker
        starting_position: Shares held the day before the period
        ending_position: Shares held on the last day
        value: Market value at both ends with the time-weighted return
        buys: Acquisition costs within the period
        sells: Disposal proceeds within the period
        dividends: Dividend income within the period
        realized_gains: Gains locked in by disposals within the period
        unrealized_gains: Gains still open on the last day
    """

    ticker: str
    starting_position: Decimal
    ending_position: Decimal
    value: Performance
    buys: Money
    sells: Money
    dividends: Money
    realized_gains: Money
    unrealized_gains: Money

    model_config = ConfigDict(frozen=True)

    def flow(self) -> Money:
        """Net money put into the security (buys - sells)."""
        return self.buys - self.sells

    def gain(self) -> Money:
        """Change of market value not explained by trading."""
        return self.value.change() - self.flow()

    def total_return(self) -> Money:
        return self.gain() + self.dividends

"""Ledger transactions.

A closed set of variants discriminated by ``command``:

- Trading: Buy, Sell, Dividend, Split
- Cash: Deposit, Withdraw, Convert
- Bookkeeping: Declare (security), Accrue (counterparty)
- Market: UpdatePrice

Every variant is frozen and validated at construction, so a transaction that
exists is well formed. Cross-transaction rules (declared tickers, known
counterparties) are checked when the journal is built.
"""

from datetime import date
from decimal import Decimal
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

from folio.services.market.identifiers import validate_currency, validate_security_id
from folio.utilities.money import Money


class BaseTransaction(BaseModel):
    """
    Fields shared by every transaction.

    Attributes:
        on: Day the transaction took place
        memo: Optional rationale or note
    """

    on: date
    memo: str = ""

    model_config = ConfigDict(frozen=True, extra="forbid")


def _require_currency(amount: Money) -> Money:
    validate_currency(amount.currency)
    return amount


def _require_ticker(v: str) -> str:
    if not v.strip():
        raise ValueError("security ticker is missing")
    return v


# ==================== Trading ====================


class Buy(BaseTransaction):
    """
    Purchase of shares.

    Attributes:
        security: Ticker of a declared security
        quantity: Shares bought (positive)
        amount: Total cost of the purchase; an empty currency means the
            security's own currency
    """

    command: Literal["buy"] = "buy"
    security: str
    quantity: Decimal
    amount: Money

    @field_validator("security")
    @classmethod
    def validate_security(cls, v: str) -> str:
        return _require_ticker(v)

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v: Decimal) -> Decimal:
        """Validate quantity is positive."""
        if v <= 0:
            raise ValueError(f"quantity must be positive, got {v}")
        return v

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Money) -> Money:
        """Validate amount is not negative."""
        if v.is_negative():
            raise ValueError(f"amount must not be negative, got {v.value}")
        return v


class Sell(BaseTransaction):
    """Sale of shares for total proceeds in amount."""

    command: Literal["sell"] = "sell"
    security: str
    quantity: Decimal
    amount: Money

    @field_validator("security")
    @classmethod
    def validate_security(cls, v: str) -> str:
        return _require_ticker(v)

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v: Decimal) -> Decimal:
        """Validate quantity is positive."""
        if v <= 0:
            raise ValueError(f"quantity must be positive, got {v}")
        return v

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Money) -> Money:
        """Validate amount is not negative."""
        if v.is_negative():
            raise ValueError(f"amount must not be negative, got {v.value}")
        return v


class Dividend(BaseTransaction):
    """
    Dividend paid by a security.

    Attributes:
        security: Ticker of a declared security
        amount: Dividend per share, or the fixed total when per_share is False
        per_share: Whether amount is per share held on that day
    """

    command: Literal["dividend"] = "dividend"
    security: str
    amount: Money
    per_share: bool = True

    @field_validator("security")
    @classmethod
    def validate_security(cls, v: str) -> str:
        return _require_ticker(v)


class Split(BaseTransaction):
    """Stock split: every share becomes numerator/denominator shares."""

    command: Literal["split"] = "split"
    security: str
    numerator: int
    denominator: int = 1

    @field_validator("security")
    @classmethod
    def validate_security(cls, v: str) -> str:
        return _require_ticker(v)

    @field_validator("numerator", "denominator")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"split ratio terms must be positive, got {v}")
        return v


# ==================== Cash ====================


class Deposit(BaseTransaction):
    """
    Cash added to the portfolio.

    Attributes:
        amount: Cash deposited (positive)
        settles: Counterparty account this deposit settles, if any. A
            settling deposit moves value from the account into cash and
            is not a cash flow.
    """

    command: Literal["deposit"] = "deposit"
    amount: Money
    settles: str = ""

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Money) -> Money:
        """Validate amount is positive and carries a currency."""
        if not v.is_positive():
            raise ValueError(f"amount must be positive, got {v.value}")
        return _require_currency(v)


class Withdraw(BaseTransaction):
    """Cash taken out of the portfolio, optionally settling a counterparty."""

    command: Literal["withdraw"] = "withdraw"
    amount: Money
    settles: str = ""

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Money) -> Money:
        """Validate amount is positive and carries a currency."""
        if not v.is_positive():
            raise ValueError(f"amount must be positive, got {v.value}")
        return _require_currency(v)


class Convert(BaseTransaction):
    """Cash exchanged from one currency to another."""

    command: Literal["convert"] = "convert"
    from_amount: Money
    to_amount: Money

    @field_validator("from_amount", "to_amount")
    @classmethod
    def validate_amount(cls, v: Money) -> Money:
        if not v.is_positive():
            raise ValueError(f"amount must be positive, got {v.value}")
        return _require_currency(v)

    @model_validator(mode="after")
    def validate_currencies(self) -> "Convert":
        if self.from_amount.currency == self.to_amount.currency:
            raise ValueError(f"conversion needs two different currencies, got {self.from_amount.currency} twice")
        return self


# ==================== Bookkeeping ====================


class Declare(BaseTransaction):
    """
    Binds a ticker to a security ID and pricing currency.

    A later declaration of the same ticker replaces the earlier one.
    """

    command: Literal["declare"] = "declare"
    ticker: str
    id: str
    currency: str

    @field_validator("ticker")
    @classmethod
    def validate_ticker(cls, v: str) -> str:
        return _require_ticker(v)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        validate_security_id(v)
        return v

    @field_validator("currency")
    @classmethod
    def validate_currency_code(cls, v: str) -> str:
        validate_currency(v)
        return v


class Accrue(BaseTransaction):
    """
    Income or expense booked against a counterparty account.

    Attributes:
        counterparty: Account name
        amount: Positive for a receivable, negative for a payable
        create: Whether this accrual opens the account
    """

    command: Literal["accrue"] = "accrue"
    counterparty: str
    amount: Money
    create: bool = False

    @field_validator("counterparty")
    @classmethod
    def validate_counterparty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("counterparty is missing")
        return v

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Money) -> Money:
        if v.is_zero():
            raise ValueError("accrued amount must not be zero")
        return _require_currency(v)


# ==================== Market ====================


class UpdatePrice(BaseTransaction):
    """
    Closing prices recorded by hand, one or many tickers on the same day.

    Example:
        >>> UpdatePrice(on=date(2025, 1, 2), prices={"AAPL": Decimal("243.85")})
    """

    command: Literal["update-price"] = "update-price"
    prices: dict[str, Decimal]

    @field_validator("prices")
    @classmethod
    def validate_prices(cls, v: dict[str, Decimal]) -> dict[str, Decimal]:
        if not v:
            raise ValueError("at least one price is required")
        for ticker, price in v.items():
            _require_ticker(ticker)
            if price <= 0:
                raise ValueError(f"price for {ticker} must be positive, got {price}")
        return v


Transaction = Annotated[
    Union[Buy, Sell, Dividend, Split, Deposit, Withdraw, Convert, Declare, Accrue, UpdatePrice],
    Field(discriminator="command"),
]

_TRANSACTION_ADAPTER: TypeAdapter[Any] = TypeAdapter(Transaction)


def parse_transaction(data: dict[str, Any]) -> Transaction:
    """
    Build the transaction variant named by data["command"].

    The day may be given as "date" or "on".

    Raises:
        pydantic.ValidationError: If the command is unknown or a field is invalid
    """
    fields = dict(data)
    if "date" in fields and "on" not in fields:
        fields["on"] = fields.pop("date")
    return _TRANSACTION_ADAPTER.validate_python(fields)

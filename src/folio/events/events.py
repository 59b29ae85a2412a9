"""
Journal events - the atomic facts a portfolio is replayed from.

Architecture:
    Ledger transactions + MarketData
         ↓
    Journal builder (one transaction fans out into one or more events)
         ↓
    Journal (immutable, date-sorted tuple of events)
         ↓
    Snapshot / Review folds

Design Principles:
- Events carry primitive facts only (date, amounts, flags), never derived state
- Every event is frozen and rejects unknown fields
- event_type names the fact in snake_case and is fixed per class
- Money amounts are exact Decimals; the currency travels alongside
"""

from datetime import date
from decimal import Decimal
from typing import Union

from pydantic import BaseModel, ConfigDict, field_validator

from folio.utilities.money import Money

# ============================================
# Base Event Class
# ============================================


class JournalEvent(BaseModel):
    """
    Base for all journal events.

    Attributes:
        on: Day the fact takes effect
    """

    event_type: str = "base"
    on: date

    model_config = ConfigDict(frozen=True, extra="forbid")


# ============================================
# Cash Events
# ============================================


class CreditCash(JournalEvent):
    """
    Cash entering the portfolio's cash account for a currency.

    external is True when the money crosses the portfolio boundary (a
    deposit that settles nothing); such events count as cash flow.
    """

    event_type: str = "credit_cash"

    currency: str
    amount: Decimal
    external: bool = False


class DebitCash(JournalEvent):
    """Cash leaving the cash account for a currency."""

    event_type: str = "debit_cash"

    currency: str
    amount: Decimal
    external: bool = False


# ============================================
# Lot Events
# ============================================


class AcquireLot(JournalEvent):
    """
    Shares entering a position.

    Attributes:
        security: Ticker as declared in the ledger
        quantity: Shares acquired (positive)
        cost: Total cost in the security's currency
    """

    event_type: str = "acquire_lot"

    security: str
    quantity: Decimal
    cost: Money

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v: Decimal) -> Decimal:
        """Validate quantity is positive."""
        if v <= 0:
            raise ValueError(f"Lot quantity must be positive, got {v}")
        return v


class DisposeLot(JournalEvent):
    """Shares leaving a position for total proceeds."""

    event_type: str = "dispose_lot"

    security: str
    quantity: Decimal
    proceeds: Money

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v: Decimal) -> Decimal:
        """Validate quantity is positive."""
        if v <= 0:
            raise ValueError(f"Lot quantity must be positive, got {v}")
        return v


# ============================================
# Counterparty Events
# ============================================


class CreditCounterparty(JournalEvent):
    """
    Receivable from a counterparty grows (or a payable shrinks).

    external is True for accruals (income or expense booked against the
    account); settlements through a deposit or withdrawal are internal.
    """

    event_type: str = "credit_counterparty"

    account: str
    currency: str
    amount: Decimal
    external: bool = False


class DebitCounterparty(JournalEvent):
    """Receivable from a counterparty shrinks (or a payable grows)."""

    event_type: str = "debit_counterparty"

    account: str
    currency: str
    amount: Decimal
    external: bool = False


# ============================================
# Declarations
# ============================================


class DeclareSecurity(JournalEvent):
    """Binds a ticker to a security ID and its pricing currency."""

    event_type: str = "declare_security"

    ticker: str
    security_id: str
    currency: str


class DeclareCounterparty(JournalEvent):
    """Opens a counterparty account; its balance starts at zero in currency."""

    event_type: str = "declare_counterparty"

    account: str
    currency: str


# ============================================
# Market Events
# ============================================


class UpdatePrice(JournalEvent):
    """Closing price of one share of a security."""

    event_type: str = "update_price"

    security: str
    price: Decimal
    currency: str


class UpdateForex(JournalEvent):
    """
    Exchange rate: value of one unit of currency in the reporting currency.

    Example:
        >>> # Reporting in EUR, EURUSD quoted at 1.25
        >>> UpdateForex(on=date(2025, 1, 2), currency="USD", rate=Decimal("0.8"))
    """

    event_type: str = "update_forex"

    currency: str
    rate: Decimal


class SplitShare(JournalEvent):
    """Every share of security becomes numerator/denominator shares."""

    event_type: str = "split_share"

    security: str
    numerator: int
    denominator: int = 1

    @field_validator("numerator", "denominator")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate ratio terms are positive."""
        if v <= 0:
            raise ValueError(f"split ratio terms must be positive, got {v}")
        return v


class ReceiveDividend(JournalEvent):
    """
    Dividend paid by a security.

    With per_share set, amount is paid for each share held at that moment;
    otherwise amount is the fixed total received.
    """

    event_type: str = "receive_dividend"

    security: str
    currency: str
    amount: Decimal
    per_share: bool = True


Event = Union[
    CreditCash,
    DebitCash,
    AcquireLot,
    DisposeLot,
    CreditCounterparty,
    DebitCounterparty,
    DeclareSecurity,
    DeclareCounterparty,
    UpdatePrice,
    UpdateForex,
    SplitShare,
    ReceiveDividend,
]

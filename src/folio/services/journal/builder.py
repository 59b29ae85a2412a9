"""Journal builder: Ledger + MarketData -> Journal.

Two passes feed one event list:

1. Ledger pass - every transaction, in ledger order, fans out into events.
   Prices and splits recorded in the ledger are remembered per (date, ticker).
2. Market pass - for every declared ticker, splits and prices from market
   data are added unless the ledger already supplied that (date, ticker)
   fact. Currency-pair price histories become forex rates relative to the
   reporting currency.

A final stable sort by date keeps same-day events in ledger-then-market
order. Any failure aborts the build; no partial journal is returned.
"""

from datetime import date
from decimal import Decimal

from folio.errors import JournalError
from folio.events.events import (
    AcquireLot,
    CreditCash,
    CreditCounterparty,
    DebitCash,
    DebitCounterparty,
    DeclareCounterparty,
    DeclareSecurity,
    DisposeLot,
    Event,
    ReceiveDividend,
    SplitShare,
    UpdateForex,
)
from folio.events.events import UpdatePrice as UpdatePriceEvent
from folio.services.journal.journal import Journal
from folio.services.ledger.ledger import Ledger
from folio.services.ledger.models import (
    Accrue,
    Buy,
    Convert,
    Declare,
    Deposit,
    Dividend,
    Sell,
    Split,
    Transaction,
    UpdatePrice,
    Withdraw,
)
from folio.services.market.identifiers import Security, is_currency_pair, parse_currency_pair
from folio.services.market.models import MarketData
from folio.system.log_system import LoggerFactory
from folio.utilities.money import ONE, Money

logger = LoggerFactory.get_logger()

DEFAULT_FOREX_DECIMALS = 5


def forex_rate(security_id: str, price: Decimal, reporting_currency: str, decimals: int) -> tuple[str, Decimal] | None:
    """
    Turn a currency-pair quote into (currency, rate in reporting currency).

    Returns:
        The direct quote when the pair's quote currency is the reporting one,
        the rounded inverse when its base is, None otherwise (or for an ID
        that is not a currency pair)
    """
    if not is_currency_pair(security_id):
        return None
    base, quote = parse_currency_pair(security_id)
    if quote == reporting_currency:
        return base, price
    if base == reporting_currency:
        return quote, (ONE / price).quantize(Decimal(1).scaleb(-decimals))
    return None


class JournalBuilder:
    """
    Single-use builder holding the state of one ledger pass.

    Example:
        >>> builder = JournalBuilder(ledger, market_data, "EUR")
        >>> journal = builder.build()
    """

    def __init__(
        self,
        ledger: Ledger,
        market_data: MarketData,
        reporting_currency: str,
        forex_decimals: int = DEFAULT_FOREX_DECIMALS,
    ) -> None:
        self._ledger = ledger
        self._market_data = market_data
        self._currency = reporting_currency
        self._forex_decimals = forex_decimals

        self._events: list[Event] = []
        # Declarations seen so far in the ledger pass
        self._securities: dict[str, Security] = {}
        self._counterparties: dict[str, str] = {}
        # (date, ticker) facts supplied by the ledger itself
        self._ledger_prices: set[tuple[date, str]] = set()
        self._ledger_splits: set[tuple[date, str]] = set()
        # (date, security id) forex facts supplied by the ledger itself
        self._ledger_forex: set[tuple[date, str]] = set()

    def build(self) -> Journal:
        for index, tx in enumerate(self._ledger):
            try:
                self._apply(tx)
            except JournalError as e:
                e.index = index
                e.on = tx.on
                logger.error(
                    "journal.build_failed",
                    index=index,
                    date=tx.on.isoformat(),
                    command=getattr(tx, "command", type(tx).__name__),
                    error=str(e),
                )
                raise

        ledger_events = len(self._events)
        self._add_market_events()
        market_events = len(self._events) - ledger_events

        self._events.sort(key=lambda event: event.on)
        journal = Journal(self._currency, self._events)

        logger.info(
            "journal.built",
            events=len(journal),
            transactions=len(self._ledger),
            market_events=market_events,
            currency=self._currency,
        )
        return journal

    # ==================== Ledger pass ====================

    def _apply(self, tx: Transaction) -> None:
        if isinstance(tx, Declare):
            self._declare(tx)
        elif isinstance(tx, Buy):
            sec = self._security(tx.security, tx)
            cost = self._in_currency(tx.amount, sec)
            self._events.append(AcquireLot(on=tx.on, security=tx.security, quantity=tx.quantity, cost=cost))
            self._events.append(DebitCash(on=tx.on, currency=sec.currency, amount=cost.value))
        elif isinstance(tx, Sell):
            sec = self._security(tx.security, tx)
            proceeds = self._in_currency(tx.amount, sec)
            self._events.append(DisposeLot(on=tx.on, security=tx.security, quantity=tx.quantity, proceeds=proceeds))
            self._events.append(CreditCash(on=tx.on, currency=sec.currency, amount=proceeds.value))
        elif isinstance(tx, Dividend):
            sec = self._security(tx.security, tx)
            amount = self._in_currency(tx.amount, sec)
            self._events.append(
                ReceiveDividend(
                    on=tx.on,
                    security=tx.security,
                    currency=sec.currency,
                    amount=amount.value,
                    per_share=tx.per_share,
                )
            )
        elif isinstance(tx, Deposit):
            self._deposit(tx)
        elif isinstance(tx, Withdraw):
            self._withdraw(tx)
        elif isinstance(tx, Convert):
            self._events.append(
                DebitCash(on=tx.on, currency=tx.from_amount.currency, amount=tx.from_amount.value)
            )
            self._events.append(CreditCash(on=tx.on, currency=tx.to_amount.currency, amount=tx.to_amount.value))
        elif isinstance(tx, Accrue):
            self._accrue(tx)
        elif isinstance(tx, UpdatePrice):
            self._update_price(tx)
        elif isinstance(tx, Split):
            self._security(tx.security, tx)
            self._ledger_splits.add((tx.on, tx.security))
            self._events.append(
                SplitShare(on=tx.on, security=tx.security, numerator=tx.numerator, denominator=tx.denominator)
            )
        else:
            raise JournalError(f"unhandled transaction type: {type(tx).__name__}")

    def _declare(self, tx: Declare) -> None:
        self._securities[tx.ticker] = Security(id=tx.id, ticker=tx.ticker, currency=tx.currency)
        self._events.append(DeclareSecurity(on=tx.on, ticker=tx.ticker, security_id=tx.id, currency=tx.currency))

    def _deposit(self, tx: Deposit) -> None:
        currency, amount = tx.amount.currency, tx.amount.value
        self._events.append(CreditCash(on=tx.on, currency=currency, amount=amount, external=not tx.settles))
        if tx.settles:
            # The counterparty paid us back: what it owes shrinks.
            self._counterparty(tx.settles, currency, tx)
            self._events.append(
                DebitCounterparty(on=tx.on, account=tx.settles, currency=currency, amount=amount)
            )

    def _withdraw(self, tx: Withdraw) -> None:
        currency, amount = tx.amount.currency, tx.amount.value
        self._events.append(DebitCash(on=tx.on, currency=currency, amount=amount, external=not tx.settles))
        if tx.settles:
            # We paid the counterparty back: what we owe shrinks.
            self._counterparty(tx.settles, currency, tx)
            self._events.append(
                CreditCounterparty(on=tx.on, account=tx.settles, currency=currency, amount=amount)
            )

    def _accrue(self, tx: Accrue) -> None:
        account, currency = tx.counterparty, tx.amount.currency
        known = self._counterparties.get(account)
        if tx.create or known is None:
            self._counterparties[account] = currency
            self._events.append(DeclareCounterparty(on=tx.on, account=account, currency=currency))
        else:
            self._counterparty(account, currency, tx)

        if tx.amount.is_positive():
            self._events.append(
                CreditCounterparty(on=tx.on, account=account, currency=currency, amount=tx.amount.value, external=True)
            )
        else:
            self._events.append(
                DebitCounterparty(on=tx.on, account=account, currency=currency, amount=-tx.amount.value, external=True)
            )

    def _update_price(self, tx: UpdatePrice) -> None:
        for ticker in sorted(tx.prices):
            price = tx.prices[ticker]
            sec = self._security(ticker, tx)
            self._ledger_prices.add((tx.on, ticker))
            self._events.append(UpdatePriceEvent(on=tx.on, security=ticker, price=price, currency=sec.currency))

            rate = forex_rate(sec.id, price, self._currency, self._forex_decimals)
            if rate is not None:
                self._ledger_forex.add((tx.on, sec.id))
                self._events.append(UpdateForex(on=tx.on, currency=rate[0], rate=rate[1]))

    def _security(self, ticker: str, tx: Transaction) -> Security:
        sec = self._securities.get(ticker)
        if sec is None:
            raise JournalError(f"security {ticker!r} not declared for {tx.command} transaction on {tx.on}")
        return sec

    def _counterparty(self, account: str, currency: str, tx: Transaction) -> None:
        declared = self._counterparties.get(account)
        if declared is None:
            raise JournalError(f"counterparty {account!r} not declared for {tx.command} transaction on {tx.on}")
        if declared != currency:
            raise JournalError(
                f"counterparty {account!r} is kept in {declared}, got {currency} in {tx.command} transaction on {tx.on}"
            )

    @staticmethod
    def _in_currency(amount: Money, sec: Security) -> Money:
        """Amount in the security's currency; an empty currency is the security's own."""
        if amount.currency and amount.currency != sec.currency:
            raise JournalError(f"security {sec.ticker!r} is priced in {sec.currency}, got amount in {amount.currency}")
        return Money(amount.value, sec.currency)

    # ==================== Market pass ====================

    def _add_market_events(self) -> None:
        id_to_tickers: dict[str, list[Security]] = {}
        for sec in self._ledger.securities():
            id_to_tickers.setdefault(sec.id, []).append(sec)

        for security_id in self._market_data.ids():
            for sec in id_to_tickers.get(security_id, []):
                self._add_market_splits(security_id, sec)
                self._add_market_prices(security_id, sec)

        for security_id in self._market_data.ids():
            if is_currency_pair(security_id):
                self._add_market_forex(security_id)

    def _add_market_splits(self, security_id: str, sec: Security) -> None:
        for split in self._market_data.splits(security_id):
            if (split.on, sec.ticker) in self._ledger_splits:
                _log_skipped("split", sec.ticker, split.on)
                continue
            self._events.append(
                SplitShare(on=split.on, security=sec.ticker, numerator=split.numerator, denominator=split.denominator)
            )

    def _add_market_prices(self, security_id: str, sec: Security) -> None:
        for on, price in self._market_data.prices(security_id).items():
            if (on, sec.ticker) in self._ledger_prices:
                _log_skipped("price", sec.ticker, on)
                continue
            self._events.append(UpdatePriceEvent(on=on, security=sec.ticker, price=price, currency=sec.currency))

    def _add_market_forex(self, security_id: str) -> None:
        for on, price in self._market_data.prices(security_id).items():
            if (on, security_id) in self._ledger_forex:
                _log_skipped("forex", security_id, on)
                continue
            rate = forex_rate(security_id, price, self._currency, self._forex_decimals)
            if rate is not None:
                self._events.append(UpdateForex(on=on, currency=rate[0], rate=rate[1]))


def _log_skipped(kind: str, key: str, on: date) -> None:
    logger.debug("journal.market_duplicate_skipped", kind=kind, key=key, date=on.isoformat())


def build_journal(
    ledger: Ledger,
    market_data: MarketData,
    reporting_currency: str,
    *,
    forex_decimals: int = DEFAULT_FOREX_DECIMALS,
) -> Journal:
    """
    Build an immutable journal from a ledger and market data.

    Args:
        ledger: Source transactions (read only)
        market_data: Prices and splits keyed by security ID (read only)
        reporting_currency: Currency totals are converted into
        forex_decimals: Rounding applied to inverted currency-pair quotes

    Returns:
        Journal sorted by date

    Raises:
        JournalError: If a transaction references an undeclared security or
            counterparty, mixes currencies, or has an unknown type
    """
    return JournalBuilder(ledger, market_data, reporting_currency, forex_decimals).build()

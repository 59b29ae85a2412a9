"""Snapshot: point-in-time portfolio calculator.

A Snapshot is a (journal, date) pair. Every public method replays the
journal's events dated on or before that day and folds them into one
answer; nothing is cached between calls, so a Snapshot is cheap to create
and always consistent with its journal.

Missing data is zero: an unknown ticker, currency or account yields a zero
amount (in the currency it would have had, when known), never an error.
The one exception is strict forex mode, where converting with an unknown
exchange rate raises MissingExchangeRateError.
"""

from datetime import date
from decimal import Decimal
from typing import Callable, Iterable

from folio.errors import MissingExchangeRateError
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
    UpdatePrice,
)
from folio.services.journal.journal import Journal
from folio.services.market.identifiers import Security
from folio.services.portfolio.lot_tracker import CostBasisMethod, CostTracker, new_cost_tracker
from folio.services.portfolio.models import Holding
from folio.system.log_system import LoggerFactory
from folio.utilities.money import ONE, ZERO, Money

logger = LoggerFactory.get_logger()


class Snapshot:
    """
    Portfolio state on a given day, derived from a journal.

    Args:
        journal: Source events (never mutated)
        on: Day of the snapshot (events dated later are ignored)
        strict_forex: Raise instead of converting at rate zero when an
            exchange rate is unknown

    Example:
        >>> snapshot = Snapshot(journal, date(2025, 3, 31))
        >>> snapshot.position("AAPL")
        Decimal('75')
        >>> snapshot.total_portfolio()
        Money(value=Decimal('...'), currency='EUR')
    """

    def __init__(self, journal: Journal, on: date, *, strict_forex: bool = False) -> None:
        self._journal = journal
        self._on = on
        self._strict_forex = strict_forex

    @property
    def on(self) -> date:
        return self._on

    @property
    def currency(self) -> str:
        """Reporting currency."""
        return self._journal.currency

    def _events(self) -> tuple[Event, ...]:
        return self._journal.events_until(self._on)

    def _sum(self, names: Iterable[str], metric: Callable[[str], Money]) -> Money:
        """Sum a per-entity metric after converting each value to the reporting currency."""
        total = Money.zero(self.currency)
        for name in names:
            total += self.convert(metric(name))
        return total

    def _currency_of(self, ticker: str) -> str:
        sec = self.security(ticker)
        return sec.currency if sec is not None else ""

    # ==================== Securities ====================

    def security(self, ticker: str) -> Security | None:
        """Latest declaration of ticker on or before the snapshot day."""
        found = None
        for e in self._events():
            if isinstance(e, DeclareSecurity) and e.ticker == ticker:
                found = Security(id=e.security_id, ticker=e.ticker, currency=e.currency)
        return found

    def position(self, ticker: str) -> Decimal:
        """Shares held: acquisitions minus disposals, scaled by every split."""
        position = ZERO
        for e in self._events():
            if isinstance(e, AcquireLot) and e.security == ticker:
                position += e.quantity
            elif isinstance(e, DisposeLot) and e.security == ticker:
                position -= e.quantity
            elif isinstance(e, SplitShare) and e.security == ticker:
                position = position * e.numerator / e.denominator
        return position

    def price(self, ticker: str) -> Money:
        """Last known price; zero in the security's currency when none is known."""
        price = Money.zero(self._currency_of(ticker))
        for e in self._events():
            if isinstance(e, UpdatePrice) and e.security == ticker:
                price = Money(e.price, e.currency)
        return price

    def market_value(self, ticker: str) -> Money:
        return self.price(ticker) * self.position(ticker)

    # ==================== Cost basis & gains ====================

    def _replay_costs(self, ticker: str, method: CostBasisMethod | str) -> tuple[CostTracker, Decimal]:
        """Replay lot events of ticker through a tracker; returns it with the realized gains."""
        tracker = new_cost_tracker(method)
        realized = ZERO
        for e in self._events():
            if isinstance(e, AcquireLot) and e.security == ticker:
                tracker.acquire(e.on, e.quantity, e.cost.value)
            elif isinstance(e, DisposeLot) and e.security == ticker:
                cost_of_sale = tracker.dispose(e.quantity)
                realized += e.proceeds.value - cost_of_sale
            elif isinstance(e, SplitShare) and e.security == ticker:
                tracker.split(e.numerator, e.denominator)
        return tracker, realized

    def cost_basis(self, ticker: str, method: CostBasisMethod | str = CostBasisMethod.FIFO) -> Money:
        """Cost of the shares still held."""
        tracker, _ = self._replay_costs(ticker, method)
        return Money(tracker.total_cost(), self._currency_of(ticker))

    def realized_gains(self, ticker: str, method: CostBasisMethod | str = CostBasisMethod.FIFO) -> Money:
        """Sum of proceeds minus cost of sale over every disposal."""
        _, realized = self._replay_costs(ticker, method)
        return Money(realized, self._currency_of(ticker))

    def unrealized_gains(self, ticker: str, method: CostBasisMethod | str = CostBasisMethod.FIFO) -> Money:
        return self.market_value(ticker) - self.cost_basis(ticker, method)

    def dividends(self, ticker: str) -> Money:
        """
        Dividend income received from ticker since inception.

        A per-share dividend pays for the position held at that moment.
        """
        total = Money.zero(self._currency_of(ticker))
        position = ZERO
        for e in self._events():
            if isinstance(e, AcquireLot) and e.security == ticker:
                position += e.quantity
            elif isinstance(e, DisposeLot) and e.security == ticker:
                position -= e.quantity
            elif isinstance(e, SplitShare) and e.security == ticker:
                position = position * e.numerator / e.denominator
            elif isinstance(e, ReceiveDividend) and e.security == ticker:
                amount = e.amount * position if e.per_share else e.amount
                total += Money(amount, e.currency)
        return total

    # ==================== Flows ====================

    def buys(self, ticker: str) -> Money:
        """Cumulative cost of every acquisition."""
        total = Money.zero(self._currency_of(ticker))
        for e in self._events():
            if isinstance(e, AcquireLot) and e.security == ticker:
                total += e.cost
        return total

    def sells(self, ticker: str) -> Money:
        """Cumulative proceeds of every disposal."""
        total = Money.zero(self._currency_of(ticker))
        for e in self._events():
            if isinstance(e, DisposeLot) and e.security == ticker:
                total += e.proceeds
        return total

    def net_trading_flow(self, ticker: str) -> Money:
        """Money put into ticker: acquisition costs minus disposal proceeds."""
        flow = Money.zero(self._currency_of(ticker))
        for e in self._events():
            if isinstance(e, AcquireLot) and e.security == ticker:
                flow += e.cost
            elif isinstance(e, DisposeLot) and e.security == ticker:
                flow -= e.proceeds
        return flow

    def cash_flow(self, currency: str) -> Money:
        """
        Net value that crossed the portfolio boundary in currency.

        Only cash events flagged external count: plain deposits and
        withdrawals. Settlements and trades move value inside the portfolio,
        and accruals are income or expense, so both are excluded.
        """
        flow = Money.zero(currency)
        for e in self._events():
            if isinstance(e, CreditCash) and e.external and e.currency == currency:
                flow += Money(e.amount, currency)
            elif isinstance(e, DebitCash) and e.external and e.currency == currency:
                flow -= Money(e.amount, currency)
        return flow

    # ==================== Balances ====================

    def cash(self, currency: str) -> Money:
        """Cash balance in currency, dividends received included."""
        balance = Money.zero(currency)
        positions: dict[str, Decimal] = {}
        for e in self._events():
            if isinstance(e, CreditCash) and e.currency == currency:
                balance += Money(e.amount, currency)
            elif isinstance(e, DebitCash) and e.currency == currency:
                balance -= Money(e.amount, currency)
            elif isinstance(e, AcquireLot):
                positions[e.security] = positions.get(e.security, ZERO) + e.quantity
            elif isinstance(e, DisposeLot):
                positions[e.security] = positions.get(e.security, ZERO) - e.quantity
            elif isinstance(e, SplitShare):
                positions[e.security] = positions.get(e.security, ZERO) * e.numerator / e.denominator
            elif isinstance(e, ReceiveDividend) and e.currency == currency:
                amount = e.amount * positions.get(e.security, ZERO) if e.per_share else e.amount
                balance += Money(amount, currency)
        return balance

    def counterparty(self, account: str) -> Money:
        """What account owes us (positive) or we owe it (negative)."""
        balance = Money.zero()
        for e in self._events():
            if isinstance(e, DeclareCounterparty) and e.account == account:
                if balance.is_zero():
                    balance = Money.zero(e.currency)
            elif isinstance(e, CreditCounterparty) and e.account == account:
                balance += Money(e.amount, e.currency)
            elif isinstance(e, DebitCounterparty) and e.account == account:
                balance -= Money(e.amount, e.currency)
        return balance

    # ==================== Time-weighted return ====================

    def virtual_asset_value(self, ticker: str) -> Money:
        """
        Value of a notional one-unit investment that mirrors ticker's timing.

        The virtual investment is fully invested whenever the actual position
        is open and fully in cash whenever it is closed, so the ratio of two
        values is a time-weighted return unaffected by the size of trades.
        Before the security is declared the value is one unit of the
        reporting currency; prices and splits dated earlier are ignored.
        """
        virtual_cash = Money(ONE, self.currency)
        virtual_position = ZERO
        actual_position = ZERO
        last_price = Money.zero(self.currency)
        declared = False

        for e in self._events():
            if isinstance(e, DeclareSecurity) and e.ticker == ticker:
                declared = True
                virtual_cash = Money(ONE, e.currency)
                last_price = Money.zero(e.currency)
            elif isinstance(e, AcquireLot) and e.security == ticker:
                if actual_position == 0 and not e.cost.is_zero():
                    # Opening the position: invest all virtual cash at the implied price.
                    last_price = Money(e.cost.value / e.quantity, virtual_cash.currency)
                    virtual_position = virtual_cash.value * e.quantity / e.cost.value
                    virtual_cash = Money.zero(virtual_cash.currency)
                actual_position += e.quantity
            elif isinstance(e, DisposeLot) and e.security == ticker:
                actual_position -= e.quantity
                if actual_position == 0:
                    # Position closed: liquidate the virtual shares.
                    virtual_cash = Money(last_price.value * virtual_position, virtual_cash.currency)
                    virtual_position = ZERO
            elif not declared:
                continue
            elif isinstance(e, UpdatePrice) and e.security == ticker:
                last_price = Money(e.price, e.currency)
            elif isinstance(e, SplitShare) and e.security == ticker:
                actual_position = actual_position * e.numerator / e.denominator
                virtual_position = virtual_position * e.numerator / e.denominator

        return virtual_cash + last_price * virtual_position

    def virtual_total_value(self) -> Money:
        """Portfolio value net of every external cash flow."""
        return self.total_portfolio() - self.total_cash_flow()

    # ==================== Forex ====================

    def exchange_rate(self, currency: str) -> Decimal:
        """
        Value of one unit of currency in the reporting currency.

        Returns:
            1 for the reporting currency (and for ""), the last known rate
            otherwise, zero when no rate is known

        Raises:
            MissingExchangeRateError: In strict forex mode when no rate is known
        """
        if currency in ("", self.currency):
            return ONE
        rate = ZERO
        for e in self._events():
            if isinstance(e, UpdateForex) and e.currency == currency:
                rate = e.rate
        if rate == 0 and self._strict_forex:
            raise MissingExchangeRateError(f"no {currency} exchange rate known on or before {self._on}")
        return rate

    def convert(self, amount: Money) -> Money:
        """Amount expressed in the reporting currency at the last known rate."""
        rate = self.exchange_rate(amount.currency)
        if rate == 0 and not amount.is_zero():
            logger.warning(
                "snapshot.exchange_rate_missing",
                currency=amount.currency,
                on=self._on.isoformat(),
                amount=str(amount.value),
            )
        return Money(rate * amount.value, self.currency)

    # ==================== Enumerations ====================

    def securities(self) -> list[str]:
        """Declared tickers in order of first declaration."""
        seen: dict[str, None] = {}
        for e in self._events():
            if isinstance(e, DeclareSecurity):
                seen.setdefault(e.ticker, None)
        return list(seen)

    def counterparties(self) -> list[str]:
        """Declared counterparty accounts in order of first declaration."""
        seen: dict[str, None] = {}
        for e in self._events():
            if isinstance(e, DeclareCounterparty):
                seen.setdefault(e.account, None)
        return list(seen)

    def currencies(self) -> list[str]:
        """Every currency seen, reporting currency first, then by first appearance."""
        seen: dict[str, None] = {self.currency: None}
        for e in self._events():
            if isinstance(e, (CreditCash, DebitCash, DeclareSecurity, DeclareCounterparty)) and e.currency:
                seen.setdefault(e.currency, None)
        return list(seen)

    # ==================== Totals (reporting currency) ====================

    def total_market(self) -> Money:
        return self._sum(self.securities(), self.market_value)

    def total_cash(self) -> Money:
        return self._sum(self.currencies(), self.cash)

    def total_counterparty(self) -> Money:
        return self._sum(self.counterparties(), self.counterparty)

    def total_portfolio(self) -> Money:
        """Market value plus cash plus counterparty balances."""
        return self.total_market() + self.total_cash() + self.total_counterparty()

    def total_cash_flow(self) -> Money:
        return self._sum(self.currencies(), self.cash_flow)

    def total_net_trading_flow(self) -> Money:
        return self._sum(self.securities(), self.net_trading_flow)

    def total_realized_gains(self, method: CostBasisMethod | str = CostBasisMethod.FIFO) -> Money:
        return self._sum(self.securities(), lambda ticker: self.realized_gains(ticker, method))

    def total_unrealized_gains(self, method: CostBasisMethod | str = CostBasisMethod.FIFO) -> Money:
        return self._sum(self.securities(), lambda ticker: self.unrealized_gains(ticker, method))

    def total_cost_basis(self, method: CostBasisMethod | str = CostBasisMethod.FIFO) -> Money:
        return self._sum(self.securities(), lambda ticker: self.cost_basis(ticker, method))

    def total_dividends(self) -> Money:
        return self._sum(self.securities(), self.dividends)

    # ==================== Holdings ====================

    def holdings(self, method: CostBasisMethod | str = CostBasisMethod.FIFO) -> list[Holding]:
        """Every security with an open position, in declaration order."""
        result = []
        for ticker in self.securities():
            quantity = self.position(ticker)
            if quantity == 0:
                continue
            sec = self.security(ticker)
            price = self.price(ticker)
            market_value = price * quantity
            cost_basis = self.cost_basis(ticker, method)
            result.append(
                Holding(
                    ticker=ticker,
                    security_id=sec.id if sec is not None else "",
                    currency=sec.currency if sec is not None else "",
                    quantity=quantity,
                    price=price,
                    market_value=market_value,
                    cost_basis=cost_basis,
                    unrealized_gains=market_value - cost_basis,
                )
            )
        return result

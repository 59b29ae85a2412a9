"""Review: period-over-period comparison of two Snapshots."""

from datetime import timedelta
from decimal import Decimal

from folio.services.journal.journal import Journal
from folio.services.portfolio.lot_tracker import CostBasisMethod
from folio.services.portfolio.models import AssetReview, Performance
from folio.services.portfolio.snapshot import Snapshot
from folio.utilities.dates import Range
from folio.utilities.money import Money

NAN = Decimal("NaN")


class Review:
    """
    Portfolio activity over a period.

    Cumulative metrics are the difference between a Snapshot taken the day
    before the period starts and one taken on its last day.

    Example:
        >>> review = Review(journal, Range.of(date(2025, 3, 14), Period.MONTHLY))
        >>> review.cash_flow()
        Money(value=Decimal('1000'), currency='EUR')
        >>> review.time_weighted_return("AAPL")
        Decimal('0.0421')
    """

    def __init__(self, journal: Journal, period: Range, *, strict_forex: bool = False) -> None:
        self._period = period
        self._start = Snapshot(journal, period.from_ - timedelta(days=1), strict_forex=strict_forex)
        self._end = Snapshot(journal, period.to, strict_forex=strict_forex)

    @property
    def period(self) -> Range:
        return self._period

    @property
    def start(self) -> Snapshot:
        """Snapshot on the day before the period."""
        return self._start

    @property
    def end(self) -> Snapshot:
        """Snapshot on the last day of the period."""
        return self._end

    # ==================== Flows ====================

    def cash_flow(self) -> Money:
        """Net value that crossed the portfolio boundary during the period."""
        return self._end.total_cash_flow() - self._start.total_cash_flow()

    def net_trading_flow(self) -> Money:
        """Net money invested into securities during the period."""
        return self._end.total_net_trading_flow() - self._start.total_net_trading_flow()

    def realized_gains(self, method: CostBasisMethod | str = CostBasisMethod.FIFO) -> Money:
        return self._end.total_realized_gains(method) - self._start.total_realized_gains(method)

    def dividends(self) -> Money:
        return self._end.total_dividends() - self._start.total_dividends()

    # ==================== Returns ====================

    def time_weighted_return(self, ticker: str) -> Decimal:
        """
        Compound growth of ticker over the period, unaffected by cash flows.

        Returns:
            end_vav / start_vav - 1, or NaN when the start value is zero
        """
        start_vav = self._start.virtual_asset_value(ticker)
        end_vav = self._end.virtual_asset_value(ticker)
        if start_vav.is_zero():
            return NAN
        # A ticker declared within the period starts in the reporting currency.
        return end_vav.value / start_vav.value - 1

    def market_gain_loss(self) -> Money:
        """Change of market value caused by prices alone."""
        change = self._end.total_market() - self._start.total_market()
        return change - self.net_trading_flow()

    def total_return(self) -> Money:
        """Market gain or loss plus dividend income."""
        return self.market_gain_loss() + self.dividends()

    def net_gains(self) -> Money:
        """Change of portfolio value not explained by external cash flow."""
        change = self._end.total_portfolio() - self._start.total_portfolio()
        return change - self.cash_flow()

    def portfolio_return(self) -> Decimal:
        """Net gains relative to the starting portfolio value; NaN when it was zero."""
        start = self._start.total_portfolio()
        if start.is_zero():
            return NAN
        return self.net_gains().value / start.value

    # ==================== Breakdown ====================

    def portfolio_value(self) -> Performance:
        return Performance(
            start=self._start.total_portfolio(),
            end=self._end.total_portfolio(),
            return_=self.portfolio_return(),
        )

    def cash(self) -> Performance:
        """Total cash at both ends of the period."""
        start, end = self._start.total_cash(), self._end.total_cash()
        return Performance(start=start, end=end, return_=_change_ratio(start, end))

    def counterparty(self) -> Performance:
        """Total counterparty balance at both ends of the period."""
        start, end = self._start.total_counterparty(), self._end.total_counterparty()
        return Performance(start=start, end=end, return_=_change_ratio(start, end))

    def performance(self, ticker: str) -> Performance:
        """Market value of ticker at both ends of the period with its TWR."""
        return Performance(
            start=self._start.market_value(ticker),
            end=self._end.market_value(ticker),
            return_=self.time_weighted_return(ticker),
        )

    def asset(self, ticker: str, method: CostBasisMethod | str = CostBasisMethod.FIFO) -> AssetReview:
        """Activity of one security within the period."""
        start, end = self._start, self._end
        return AssetReview(
            ticker=ticker,
            starting_position=start.position(ticker),
            ending_position=end.position(ticker),
            value=self.performance(ticker),
            buys=end.buys(ticker) - start.buys(ticker),
            sells=end.sells(ticker) - start.sells(ticker),
            dividends=end.dividends(ticker) - start.dividends(ticker),
            realized_gains=end.realized_gains(ticker, method) - start.realized_gains(ticker, method),
            unrealized_gains=end.unrealized_gains(ticker, method),
        )

    def assets(self, method: CostBasisMethod | str = CostBasisMethod.FIFO) -> list[AssetReview]:
        """Securities held or traded during the period, in declaration order."""
        result = []
        for ticker in self._end.securities():
            review = self.asset(ticker, method)
            idle = (
                review.starting_position == 0
                and review.ending_position == 0
                and review.buys.is_zero()
                and review.sells.is_zero()
                and review.realized_gains.is_zero()
                and review.dividends.is_zero()
            )
            if not idle:
                result.append(review)
        return result


def _change_ratio(start: Money, end: Money) -> Decimal:
    if start.is_zero():
        return NAN
    return (end - start).value / start.value

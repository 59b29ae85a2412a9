"""
Accounting system: one entry point tying ledger, market data and config.

Builds a fresh journal for every query session and hands out Snapshots and
Reviews over it. Holds no derived state of its own.
"""

from datetime import date

from folio.services.journal.builder import build_journal
from folio.services.journal.journal import Journal
from folio.services.ledger.ledger import Ledger
from folio.services.market.models import MarketData
from folio.services.portfolio.lot_tracker import CostBasisMethod
from folio.services.portfolio.models import Holding
from folio.services.portfolio.review import Review
from folio.services.portfolio.snapshot import Snapshot
from folio.system.config import AccountingConfig, get_system_config
from folio.utilities.dates import Period, Range


class AccountingSystem:
    """
    Facade over the journal builder and the portfolio read-models.

    Args:
        ledger: Transactions (read only)
        market_data: Prices and splits (read only)
        config: Accounting settings; the system configuration when omitted

    Example:
        >>> system = AccountingSystem(ledger, market_data, AccountingConfig(reporting_currency="USD"))
        >>> system.snapshot(date(2025, 6, 30)).total_portfolio()
        >>> system.review_period(date(2025, 6, 30), Period.QUARTERLY).time_weighted_return("AAPL")
    """

    def __init__(self, ledger: Ledger, market_data: MarketData, config: AccountingConfig | None = None) -> None:
        self.ledger = ledger
        self.market_data = market_data
        self.config = config if config is not None else get_system_config().accounting

    @property
    def reporting_currency(self) -> str:
        return self.config.reporting_currency

    @property
    def cost_basis_method(self) -> CostBasisMethod:
        return CostBasisMethod.parse(self.config.cost_basis_method)

    def journal(self) -> Journal:
        """
        Build a journal from the current ledger and market data.

        Raises:
            JournalError: If the ledger cannot be replayed
        """
        return build_journal(
            self.ledger,
            self.market_data,
            self.config.reporting_currency,
            forex_decimals=self.config.forex_decimals,
        )

    def snapshot(self, on: date, journal: Journal | None = None) -> Snapshot:
        if journal is None:
            journal = self.journal()
        return Snapshot(journal, on, strict_forex=self.config.strict_forex)

    def review(self, period: Range, journal: Journal | None = None) -> Review:
        if journal is None:
            journal = self.journal()
        return Review(journal, period, strict_forex=self.config.strict_forex)

    def review_period(self, on: date, period: Period | str, journal: Journal | None = None) -> Review:
        """Review of the standard period (month, quarter, ...) containing on."""
        if not isinstance(period, Period):
            period = Period.parse(period)
        return self.review(Range.of(on, period), journal)

    def holdings(self, on: date) -> list[Holding]:
        """Open positions on a day, costed with the configured method."""
        return self.snapshot(on).holdings(self.cost_basis_method)

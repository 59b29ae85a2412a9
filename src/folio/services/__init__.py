"""folio services package.

Each service is independently testable:
- ledger: transactions and their ordered record
- market: security identifiers, prices and splits
- journal: the event stream built from both
- portfolio: Snapshot, Review and the lot engine
"""

from folio.services.journal import Journal, build_journal
from folio.services.ledger import Ledger
from folio.services.market import MarketData
from folio.services.portfolio import Review, Snapshot

__all__: list[str] = [
    "Journal",
    "Ledger",
    "MarketData",
    "Review",
    "Snapshot",
    "build_journal",
]

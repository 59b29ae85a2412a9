"""
folio - Event-replay portfolio accounting

Public API for turning a transaction ledger and market data into an
immutable journal of atomic events, and for querying it point-in-time
(Snapshot) or over a period (Review).
"""

from importlib.metadata import PackageNotFoundError, version

from folio.engine import AccountingSystem
from folio.services.journal import Journal, build_journal
from folio.services.ledger import Ledger, parse_transaction
from folio.services.market import MarketData, Security
from folio.services.portfolio import CostBasisMethod, Review, Snapshot
from folio.utilities import Money, Period, Range

try:
    __version__ = version("folio")
except PackageNotFoundError:
    __version__ = "0.0.0.dev"  # Fallback for development


__all__ = [
    "AccountingSystem",
    "CostBasisMethod",
    "Journal",
    "Ledger",
    "MarketData",
    "Money",
    "Period",
    "Range",
    "Review",
    "Security",
    "Snapshot",
    "__version__",
    "build_journal",
    "parse_transaction",
]

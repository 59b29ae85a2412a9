"""Root conftest for all tests - make src/ importable and share journal builders."""

import sys
from pathlib import Path
from typing import Callable

import pytest

# Add src/ to sys.path so tests run from a plain checkout
src_root = Path(__file__).parent.parent / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

from folio.services.journal import Journal, build_journal  # noqa: E402
from folio.services.ledger import Ledger, Transaction  # noqa: E402
from folio.services.market import MarketData  # noqa: E402


@pytest.fixture
def make_journal() -> Callable[..., Journal]:
    """Build a journal from transactions (and optional market data)."""

    def _make(
        *transactions: Transaction,
        market_data: MarketData | None = None,
        currency: str = "USD",
    ) -> Journal:
        return build_journal(Ledger(transactions), market_data or MarketData(), currency)

    return _make

"""Unit tests for the market data store."""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from folio.services.market import MarketData, PriceHistory, Security, SplitRecord

AAPL_ID = "US0378331005.XNAS"


@pytest.fixture
def market() -> MarketData:
    md = MarketData()
    md.add(Security(id=AAPL_ID, ticker="AAPL", currency="USD"))
    return md


class TestPriceHistory:
    """Test the chronological price series."""

    def test_out_of_order_appends_are_sorted(self):
        history = PriceHistory()
        history.append(date(2025, 1, 3), "3")
        history.append(date(2025, 1, 1), "1")
        history.append(date(2025, 1, 2), "2")

        assert [d.day for d, _ in history.items()] == [1, 2, 3]
        assert history.latest() == (date(2025, 1, 3), Decimal("3"))

    def test_append_same_day_replaces(self):
        history = PriceHistory({date(2025, 1, 1): "1"})
        history.append(date(2025, 1, 1), 5)

        assert len(history) == 1
        assert history.get(date(2025, 1, 1)) == Decimal("5")

    def test_value_as_of(self):
        history = PriceHistory({date(2025, 1, 2): "10", date(2025, 1, 5): "12"})

        assert history.value_as_of(date(2025, 1, 1)) is None
        assert history.value_as_of(date(2025, 1, 4)) == Decimal("10")
        assert history.value_as_of(date(2025, 1, 5)) == Decimal("12")
        assert history.get(date(2025, 1, 4)) is None

    def test_clear(self):
        history = PriceHistory({date(2025, 1, 2): "10"})
        history.clear()
        assert len(history) == 0
        assert history.latest() is None


class TestSplitRecord:
    def test_rejects_non_positive_terms(self):
        with pytest.raises(ValidationError):
            SplitRecord(on=date(2020, 8, 31), numerator=0)


class TestMarketData:
    """Test security registration, prices and splits."""

    def test_lookup(self, market):
        assert market.resolve("AAPL") == AAPL_ID
        assert market.has("AAPL")
        assert market.get(AAPL_ID).currency == "USD"
        assert market.get("unknown") is None

    def test_duplicate_registration_ignored(self, market):
        market.add(Security(id=AAPL_ID, ticker="APPLE", currency="EUR"))

        assert len(market.securities()) == 1
        assert market.get(AAPL_ID).ticker == "AAPL"

    def test_set_price_requires_registration(self, market):
        market.set_price(AAPL_ID, date(2025, 1, 2), "243.85")
        assert market.price_as_of(AAPL_ID, date(2025, 1, 5)) == Decimal("243.85")

        with pytest.raises(KeyError):
            market.set_price("EURUSD", date(2025, 1, 2), "1.03")

    def test_append_price_needs_no_registration(self, market):
        market.append_price("EURUSD", date(2025, 1, 2), "1.03")

        assert market.price_as_of("EURUSD", date(2025, 1, 2)) == Decimal("1.03")
        assert market.ids() == [AAPL_ID, "EURUSD"]

    def test_price_of_unknown_id(self, market):
        assert market.price_as_of("EURUSD", date(2025, 1, 2)) is None
        assert len(market.prices("EURUSD")) == 0

    def test_splits(self, market):
        split = SplitRecord(on=date(2020, 8, 31), numerator=4)
        market.add_split(AAPL_ID, split)
        assert market.splits(AAPL_ID) == [split]

        market.set_splits(AAPL_ID, [])
        assert market.splits(AAPL_ID) == []

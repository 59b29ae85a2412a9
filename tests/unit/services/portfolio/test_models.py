"""Unit tests for portfolio read-models."""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from folio.services.portfolio.models import AssetReview, Lot, Performance
from folio.utilities.money import Money


class TestLot:
    def test_negative_quantity_rejected(self) -> None:
        with pytest.raises(ValidationError, match="cannot be negative"):
            Lot(acquired_on=date(2025, 1, 2), quantity=Decimal("-1"), cost=Decimal("10"))

    def test_frozen(self) -> None:
        lot = Lot(acquired_on=date(2025, 1, 2), quantity=Decimal("1"), cost=Decimal("10"))
        with pytest.raises(ValidationError):
            lot.cost = Decimal("11")


class TestPerformance:
    """Test value changes over a period."""

    def test_change_and_percent(self) -> None:
        performance = Performance(start=Money(200, "EUR"), end=Money(250, "EUR"), return_=Decimal("0.2"))

        assert performance.change() == Money(50, "EUR")
        assert performance.percent() == Decimal("0.25")

    def test_nan_return_allowed(self) -> None:
        performance = Performance(start=Money(0, "EUR"), end=Money(10, "EUR"), return_=Decimal("NaN"))

        assert performance.return_.is_nan()
        assert performance.percent().is_nan()


class TestAssetReview:
    def test_gain_excludes_trading(self) -> None:
        review = AssetReview(
            ticker="AAPL",
            starting_position=Decimal("0"),
            ending_position=Decimal("10"),
            value=Performance(start=Money(0, "USD"), end=Money(1100, "USD"), return_=Decimal("NaN")),
            buys=Money(1000, "USD"),
            sells=Money(0, "USD"),
            dividends=Money(5, "USD"),
            realized_gains=Money(0, "USD"),
            unrealized_gains=Money(100, "USD"),
        )

        assert review.flow() == Money(1000, "USD")
        assert review.gain() == Money(100, "USD")
        assert review.total_return() == Money(105, "USD")

"""Unit tests for the Ledger record."""

from datetime import date

import pytest

from folio.services.ledger import Accrue, Buy, Declare, Deposit, Ledger, Sell
from folio.utilities.money import Money

AAPL_ID = "US0378331005.XNAS"
IWDA_ID = "IE00B4L5Y983.XAMS"


def d(n: int) -> date:
    return date(2025, 1, n)


@pytest.fixture
def ledger() -> Ledger:
    return Ledger(
        [
            Declare(on=d(1), ticker="AAPL", id=AAPL_ID, currency="USD"),
            Deposit(on=d(1), amount=Money(20000, "USD")),
            Buy(on=d(10), security="AAPL", quantity=100, amount=Money(15000, "USD")),
            Sell(on=d(20), security="AAPL", quantity=25, amount=Money(4000, "USD")),
        ]
    )


class TestOrdering:
    """Test stable date ordering on append."""

    def test_out_of_order_append_is_sorted(self, ledger):
        late_deposit = Deposit(on=d(5), amount=Money(100, "USD"))
        ledger.append(late_deposit)

        assert [tx.on.day for tx in ledger] == [1, 1, 5, 10, 20]
        assert ledger.oldest_date() == d(1)
        assert ledger.newest_date() == d(20)

    def test_same_day_keeps_append_order(self):
        first = Deposit(on=d(3), amount=Money(1, "USD"), memo="first")
        second = Deposit(on=d(3), amount=Money(2, "USD"), memo="second")
        earlier = Deposit(on=d(2), amount=Money(3, "USD"), memo="earlier")

        ledger = Ledger([first, second])
        ledger.append(earlier)

        assert [tx.memo for tx in ledger] == ["earlier", "first", "second"]

    def test_empty(self):
        ledger = Ledger()
        assert len(ledger) == 0
        assert ledger.oldest_date() is None
        assert ledger.newest_date() is None


class TestIndexes:
    """Test security and counterparty indexes."""

    def test_security_lookup(self, ledger):
        security = ledger.security("AAPL")

        assert security.id == AAPL_ID
        assert security.currency == "USD"
        assert ledger.security("MSFT") is None

    def test_latest_declaration_wins(self, ledger):
        ledger.append(Declare(on=d(15), ticker="AAPL", id=IWDA_ID, currency="EUR"))

        assert ledger.security("AAPL").id == IWDA_ID
        assert len(ledger.securities()) == 1

    def test_counterparty_currency_from_first_accrual(self, ledger):
        ledger.append(
            Accrue(on=d(4), counterparty="bux", amount=Money(10, "EUR"), create=True),
            Accrue(on=d(8), counterparty="bux", amount=Money(5, "USD")),
        )

        assert ledger.counterparty_currency("bux") == "EUR"
        assert ledger.counterparties() == ["bux"]
        assert ledger.counterparty_currency("tax") is None


class TestTransactions:
    """Test filtered access."""

    def test_no_filter_returns_all(self, ledger):
        assert len(ledger.transactions()) == len(ledger) == 4

    def test_any_filter_matches(self, ledger):
        trades = ledger.transactions(
            lambda tx: isinstance(tx, Buy),
            lambda tx: isinstance(tx, Sell),
        )
        assert [tx.command for tx in trades] == ["buy", "sell"]

    def test_returned_list_is_a_copy(self, ledger):
        ledger.transactions().clear()
        assert len(ledger) == 4

"""Unit tests for turning ledgers and market data into journals."""

from datetime import date
from decimal import Decimal
from typing import Literal

import pytest
from structlog.testing import capture_logs

from folio.errors import JournalError
from folio.events import (
    AcquireLot,
    CreditCash,
    CreditCounterparty,
    DebitCash,
    DebitCounterparty,
    DeclareCounterparty,
    DeclareSecurity,
    DisposeLot,
    ReceiveDividend,
    SplitShare,
    UpdateForex,
)
from folio.events import UpdatePrice as UpdatePriceEvent
from folio.services.journal import build_journal, forex_rate
from folio.services.ledger import (
    Accrue,
    BaseTransaction,
    Buy,
    Convert,
    Declare,
    Deposit,
    Dividend,
    Ledger,
    Sell,
    Split,
    UpdatePrice,
    Withdraw,
)
from folio.services.market import MarketData, SplitRecord
from folio.utilities.money import Money

AAPL_ID = "US0378331005.XNAS"


def d(n: int) -> date:
    return date(2025, 1, n)


def declare_aapl(on: date = d(1)) -> Declare:
    return Declare(on=on, ticker="AAPL", id=AAPL_ID, currency="USD")


def build(*transactions, market_data: MarketData | None = None, currency: str = "USD"):
    return build_journal(Ledger(transactions), market_data or MarketData(), currency)


class Teleport(BaseTransaction):
    command: Literal["teleport"] = "teleport"


class TestLedgerPass:
    """Test how each transaction fans out into events."""

    def test_trading_events(self):
        journal = build(
            declare_aapl(),
            Deposit(on=d(1), amount=Money(20000, "USD")),
            Buy(on=d(10), security="AAPL", quantity=100, amount=Money(15000, "USD")),
            Sell(on=d(20), security="AAPL", quantity=25, amount=Money(4000, "USD")),
        )

        assert [type(e) for e in journal] == [
            DeclareSecurity,
            CreditCash,
            AcquireLot,
            DebitCash,
            DisposeLot,
            CreditCash,
        ]
        deposit, buy_cash, sell_cash = journal.events[1], journal.events[3], journal.events[5]
        assert deposit.external is True
        assert buy_cash.amount == Decimal("15000")
        assert buy_cash.external is False
        assert sell_cash.external is False
        assert journal.events[2].cost == Money(15000, "USD")
        assert journal.currency == "USD"

    def test_amount_without_currency_takes_security_currency(self):
        journal = build(declare_aapl(), Buy(on=d(2), security="AAPL", quantity=1, amount=Money(150)))

        acquire = journal.events[1]
        assert acquire.cost == Money(150, "USD")

    def test_dividend(self):
        journal = build(declare_aapl(), Dividend(on=d(2), security="AAPL", amount=Money("0.25", "USD")))

        dividend = journal.events[1]
        assert isinstance(dividend, ReceiveDividend)
        assert dividend.amount == Decimal("0.25")
        assert dividend.per_share is True

    def test_convert(self):
        journal = build(Convert(on=d(2), from_amount=Money(100, "EUR"), to_amount=Money(108, "USD")))

        debit, credit = journal.events
        assert (debit.currency, debit.amount, debit.external) == ("EUR", Decimal("100"), False)
        assert (credit.currency, credit.amount, credit.external) == ("USD", Decimal("108"), False)

    def test_ledger_split(self):
        journal = build(declare_aapl(), Split(on=d(3), security="AAPL", numerator=4))

        split = journal.events[1]
        assert isinstance(split, SplitShare)
        assert (split.numerator, split.denominator) == (4, 1)


class TestCounterparties:
    """Test accruals and settlements."""

    def test_accrue_then_settle(self):
        journal = build(
            Accrue(on=d(1), counterparty="bux", amount=Money(10, "EUR"), create=True),
            Deposit(on=d(2), amount=Money(10, "EUR"), settles="bux"),
            currency="EUR",
        )

        assert [type(e) for e in journal] == [DeclareCounterparty, CreditCounterparty, CreditCash, DebitCounterparty]
        accrual, deposit = journal.events[1], journal.events[2]
        assert accrual.external is True
        assert deposit.external is False

    def test_first_mention_declares(self):
        journal = build(Accrue(on=d(1), counterparty="tax", amount=Money(-30, "EUR")), currency="EUR")

        declare, debit = journal.events
        assert isinstance(declare, DeclareCounterparty)
        assert isinstance(debit, DebitCounterparty)
        assert debit.amount == Decimal("30")

    def test_withdraw_settling_payable(self):
        journal = build(
            Accrue(on=d(1), counterparty="tax", amount=Money(-30, "EUR")),
            Withdraw(on=d(2), amount=Money(30, "EUR"), settles="tax"),
            currency="EUR",
        )

        assert [type(e) for e in journal][2:] == [DebitCash, CreditCounterparty]

    def test_settling_unknown_counterparty(self):
        with pytest.raises(JournalError, match="counterparty 'bux' not declared"):
            build(Deposit(on=d(2), amount=Money(10, "EUR"), settles="bux"))

    def test_settling_in_another_currency(self):
        with pytest.raises(JournalError, match="kept in EUR"):
            build(
                Accrue(on=d(1), counterparty="bux", amount=Money(10, "EUR")),
                Deposit(on=d(2), amount=Money(10, "USD"), settles="bux"),
            )


class TestErrors:
    """Test build failures abort with context."""

    def test_undeclared_security(self):
        with capture_logs() as logs:
            with pytest.raises(JournalError, match="security 'AAPL' not declared") as exc_info:
                build(
                    Deposit(on=d(1), amount=Money(100, "USD")),
                    Buy(on=d(2), security="AAPL", quantity=1, amount=Money(10, "USD")),
                )

        assert exc_info.value.index == 1
        assert exc_info.value.on == d(2)
        failures = [log for log in logs if log["event"] == "journal.build_failed"]
        assert failures[0]["log_level"] == "error"
        assert failures[0]["command"] == "buy"

    def test_use_before_declaration(self):
        with pytest.raises(JournalError):
            build(Buy(on=d(1), security="AAPL", quantity=1, amount=Money(10, "USD")), declare_aapl(on=d(2)))

    def test_amount_in_wrong_currency(self):
        with pytest.raises(JournalError, match="priced in USD"):
            build(declare_aapl(), Buy(on=d(2), security="AAPL", quantity=1, amount=Money(10, "EUR")))

    def test_unhandled_transaction_type(self):
        with pytest.raises(JournalError, match="unhandled transaction type: Teleport"):
            build(Teleport(on=d(1)))


class TestMarketPass:
    """Test merging market data into the journal."""

    def test_prices_for_declared_tickers(self):
        md = MarketData()
        md.append_price(AAPL_ID, d(2), "243.85")
        md.append_price("US5949181045.XNAS", d(2), "420")

        journal = build(declare_aapl(), market_data=md)

        prices = [e for e in journal if isinstance(e, UpdatePriceEvent)]
        assert len(prices) == 1
        assert (prices[0].security, prices[0].price, prices[0].currency) == ("AAPL", Decimal("243.85"), "USD")

    def test_ledger_price_wins_over_market(self):
        md = MarketData()
        md.append_price(AAPL_ID, d(2), "999")
        md.append_price(AAPL_ID, d(3), "245")

        with capture_logs() as logs:
            journal = build(declare_aapl(), UpdatePrice(on=d(2), prices={"AAPL": Decimal("243.85")}), market_data=md)

        prices = [(e.on, e.price) for e in journal if isinstance(e, UpdatePriceEvent)]
        assert prices == [(d(2), Decimal("243.85")), (d(3), Decimal("245"))]
        skipped = [log for log in logs if log["event"] == "journal.market_duplicate_skipped"]
        assert skipped[0]["kind"] == "price"

    def test_market_split_skipped_when_ledger_has_it(self):
        md = MarketData()
        md.add_split(AAPL_ID, SplitRecord(on=d(3), numerator=4))
        md.add_split(AAPL_ID, SplitRecord(on=d(9), numerator=2))

        journal = build(declare_aapl(), Split(on=d(3), security="AAPL", numerator=4), market_data=md)

        splits = [e.on for e in journal if isinstance(e, SplitShare)]
        assert splits == [d(3), d(9)]

    def test_same_day_ledger_events_come_first(self):
        md = MarketData()
        md.append_price(AAPL_ID, d(2), "150")

        journal = build(
            declare_aapl(),
            Buy(on=d(2), security="AAPL", quantity=1, amount=Money(150, "USD")),
            market_data=md,
        )

        assert [type(e) for e in journal] == [DeclareSecurity, AcquireLot, DebitCash, UpdatePriceEvent]

    def test_builds_are_deterministic(self):
        md = MarketData()
        md.append_price(AAPL_ID, d(2), "150")
        md.append_price("EURUSD", d(2), "1.25")
        ledger = Ledger([declare_aapl(), Buy(on=d(2), security="AAPL", quantity=1, amount=Money(150, "USD"))])

        assert build_journal(ledger, md, "EUR").events == build_journal(ledger, md, "EUR").events


class TestForex:
    """Test currency-pair quotes turning into exchange rates."""

    def test_inverse_quote(self):
        md = MarketData()
        md.append_price("EURUSD", d(2), "1.25")

        journal = build(market_data=md, currency="EUR")

        (forex,) = journal.events
        assert isinstance(forex, UpdateForex)
        assert (forex.currency, forex.rate) == ("USD", Decimal("0.8"))

    def test_direct_quote(self):
        md = MarketData()
        md.append_price("EURUSD", d(2), "1.25")

        (forex,) = build(market_data=md, currency="USD").events

        assert (forex.currency, forex.rate) == ("EUR", Decimal("1.25"))

    def test_unrelated_pair_ignored(self):
        md = MarketData()
        md.append_price("GBPUSD", d(2), "1.27")

        assert len(build(market_data=md, currency="EUR")) == 0

    def test_ledger_quote_on_declared_pair(self):
        md = MarketData()
        md.append_price("EURUSD", d(2), "1.10")

        journal = build(
            Declare(on=d(1), ticker="EURUSD", id="EURUSD", currency="USD"),
            UpdatePrice(on=d(2), prices={"EURUSD": Decimal("1.25")}),
            market_data=md,
            currency="EUR",
        )

        forex = [e for e in journal if isinstance(e, UpdateForex)]
        assert [(e.currency, e.rate) for e in forex] == [("USD", Decimal("0.8"))]

    def test_rate_rounding(self):
        assert forex_rate("EURUSD", Decimal("1.03"), "EUR", 5) == ("USD", Decimal("0.97087"))
        assert forex_rate("EURUSD", Decimal("1.03"), "EUR", 2) == ("USD", Decimal("0.97"))

    def test_not_a_pair(self):
        assert forex_rate(AAPL_ID, Decimal("150"), "USD", 5) is None

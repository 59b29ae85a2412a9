"""Ledger: the ordered record of transactions a portfolio is built from."""

from datetime import date
from typing import Callable, Iterable, Iterator

from folio.services.ledger.models import Accrue, Declare, Transaction
from folio.services.market.identifiers import Security

TransactionFilter = Callable[[Transaction], bool]


class Ledger:
    """
    Date-ordered sequence of transactions.

    Transactions are kept stably sorted by date: same-day transactions keep
    the order they were appended in. The security and counterparty indexes
    are rebuilt on every append.

    Example:
        >>> ledger = Ledger()
        >>> ledger.append(
        ...     Declare(on=date(2025, 1, 1), ticker="AAPL", id="US0378331005.XNAS", currency="USD"),
        ...     Deposit(on=date(2025, 1, 1), amount=Money(20000, "USD")),
        ... )
        >>> ledger.security("AAPL").id
        'US0378331005.XNAS'
    """

    def __init__(self, transactions: Iterable[Transaction] = ()) -> None:
        self._transactions: list[Transaction] = []
        self._securities: dict[str, Security] = {}
        self._counterparties: dict[str, str] = {}
        self.append(*transactions)

    def append(self, *transactions: Transaction) -> None:
        """Add transactions and restore date order."""
        if not transactions:
            return
        self._transactions.extend(transactions)
        self._transactions.sort(key=lambda tx: tx.on)
        self._reindex()

    def _reindex(self) -> None:
        self._securities.clear()
        self._counterparties.clear()
        for tx in self._transactions:
            if isinstance(tx, Declare):
                self._securities[tx.ticker] = Security(
                    id=tx.id, ticker=tx.ticker, currency=tx.currency, description=tx.memo
                )
            elif isinstance(tx, Accrue):
                self._counterparties.setdefault(tx.counterparty, tx.amount.currency)

    # ==================== Indexes ====================

    def security(self, ticker: str) -> Security | None:
        """Latest declaration of ticker."""
        return self._securities.get(ticker)

    def securities(self) -> list[Security]:
        return list(self._securities.values())

    def counterparty_currency(self, account: str) -> str | None:
        """Currency of the first accrual booked against account."""
        return self._counterparties.get(account)

    def counterparties(self) -> list[str]:
        return list(self._counterparties)

    # ==================== Access ====================

    def transactions(self, *filters: TransactionFilter) -> list[Transaction]:
        """
        Transactions accepted by any of the filters (all when none is given).

        Example:
            >>> ledger.transactions(lambda tx: isinstance(tx, Buy))
        """
        if not filters:
            return list(self._transactions)
        return [tx for tx in self._transactions if any(f(tx) for f in filters)]

    def oldest_date(self) -> date | None:
        return self._transactions[0].on if self._transactions else None

    def newest_date(self) -> date | None:
        return self._transactions[-1].on if self._transactions else None

    def __len__(self) -> int:
        return len(self._transactions)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(list(self._transactions))

"""Ledger: transactions and their ordered record."""

from folio.services.ledger.ledger import Ledger, TransactionFilter
from folio.services.ledger.models import (
    Accrue,
    BaseTransaction,
    Buy,
    Convert,
    Declare,
    Deposit,
    Dividend,
    Sell,
    Split,
    Transaction,
    UpdatePrice,
    Withdraw,
    parse_transaction,
)

__all__ = [
    "Accrue",
    "BaseTransaction",
    "Buy",
    "Convert",
    "Declare",
    "Deposit",
    "Dividend",
    "Ledger",
    "Sell",
    "Split",
    "Transaction",
    "TransactionFilter",
    "UpdatePrice",
    "Withdraw",
    "parse_transaction",
]

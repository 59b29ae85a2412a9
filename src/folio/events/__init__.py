"""Journal events."""

from folio.events.events import (
    AcquireLot,
    CreditCash,
    CreditCounterparty,
    DebitCash,
    DebitCounterparty,
    DeclareCounterparty,
    DeclareSecurity,
    DisposeLot,
    Event,
    JournalEvent,
    ReceiveDividend,
    SplitShare,
    UpdateForex,
    UpdatePrice,
)

__all__ = [
    "AcquireLot",
    "CreditCash",
    "CreditCounterparty",
    "DebitCash",
    "DebitCounterparty",
    "DeclareCounterparty",
    "DeclareSecurity",
    "DisposeLot",
    "Event",
    "JournalEvent",
    "ReceiveDividend",
    "SplitShare",
    "UpdateForex",
    "UpdatePrice",
]

"""Journal: the event stream a portfolio is replayed from."""

from folio.services.journal.builder import JournalBuilder, build_journal, forex_rate
from folio.services.journal.journal import Journal

__all__ = ["Journal", "JournalBuilder", "build_journal", "forex_rate"]

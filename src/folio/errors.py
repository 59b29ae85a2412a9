"""Exception hierarchy for folio.

Construction failures (journal building, configuration) raise; queries over
a built journal follow the "missing data is zero" policy and do not.
"""

from datetime import date


class FolioError(Exception):
    """Base class for all folio errors."""


class JournalError(FolioError):
    """
    Raised when a ledger cannot be turned into a journal.

    Attributes:
        index: Position of the offending transaction in the ledger (if known)
        on: Date of the offending transaction (if known)
    """

    def __init__(self, message: str, index: int | None = None, on: date | None = None):
        super().__init__(message)
        self.index = index
        self.on = on


class CurrencyMismatchError(FolioError, ValueError):
    """Raised when combining two Money values of different currencies."""


class MissingExchangeRateError(FolioError, LookupError):
    """Raised in strict forex mode when no historical rate is known."""


class ConfigError(FolioError):
    """Raised when the system configuration is invalid."""

"""
folio accounting engine.

Coordinates the journal builder and the portfolio read-models behind a
single facade.
"""

from folio.engine.accounting import AccountingSystem

__all__ = ["AccountingSystem"]

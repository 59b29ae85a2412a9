"""Market data: security identifiers, price histories and splits."""

from folio.services.market.identifiers import (
    Security,
    is_currency_pair,
    new_currency_pair,
    new_mssi,
    new_private,
    parse_currency_pair,
    parse_mssi,
    validate_currency,
    validate_isin,
    validate_mic,
    validate_security_id,
)
from folio.services.market.models import MarketData, PriceHistory, SplitRecord

__all__ = [
    "MarketData",
    "PriceHistory",
    "SplitRecord",
    "Security",
    "is_currency_pair",
    "new_currency_pair",
    "new_mssi",
    "new_private",
    "parse_currency_pair",
    "parse_mssi",
    "validate_currency",
    "validate_isin",
    "validate_mic",
    "validate_security_id",
]

"""Security identifiers.

A security ID takes one of three forms:

- MSSI (Market-Specific Security Identifier): ``ISIN.MIC``, an ISO 6166 ISIN
  and an ISO 10383 market identifier code joined by a full stop.
- Currency pair: ``BASEQUOTE``, two ISO 4217 codes. ``EURUSD`` is the price
  of one euro in US dollars.
- Private: at least 7 characters, alphanumeric or space, never a ``.``, so it
  cannot be mistaken for the two forms above.
"""

import re

from pydantic import BaseModel, ConfigDict

_ISIN = re.compile(r"^[A-Z]{2}[A-Z0-9]{9}[0-9]$")
_MIC = re.compile(r"^[A-Z0-9]{4}$")
_CURRENCY = re.compile(r"^[A-Z]{3}$")
_CURRENCY_PAIR = re.compile(r"^[A-Z]{6}$")
_PRIVATE_CHARS = re.compile(r"^[a-zA-Z0-9 ]+$")


def validate_isin(isin: str) -> None:
    """
    Validate ISIN format and check digit.

    Raises:
        ValueError: If length, format or Luhn check digit is wrong
    """
    if len(isin) != 12:
        raise ValueError(f"invalid ISIN length: must be 12 characters, got {len(isin)}")
    if not _ISIN.match(isin):
        raise ValueError("invalid ISIN format: must be 2 uppercase letters, 9 alphanumeric chars, and 1 digit")

    # Letters expand to two digits (A=10 ... Z=35) before the Luhn pass.
    digits = "".join(str(int(ch, 36)) for ch in isin[:11])

    total = 0
    double = True
    for ch in reversed(digits):
        digit = int(ch)
        if double:
            digit *= 2
        total += digit // 10 + digit % 10
        double = not double

    expected = (10 - total % 10) % 10
    actual = int(isin[11])
    if expected != actual:
        raise ValueError(f"invalid ISIN check digit: expected {expected}, got {actual}")


def validate_mic(mic: str) -> None:
    """Validate MIC format (not registration)."""
    if len(mic) != 4:
        raise ValueError(f"invalid MIC length: must be 4 characters, got {len(mic)}")
    if not _MIC.match(mic):
        raise ValueError("invalid MIC format: must be 4 uppercase alphanumeric characters")


def validate_currency(code: str) -> None:
    if not _CURRENCY.match(code):
        raise ValueError(f"invalid currency code: must be 3 uppercase letters, got {code!r}")


def new_mssi(isin: str, mic: str) -> str:
    validate_isin(isin)
    validate_mic(mic)
    return f"{isin}.{mic}"


def new_currency_pair(base: str, quote: str) -> str:
    validate_currency(base)
    validate_currency(quote)
    return base + quote


def new_private(text: str) -> str:
    if len(text) < 7:
        raise ValueError(f"invalid private id: must be at least 7 characters long, got {len(text)}")
    if "." in text:
        raise ValueError("invalid private id: must not contain a '.' (resembles an MSSI)")
    if not _PRIVATE_CHARS.match(text):
        raise ValueError("invalid private id: must only contain alphanumeric characters and spaces")
    return text


def parse_mssi(security_id: str) -> tuple[str, str]:
    """
    Split an MSSI into (isin, mic).

    Raises:
        ValueError: If security_id is not a valid MSSI
    """
    parts = security_id.split(".")
    if len(parts) != 2:
        raise ValueError(f"invalid MSSI: must contain exactly one '.', got {security_id!r}")
    isin, mic = parts
    validate_isin(isin)
    validate_mic(mic)
    return isin, mic


def parse_currency_pair(security_id: str) -> tuple[str, str]:
    """
    Split a currency pair into (base, quote).

    Raises:
        ValueError: If security_id is not 6 uppercase letters
    """
    if not _CURRENCY_PAIR.match(security_id):
        raise ValueError(f"invalid currency pair: must be 6 uppercase letters, got {security_id!r}")
    return security_id[:3], security_id[3:]


def is_currency_pair(security_id: str) -> bool:
    return bool(_CURRENCY_PAIR.match(security_id))


def validate_security_id(security_id: str) -> None:
    """
    Validate an ID of any of the three forms.

    Raises:
        ValueError: If security_id is neither an MSSI, a currency pair nor a private ID
    """
    if is_currency_pair(security_id):
        return
    if "." in security_id:
        parse_mssi(security_id)
        return
    new_private(security_id)


class Security(BaseModel):
    """
    A tradeable asset as declared in a ledger.

    Attributes:
        id: Standardized identifier (MSSI, currency pair or private)
        ticker: Human-friendly name used throughout the ledger
        currency: Currency the security is priced in
        description: Optional free text
    """

    id: str
    ticker: str
    currency: str
    description: str = ""

    model_config = ConfigDict(frozen=True)

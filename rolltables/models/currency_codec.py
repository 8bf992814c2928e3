"""
Currency Wire Encodings.

Table files have stored costs in three schemas over time:

- PLAIN:  the Copper amount as a JSON integer
- HYBRID: reads a base64 big-endian integer (8 or 16 bytes), a formatted
          string such as "150 gp", or a plain integer; writes PLAIN
- FIXED:  base64 of the Copper amount as a 16-byte big-endian unsigned
          integer, for both reading and writing

INVARIANTS:
- decode(encode(x)) == x for every encoding over 0..MAX_CURRENCY_COPPER
- Decoded values are re-expressed in their largest denomination
- Malformed input raises CurrencyParseError, never a default value
"""

import base64
import binascii
from enum import Enum
from typing import Any

from rolltables.models.currency import (
    FORMATTED_CURRENCY_PATTERN,
    MAX_CURRENCY_COPPER,
    Currency,
    CurrencyOverflowError,
    CurrencyParseError,
)

FIXED_WIDTH_BYTES = 16
NARROW_WIDTH_BYTES = 8


class CurrencyEncoding(str, Enum):
    """Serialized representations of a Currency value."""

    PLAIN = "plain"
    HYBRID = "hybrid"
    FIXED = "fixed"


EncodedCurrency = int | str


def encode_currency(value: Currency, encoding: CurrencyEncoding) -> EncodedCurrency:
    """
    Serialize a Currency value.

    PLAIN and HYBRID both write the Copper amount as an integer.
    """
    if encoding is CurrencyEncoding.FIXED:
        raw = value.copper_amount.to_bytes(FIXED_WIDTH_BYTES, "big")
        return base64.b64encode(raw).decode("ascii")
    return value.copper_amount


def decode_currency(encoded: Any, encoding: CurrencyEncoding) -> Currency:
    """
    Deserialize a Currency value.

    Raises:
        CurrencyParseError: If `encoded` is not valid for the encoding
        CurrencyOverflowError: If a plain integer exceeds the supported range
    """
    if encoding is CurrencyEncoding.PLAIN:
        return _decode_integer(encoded)

    if encoding is CurrencyEncoding.FIXED:
        if not isinstance(encoded, str):
            raise CurrencyParseError(encoded, "Expected a base64 string")
        return Currency.from_raw_amount(_decode_base64(encoded, (FIXED_WIDTH_BYTES,)))

    # HYBRID
    if isinstance(encoded, str):
        if FORMATTED_CURRENCY_PATTERN.match(encoded):
            return Currency.parse(encoded).to_largest_denomination()
        return Currency.from_raw_amount(
            _decode_base64(encoded, (NARROW_WIDTH_BYTES, FIXED_WIDTH_BYTES))
        )
    return _decode_integer(encoded)


def _decode_integer(encoded: Any) -> Currency:
    if isinstance(encoded, bool) or not isinstance(encoded, int):
        raise CurrencyParseError(encoded, "Expected a non-negative integer")
    if encoded < 0:
        raise CurrencyParseError(encoded, "Currency amounts cannot be negative")
    if encoded > MAX_CURRENCY_COPPER:
        raise CurrencyOverflowError("decode", encoded)
    return Currency.from_raw_amount(encoded)


def _decode_base64(encoded: str, widths: tuple[int, ...]) -> int:
    try:
        raw = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        raise CurrencyParseError(encoded, "Not a valid base64 string") from None

    if len(raw) not in widths:
        expected = " or ".join(str(width) for width in widths)
        raise CurrencyParseError(encoded, f"Expected {expected} bytes, got {len(raw)}")

    return int.from_bytes(raw, "big")

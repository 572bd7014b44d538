"""
Field parsers for archive cells

Blank cells mean "not observed", so any token that does not parse into
the column type becomes None instead of raising.
"""
import struct
from typing import Optional

INT16_MIN = -(2 ** 15)
INT16_MAX = 2 ** 15 - 1

_FLOAT32 = struct.Struct("<f")


def _is_plain(token) -> bool:
    """Reject whitespace padding and `_` digit separators."""
    return isinstance(token, str) and token == token.strip() and "_" not in token


def parse_float32(token: str) -> Optional[float]:
    """
    Parse a float column value with float32 precision

    Args:
        token: Raw cell text

    Returns:
        Value rounded to float32, or None for blank, padded, non-numeric or
        out-of-range text
    """
    if not _is_plain(token):
        return None
    try:
        value = float(token)
        # Packing rejects magnitudes beyond float32 and rounds the rest
        return _FLOAT32.unpack(_FLOAT32.pack(value))[0]
    except (TypeError, ValueError, OverflowError, struct.error):
        return None


def parse_int16(token: str) -> Optional[int]:
    """
    Parse an integer column value as a signed 16-bit integer

    Args:
        token: Raw cell text

    Returns:
        Integer value, or None for blank, padded, non-integer or
        out-of-range text
    """
    if not _is_plain(token):
        return None
    try:
        value = int(token, 10)
    except (TypeError, ValueError):
        return None
    if value < INT16_MIN or value > INT16_MAX:
        return None
    return value

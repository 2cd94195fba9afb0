"""
Phone Number Mask.

Formats client phone numbers as the mini-app's input mask shows them:

    Moldova  +373 (XXX) XX-XXX      8 digits after the country code
    Ukraine  +380 (XX) XXX-XX-XX    9 digits after the country code

Partial input produces a partial mask, so the same function serves
keystroke-by-keystroke formatting and final normalization.
"""

import re
from enum import Enum

_NON_DIGITS = re.compile(r"\D")


class PhoneFormat(str, Enum):
    MD = "md"
    UA = "ua"


COUNTRY_CODES = {PhoneFormat.MD: "373", PhoneFormat.UA: "380"}
# Country code plus subscriber digits
MAX_DIGITS = {PhoneFormat.MD: 11, PhoneFormat.UA: 12}


def unformat_phone(value: str) -> str:
    """Strip everything except digits."""
    return _NON_DIGITS.sub("", value)


def detect_format(digits: str) -> PhoneFormat:
    """Pick the format from the country code prefix. Moldova by default."""
    if digits.startswith(COUNTRY_CODES[PhoneFormat.UA]):
        return PhoneFormat.UA
    return PhoneFormat.MD


def _format_moldova(digits: str) -> str:
    code, rest = digits[:3], digits[3:11]
    if not rest:
        return f"+{code}"
    if len(rest) <= 3:
        return f"+{code} ({rest}"
    if len(rest) <= 5:
        return f"+{code} ({rest[:3]}) {rest[3:]}"
    return f"+{code} ({rest[:3]}) {rest[3:5]}-{rest[5:]}"


def _format_ukraine(digits: str) -> str:
    code, rest = digits[:3], digits[3:12]
    if not rest:
        return f"+{code}"
    if len(rest) <= 2:
        return f"+{code} ({rest}"
    if len(rest) <= 5:
        return f"+{code} ({rest[:2]}) {rest[2:]}"
    if len(rest) <= 7:
        return f"+{code} ({rest[:2]}) {rest[2:5]}-{rest[5:]}"
    return f"+{code} ({rest[:2]}) {rest[2:5]}-{rest[5:7]}-{rest[7:]}"


def format_phone(value: str, fmt: PhoneFormat | str | None = None) -> str:
    """
    Apply the phone mask to ``value``.

    Args:
        value: Raw input; non-digits are ignored
        fmt: Target format; detected from the country code when omitted

    Returns:
        The masked number, possibly partial
    """
    digits = unformat_phone(value)
    fmt = PhoneFormat(fmt) if fmt else detect_format(digits)
    code = COUNTRY_CODES[fmt]

    # Trunk prefix 0 stands for the country code
    if digits.startswith("0"):
        digits = code + digits[1:]
    if not digits.startswith(tuple(COUNTRY_CODES.values())):
        digits = code + digits

    digits = digits[:MAX_DIGITS[fmt]]
    if fmt is PhoneFormat.UA:
        return _format_ukraine(digits)
    return _format_moldova(digits)

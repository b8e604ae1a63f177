"""Normalizers turning raw form input into stored values."""

import re
from decimal import Decimal
from typing import Any

_NON_DIGITS = re.compile(r"\D")


def digits_only(value: str) -> str:
    return _NON_DIGITS.sub("", value)


def blank_to_none(value: Any) -> Any:
    """Map empty/whitespace strings to None and strip the rest."""
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def empty_or_zero_to_none(value: Any) -> Any:
    """Map empty input and numeric zero to None (stored as absent)."""
    value = blank_to_none(value)
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)) and value == 0:
        return None
    if isinstance(value, str):
        try:
            if Decimal(value) == 0:
                return None
        except ArithmeticError:
            return value
    return value

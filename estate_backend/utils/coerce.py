"""Coercion of raw CSV text into the typed values the validator expects."""

import math
from typing import Optional, Union

Number = Union[int, float]


def to_float(v) -> Optional[float]:
    try:
        if v is None or str(v).strip() == "":
            return None
        return float(str(v).strip())
    except ValueError:
        return None


def to_int(v) -> Optional[Number]:
    """Parse a whole number.

    A value with a fractional part is returned as a float so the validator can
    reject it as "not a whole number" instead of silently truncating it.
    """
    value = to_float(v)
    if value is None or not math.isfinite(value):
        return value
    if value.is_integer():
        return int(value)
    return value


def to_bool(v) -> bool:
    return str(v or "").strip().lower() in {"yes", "true"}


def to_str(v) -> str:
    return "" if v is None else str(v)


def format_number(v) -> str:
    """Render a number without a trailing ``.0`` for whole floats."""
    if isinstance(v, float) and math.isfinite(v) and v.is_integer():
        return str(int(v))
    return str(v)

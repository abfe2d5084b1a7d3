"""
Input Coercion Utilities
========================

Narrow, lossless coercions used by contracts registered with coerce=True.
Anything ambiguous or lossy raises CoercionError instead of guessing.

Accepted:
    - numeric string -> int / float    ("29" -> 29, "2.5" -> 2.5)
    - integral float -> int            (29.0 -> 29, integer fields only)
    - ISO-8601 date string -> date     ("2024-01-15")
    - ISO-8601 datetime string -> datetime ("2024-01-15T10:30:00Z")

Rejected:
    - bool -> number (True is not 1)
    - "29.5" -> integer, 29.5 -> integer
    - "nan", "inf", "1_000", " 29 "
    - "2024-01-15T10:30" -> date (time component would be dropped)

Usage:
    from utils.normalize import to_number, CoercionError

    try:
        age = to_number(raw_age, field="age")
    except CoercionError as e:
        ...
"""

import math
import re
from datetime import date, datetime
from typing import Any, Union

from dateutil.parser import isoparse, isoparser

# Plain decimal literal, optional exponent. No whitespace, underscores, or signs on "+".
_NUMERIC_RE = re.compile(r"^-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?$")
_INTEGER_RE = re.compile(r"^-?(?:0|[1-9]\d*)$")

_date_parser = isoparser()


class CoercionError(ValueError):
    """Raised when a value cannot be narrowly coerced to the expected type."""

    def __init__(self, message: str, field: str = None, received_value=None):
        super().__init__(message)
        self.field = field
        self.received_value = received_value


def to_number(value: Any, *, field: str = None) -> Union[int, float]:
    """
    Coerce a value to int or float.

    Args:
        value: int, float, or numeric string
        field: Field name for error messages

    Returns:
        int for integer literals, float otherwise

    Raises:
        CoercionError: For booleans, non-finite values, or non-numeric strings
    """
    if isinstance(value, bool):
        raise CoercionError(
            f"Refusing to coerce bool to number: {value!r}",
            field=field,
            received_value=value
        )
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise CoercionError(
                f"Expected finite number, got {value!r}",
                field=field,
                received_value=value
            )
        return value
    if isinstance(value, str) and _NUMERIC_RE.match(value):
        if _INTEGER_RE.match(value):
            return int(value)
        result = float(value)
        if math.isfinite(result):
            return result
    raise CoercionError(
        f"Expected number, got {type(value).__name__}: {value!r}",
        field=field,
        received_value=value
    )


def to_integer(value: Any, *, field: str = None) -> int:
    """
    Coerce a value to int without losing precision.

    Raises:
        CoercionError: If the value is not integral (e.g. 29.5, "29.5")
    """
    result = to_number(value, field=field)
    if isinstance(result, float):
        if not result.is_integer():
            raise CoercionError(
                f"Expected integer, got fractional value: {value!r}",
                field=field,
                received_value=value
            )
        return int(result)
    return result


def to_date(value: Any, *, field: str = None) -> date:
    """
    Coerce an ISO-8601 date string to a date object.

    Accepts:
        - date object (passthrough)
        - 'YYYY-MM-DD', 'YYYYMMDD', 'YYYY-MM'

    Raises:
        CoercionError: For datetimes, strings carrying a time component,
            or anything that is not an ISO-8601 date
    """
    if isinstance(value, datetime):
        raise CoercionError(
            f"Expected date, got datetime (time component would be dropped): {value!r}",
            field=field,
            received_value=value
        )
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return _date_parser.parse_isodate(value)
        except (ValueError, OverflowError):
            pass
    raise CoercionError(
        f"Expected ISO date (YYYY-MM-DD), got {type(value).__name__}: {value!r}",
        field=field,
        received_value=value
    )


def to_datetime(value: Any, *, field: str = None) -> datetime:
    """
    Coerce an ISO-8601 string to a datetime object.

    Accepts:
        - datetime object (passthrough)
        - ISO 8601 strings (e.g., 2024-01-15T10:30:00Z, 2024-01-15)

    Raises:
        CoercionError: If value cannot be parsed as ISO datetime
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return isoparse(value)
        except (ValueError, OverflowError):
            pass
    raise CoercionError(
        f"Expected ISO datetime, got {type(value).__name__}: {value!r}",
        field=field,
        received_value=value
    )

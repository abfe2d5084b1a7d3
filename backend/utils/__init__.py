"""
Utility modules for the backend.
"""
from .normalize import (
    CoercionError,
    to_number,
    to_integer,
    to_date,
    to_datetime,
)

__all__ = [
    'CoercionError',
    'to_number',
    'to_integer',
    'to_date',
    'to_datetime',
]

"""
General utility functions for the covidmath package.

Helpers for coercing loosely typed row values (strings, None, NaN coming
out of a database driver or a pandas frame) into floats.
"""

import math
import numbers
from typing import Any, Dict, Iterable, List, Optional


def parse_float(value: Any) -> float:
    """
    Parse a value as a float, returning NaN when that is not possible.

    Args:
        value: Value to parse (number, numeric string, None, ...)

    Returns:
        Float value, or NaN if the value is missing or not numeric
    """
    if value is None or isinstance(value, bool):
        return float('nan')

    try:
        return float(value)
    except (ValueError, TypeError):
        return float('nan')


def is_finite(value: Optional[float]) -> bool:
    """
    Check whether a value is a real, finite number.

    Args:
        value: Value to check

    Returns:
        True if the value is a finite real number
    """
    if value is None or isinstance(value, bool):
        return False
    if not isinstance(value, numbers.Real):
        return False
    return math.isfinite(value)


def float_or_default(value: Any, default: Optional[float]) -> Optional[float]:
    """
    Parse a value as a float, substituting a default for missing values.

    A value is missing when it is None, not numeric, NaN or zero.

    Args:
        value: Raw value
        default: Replacement for missing values (may be None)

    Returns:
        Parsed value or the default
    """
    parsed = parse_float(value)
    if math.isnan(parsed) or parsed == 0:
        return default
    return parsed


def finite_values(values: Iterable[Optional[float]]) -> List[float]:
    """
    Keep only the finite numbers from a sequence.

    Args:
        values: Values that may contain None, NaN or infinities

    Returns:
        List of finite floats, in input order
    """
    return [float(v) for v in values if is_finite(v)]


def nan_to_none(record: Dict[str, Any]) -> Dict[str, Any]:
    """Replace float NaN values in a record with None."""
    return {
        key: (None if isinstance(value, float) and math.isnan(value) else value)
        for key, value in record.items()
    }

"""Numeric value stored in the text-typed token counter field.

The field has no server-side typing, so values arrive as strings, numbers
or nothing at all. Parsing keeps the leading integer of the text
("1500.75" -> 1500, "100abc" -> 100) and anything else reads as zero.
"""

import math
import re
from typing import Any

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_leading_int(value: Any) -> int | None:
    """Parse the base-10 integer prefix of ``str(value)``.

    Returns:
        The integer, or None when there is no numeric prefix
    """
    if value is None:
        return None
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def parse_token_value(value: Any) -> int:
    """Parse a stored token total, degrading to 0.

    Negative prefixes also read as 0, since a total never goes below zero.
    """
    if value is None or value == "":
        return 0
    parsed = parse_leading_int(value)
    if parsed is None or parsed < 0:
        return 0
    return parsed


def _coerce(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if not math.isfinite(value):
        return 0
    return value


def accumulate_tokens(current: Any, delta: Any) -> int:
    """Add ``delta`` to ``current``, saturating at zero.

    Non-numeric and NaN operands count as 0. Every call adds the delta again:
    issuing one run per unit of work is up to the caller.
    """
    result = _coerce(current) + _coerce(delta)
    return int(result) if result > 0 else 0

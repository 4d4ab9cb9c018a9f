"""Numeric coercion for fetched values.

.. code-block:: python

    >>> to_number("42")
    42
    >>> to_number(" 1.5 ")
    1.5
    >>> to_number("0x1a")
    26
    >>> to_number(True)
    1
"""

from __future__ import annotations

import math
import re

_INT_RE = re.compile(r"[+-]?\d+")
_HEX_RE = re.compile(r"0[xX][0-9a-fA-F]+")
_FLOAT_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

Number = int | float


def to_number(value: object) -> Number:
    """Coerce a fetched value to an int or float.

    Integer text (decimal or ``0x`` hex) stays an exact ``int`` so large
    on-chain quantities keep their precision.

    :param value: A str, bool, int or float.
    :returns: The numeric value.
    :raises ValueError: If a string is empty or not numeric.
    :raises TypeError: If the value has no numeric interpretation.
    """
    # bool first, it is a subclass of int
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        if _INT_RE.fullmatch(text):
            return int(text)
        if _HEX_RE.fullmatch(text):
            return int(text, 16)
        if _FLOAT_RE.fullmatch(text):
            number = float(text)
            if math.isfinite(number):
                return number
        raise ValueError(f"cannot convert {value!r} to a number")
    raise TypeError(f"cannot convert {type(value).__name__} to a number")

"""Exact integer-ratio to decimal-string conversion.

The ratio and unit helpers work on Python ints only; no intermediate float
is created, so results are exact up to the requested number of fractional
digits. ``format_float`` renders an already computed float.

.. code-block:: python

    >>> ratio_to_decimal_string(1, 3, 4)
    '0.3333'
    >>> ratio_to_decimal_string(10, 4)
    '2.5'
    >>> format_units(1_500_000, 6)
    '1.5'
    >>> format_fixed(100_000_000, 8)
    '1.00000000'
    >>> format_float(5e-05)
    '0.00005'
"""

from __future__ import annotations

from decimal import Decimal

# Precision used for tick-based AMM prices.
PRICE_PRECISION = 18


def _split(scaled: int, precision: int) -> tuple[str, str, str]:
    """Split a scaled integer into sign, integer digits and padded fraction."""
    sign = "-" if scaled < 0 else ""
    digits = str(abs(scaled))
    if precision == 0:
        return sign, digits, ""
    digits = digits.rjust(precision + 1, "0")
    return sign, digits[:-precision], digits[-precision:]


def ratio_to_decimal_string(
    numerator: int, denominator: int, precision: int = PRICE_PRECISION
) -> str:
    """Render ``numerator / denominator`` as a decimal string.

    The result is truncated (not rounded) to ``precision`` fractional digits,
    trailing zeros are stripped and the separator is dropped for whole values.

    :param numerator: Ratio numerator.
    :param denominator: Ratio denominator.
    :param precision: Number of fractional digits to compute.
    :returns: Decimal string such as ``"0.3333"`` or ``"2"``.
    :raises ZeroDivisionError: If denominator is zero.
    :raises ValueError: If precision is negative.
    """
    if precision < 0:
        raise ValueError("precision must not be negative")
    if denominator == 0:
        raise ZeroDivisionError("denominator must not be zero")

    negative = (numerator < 0) != (denominator < 0)
    scaled = abs(numerator) * 10**precision // abs(denominator)
    if negative:
        scaled = -scaled

    sign, whole, fraction = _split(scaled, precision)
    fraction = fraction.rstrip("0")
    if scaled == 0:
        sign = ""
    if not fraction:
        return f"{sign}{whole}"
    return f"{sign}{whole}.{fraction}"


def format_units(raw: int, decimals: int) -> str:
    """Format a token base-unit amount, keeping at least one fractional digit.

    :param raw: Amount in base units (e.g. wei).
    :param decimals: Token decimals.
    :returns: Exact decimal string, e.g. ``"1.0"`` or ``"0.000001"``.
    """
    value = ratio_to_decimal_string(raw, 10**decimals, decimals)
    if "." not in value:
        value += ".0"
    return value


def format_fixed(raw: int, decimals: int) -> str:
    """Format a base-unit amount with exactly ``decimals`` fractional digits.

    :param raw: Amount in base units (e.g. satoshi).
    :param decimals: Number of fractional digits.
    :returns: Decimal string, e.g. ``"0.00012000"``.
    """
    sign, whole, fraction = _split(raw, decimals)
    if not fraction:
        return f"{sign}{whole}"
    return f"{sign}{whole}.{fraction}"


def format_float(value: float) -> str:
    """Render a float with its shortest round-trip digits.

    Magnitudes in ``[1e-6, 1e21)`` are written positionally (``"0.00005"``,
    ``"2"``); values outside that range keep exponent notation.

    :param value: Finite float.
    :returns: Decimal string.
    """
    if value == 0:
        return "0"
    text = repr(value)
    if not 1e-6 <= abs(value) < 1e21:
        return text
    text = format(Decimal(text), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text

"""Money parsing and rounding utilities."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0")


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "2500"
    - "2,500.00"
    - "DZD 2500"
    - "$123.45"

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount, not rounded

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    cleaned = re.sub(r"[$€£¥]", "", amount_str.strip())
    cleaned = re.sub(r"^[A-Za-z]{3}\s*", "", cleaned)
    cleaned = cleaned.replace(",", "").strip()

    try:
        return Decimal(cleaned)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}") from e


def to_decimal(value: Any) -> Decimal:
    """Coerce ints, floats, strings and Decimals to Decimal.

    Floats go through ``str`` so 150.005 stays 150.005 instead of the binary
    expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if value is None:
        return ZERO
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Not a number: {value!r}") from e


def has_at_most_two_decimals(value: Any) -> bool:
    """Return True if the value has no more than 2 decimal places."""
    amount = to_decimal(value)
    return amount == amount.quantize(CENT)


def round_money(value: Any) -> Decimal:
    """Round a value to cents."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_float(value: Any) -> float:
    """Convert a stored amount to a JSON-friendly float rounded to cents."""
    if value is None:
        return 0.0
    return float(round_money(value))


def percentage(numerator: Any, denominator: Any) -> float:
    """Return numerator / denominator * 100 fixed to 2 decimals, 0 for an empty denominator."""
    denominator = to_decimal(denominator)
    if denominator == 0:
        return 0.0
    return float(round_money(to_decimal(numerator) / denominator * 100))

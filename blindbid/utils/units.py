"""
Token amount conversion.

Amounts travel through the protocol as integers in base units (like
lamports); users type and read them as decimal token amounts.
"""

from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Union

from blindbid.errors import InvalidInput

BASE_UNIT_DECIMALS = 9
BASE_UNITS_PER_TOKEN = 10**BASE_UNIT_DECIMALS


def to_base_units(amount: Union[int, str, Decimal]) -> int:
    """
    Convert a token amount to base units.

    to_base_units("0.5") == 500_000_000. Floats are rejected because they
    cannot represent most decimal amounts exactly.
    """
    if isinstance(amount, bool) or isinstance(amount, float):
        raise InvalidInput(f"Amount must be int, str or Decimal, got {type(amount).__name__}")

    try:
        value = Decimal(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidInput(f"Amount is not a number: {amount!r}")

    if not value.is_finite():
        raise InvalidInput("Amount must be finite")

    scaled = value * BASE_UNITS_PER_TOKEN
    if scaled != scaled.to_integral_value():
        raise InvalidInput(f"Amount has more than {BASE_UNIT_DECIMALS} decimal places")

    return int(scaled)


def format_amount(base_units: int, decimals: int = 4) -> str:
    """Render base units as a token amount, e.g. 500_000_000 -> '0.5000'."""
    tokens = Decimal(base_units) / BASE_UNITS_PER_TOKEN
    quantum = Decimal(1).scaleb(-decimals)
    return str(tokens.quantize(quantum, rounding=ROUND_DOWN))

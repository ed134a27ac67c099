"""
Conversion between rouble amounts and integer kopecks.

Every stored amount and balance is an integer number of kopecks
(10.50 RUB = 1050). Integer arithmetic is exact, so repeated transfers never
accumulate rounding drift. The HTTP layer accepts decimals and presents
floats in roubles; these helpers are the only place the two meet.
"""

from decimal import Decimal, InvalidOperation

from bankcards.exceptions import InvalidArgumentError

KOPECKS_PER_RUBLE = 100
_KOPECK = Decimal("0.01")


def to_kopecks(amount: Decimal | int | str) -> int:
    """
    Convert a rouble amount to kopecks.

    Raises:
        InvalidArgumentError: If the amount is not a number or has more than
            two decimal places.
    """
    try:
        value = Decimal(str(amount))
    except InvalidOperation:
        raise InvalidArgumentError(f"Amount {amount!r} is not a number")
    if not value.is_finite():
        raise InvalidArgumentError(f"Amount {amount!r} is not a number")
    if value != value.quantize(_KOPECK):
        raise InvalidArgumentError("Amount cannot have more than two decimal places")
    return int(value * KOPECKS_PER_RUBLE)


def to_rubles(kopecks: int) -> float:
    """Present a kopeck amount as a float in roubles (1050 -> 10.5)."""
    return float(Decimal(kopecks) / KOPECKS_PER_RUBLE)

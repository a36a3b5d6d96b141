"""
Integer minor-unit money helpers.

Every amount handled by the engine is an ``int`` number of minor units
(paise for INR; 1 rupee = 100 paise). Floats are rejected outright.
Conversions to decimal major units only happen at the wire boundary
(API display fields, UPI links).
"""

from decimal import Decimal, InvalidOperation
from typing import List, Sequence, Union

from apps.settlements.exceptions import InvalidAmountError


MINOR_UNITS_PER_MAJOR = 100

MinorUnits = int


def to_minor_units(value: Union[int, Decimal, str]) -> MinorUnits:
    """
    Convert a major-unit amount (e.g. ``Decimal('12.34')`` rupees) to minor units.

    Integers are taken as whole major units. Values with more precision
    than one minor unit are rejected rather than rounded.

    Raises:
        InvalidAmountError: for floats, booleans, non-numeric strings,
            non-finite values or sub-minor-unit precision.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidAmountError(f"Refusing non-exact amount {value!r}")

    if isinstance(value, int):
        return value * MINOR_UNITS_PER_MAJOR

    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmountError(f"Not a valid amount: {value!r}")

    if not amount.is_finite():
        raise InvalidAmountError(f"Not a valid amount: {value!r}")

    minor = amount * MINOR_UNITS_PER_MAJOR
    if minor != minor.to_integral_value():
        raise InvalidAmountError(
            f"Amount {value} has more precision than one minor unit"
        )
    return int(minor)


def to_major_units(minor: MinorUnits) -> Decimal:
    """Convert minor units to a 2-place Decimal of major units."""
    return (Decimal(minor) / MINOR_UNITS_PER_MAJOR).quantize(Decimal('0.01'))


def format_major(minor: MinorUnits) -> str:
    """Format minor units as a plain decimal string, e.g. ``12345 -> '123.45'``."""
    return f"{to_major_units(minor):.2f}"


def split_evenly(total: MinorUnits, count: int) -> List[MinorUnits]:
    """
    Split ``total`` into ``count`` integer shares that sum exactly to ``total``.

    Algorithm:
        1. Base share: ``total // count``
        2. Remainder: ``total % count``
        3. The first ``remainder`` shares (iteration order) get one extra unit

    Example::

        >>> split_evenly(100, 3)
        [34, 33, 33]

    Raises:
        InvalidAmountError: if ``total`` is negative or ``count`` < 1.
    """
    if count < 1:
        raise InvalidAmountError("At least one participant required")
    if total < 0:
        raise InvalidAmountError(f"Cannot split a negative amount: {total}")

    base, remainder = divmod(total, count)
    return [base + 1 if i < remainder else base for i in range(count)]


def split_by_weights(total: MinorUnits, weights: Sequence[int]) -> List[MinorUnits]:
    """
    Split ``total`` proportionally to integer ``weights``.

    Each share is floored; leftover units go one each to the first
    participants with a non-zero weight, in iteration order, so the
    shares always reconcile to ``total``.

    Percentage splits pass basis points (``10000`` = 100%) as weights.
    """
    if not weights:
        raise InvalidAmountError("At least one participant required")
    if any(w < 0 for w in weights):
        raise InvalidAmountError("Weights must not be negative")
    weight_sum = sum(weights)
    if weight_sum == 0:
        raise InvalidAmountError("Weights must not all be zero")
    if total < 0:
        raise InvalidAmountError(f"Cannot split a negative amount: {total}")

    shares = [total * w // weight_sum for w in weights]
    leftover = total - sum(shares)
    for i, weight in enumerate(weights):
        if leftover == 0:
            break
        if weight:
            shares[i] += 1
            leftover -= 1
    return shares

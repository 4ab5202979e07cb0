"""Milestone percentage validation.

A payment schedule has two or three non-negative percentages that sum to
exactly 100. Fractional percentages are allowed; the sum is compared as
an exact Decimal, so there is no tolerance.
"""

from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Sequence

from config.errors import InvalidMilestoneError
from utils.money import HUNDRED, to_decimal

MIN_MILESTONES = 2
MAX_MILESTONES = 3


def normalize_milestones(percentages: Iterable) -> List[Decimal]:
    """Convert raw percentages (ints, strings, floats, Decimals) to Decimals.

    Raises:
        InvalidMilestoneError: If the input is not iterable or an entry is
            not a finite number.
    """
    try:
        raw = list(percentages)
    except TypeError:
        raise InvalidMilestoneError("Milestone percentages must be a list", None) from None
    values: List[Decimal] = []
    for value in raw:
        try:
            number = to_decimal(value)
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidMilestoneError(
                f"Milestone percentage {value!r} is not a number", raw
            ) from None
        if not number.is_finite():
            raise InvalidMilestoneError(
                f"Milestone percentage {value!r} is not a number", raw
            )
        values.append(number)
    return values


def validate_milestones(percentages: Sequence) -> List[Decimal]:
    """Validate milestone percentages.

    Args:
        percentages: Two or three percentages, e.g. ``[40, 40, 20]``.

    Returns:
        The percentages as Decimals.

    Raises:
        InvalidMilestoneError: On a wrong count, a negative entry, or a
            sum other than 100.
    """
    if percentages is None or isinstance(percentages, (str, bytes)):
        raise InvalidMilestoneError("Milestone percentages must be a list", None)

    values = normalize_milestones(percentages)

    if not MIN_MILESTONES <= len(values) <= MAX_MILESTONES:
        raise InvalidMilestoneError(
            f"Expected {MIN_MILESTONES} or {MAX_MILESTONES} milestones, got {len(values)}",
            values,
        )
    if any(v < 0 for v in values):
        raise InvalidMilestoneError("Milestone percentages cannot be negative", values)

    total = sum(values, Decimal("0"))
    if total != HUNDRED:
        raise InvalidMilestoneError(
            f"Milestone percentages must sum to 100, got {total}", values
        )
    return values

"""
money.py - tolerance-aware helpers for monetary amounts

Amounts are plain floats. Anything that compares money (is this balance
settled? do these shares add up?) goes through is_zero / approx_equal so that
binary floating-point noise from many small splits never leaks into a result.
"""

TOLERANCE = 0.01


def is_zero(value: float) -> bool:
    """True when |value| is within one cent of zero."""
    return abs(value) <= TOLERANCE


def approx_equal(a: float, b: float) -> bool:
    return is_zero(a - b)


def round_money(value: float) -> float:
    """Round to cents for display and serialization. Folds -0.0 into 0.0."""
    rounded = round(value, 2)
    return rounded if rounded != 0 else 0.0

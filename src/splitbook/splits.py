"""
splits.py - resolve an expense's participant shares into owed amounts

A share either carries a fixed amount (custom split) or not (equal split).
Custom participants owe exactly their fixed amount; equal participants divide
whatever is left of the total evenly. With no custom share at all, everybody
divides the total evenly.
"""

import logging
from typing import Dict, Iterable

from splitbook.errors import SplitImbalanceError
from splitbook.models import ParticipantShare
from splitbook.money import is_zero

logger = logging.getLogger(__name__)


def resolve_split(amount: float, shares: Iterable, strict: bool = True) -> Dict[str, float]:
    """
    Map each participant id to the amount they owe for an expense.

    shares may hold ParticipantShare objects or anything
    ParticipantShare.from_value accepts. The result sums to `amount` within
    tolerance and does not depend on the order of the shares.

    With strict=False an unreconciled all-custom split keeps the fixed
    amounts, drops the leftover and logs a warning instead of raising. The
    accumulators use this for stored records that predate validation.

    Raises:
        SplitImbalanceError: strict, every share is custom and their sum
        deviates from `amount` by more than the tolerance.
    """
    shares = [ParticipantShare.from_value(s) for s in shares]
    if not shares:
        # rejected upstream; never divide by zero here
        return {}

    custom = [s for s in shares if s.is_custom]
    equal = [s for s in shares if not s.is_custom]
    resolved: Dict[str, float] = {}

    if custom:
        custom_total = sum(s.amount for s in custom)
        for s in custom:
            resolved[s.user_id] = resolved.get(s.user_id, 0.0) + s.amount
        remaining = amount - custom_total
        if equal:
            portion = remaining / len(equal)
            for s in equal:
                resolved[s.user_id] = resolved.get(s.user_id, 0.0) + portion
        elif not is_zero(remaining):
            if strict:
                raise SplitImbalanceError(amount, custom_total)
            logger.warning(
                "Custom shares (%.2f) don't match expense amount (%.2f); ignoring the difference",
                custom_total, amount,
            )
    else:
        portion = amount / len(shares)
        for s in shares:
            resolved[s.user_id] = resolved.get(s.user_id, 0.0) + portion

    logger.debug("Resolved split of %s across %d shares: %s", amount, len(shares), resolved)
    return resolved


def validate_shares(amount: float, shares: Iterable) -> None:
    """Raise SplitImbalanceError if the shares can't reconcile with amount."""
    resolve_split(amount, shares)

"""
balances.py - fold expenses and confirmed settlements into net positions

Sign convention:
    - positive position => the user owes money into the group
    - negative position => the user is owed money
    - zero              => settled

For each expense the payer's position goes down by the full amount (they
fronted it) and every participant's position goes up by their resolved share.
A confirmed settlement moves `amount` from the payer's position to the
receiver's. The positions of a consistent ledger always sum to zero.
"""

import logging
from typing import Dict, Iterable

from splitbook.models import Expense, Settlement, User
from splitbook.money import is_zero
from splitbook.splits import resolve_split

logger = logging.getLogger(__name__)


def _user_id(user) -> str:
    return user.id if isinstance(user, User) else str(user)


def compute_balances(
    users: Iterable,
    expenses: Iterable[Expense],
    settlements: Iterable[Settlement] = (),
) -> Dict[str, float]:
    """
    Compute the net position of every user.

    users may be User objects or bare ids; their order is kept in the result.
    Only completed settlements are applied. Ids referenced by an expense or
    settlement but missing from `users` get their own entry (appended after
    the known users) instead of raising.
    """
    balances: Dict[str, float] = {_user_id(u): 0.0 for u in users}

    def add(user_id: str, delta: float):
        if user_id not in balances:
            logger.warning("Unknown user id %r referenced; keeping an orphan position", user_id)
            balances[user_id] = 0.0
        balances[user_id] += delta

    for e in expenses:
        add(e.payer, -e.amount)
        for participant, share in resolve_split(e.amount, e.participants, strict=False).items():
            add(participant, share)

    for s in settlements:
        if not s.completed:
            continue
        add(s.from_user, -s.amount)
        add(s.to_user, s.amount)

    return balances


def balance_total(balances: Dict[str, float]) -> float:
    """Signed sum of all positions; ~0 for a consistent ledger."""
    return sum(balances.values())


def is_settled(balances: Dict[str, float]) -> bool:
    return all(is_zero(v) for v in balances.values())

"""
settlements.py - turn balances into suggested transfers

Two interchangeable strategies:

  - SIMPLIFIED: greedy cash-flow simplification over net positions. Debtors
    pay creditors, walking both lists in user-registration order.
  - DETAILED: one net transfer per pair of users that shared an expense,
    reflecting the real bilateral debt instead of a minimal transfer count.

Both return proposed Settlement objects (completed=False). Confirming one is a
separate step (confirm_settlement) that produces the persisted record.
"""

import datetime
import logging
import math
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from splitbook.balances import compute_balances
from splitbook.errors import SettlementError
from splitbook.models import Expense, Settlement
from splitbook.money import TOLERANCE, is_zero
from splitbook.splits import resolve_split

logger = logging.getLogger(__name__)


class SettlementStrategy(str, Enum):
    SIMPLIFIED = "simplified"
    DETAILED = "detailed"


def _settlement_id(from_user: str, to_user: str, when: datetime.datetime) -> str:
    return f"{from_user}-{to_user}-{int(when.timestamp() * 1000)}"


def _proposed(from_user: str, to_user: str, amount: float, when: datetime.datetime) -> Settlement:
    return Settlement(
        id=_settlement_id(from_user, to_user, when),
        from_user=from_user,
        to_user=to_user,
        amount=amount,
        completed=False,
        date=when.date().isoformat(),
    )


def simplified_settlements(
    balances: Dict[str, float],
    when: Optional[datetime.datetime] = None,
) -> List[Settlement]:
    """
    Greedy settle-up over net positions.

    Debtors (position > tolerance) and creditors (position < -tolerance) keep
    the enumeration order of `balances`; they are not sorted by size, so the
    result is valid but not always the minimal number of transfers.
    The first open debtor pays the first open creditor min(owed, due), and
    whoever reaches ~0 is skipped, until one side runs out.
    """
    when = when or datetime.datetime.now()
    debtors = [[user_id, amt] for user_id, amt in balances.items() if amt > TOLERANCE]
    creditors = [[user_id, -amt] for user_id, amt in balances.items() if amt < -TOLERANCE]

    out: List[Settlement] = []
    i = j = 0
    while i < len(debtors) and j < len(creditors):
        debtor, creditor = debtors[i], creditors[j]
        pay = min(debtor[1], creditor[1])
        if not is_zero(pay):
            out.append(_proposed(debtor[0], creditor[0], pay, when))
            logger.debug("%s pays %s %.2f", debtor[0], creditor[0], pay)
        debtor[1] -= pay
        creditor[1] -= pay
        if is_zero(debtor[1]):
            i += 1
        if is_zero(creditor[1]):
            j += 1
    return out


def pairwise_debts(expenses: Iterable[Expense]) -> Dict[Tuple[str, str], float]:
    """
    Net the direct "participant owes payer" debts of every expense per pair.

    Keys are (smaller_id, larger_id) by string order. A positive value means
    the smaller id owes the larger one; negative means the reverse. Pairs keep
    the order in which they first appear.
    """
    net: Dict[Tuple[str, str], float] = {}
    for e in expenses:
        for participant, share in resolve_split(e.amount, e.participants, strict=False).items():
            if participant == e.payer:
                continue
            if participant < e.payer:
                key, signed = (participant, e.payer), share
            else:
                key, signed = (e.payer, participant), -share
            net[key] = net.get(key, 0.0) + signed
    return net


def detailed_settlements(
    expenses: Iterable[Expense],
    when: Optional[datetime.datetime] = None,
) -> List[Settlement]:
    """
    One proposed transfer per pair of users whose direct debts don't cancel.

    Works on raw expenses only; confirmed settlements are not netted in.
    """
    when = when or datetime.datetime.now()
    out: List[Settlement] = []
    for (low, high), value in pairwise_debts(expenses).items():
        if is_zero(value):
            continue
        if value > 0:
            out.append(_proposed(low, high, value, when))
        else:
            out.append(_proposed(high, low, -value, when))
    return out


def compute_settlements(
    strategy,
    users: Iterable,
    expenses: Iterable[Expense],
    settlements: Iterable[Settlement] = (),
    when: Optional[datetime.datetime] = None,
) -> List[Settlement]:
    """
    Propose settlements with the chosen strategy.

    strategy is a SettlementStrategy or its string value. SIMPLIFIED works on
    the net positions (confirmed settlements included); DETAILED only looks at
    the expenses.
    """
    strategy = SettlementStrategy(strategy)
    expenses = list(expenses)
    if strategy is SettlementStrategy.SIMPLIFIED:
        return simplified_settlements(compute_balances(users, expenses, settlements), when=when)
    return detailed_settlements(expenses, when=when)


def confirm_settlement(
    from_user: str,
    to_user: str,
    amount: float,
    when: Optional[datetime.datetime] = None,
) -> Settlement:
    """
    Create the confirmed (completed) record of a transfer that actually
    happened. The id is derived from the parties and the confirmation time.
    """
    if from_user == to_user:
        raise SettlementError("A user can't settle with themselves")
    try:
        amount = float(amount)
    except (TypeError, ValueError):
        raise SettlementError(f"Invalid settlement amount: {amount!r}")
    if not math.isfinite(amount) or amount <= 0:
        raise SettlementError("Settlement amount must be positive")

    when = when or datetime.datetime.now()
    return Settlement(
        id=_settlement_id(from_user, to_user, when),
        from_user=from_user,
        to_user=to_user,
        amount=amount,
        completed=True,
        date=when.date().isoformat(),
    )

"""
splitbook - shared expense ledger and settlement engine

Typical use:

    from splitbook import SplitBook, SettlementStrategy

    book = SplitBook()
    book.load()
    alex = book.add_user("Alex")
    maya = book.add_user("Maya")
    book.add_expense("Groceries", 80, alex.id, [alex.id, maya.id])
    for s in book.suggested_settlements(SettlementStrategy.DETAILED):
        ...
    book.save()
"""

import logging

from splitbook.balances import compute_balances
from splitbook.errors import (
    DuplicateUserError,
    EmptyParticipantSet,
    ExpenseValidationError,
    SettlementError,
    SplitBookError,
    SplitImbalanceError,
    UserInUseError,
    UserValidationError,
)
from splitbook.ledger import SplitBook
from splitbook.models import Expense, ParticipantShare, Settlement, User
from splitbook.money import TOLERANCE, approx_equal, is_zero
from splitbook.settlements import (
    SettlementStrategy,
    compute_settlements,
    confirm_settlement,
    detailed_settlements,
    simplified_settlements,
)
from splitbook.splits import resolve_split

# ensure a logger is available
logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

__all__ = [
    "TOLERANCE",
    "DuplicateUserError",
    "EmptyParticipantSet",
    "Expense",
    "ExpenseValidationError",
    "ParticipantShare",
    "Settlement",
    "SettlementError",
    "SettlementStrategy",
    "SplitBook",
    "SplitBookError",
    "SplitImbalanceError",
    "User",
    "UserInUseError",
    "UserValidationError",
    "approx_equal",
    "compute_balances",
    "compute_settlements",
    "confirm_settlement",
    "detailed_settlements",
    "is_zero",
    "resolve_split",
    "simplified_settlements",
]

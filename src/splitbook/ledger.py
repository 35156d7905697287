"""
ledger.py - the group ledger object hosts work with

Responsibilities:
 - own the in-memory users, expenses and confirmed settlements of one group
 - validate new users and expenses before they reach the engine
 - expose balances, proposed settlements (simplified or detailed),
   settlement confirmation and the merged history
 - load/save/sync through a DocumentStore, only when asked to

Calls are expected to be serialized by the host (one user action at a time).
"""

import datetime
import logging
import math
import uuid
from typing import Dict, Iterator, List, Optional, Tuple, Union

from splitbook.balances import compute_balances
from splitbook.errors import (
    DuplicateUserError,
    EmptyParticipantSet,
    ExpenseValidationError,
    UserInUseError,
    UserValidationError,
)
from splitbook.models import COLOR_PALETTE, Expense, ParticipantShare, Settlement, User
from splitbook.money import round_money
from splitbook.settlements import SettlementStrategy, compute_settlements, confirm_settlement
from splitbook.splits import validate_shares
from splitbook.storage import DocumentStore, build_document, parse_document

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


class SplitBook:
    """
    Single-group ledger. The host creates one SplitBook, calls load() once,
    and save() after each change it wants to keep.
    """

    def __init__(self, store: Optional[DocumentStore] = None):
        self.users: List[User] = []
        self.expenses: List[Expense] = []
        # confirmed settlements only; proposed ones are recomputed on demand
        self.settlements: List[Settlement] = []
        self._store = store

    @property
    def store(self) -> DocumentStore:
        # created on first use
        if self._store is None:
            self._store = DocumentStore()
        return self._store

    # -----------------------
    # Users
    # -----------------------
    def add_user(self, name: str) -> User:
        """
        Register a new user. Names are unique case-insensitively.
        The color is picked from the palette by the current number of users.
        """
        name = (name or "").strip()
        if not name:
            raise UserValidationError("Please enter a user name")
        if self.find_user(name) is not None:
            raise DuplicateUserError("User already exists")

        user = User(
            id=_new_id(),
            name=name,
            color=COLOR_PALETTE[len(self.users) % len(COLOR_PALETTE)],
        )
        self.users.append(user)
        logger.info("Added user %s (id=%s)", user.name, user.id)
        return user

    def remove_user(self, user_id: str) -> bool:
        """
        Remove a user that no expense refers to.
        Returns False if the id is unknown.
        """
        user = self.get_user(user_id)
        if user is None:
            return False
        if any(e.involves(user_id) for e in self.expenses):
            raise UserInUseError("Cannot remove user with existing expenses")
        self.users = [u for u in self.users if u.id != user_id]
        logger.info("Removed user %s (id=%s)", user.name, user_id)
        return True

    def get_user(self, user_id: str) -> Optional[User]:
        for u in self.users:
            if u.id == user_id:
                return u
        return None

    def find_user(self, name: str) -> Optional[User]:
        """Case-insensitive lookup by display name."""
        key = (name or "").strip().lower()
        for u in self.users:
            if u.name.lower() == key:
                return u
        return None

    # -----------------------
    # Expenses
    # -----------------------
    def add_expense(
        self,
        description: str,
        amount: float,
        payer: str,
        participants: List[Union[ParticipantShare, Tuple[str, Optional[float]], str]],
        date: Optional[str] = None,
    ) -> Expense:
        """
        Validate and append a new expense.

        participants: ParticipantShare objects, (user_id, amount_or_None)
        pairs, or bare user ids (equal split).
        date: ISO string "YYYY-MM-DD", defaults to today.
        """
        description = (description or "").strip()
        if not description:
            raise ExpenseValidationError("Please enter a description")
        try:
            amount = float(amount)
        except (TypeError, ValueError):
            raise ExpenseValidationError("Please enter a valid amount")
        if not math.isfinite(amount) or amount <= 0:
            raise ExpenseValidationError("Please enter a valid amount")
        if not payer:
            raise ExpenseValidationError("Please select who paid")
        shares = tuple(ParticipantShare.from_value(p) for p in participants or ())
        if not shares:
            raise EmptyParticipantSet("Please select at least one participant")
        for share in shares:
            if share.is_custom and (not math.isfinite(share.amount) or share.amount < 0):
                raise ExpenseValidationError(f"Invalid split amount for participant {share.user_id}")
        validate_shares(amount, shares)

        exp = Expense(
            id=_new_id(),
            description=description,
            amount=amount,
            payer=payer,
            participants=shares,
            date=date or datetime.date.today().isoformat(),
        )
        self.expenses.append(exp)
        logger.info("Added expense %s (id=%s, amount=%s)", exp.description, exp.id, exp.amount)
        return exp

    def get_expense(self, expense_id: str) -> Optional[Expense]:
        for e in self.expenses:
            if e.id == expense_id:
                return e
        return None

    def delete_expense(self, expense_id: str) -> bool:
        """Remove expense by id. Returns True if deleted, False if not found."""
        for i, e in enumerate(self.expenses):
            if e.id == expense_id:
                self.expenses.pop(i)
                logger.info("Deleted expense id=%s. Remaining expenses=%d.", expense_id, len(self.expenses))
                return True
        logger.info("Expense id=%s not found", expense_id)
        return False

    def edit_expense(self, expense_id: str) -> Optional[Expense]:
        """
        First half of an edit: take the expense out of the ledger and hand it
        back so the caller can prefill a new add_expense() call with it.
        Stored expenses are never changed in place.
        """
        exp = self.get_expense(expense_id)
        if exp is None:
            return None
        self.delete_expense(expense_id)
        return exp

    # -----------------------
    # Balances & settlements
    # -----------------------
    def balances(self, rounded: bool = False) -> Dict[str, float]:
        """
        Net position per user id (positive => owes the group).
        rounded=True gives cent-rounded values for display.
        """
        result = compute_balances(self.users, self.expenses, self.settlements)
        if rounded:
            result = {user_id: round_money(v) for user_id, v in result.items()}
        return result

    def suggested_settlements(self, strategy=SettlementStrategy.SIMPLIFIED) -> List[Settlement]:
        """Proposed transfers; recomputed on every call and never stored."""
        return compute_settlements(strategy, self.users, self.expenses, self.settlements)

    def confirm_settlement(self, from_user: str, to_user: str, amount: float) -> Settlement:
        """Record a transfer as done. Confirmed settlements are append-only."""
        settlement = confirm_settlement(from_user, to_user, amount)
        self.settlements.append(settlement)
        logger.info("Confirmed settlement %s pays %s %.2f", from_user, to_user, settlement.amount)
        return settlement

    def confirmed_settlements(self) -> List[Settlement]:
        return [s for s in self.settlements if s.completed]

    def history(self) -> Iterator[Union[Expense, Settlement]]:
        """
        Expenses and confirmed settlements, most recent date first.
        Entries on the same date keep insertion order, expenses before
        settlements. Every call starts a fresh iteration.
        """
        entries = list(self.expenses) + self.confirmed_settlements()
        # sorted() is stable with reverse=True as well
        yield from sorted(entries, key=lambda entry: entry.date, reverse=True)

    def clear(self):
        """Reset the ledger: no users, expenses or settlements."""
        self.users = []
        self.expenses = []
        self.settlements = []

    # -----------------------
    # Persistence
    # -----------------------
    def storage_status(self) -> Tuple[str, str]:
        return self.store.status()

    def to_document(self) -> Dict:
        return build_document(self.users, self.expenses, self.settlements)

    def replace_state(self, document: Dict):
        """Swap all three collections for the contents of a document."""
        self.users, self.expenses, self.settlements = parse_document(document)

    def load(self):
        """
        Load ledger state from the store. If nothing was saved yet the
        current (usually empty) state is kept.
        """
        data = self.store.load()
        if not data:
            return
        self.replace_state(data)
        logger.info(
            "Loaded %d users, %d expenses, %d settlements",
            len(self.users), len(self.expenses), len(self.settlements),
        )

    def save(self):
        self.store.save(self.to_document())

    def sync(self) -> bool:
        """
        Pull the shared remote copy, replace local state with it and keep a
        local JSON copy. Returns False when there was nothing to pull.
        """
        data = self.store.pull()
        if not data:
            return False
        self.replace_state(data)
        self.store.save_local(self.to_document())
        logger.info("Synced ledger from remote (expenses=%d)", len(self.expenses))
        return True

"""
models.py - Data model definitions

This file defines the User, ParticipantShare, Expense and Settlement records
used across the ledger. They are serialized to/from simple dicts so they can be
persisted as one JSON document ({users, expenses, settlements, lastUpdated}).

Expenses and settlements are frozen: "editing" an expense means removing it
and adding a new one, and confirmed settlements are append-only.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


# avatar colors, assigned by position in the user list at creation time
COLOR_PALETTE = (
    "#FF6B6B",
    "#4ECDC4",
    "#45B7D1",
    "#96CEB4",
    "#FFEAA7",
    "#DDA0DD",
    "#98D8C8",
    "#F7DC6F",
)


def _to_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


@dataclass
class User:
    """
    A group member.

    Fields:
      - id: opaque stable id
      - name: display name, unique case-insensitively within a ledger
      - color: avatar color taken from COLOR_PALETTE
    """
    id: str
    name: str
    color: str = COLOR_PALETTE[0]

    def to_dict(self) -> Dict:
        return {"id": self.id, "name": self.name, "color": self.color}

    @staticmethod
    def from_dict(d: Dict) -> "User":
        return User(
            id=str(d.get("id", "")),
            name=d.get("name", "") or "",
            color=d.get("color") or COLOR_PALETTE[0],
        )


@dataclass(frozen=True)
class ParticipantShare:
    """
    One participant of an expense.

    amount is None for an equal-split participant, or the fixed portion this
    participant owes for a custom split.
    """
    user_id: str
    amount: Optional[float] = None

    @property
    def is_custom(self) -> bool:
        return self.amount is not None

    def to_dict(self) -> Dict:
        return {"id": self.user_id, "amount": self.amount}

    @staticmethod
    def from_value(value: Any) -> "ParticipantShare":
        """
        Build a share from any of the accepted shapes:
        a ParticipantShare, a bare user id (legacy records), an (id, amount)
        pair, or a {"id": ..., "amount": ...} dict.
        """
        if isinstance(value, ParticipantShare):
            return value
        if isinstance(value, dict):
            amount = value.get("amount")
            return ParticipantShare(
                user_id=str(value.get("id", "")),
                amount=None if amount is None else _to_float(amount),
            )
        if isinstance(value, (tuple, list)):
            user_id, amount = value
            return ParticipantShare(str(user_id), None if amount is None else float(amount))
        return ParticipantShare(str(value), None)


@dataclass(frozen=True)
class Expense:
    """
    Represents a single shared expense.

    Fields:
      - id: opaque id assigned by the ledger
      - description: free text ("Dinner at Restaurant")
      - amount: positive total amount, currency-agnostic
      - payer: id of the user who fronted the money
      - participants: ordered tuple of ParticipantShare
      - date: ISO date string "YYYY-MM-DD"
    """
    id: str
    description: str
    amount: float
    payer: str
    participants: Tuple[ParticipantShare, ...] = field(default_factory=tuple)
    date: str = ""

    def participant_ids(self) -> Tuple[str, ...]:
        return tuple(p.user_id for p in self.participants)

    def involves(self, user_id: str) -> bool:
        """True when the user paid for or takes part in this expense."""
        return self.payer == user_id or user_id in self.participant_ids()

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "description": self.description,
            "amount": self.amount,
            "payer": self.payer,
            "participants": [p.to_dict() for p in self.participants],
            "date": self.date,
        }

    @staticmethod
    def from_dict(d: Dict) -> "Expense":
        """
        Construct an Expense from a dict (inverse of to_dict).
        Older records store participants as bare user ids; those are
        normalized here to equal-split shares.
        """
        participants = d.get("participants", []) or []
        return Expense(
            id=str(d.get("id", "")),
            description=d.get("description", "") or "",
            amount=_to_float(d.get("amount", 0.0)),
            payer=str(d.get("payer", "")),
            participants=tuple(ParticipantShare.from_value(p) for p in participants),
            date=d.get("date", "") or "",
        )


@dataclass(frozen=True)
class Settlement:
    """
    A transfer of `amount` from `from_user` (who pays) to `to_user`.

    Proposed settlements are computed on demand and have completed=False.
    Confirmed settlements have completed=True and are the only ones persisted.
    """
    id: str
    from_user: str
    to_user: str
    amount: float
    completed: bool = False
    date: str = ""

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "from": self.from_user,
            "to": self.to_user,
            "amount": self.amount,
            "completed": self.completed,
            "date": self.date,
        }

    @staticmethod
    def from_dict(d: Dict) -> "Settlement":
        return Settlement(
            id=str(d.get("id", "")),
            from_user=str(d.get("from", "")),
            to_user=str(d.get("to", "")),
            amount=_to_float(d.get("amount", 0.0)),
            completed=bool(d.get("completed", False)),
            date=d.get("date", "") or "",
        )

"""In-memory stand-ins for the gspread objects, plus record builders."""

import gspread

from splitbook.models import Expense, ParticipantShare, Settlement


def make_expense(expense_id, amount, payer, participants, date="2025-08-20", description="Expense"):
    return Expense(
        id=expense_id,
        description=description,
        amount=amount,
        payer=payer,
        participants=tuple(ParticipantShare.from_value(p) for p in participants),
        date=date,
    )


def make_settlement(from_user, to_user, amount, completed=True, date="2025-08-21"):
    return Settlement(
        id=f"{from_user}-{to_user}-0",
        from_user=from_user,
        to_user=to_user,
        amount=amount,
        completed=completed,
        date=date,
    )


class FakeWorksheet:
    def __init__(self, title, rows=100, cols=10):
        self.title = title
        self.row_count = rows
        self.col_count = cols
        self.values = []

    def row_values(self, row):
        return list(self.values[row - 1]) if len(self.values) >= row else []

    def get_all_values(self):
        return [list(r) for r in self.values]

    def resize(self, rows=None, cols=None):
        self.row_count = rows or self.row_count
        self.col_count = cols or self.col_count

    def clear(self):
        self.values = []

    def update(self, range_name="A1", values=None, value_input_option=None):
        assert range_name == "A1"
        values = [list(r) for r in values or []]
        self.values[: len(values)] = values


class FakeSpreadsheet:
    def __init__(self, fail_on_update=False):
        self.worksheets = {}
        self.fail_on_update = fail_on_update

    def worksheet(self, title):
        if title not in self.worksheets:
            raise gspread.exceptions.WorksheetNotFound(title)
        return self.worksheets[title]

    def add_worksheet(self, title, rows, cols):
        ws = FakeWorksheet(title, rows, cols)
        if self.fail_on_update:
            def broken_clear(*args, **kwargs):
                raise RuntimeError("quota exceeded")
            ws.clear = broken_clear
        self.worksheets[title] = ws
        return ws


DOCUMENT = {
    "users": [{"id": "A", "name": "Alex", "color": "#FF6B6B"}, {"id": "B", "name": "Maya", "color": "#4ECDC4"}],
    "expenses": [
        {
            "id": "e1",
            "description": "Dinner",
            "amount": 100.0,
            "payer": "A",
            "participants": [{"id": "A", "amount": None}, {"id": "B", "amount": 30.0}],
            "date": "2025-08-20",
        }
    ],
    "settlements": [{"id": "B-A-1", "from": "B", "to": "A", "amount": 30.0, "completed": True, "date": "2025-08-21"}],
    "lastUpdated": "2025-08-21T10:00:00+00:00",
}

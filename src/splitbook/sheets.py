"""
sheets.py - Google Sheets persistence backend

Keeps the ledger document in a spreadsheet so several devices can share one
group. The backend is optional: when GOOGLE_SHEET_ID is unset or the sheet
can't be opened, `available` is False and the DocumentStore falls back to the
local JSON file.

Data layout:
  - worksheet "users":       id, name, color
  - worksheet "expenses":    id, description, amount, payer, participants_json, date
  - worksheet "settlements": id, from, to, amount, completed, date
  - worksheet "meta":        key/value metadata (lastUpdated)
"""

import ast
import json
import logging
import os
from typing import Any, Dict, List

import gspread
from google.oauth2.service_account import Credentials

logger = logging.getLogger(__name__)


class GoogleSheetsBackend:
    """
    Reads and writes the {users, expenses, settlements, lastUpdated} document.

    A ready spreadsheet object can be passed in (tests do this); otherwise one
    is opened with service-account credentials from the environment.
    """

    USERS_SHEET_NAME = "users"
    EXPENSES_SHEET_NAME = "expenses"
    SETTLEMENTS_SHEET_NAME = "settlements"
    META_SHEET_NAME = "meta"
    USER_HEADERS = ["id", "name", "color"]
    EXPENSE_HEADERS = ["id", "description", "amount", "payer", "participants_json", "date"]
    SETTLEMENT_HEADERS = ["id", "from", "to", "amount", "completed", "date"]
    META_HEADERS = ["key", "value"]
    SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

    def __init__(self, sheet_id: str = None, spreadsheet=None):
        self.available = False
        self.reason = ""
        self.sheet_id = (sheet_id if sheet_id is not None else os.getenv("GOOGLE_SHEET_ID") or "").strip()
        self._spreadsheet = spreadsheet
        self._worksheets: Dict[str, Any] = {}

        if self._spreadsheet is None and not self.sheet_id:
            self.reason = "GOOGLE_SHEET_ID is not set"
            return

        try:
            if self._spreadsheet is None:
                client = gspread.authorize(self._build_credentials())
                self._spreadsheet = client.open_by_key(self.sheet_id)
            for title, headers in self._layout():
                self._worksheets[title] = self._get_or_create_worksheet(
                    title, rows=1000, cols=max(8, len(headers))
                )
            self._ensure_headers()
            self.available = True
        except Exception as exc:
            self.available = False
            self.reason = f"Google Sheets init failed ({exc.__class__.__name__})"
            logger.warning("Google Sheets backend unavailable: %s", self.reason)

    def _layout(self):
        return (
            (self.USERS_SHEET_NAME, self.USER_HEADERS),
            (self.EXPENSES_SHEET_NAME, self.EXPENSE_HEADERS),
            (self.SETTLEMENTS_SHEET_NAME, self.SETTLEMENT_HEADERS),
            (self.META_SHEET_NAME, self.META_HEADERS),
        )

    def _build_credentials(self):
        service_account_json = (os.getenv("GOOGLE_SERVICE_ACCOUNT_JSON") or "").strip()
        service_account_file = (os.getenv("GOOGLE_SERVICE_ACCOUNT_FILE") or "").strip()

        if service_account_json:
            try:
                info = json.loads(service_account_json)
            except ValueError:
                # tolerate Python-dict style strings often pasted into env vars
                info = ast.literal_eval(service_account_json)
            if not isinstance(info, dict):
                raise ValueError("GOOGLE_SERVICE_ACCOUNT_JSON must decode to an object")
            return Credentials.from_service_account_info(info, scopes=self.SCOPES)

        if service_account_file:
            return Credentials.from_service_account_file(service_account_file, scopes=self.SCOPES)

        # Fallback to application default credentials if available.
        import google.auth
        creds, _ = google.auth.default(scopes=self.SCOPES)
        return creds

    def _get_or_create_worksheet(self, title: str, rows: int, cols: int):
        try:
            return self._spreadsheet.worksheet(title)
        except gspread.exceptions.WorksheetNotFound:
            return self._spreadsheet.add_worksheet(title=title, rows=rows, cols=cols)

    @staticmethod
    def _ensure_sheet_size(ws, min_rows: int, min_cols: int):
        new_rows = max(ws.row_count, min_rows)
        new_cols = max(ws.col_count, min_cols)
        if new_rows != ws.row_count or new_cols != ws.col_count:
            ws.resize(rows=new_rows, cols=new_cols)

    def _ensure_headers(self):
        # Keep headers explicit so the sheet stays readable by humans.
        for title, headers in self._layout():
            ws = self._worksheets[title]
            first = ws.row_values(1) or []
            if [x.strip() for x in first] != headers:
                self._ensure_sheet_size(ws, 2, len(headers))
                ws.update(range_name="A1", values=[headers], value_input_option="RAW")

    def _write_rows(self, title: str, rows: List[List[str]]):
        ws = self._worksheets[title]
        headers = rows[0]
        self._ensure_sheet_size(ws, len(rows) + 10, len(headers))
        # RAW stores user content as plain values, never as formulas
        ws.clear()
        ws.update(range_name="A1", values=rows, value_input_option="RAW")

    def _read_records(self, title: str) -> List[Dict[str, str]]:
        values = self._worksheets[title].get_all_values() or []
        if not values:
            return []
        headers = [str(h).strip() for h in values[0]]
        records = []
        for row in values[1:]:
            if not any(str(c).strip() for c in row):
                continue
            record = {}
            for idx, header in enumerate(headers):
                if header:
                    record[header] = row[idx] if idx < len(row) else ""
            records.append(record)
        return records

    @staticmethod
    def _parse_participants(value: Any) -> List[Any]:
        text = str(value or "").strip()
        if not text:
            return []
        try:
            parsed = json.loads(text)
        except ValueError:
            # hand-edited cells: "id1, id2"
            return [p.strip() for p in text.split(",") if p.strip()]
        return parsed if isinstance(parsed, list) else []

    @staticmethod
    def _parse_bool(value: Any) -> bool:
        return str(value).strip().lower() in ("true", "1", "yes")

    def save_state(self, document: Dict[str, Any]) -> bool:
        if not self.available:
            return False

        try:
            self._ensure_headers()
            user_rows = [self.USER_HEADERS]
            for u in document.get("users", []) or []:
                user_rows.append([str(u.get("id", "")), str(u.get("name", "")), str(u.get("color", ""))])

            expense_rows = [self.EXPENSE_HEADERS]
            for e in document.get("expenses", []) or []:
                expense_rows.append(
                    [
                        str(e.get("id", "")),
                        str(e.get("description", "") or ""),
                        repr(float(e.get("amount", 0.0))),
                        str(e.get("payer", "")),
                        json.dumps(e.get("participants", []) or [], ensure_ascii=False),
                        str(e.get("date", "") or ""),
                    ]
                )

            settlement_rows = [self.SETTLEMENT_HEADERS]
            for s in document.get("settlements", []) or []:
                settlement_rows.append(
                    [
                        str(s.get("id", "")),
                        str(s.get("from", "")),
                        str(s.get("to", "")),
                        repr(float(s.get("amount", 0.0))),
                        "true" if s.get("completed") else "false",
                        str(s.get("date", "") or ""),
                    ]
                )

            meta_rows = [self.META_HEADERS, ["lastUpdated", str(document.get("lastUpdated", ""))]]

            self._write_rows(self.USERS_SHEET_NAME, user_rows)
            self._write_rows(self.EXPENSES_SHEET_NAME, expense_rows)
            self._write_rows(self.SETTLEMENTS_SHEET_NAME, settlement_rows)
            self._write_rows(self.META_SHEET_NAME, meta_rows)
            return True
        except Exception as exc:
            logger.exception("Failed to save ledger to Google Sheets")
            # worksheets may be half-written; stop reading from them this session
            self.available = False
            self.reason = f"Google Sheets save failed ({exc.__class__.__name__})"
            return False

    def load_state(self) -> Dict[str, Any]:
        if not self.available:
            return {}

        try:
            self._ensure_headers()
            users = [
                {"id": r.get("id", ""), "name": r.get("name", ""), "color": r.get("color", "")}
                for r in self._read_records(self.USERS_SHEET_NAME)
            ]
            expenses = [
                {
                    "id": r.get("id", ""),
                    "description": r.get("description", ""),
                    "amount": r.get("amount", "0"),
                    "payer": r.get("payer", ""),
                    "participants": self._parse_participants(r.get("participants_json", "")),
                    "date": r.get("date", ""),
                }
                for r in self._read_records(self.EXPENSES_SHEET_NAME)
            ]
            settlements = [
                {
                    "id": r.get("id", ""),
                    "from": r.get("from", ""),
                    "to": r.get("to", ""),
                    "amount": r.get("amount", "0"),
                    "completed": self._parse_bool(r.get("completed", "")),
                    "date": r.get("date", ""),
                }
                for r in self._read_records(self.SETTLEMENTS_SHEET_NAME)
            ]
            meta = {r.get("key", ""): r.get("value", "") for r in self._read_records(self.META_SHEET_NAME)}
            return {
                "users": users,
                "expenses": expenses,
                "settlements": settlements,
                "lastUpdated": meta.get("lastUpdated", ""),
            }
        except Exception:
            logger.exception("Failed to load ledger from Google Sheets")
            return {}

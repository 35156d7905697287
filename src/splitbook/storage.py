"""
storage.py - persistence collaborator for the ledger

The ledger never saves on its own; the host calls SplitBook.load()/save()/
sync(), which land here. The document shape is:

    {"users": [...], "expenses": [...], "settlements": [...],
     "lastUpdated": "<ISO-8601 timestamp>"}

Google Sheets is used when configured, with the local JSON file as fallback.
Legacy expense records (participants stored as bare ids) are normalized while
parsing, so the engine only ever sees ParticipantShare objects.
"""

import datetime
import json
import logging
import os
import shutil
import tempfile
from typing import Any, Dict, Iterable, List, Optional, Tuple

from splitbook.models import Expense, Settlement, User
from splitbook.sheets import GoogleSheetsBackend

logger = logging.getLogger(__name__)

# relative to the working directory; overridable with SPLITBOOK_DATA_FILE
DEFAULT_DATA_FILE = os.path.join("data", "splitbook_data.json")


def build_document(
    users: Iterable[User],
    expenses: Iterable[Expense],
    settlements: Iterable[Settlement],
) -> Dict[str, Any]:
    """Serialize the three collections into the persisted document shape."""
    return {
        "users": [u.to_dict() for u in users],
        "expenses": [e.to_dict() for e in expenses],
        "settlements": [s.to_dict() for s in settlements],
        "lastUpdated": datetime.datetime.now(datetime.timezone.utc).isoformat(),
    }


def parse_document(data: Dict[str, Any]) -> Tuple[List[User], List[Expense], List[Settlement]]:
    """
    Inverse of build_document. Missing keys become empty collections so older
    or partial files are tolerated.
    """
    data = data or {}
    users = [User.from_dict(d) for d in data.get("users", []) or []]
    expenses = [Expense.from_dict(d) for d in data.get("expenses", []) or []]
    settlements = [Settlement.from_dict(d) for d in data.get("settlements", []) or []]
    return users, expenses, settlements


class DocumentStore:
    """
    Loads and saves the ledger document.

    data_file defaults to $SPLITBOOK_DATA_FILE, then DEFAULT_DATA_FILE.
    sheets defaults to a GoogleSheetsBackend configured from the environment.
    """

    def __init__(self, data_file: Optional[str] = None, sheets: Optional[GoogleSheetsBackend] = None):
        self.data_file = data_file or os.getenv("SPLITBOOK_DATA_FILE") or DEFAULT_DATA_FILE
        self._gs_backend = sheets if sheets is not None else GoogleSheetsBackend()

    def uses_google_sheets(self) -> bool:
        """True when the shared Google Sheets backend is active."""
        return bool(self._gs_backend and self._gs_backend.available)

    def status(self) -> Tuple[str, str]:
        """
        Return current storage backend and a short diagnostic message.
        """
        if self.uses_google_sheets():
            return "google_sheets", "Persistent storage active (Google Sheets)."
        reason = getattr(self._gs_backend, "reason", "") or "Google Sheets not configured"
        return "local_json", f"Using local file fallback: {reason}."

    def load(self) -> Dict[str, Any]:
        """
        Load the document from Google Sheets when configured, otherwise from
        the local JSON file. Returns {} when nothing was saved yet.
        """
        data = None
        if self.uses_google_sheets():
            logger.info("Loading data from Google Sheets")
            data = self._gs_backend.load_state() or None
            if data is None:
                logger.warning("Google Sheets load failed, falling back to local JSON")

        if data is None:
            data = self._load_local()
        return data

    def pull(self) -> Dict[str, Any]:
        """Fetch the remote document only. Returns {} when there's nothing to pull."""
        if not self.uses_google_sheets():
            logger.info("Sync skipped: Google Sheets backend is not available")
            return {}
        logger.info("Pulling data from Google Sheets")
        return self._gs_backend.load_state() or {}

    def save(self, document: Dict[str, Any]):
        """
        Persist the document. Google Sheets first; on failure or when it is
        not configured, write the local JSON file atomically.
        """
        document = dict(document)
        document.setdefault("lastUpdated", datetime.datetime.now(datetime.timezone.utc).isoformat())

        if self.uses_google_sheets():
            logger.info("Saving data to Google Sheets (expenses=%d)", len(document.get("expenses", [])))
            if self._gs_backend.save_state(document):
                return
            logger.warning("Google Sheets save failed, falling back to local JSON")

        self.save_local(document)

    def _load_local(self) -> Dict[str, Any]:
        if not os.path.exists(self.data_file):
            return {}
        with open(self.data_file, "r", encoding="utf-8") as f:
            return json.load(f)

    def save_local(self, document: Dict[str, Any]):
        """Atomic write: temp file in the same directory, fsync, then move."""
        target = os.path.abspath(self.data_file)
        dirn = os.path.dirname(target)
        os.makedirs(dirn, exist_ok=True)
        logger.info("Saving data to %s (expenses=%d)", target, len(document.get("expenses", [])))
        fd, tmp_path = tempfile.mkstemp(prefix="tmp_splitbook_", dir=dirn, text=True)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            shutil.move(tmp_path, target)
        except Exception:
            logger.exception("Failed to save data file")
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

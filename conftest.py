"""Shared test fixtures: an in-memory spreadsheet standing in for Google Sheets."""
import json
import os
import re

os.environ.setdefault("SHEET_ID", "test-sheet")
os.environ.setdefault("GOOGLE_SERVICE_ACCOUNT", json.dumps({
    "type": "service_account",
    "client_email": "signup@test-project.iam.gserviceaccount.com",
    "private_key": "not-a-real-key",
    "token_uri": "https://oauth2.googleapis.com/token",
}))
os.environ.setdefault("SIGNUPS_GID", "111")
os.environ.setdefault("SLOTS_GID", "222")

import pytest
from fastapi.testclient import TestClient

from slotbook.core.config import settings
from slotbook.core.errors import StoreError
from slotbook.main import create_app
from slotbook.services.sheets_client import AppendRows, UpdateCell
from slotbook.services.state import build_state

RANGE_RE = re.compile(r"^(\w+)!([A-Z])(\d+)(?::([A-Z])(\d+)?)?$")

SLOT_HEADER = ["Date", "Label", "Capacity", "Taken", "Available"]
SIGNUP_HEADER = [
    "Timestamp", "Date", "Slot", "Name", "Email",
    "Phone", "Category", "Notes", "SlotRowId", "Status",
]


class FakeSheets:
    """Implements the store gateway contract over lists of rows (row 1 = index 0)."""

    def __init__(self, slots, signups=None):
        self.sheets = {
            "Slots": [SLOT_HEADER] + [list(map(str, r)) for r in slots],
            "Signups": [SIGNUP_HEADER] + [list(map(str, r)) for r in (signups or [])],
        }
        self.gids = {settings.SLOTS_GID: "Slots", settings.SIGNUPS_GID: "Signups"}
        self.reads = []
        self.writes = []
        self.fail_reads = False
        self.fail_writes = False

    def _read(self, a1_range):
        self.reads.append(a1_range)
        if self.fail_reads:
            raise StoreError(detail="read failed")

        sheet, start_col, start_row, end_col, end_row = RANGE_RE.match(a1_range).groups()
        rows = self.sheets[sheet]
        first = int(start_row) - 1
        last = int(end_row) if end_row else len(rows)
        if end_col is None:
            end_col = start_col
            last = int(start_row)
        c0 = ord(start_col) - ord("A")
        c1 = ord(end_col) - ord("A") + 1

        result = [list(r[c0:c1]) for r in rows[first:last]]
        while result and not any(result[-1]):
            result.pop()
        return result

    async def get_values(self, a1_range):
        return self._read(a1_range)

    async def batch_get_values(self, ranges):
        return [self._read(r) for r in ranges]

    async def batch_update(self, directives):
        if self.fail_writes:
            raise StoreError(detail="write failed")
        self.writes.append(list(directives))
        for d in directives:
            rows = self.sheets[self.gids[d.sheet_id]]
            if isinstance(d, AppendRows):
                rows.extend([["" if c is None else str(c) for c in row] for row in d.rows])
            elif isinstance(d, UpdateCell):
                while len(rows) < d.row:
                    rows.append([])
                row = rows[d.row - 1]
                while len(row) <= d.column:
                    row.append("")
                row[d.column] = str(d.value)

    def slot(self, row_id):
        return self.sheets["Slots"][row_id - 1]

    def signup(self, row_id):
        return self.sheets["Signups"][row_id - 1]

    def signup_count(self):
        return len(self.sheets["Signups"]) - 1


PHONE = "5551234567"


def signup_row(slot_id, phone=PHONE, status="ACTIVE", date="2099-01-16", label="10am-12pm"):
    return ["1/1/2099, 9:00:00 AM", date, label, "Ada", "ada@example.com",
            phone, "adult", "", slot_id, status]


@pytest.fixture
def store():
    return FakeSheets(
        slots=[
            ["2099-01-15", "10am-12pm", 3, 1],  # row 2
            ["2099-01-15", "1pm-3pm", 2, 2],    # row 3, full
            ["2000-01-01", "9am-10am", 5, 0],   # row 4, past
            ["2099-01-16", "10am-12pm", 3, 1],  # row 5
            ["2099-01-16", "3pm-5pm", 0, 0],    # row 6, no capacity
        ]
    )


@pytest.fixture
def state(store):
    return build_state(store)


@pytest.fixture
def client(state):
    return TestClient(create_app(state))


@pytest.fixture
def booking_body():
    return {
        "name": "Ada Lovelace",
        "phone": PHONE,
        "email": "Ada@Example.com",
        "category": "adult",
        "notes": "first visit",
        "slotIds": [5],
    }

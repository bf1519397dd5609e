"""Row mapping, input validation and the Sheets gateway wire format."""
import asyncio
import json

import httpx
import pytest
from pydantic import ValidationError

from slotbook.core.config import Settings, settings
from slotbook.core.errors import InvalidRequest, StoreError
from slotbook.models.signup import Signup
from slotbook.models.slot import Slot
from slotbook.services.availability_service import parse_slot_date
from slotbook.services.sheets_client import AppendRows, SheetsClient, UpdateCell
from slotbook.services.validation import (
    sanitize_input,
    validate_booking_request,
    validate_cancel_request,
)


class StaticCredentials:
    valid = True
    token = "test-token"


def make_client(handler, **kwargs):
    return SheetsClient(
        spreadsheet_id="sheet-1",
        credentials=StaticCredentials(),
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def test_slot_from_short_or_junk_row():
    slot = Slot.from_row(7, ["2099-01-15", "10am-12pm", "n/a"])
    assert slot.capacity == 0
    assert slot.taken == 0
    assert slot.available == 0

    slot = Slot.from_row(8, ["2099-01-15", "10am", "2", "5"])
    assert slot.available == 0
    assert slot.is_full


def test_signup_blank_status_counts_as_active():
    signup = Signup.from_row(["t", "d", "l", "n", "", "555", "c", "", "abc"])
    assert signup.status == "ACTIVE"
    assert signup.is_active
    assert signup.slot_row_id is None


def test_parse_slot_date_formats():
    assert parse_slot_date("2099-01-15").isoformat() == "2099-01-15"
    assert parse_slot_date("1/15/2099").isoformat() == "2099-01-15"
    assert parse_slot_date("January 15, 2099").isoformat() == "2099-01-15"
    assert parse_slot_date("not a date") is None


def test_sanitize_input():
    assert sanitize_input("  <b>Ada</b>  ", 100) == "bAda/b"
    assert sanitize_input(None, 10) == ""
    assert sanitize_input("abcdef", 3) == "abc"


def test_validate_booking_request_sanitizes():
    request = validate_booking_request({
        "name": " Ada ",
        "phone": "(555) 123-4567",
        "email": "ADA@EXAMPLE.COM",
        "category": "adult",
        "slotIds": [2, 5],
    })
    assert request.name == "Ada"
    assert request.email == "ada@example.com"
    assert request.notes == ""
    assert request.slot_ids == [2, 5]


def test_validate_booking_request_email_optional_but_checked():
    body = {"name": "Ada", "phone": "5551234567", "category": "adult", "slotIds": [2]}
    validate_booking_request(body)

    body["email"] = "not-an-email"
    with pytest.raises(InvalidRequest) as exc:
        validate_booking_request(body)
    assert exc.value.message == "Invalid email address."


def test_validate_booking_request_long_notes():
    body = {
        "name": "Ada", "phone": "5551234567", "category": "adult",
        "notes": "x" * 501, "slotIds": [2],
    }
    with pytest.raises(InvalidRequest) as exc:
        validate_booking_request(body)
    assert "Notes must be less than 500" in exc.value.message


def test_validate_cancel_request_rejects_header_row():
    with pytest.raises(InvalidRequest):
        validate_cancel_request({"signupRowId": 1, "slotRowId": 5, "phone": "5551234567"})


def test_get_values():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        return httpx.Response(200, json={"range": "Slots!A2:E", "values": [["a", "b"]]})

    rows = asyncio.run(make_client(handler).get_values("Slots!A2:E"))

    assert rows == [["a", "b"]]
    assert seen["url"].endswith("/sheet-1/values/Slots!A2:E")
    assert seen["auth"] == "Bearer test-token"


def test_get_values_empty_range():
    def handler(request):
        return httpx.Response(200, json={"range": "Signups!A2:J"})

    assert asyncio.run(make_client(handler).get_values("Signups!A2:J")) == []


def test_batch_get_is_index_aligned():
    def handler(request):
        assert request.url.params.get_list("ranges") == ["Slots!A2:D2", "Slots!A9:D9"]
        return httpx.Response(200, json={"valueRanges": [
            {"range": "Slots!A2:D2", "values": [["2099-01-15", "10am", "3", "1"]]},
            {"range": "Slots!A9:D9"},
        ]})

    result = asyncio.run(make_client(handler).batch_get_values(["Slots!A2:D2", "Slots!A9:D9"]))
    assert result == [[["2099-01-15", "10am", "3", "1"]], []]


def test_batch_update_body():
    captured = {}

    def handler(request):
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"replies": [{}, {}]})

    asyncio.run(make_client(handler).batch_update([
        AppendRows(sheet_id=111, rows=[["ts", "2099-01-15", 5, "ACTIVE"]]),
        UpdateCell(sheet_id=222, row=5, column=3, value=2),
    ]))

    assert captured["url"].endswith("/sheet-1:batchUpdate")
    append, update = captured["body"]["requests"]
    values = append["appendCells"]["rows"][0]["values"]
    assert values[0] == {"userEnteredValue": {"stringValue": "ts"}}
    assert values[2] == {"userEnteredValue": {"numberValue": 5}}
    assert update["updateCells"]["range"] == {
        "sheetId": 222,
        "startRowIndex": 4,
        "endRowIndex": 5,
        "startColumnIndex": 3,
        "endColumnIndex": 4,
    }
    assert update["updateCells"]["rows"] == [{"values": [{"userEnteredValue": {"numberValue": 2}}]}]


def test_batch_update_is_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(503, json={"error": {"message": "backend"}})

    with pytest.raises(StoreError) as exc:
        asyncio.run(make_client(handler, max_retries=3).batch_update(
            [UpdateCell(sheet_id=222, row=5, column=3, value=2)]
        ))
    assert len(calls) == 1
    assert "503" in exc.value.detail
    assert exc.value.message == "Storage service unavailable."


def test_client_errors_are_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(400, json={"error": {"message": "bad range"}})

    with pytest.raises(StoreError):
        asyncio.run(make_client(handler, max_retries=3).get_values("Slots!A2:E"))
    assert len(calls) == 1


def test_reads_retry_server_errors():
    responses = [
        httpx.Response(500),
        httpx.Response(200, json={"values": [["ok"]]}),
    ]

    def handler(request):
        return responses.pop(0)

    rows = asyncio.run(make_client(handler, max_retries=2).get_values("Slots!A2:E"))
    assert rows == [["ok"]]


def test_settings_reject_malformed_service_account():
    for key in ("{}", "not json", "[]", '{"client_email": "a@b.c", "token_uri": "x"}'):
        with pytest.raises(ValidationError):
            Settings(GOOGLE_SERVICE_ACCOUNT=key)


def test_credentials_error_is_store_error(monkeypatch):
    monkeypatch.setattr(settings, "GOOGLE_SERVICE_ACCOUNT", '{"type": "service_account"}')

    def handler(request):
        raise AssertionError("no request without credentials")

    client = SheetsClient(spreadsheet_id="sheet-1", transport=httpx.MockTransport(handler))
    with pytest.raises(StoreError) as exc:
        asyncio.run(client.get_values("Slots!A2:E"))
    assert "service account" in exc.value.detail

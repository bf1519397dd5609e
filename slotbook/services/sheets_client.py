"""Google Sheets store gateway.

The spreadsheet is the database. This module wraps the three primitives the
rest of the service relies on:

- ``get_values``: read one A1 range into rows of cell strings
- ``batch_get_values``: read several ranges, index-aligned with the request
- ``batch_update``: submit append/overwrite directives in one call

Sheets applies all requests of one ``batchUpdate`` together or not at all.
There is no conditional write and no cross-call locking.
"""
import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union
from urllib.parse import quote

import httpx
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

from slotbook.core.config import settings
from slotbook.core.errors import StoreError

logger = logging.getLogger(__name__)

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

Rows = List[List[str]]


@dataclass
class AppendRows:
    """Append whole rows after the last row of a sheet."""

    sheet_id: int
    rows: List[List[Any]]


@dataclass
class UpdateCell:
    """Overwrite a single cell. ``row`` is the 1-based sheet row, ``column`` zero-based."""

    sheet_id: int
    row: int
    column: int
    value: Any


Directive = Union[AppendRows, UpdateCell]


def _cell_value(value: Any) -> Dict[str, Any]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return {"userEnteredValue": {"numberValue": value}}
    return {"userEnteredValue": {"stringValue": "" if value is None else str(value)}}


def directive_to_request(directive: Directive) -> Dict[str, Any]:
    """Translate a directive into a Sheets batchUpdate request object."""
    if isinstance(directive, AppendRows):
        return {
            "appendCells": {
                "sheetId": directive.sheet_id,
                "rows": [
                    {"values": [_cell_value(c) for c in row]} for row in directive.rows
                ],
                "fields": "userEnteredValue",
            }
        }
    if isinstance(directive, UpdateCell):
        return {
            "updateCells": {
                "range": {
                    "sheetId": directive.sheet_id,
                    "startRowIndex": directive.row - 1,
                    "endRowIndex": directive.row,
                    "startColumnIndex": directive.column,
                    "endColumnIndex": directive.column + 1,
                },
                "rows": [{"values": [_cell_value(directive.value)]}],
                "fields": "userEnteredValue",
            }
        }
    raise TypeError(f"Unsupported directive: {directive!r}")


def _retryable(error: httpx.HTTPError) -> bool:
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return status == 429 or status >= 500
    return True


class SheetsClient:
    """Client for the Google Sheets values and batchUpdate endpoints."""

    def __init__(
        self,
        spreadsheet_id: Optional[str] = None,
        credentials: Any = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_retries: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self.spreadsheet_id = spreadsheet_id or settings.SHEET_ID
        self.base_url = f"{settings.SHEETS_API_BASE_URL}/{self.spreadsheet_id}"
        self.max_retries = max_retries or settings.STORE_MAX_RETRIES
        self.timeout = timeout or settings.STORE_TIMEOUT_SECONDS
        self._credentials = credentials
        self._transport = transport

    def _get_credentials(self):
        if self._credentials is None:
            try:
                info = json.loads(settings.GOOGLE_SERVICE_ACCOUNT)
                self._credentials = service_account.Credentials.from_service_account_info(
                    info, scopes=SHEETS_SCOPES
                )
            except (ValueError, GoogleAuthError) as e:
                logger.error(f"Invalid Sheets service account key: {e}")
                raise StoreError(detail=f"invalid service account key: {e}") from e
        return self._credentials

    async def _auth_headers(self) -> Dict[str, str]:
        credentials = self._get_credentials()
        if not credentials.valid:
            try:
                # google-auth refresh is blocking
                await asyncio.to_thread(credentials.refresh, GoogleAuthRequest())
            except GoogleAuthError as e:
                logger.error(f"Failed to refresh Sheets credentials: {e}")
                raise StoreError(detail=f"credential refresh failed: {e}") from e
        return {"Authorization": f"Bearer {credentials.token}"}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self.timeout)

    async def _make_request(
        self,
        method: str,
        url: str,
        params: Optional[Any] = None,
        json_data: Optional[Dict[str, Any]] = None,
        retries: int = 1,
    ) -> Dict[str, Any]:
        """
        Make an authenticated request, retrying transient failures.

        Args:
            method: HTTP method
            url: Request URL
            params: Query parameters
            json_data: JSON body data
            retries: Total attempts; writes must pass 1

        Returns:
            Response JSON data

        Raises:
            StoreError: If the request fails after all attempts
        """
        headers = await self._auth_headers()

        async with self._client() as client:
            for attempt in range(retries):
                try:
                    response = await client.request(
                        method=method,
                        url=url,
                        params=params,
                        json=json_data,
                        headers=headers,
                    )
                    response.raise_for_status()
                    return response.json()

                except httpx.HTTPError as e:
                    logger.warning(
                        f"Sheets {method} failed (attempt {attempt + 1}/{retries}): {e}"
                    )
                    if attempt == retries - 1 or not _retryable(e):
                        raise StoreError(detail=str(e)) from e

                    # Exponential backoff
                    await asyncio.sleep(2 ** attempt)

                except ValueError as e:
                    raise StoreError(detail=f"invalid JSON from Sheets: {e}") from e

        raise StoreError(detail="Max retries exceeded")

    def _values_url(self, a1_range: str) -> str:
        return f"{self.base_url}/values/{quote(a1_range, safe='!:')}"

    async def get_values(self, a1_range: str) -> Rows:
        """Read one range. Returns [] when the range holds no data."""
        data = await self._make_request(
            "GET", self._values_url(a1_range), retries=self.max_retries
        )
        return data.get("values", [])

    async def batch_get_values(self, ranges: Sequence[str]) -> List[Rows]:
        """Read several ranges in one call, result aligned with ``ranges``."""
        if not ranges:
            return []

        data = await self._make_request(
            "GET",
            f"{self.base_url}/values:batchGet",
            params=[("ranges", r) for r in ranges],
            retries=self.max_retries,
        )
        value_ranges = data.get("valueRanges", [])
        if len(value_ranges) != len(ranges):
            raise StoreError(
                detail=f"batchGet returned {len(value_ranges)} ranges for {len(ranges)} requested"
            )
        return [vr.get("values", []) for vr in value_ranges]

    async def batch_update(self, directives: Sequence[Directive]) -> None:
        """Submit every directive in one batchUpdate call. Never retried."""
        if not directives:
            return

        body = {"requests": [directive_to_request(d) for d in directives]}
        await self._make_request(
            "POST", f"{self.base_url}:batchUpdate", json_data=body, retries=1
        )
        logger.info(f"Applied batchUpdate with {len(directives)} directive(s)")

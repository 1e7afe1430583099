"""Google Sheets v4 REST client.

Implements ``ISheetsClient`` over httpx with bearer-token auth, retry
with exponential backoff on 429/5xx/network errors, and a single
:class:`~tradelog.core.errors.SheetsApiError` for every failure.

Usage::

    async with GoogleSheetsClient(access_token=token) as client:
        titles = await client.get_sheet_titles(spreadsheet_id)
"""

from __future__ import annotations

import asyncio
import logging
import math
import random
from typing import Any, Sequence
from urllib.parse import quote

import httpx

from tradelog.core.errors import SheetsApiError
from tradelog.core.interfaces import Rows

logger = logging.getLogger(__name__)

_BASE_URL = "https://sheets.googleapis.com/v4/spreadsheets"
_RETRYABLE = {429, 500, 502, 503, 504}


def _json_cell(value: Any) -> Any:
    # NaN is not valid JSON
    if isinstance(value, float) and math.isnan(value):
        return ""
    return value


def _json_rows(rows: Rows) -> list[list[Any]]:
    return [[_json_cell(v) for v in row] for row in rows]


class GoogleSheetsClient:
    """Async Google Sheets client.

    Parameters
    ----------
    access_token:
        OAuth2 bearer token with the ``spreadsheets`` scope.
    timeout:
        Per-request timeout in seconds.
    max_retries:
        Attempts per request for retryable failures.
    base_backoff:
        First backoff delay in seconds (doubles each attempt).
    value_input_option:
        How written values are interpreted (``USER_ENTERED`` or ``RAW``).
    transport:
        Optional httpx transport (tests inject ``httpx.MockTransport``).
    """

    def __init__(
        self,
        access_token: str,
        *,
        timeout: float = 30.0,
        max_retries: int = 3,
        base_backoff: float = 1.0,
        value_input_option: str = "USER_ENTERED",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token = access_token
        self._timeout = timeout
        self._max_retries = max(1, max_retries)
        self._base_backoff = base_backoff
        self._input_option = value_input_option
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    # -- Lifecycle -----------------------------------------------------------

    async def open(self) -> None:
        """Create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=_BASE_URL,
                timeout=httpx.Timeout(self._timeout),
                headers={"Authorization": f"Bearer {self._token}"},
                transport=self._transport,
            )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> GoogleSheetsClient:
        await self.open()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # -- ISheetsClient -------------------------------------------------------

    async def get_sheet_titles(self, spreadsheet_id: str) -> list[str]:
        data = await self._request(
            "GET", f"/{spreadsheet_id}",
            params={"fields": "sheets.properties.title"},
        )
        return [s["properties"]["title"] for s in data.get("sheets", [])]

    async def create_tab(self, spreadsheet_id: str, name: str) -> None:
        await self._request(
            "POST", f"/{spreadsheet_id}:batchUpdate",
            json={"requests": [{"addSheet": {"properties": {"title": name}}}]},
        )

    async def get_values(self, spreadsheet_id: str, range_: str) -> Rows:
        data = await self._request("GET", f"/{spreadsheet_id}/values/{_q(range_)}")
        return data.get("values", [])

    async def clear_values(self, spreadsheet_id: str, range_: str) -> None:
        await self._request("POST", f"/{spreadsheet_id}/values/{_q(range_)}:clear", json={})

    async def update_values(self, spreadsheet_id: str, range_: str, rows: Rows) -> None:
        await self._request(
            "PUT", f"/{spreadsheet_id}/values/{_q(range_)}",
            params={"valueInputOption": self._input_option},
            json={"values": _json_rows(rows)},
        )

    async def batch_update_values(
        self, spreadsheet_id: str, data: Sequence[tuple[str, Rows]]
    ) -> None:
        await self._request(
            "POST", f"/{spreadsheet_id}/values:batchUpdate",
            json={
                "valueInputOption": self._input_option,
                "data": [{"range": r, "values": _json_rows(rows)} for r, rows in data],
            },
        )

    async def append_values(self, spreadsheet_id: str, range_: str, rows: Rows) -> None:
        await self._request(
            "POST", f"/{spreadsheet_id}/values/{_q(range_)}:append",
            params={
                "valueInputOption": self._input_option,
                "insertDataOption": "INSERT_ROWS",
            },
            json={"values": _json_rows(rows)},
        )

    # -- Internals -----------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
    ) -> dict[str, Any]:
        """Execute a request with retry and backoff.

        Retries on 429, 5xx and network/timeout errors; raises
        immediately on any other non-2xx status.
        """
        if self._client is None:
            await self.open()
        assert self._client is not None

        for attempt in range(1, self._max_retries + 1):
            try:
                resp = await self._client.request(method, path, params=params, json=json)
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                if attempt == self._max_retries:
                    raise SheetsApiError(
                        f"Network error after {attempt} attempt(s): {exc}"
                    ) from exc
                wait = self._backoff_delay(attempt)
                logger.warning(
                    "Sheets network error (attempt %d/%d), retrying in %.1fs: %s",
                    attempt, self._max_retries, wait, exc,
                )
                await asyncio.sleep(wait)
                continue

            if resp.is_success:
                return resp.json() if resp.content else {}

            if resp.status_code in _RETRYABLE and attempt < self._max_retries:
                wait = self._backoff_delay(attempt)
                logger.warning(
                    "Sheets API %d on %s %s (attempt %d/%d), retrying in %.1fs",
                    resp.status_code, method, path, attempt, self._max_retries, wait,
                )
                await asyncio.sleep(wait)
                continue

            raise SheetsApiError(_error_message(resp), status=resp.status_code)

        # Should not reach here, but safety net
        raise SheetsApiError(f"Max retries ({self._max_retries}) exhausted")

    def _backoff_delay(self, attempt: int) -> float:
        """Exponential backoff with jitter."""
        base = self._base_backoff * (2 ** (attempt - 1))
        return base + random.uniform(0, base * 0.5)


def _q(range_: str) -> str:
    return quote(range_, safe="")


def _error_message(resp: httpx.Response) -> str:
    try:
        return resp.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return f"HTTP {resp.status_code}: {resp.text[:200]}"

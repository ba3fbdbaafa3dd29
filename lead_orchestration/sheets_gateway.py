# lead_orchestration/sheets_gateway.py
"""
Sheets Gateway

Writes to the Google Sheets v4 REST API:
- chat_log : one appended row per transcript line
- presales : one appended row per turn once a clean phone is known
- leads    : ONE fixed row, overwritten on every turn with the full answers

Header order of the leads tab (12 columns):
timestamp | convId | parent_name | phone | student_name | grade | subjects |
mode | area | schedule | budget | demo_consent

When the spreadsheet id or the service-account key file is missing the
gateway is disabled and every call is a no-op. When enabled, HTTP errors
are raised; the caller decides that they are not fatal.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union
from urllib.parse import quote

import httpx
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from .config import settings
from .utils import trim_quotes

logger = logging.getLogger(__name__)

SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets"
SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

LEAD_COLUMNS = [
    "parent_name",
    "phone",
    "student_name",
    "grade",
    "subjects",
    "mode",
    "area",
    "schedule",
    "budget",
    "demo_consent",
]
LEADS_HEADER_COUNT = 2 + len(LEAD_COLUMNS)
LEADS_LAST_COLUMN = "L"

Cell = Union[str, int, float]


def now_iso() -> str:
    """UTC timestamp in the millisecond ``...Z`` form the sheets already hold."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def tab_ref_from_name(name: str) -> str:
    """
    A1-notation reference for a tab name.

    Single quotes are doubled; names with whitespace or "!" are quoted.
    """
    safe = trim_quotes(name).replace("'", "''")
    if any(ch.isspace() or ch == "!" for ch in safe):
        return f"'{safe}'"
    return safe


def compose_lead_row(
    conv_id: str,
    answers: Mapping[str, str],
    timestamp: Optional[str] = None,
) -> List[str]:
    """Full fixed-width lead row, empty strings for unknown fields."""
    row = [timestamp or now_iso(), conv_id or ""]
    row.extend(str(answers.get(key) or "") for key in LEAD_COLUMNS)
    return row[:LEADS_HEADER_COUNT]


@dataclass
class TranscriptEntry:
    """One chat_log line."""
    conversation_id: str
    role: str
    message: str
    phone: str = ""
    latency_ms: Optional[int] = None
    page: str = ""
    user_agent: str = ""
    lang: str = ""
    timestamp: Optional[str] = None

    def to_row(self) -> List[Cell]:
        return [
            self.timestamp or now_iso(),
            self.conversation_id or "",
            self.role or "",
            self.message or "",
            self.phone or "",
            "" if self.latency_ms is None else self.latency_ms,
            self.page or "",
            self.user_agent or "",
            self.lang or "",
        ]


class ServiceAccountTokenProvider:
    """
    Bearer tokens for a service-account key file.

    google-auth refreshes synchronously, so the refresh runs in a thread.
    """

    def __init__(self, key_path: str) -> None:
        self.credentials = service_account.Credentials.from_service_account_file(
            key_path, scopes=SHEETS_SCOPES
        )
        self._lock = asyncio.Lock()

    async def token(self) -> str:
        async with self._lock:
            if not self.credentials.valid:
                await asyncio.to_thread(self.credentials.refresh, Request())
            return self.credentials.token


class SheetsGateway:
    def __init__(
        self,
        spreadsheet_id: Optional[str] = None,
        credentials_path: Optional[str] = None,
        token_provider: Optional[Any] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.spreadsheet_id = (
            settings.SHEETS_SPREADSHEET_ID if spreadsheet_id is None else spreadsheet_id
        )
        key_path = (
            settings.GOOGLE_APPLICATION_CREDENTIALS if credentials_path is None else credentials_path
        )
        if token_provider is None and self.spreadsheet_id and key_path and os.path.exists(key_path):
            token_provider = ServiceAccountTokenProvider(key_path)
        self.token_provider = token_provider
        self.transport = transport
        self.timeout = timeout or settings.SHEETS_TIMEOUT_SECONDS

        self.presales_tab = settings.SHEETS_TAB
        self.chat_tab = settings.SHEETS_CHAT_TAB
        self.leads_tab = settings.SHEETS_LEADS_TAB
        self.leads_row = settings.LEADS_FIXED_ROW

    @property
    def enabled(self) -> bool:
        return bool(self.spreadsheet_id) and self.token_provider is not None

    # -------------------------------------------------------------------------
    # Low-level calls
    # -------------------------------------------------------------------------
    def _values_url(self, a1_range: str, suffix: str = "") -> str:
        return f"{SHEETS_API_URL}/{self.spreadsheet_id}/values/{quote(a1_range, safe='')}{suffix}"

    async def _send(
        self,
        method: str,
        url: str,
        params: Dict[str, str],
        values: List[Cell],
    ) -> None:
        token = await self.token_provider.token()
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            resp = await client.request(
                method,
                url,
                params=params,
                json={"values": [values]},
                headers={"Authorization": f"Bearer {token}"},
            )
            resp.raise_for_status()

    async def append_row(self, tab: str, values: List[Cell]) -> None:
        if not self.enabled:
            logger.debug("Sheets disabled; skipped append to %s", tab)
            return
        a1_range = f"{tab_ref_from_name(tab)}!A:Z"
        await self._send(
            "POST",
            self._values_url(a1_range, ":append"),
            {"valueInputOption": "USER_ENTERED", "insertDataOption": "INSERT_ROWS"},
            values,
        )

    async def update_range(self, a1_range: str, values: List[Cell]) -> None:
        if not self.enabled:
            logger.debug("Sheets disabled; skipped update of %s", a1_range)
            return
        await self._send(
            "PUT",
            self._values_url(a1_range),
            {"valueInputOption": "USER_ENTERED"},
            values,
        )

    # -------------------------------------------------------------------------
    # Tabs
    # -------------------------------------------------------------------------
    async def append_chat_log(self, entry: TranscriptEntry) -> None:
        await self.append_row(self.chat_tab, entry.to_row())

    async def append_presales(
        self,
        phone: str = "",
        field: str = "",
        value: str = "",
        extra: str = "",
    ) -> None:
        await self.append_row(self.presales_tab, [now_iso(), phone, field, value, extra])

    async def update_lead_fixed_row(self, conv_id: str, answers: Mapping[str, str]) -> None:
        """Overwrite the single fixed lead row with the full answer set."""
        row = self.leads_row
        a1_range = f"{tab_ref_from_name(self.leads_tab)}!A{row}:{LEADS_LAST_COLUMN}{row}"
        await self.update_range(a1_range, compose_lead_row(conv_id, answers))

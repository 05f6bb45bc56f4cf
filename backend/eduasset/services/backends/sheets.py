"""
EduAsset - Spreadsheet Adapter
Range-addressed access to a Google Sheets workbook (Sheets REST API v4)

The workbook is a set of row-major tables addressed as "<Tab>!<A1 range>".
There is no query language and no multi-range transaction: callers locate
rows by scanning and issue independent writes.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import quote

import httpx
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

from eduasset.config import get_settings
from eduasset.services.backends.errors import BackendError, PermissionDeniedError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

Rows = List[List[Any]]


def normalize_private_key(raw: str) -> str:
    """Undo the quoting and escaped newlines env files put around PEM keys."""
    key = raw.strip()
    if key.startswith('"') and key.endswith('"'):
        key = key[1:-1]
    return key.replace("\\n", "\n")


def load_service_account(
    info: Optional[Dict[str, Any]] = None,
    client_email: Optional[str] = None,
    private_key: Optional[str] = None,
):
    """
    Build service-account credentials for the Sheets scope.

    A full service-account JSON (info) wins over the email/key pair.
    Returns None when neither is usable.
    """
    if info and info.get("client_email") and info.get("private_key"):
        data = dict(info)
        data["private_key"] = normalize_private_key(data["private_key"])
        data.setdefault("token_uri", "https://oauth2.googleapis.com/token")
        return service_account.Credentials.from_service_account_info(data, scopes=SCOPES)

    if client_email and private_key:
        data = {
            "client_email": client_email,
            "private_key": normalize_private_key(private_key),
            "token_uri": "https://oauth2.googleapis.com/token",
        }
        return service_account.Credentials.from_service_account_info(data, scopes=SCOPES)

    logger.warning("Google service account credentials missing")
    return None


class SheetsAdapter:
    """
    Thin async client over the Sheets values API for one spreadsheet.

    - get() returns None for a tab that does not exist and [] for an
      existing but empty range; callers rely on that difference.
    - Values are written with USER_ENTERED so numbers stay numbers.
    """

    def __init__(
        self,
        spreadsheet_id: str,
        credentials,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.spreadsheet_id = spreadsheet_id
        self.base_url = (base_url or settings.sheets_api_url).rstrip("/")
        self.timeout = timeout or settings.http_timeout
        self._credentials = credentials
        self._transport = transport
        self._token_lock = asyncio.Lock()

    # ------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def _headers(self) -> Dict[str, str]:
        async with self._token_lock:
            if not self._credentials.valid:
                await asyncio.to_thread(self._credentials.refresh, GoogleAuthRequest())
        return {"Authorization": f"Bearer {self._credentials.token}"}

    def _spreadsheet_url(self) -> str:
        return f"{self.base_url}/spreadsheets/{self.spreadsheet_id}"

    def _values_url(self, range_name: str, action: str = "") -> str:
        return f"{self._spreadsheet_url()}/values/{quote(range_name, safe='')}{action}"

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            return response.json().get("error", {}).get("message", response.text)
        except ValueError:
            return response.text

    def _raise_for_status(self, response: httpx.Response, context: str) -> None:
        if response.status_code < 400:
            return
        message = self._error_message(response)
        if response.status_code == 403 or "permission" in message.lower():
            logger.warning(f"Permission denied on {context}: {message}")
            raise PermissionDeniedError(message or "PERMISSION_DENIED", response.status_code)
        logger.error(f"Sheets call failed on {context} ({response.status_code}): {message}")
        raise BackendError(message, response.status_code)

    # ------------------------------------------------------------
    # Range operations
    # ------------------------------------------------------------

    async def get(self, range_name: str) -> Optional[Rows]:
        """Read a range. None when the tab does not exist."""
        logger.debug(f"GET {range_name}")
        async with self._client() as client:
            response = await client.get(self._values_url(range_name), headers=await self._headers())

        if response.status_code == 400 and "Unable to parse range" in self._error_message(response):
            return None
        self._raise_for_status(response, range_name)
        return response.json().get("values", [])

    async def update(self, range_name: str, rows: Sequence[Sequence[Any]]) -> None:
        """Overwrite cells starting at the range's top-left corner."""
        logger.debug(f"UPDATE {range_name} ({len(rows)} rows)")
        async with self._client() as client:
            response = await client.put(
                self._values_url(range_name),
                params={"valueInputOption": "USER_ENTERED"},
                json={"range": range_name, "majorDimension": "ROWS", "values": [list(r) for r in rows]},
                headers=await self._headers(),
            )
        self._raise_for_status(response, range_name)

    async def batch_update(self, updates: Sequence[Tuple[str, Sequence[Sequence[Any]]]]) -> None:
        """Write several ranges in one call (still not transactional)."""
        if not updates:
            return
        logger.debug(f"BATCH UPDATE {len(updates)} ranges")
        async with self._client() as client:
            response = await client.post(
                f"{self._spreadsheet_url()}/values:batchUpdate",
                json={
                    "valueInputOption": "USER_ENTERED",
                    "data": [
                        {"range": range_name, "values": [list(r) for r in rows]}
                        for range_name, rows in updates
                    ],
                },
                headers=await self._headers(),
            )
        self._raise_for_status(response, "values:batchUpdate")

    async def append(self, range_name: str, rows: Sequence[Sequence[Any]]) -> None:
        """Append rows after the last populated row of the table."""
        if not rows:
            return
        logger.debug(f"APPEND {range_name} ({len(rows)} rows)")
        async with self._client() as client:
            response = await client.post(
                self._values_url(range_name, ":append"),
                params={"valueInputOption": "USER_ENTERED", "insertDataOption": "INSERT_ROWS"},
                json={"majorDimension": "ROWS", "values": [list(r) for r in rows]},
                headers=await self._headers(),
            )
        self._raise_for_status(response, range_name)

    async def clear(self, range_name: str) -> None:
        """Blank every cell in the range."""
        logger.debug(f"CLEAR {range_name}")
        async with self._client() as client:
            response = await client.post(
                self._values_url(range_name, ":clear"),
                json={},
                headers=await self._headers(),
            )
        self._raise_for_status(response, range_name)

    async def create_table(self, title: str) -> None:
        """Add a tab. An already existing tab is not an error."""
        logger.info(f"Creating sheet tab: {title}")
        async with self._client() as client:
            response = await client.post(
                f"{self._spreadsheet_url()}:batchUpdate",
                json={"requests": [{"addSheet": {"properties": {"title": title}}}]},
                headers=await self._headers(),
            )
        if response.status_code == 400 and "already exists" in self._error_message(response):
            return
        self._raise_for_status(response, f"addSheet {title}")

    async def ensure_table(self, title: str, header: Sequence[str]) -> bool:
        """
        Make sure a tab exists and carries a header row.

        Returns True when the tab had to be created.
        """
        existing = await self.get(f"{title}!A1")
        if existing is None:
            await self.create_table(title)
            await self.update(f"{title}!A1", [list(header)])
            return True
        if len(existing) == 0:
            await self.update(f"{title}!A1", [list(header)])
        return False

"""RemoteStore — table-oriented client for the hosted Supabase backend.

Talks to the PostgREST endpoint (``<url>/rest/v1/<table>``) with the
project's anon key. Every failure, transport or HTTP, surfaces as a
``RemoteStoreError`` carrying the server's message when it sent one.
"""

import logging

import httpx

from smartschool.config import Config

logger = logging.getLogger(__name__)


class RemoteStoreError(Exception):
    """A remote table request failed."""

    def __init__(self, message: str, table: str = "",
                 status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.table = table
        self.status_code = status_code


class RemoteStore:
    """Read-all / upsert / delete operations against named tables."""

    REST_PATH = "/rest/v1/"

    def __init__(self, base_url: str, api_key: str,
                 timeout: float = 30.0,
                 client: httpx.Client | None = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_config(cls) -> "RemoteStore":
        return cls(
            Config.SUPABASE_URL,
            Config.SUPABASE_KEY,
            timeout=Config.REMOTE_TIMEOUT,
        )

    def close(self):
        self._client.close()

    # ── Operations ──────────────────────────────────────────────

    def select(self, table: str, order_by: str | None = None,
               descending: bool = False) -> list[dict]:
        """Read every row of ``table``, optionally ordered by a column."""
        params = {"select": "*"}
        if order_by:
            params["order"] = f"{order_by}.{'desc' if descending else 'asc'}"
        response = self._request("GET", table, params=params)
        data = response.json()
        if not isinstance(data, list):
            raise RemoteStoreError(
                f"Unexpected response for {table}: expected a list of rows",
                table=table, status_code=response.status_code,
            )
        return data

    def upsert(self, table: str, rows: list[dict],
               on_conflict: str = "id"):
        """Insert-or-replace ``rows`` keyed by ``on_conflict``."""
        if not rows:
            return
        self._request(
            "POST", table,
            params={"on_conflict": on_conflict},
            json=rows,
            prefer="resolution=merge-duplicates,return=minimal",
        )

    def delete(self, table: str, column: str, value: str):
        """Delete rows where ``column`` equals ``value``."""
        self._request("DELETE", table, params={column: f"eq.{value}"})

    def delete_all_except(self, table: str, column: str, sentinel: str):
        """Delete every row whose ``column`` differs from ``sentinel``."""
        self._request("DELETE", table, params={column: f"neq.{sentinel}"})

    # ── Transport ───────────────────────────────────────────────

    def _headers(self, prefer: str | None = None) -> dict:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _request(self, method: str, table: str, params: dict | None = None,
                 json: list | None = None, prefer: str | None = None):
        url = f"{self.base_url}{self.REST_PATH}{table}"
        try:
            response = self._client.request(
                method, url, params=params, json=json,
                headers=self._headers(prefer),
            )
        except httpx.HTTPError as e:
            raise RemoteStoreError(
                f"Could not reach remote table {table}: {e}", table=table,
            ) from e

        if response.is_error:
            raise RemoteStoreError(
                self._error_message(response),
                table=table, status_code=response.status_code,
            )
        logger.debug("%s %s -> %s", method, table, response.status_code)
        return response

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            return body["message"]
        return f"HTTP {response.status_code} from remote store"

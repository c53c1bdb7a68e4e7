"""Client for the hosted backend.

Tables are reached through the REST endpoint (``/rest/v1/<table>``) and named
procedures through ``/rest/v1/rpc/<name>``. Filters use the backend's operator
syntax, e.g. ``{"status": "eq.pending", "id": "in.(a,b)"}``.
"""
from typing import Any, Dict, List, Optional

import httpx
from fastapi import status

from app.config import SUPABASE_URL, SUPABASE_ANON_KEY, REQUEST_TIMEOUT_SECONDS
from app.utils.exceptions import (
    AuthenticationError,
    BackendError,
    NotFoundError,
    RemoteError,
    ValidationError,
)
from app.logger import get_logger

logger = get_logger(__name__)

REST_PREFIX = "/rest/v1"

# Postgres error codes the backend forwards in its error body
INSUFFICIENT_PRIVILEGE = "42501"
UNIQUE_VIOLATION = "23505"
CHECK_VIOLATION = "23514"


def _error_for_response(response: httpx.Response, path: str) -> BackendError:
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    message = body.get("message") or response.text or f"Backend error calling {path}"
    code = body.get("code")

    if response.status_code == 401:
        return AuthenticationError(message)
    if code == INSUFFICIENT_PRIVILEGE or response.status_code == 403:
        return AuthenticationError(message, status_code=status.HTTP_403_FORBIDDEN)
    if response.status_code in (404, 406):
        return NotFoundError(message)
    if code in (UNIQUE_VIOLATION, CHECK_VIOLATION) or response.status_code == 409:
        return ValidationError(message, status_code=status.HTTP_409_CONFLICT)
    if response.status_code in (400, 422):
        return ValidationError(message, status_code=response.status_code)
    return RemoteError(message)


def _total_from_content_range(value: Optional[str]) -> int:
    # "0-24/3573" or "*/3573"
    if not value or "/" not in value:
        return 0
    total = value.rsplit("/", 1)[1]
    return int(total) if total.isdigit() else 0


class SupabaseClient:
    def __init__(
        self,
        base_url: str = SUPABASE_URL,
        api_key: str = SUPABASE_ANON_KEY,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._http = httpx.Client(
            base_url=base_url,
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        try:
            response = self._http.request(method, path, params=params, json=json, headers=headers)
        except httpx.TimeoutException:
            logger.error(f"Timeout calling backend: {method} {path}")
            raise RemoteError(f"Timeout calling backend: {path}", status_code=status.HTTP_504_GATEWAY_TIMEOUT)
        except httpx.HTTPError as e:
            logger.error(f"Transport error calling backend: {method} {path}: {str(e)}")
            raise RemoteError(f"Error calling backend: {path}")

        if response.status_code >= 400:
            error = _error_for_response(response, path)
            logger.error(f"Backend returned {response.status_code} for {method} {path}: {error.message}")
            raise error
        return response

    @staticmethod
    def _query_params(
        columns: Optional[str] = None,
        filters: Optional[Dict[str, str]] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = dict(filters or {})
        if columns:
            params["select"] = columns
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = limit
        if offset is not None:
            params["offset"] = offset
        return params

    # TABLES

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Dict[str, str]] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[dict]:
        params = self._query_params(columns, filters, order, limit, offset)
        response = self._request("GET", f"{REST_PREFIX}/{table}", params=params)
        return response.json()

    def select_one(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Dict[str, str]] = None,
    ) -> Optional[dict]:
        """Return the first matching row, or None when nothing matches."""
        rows = self.select(table, columns=columns, filters=filters, limit=1)
        return rows[0] if rows else None

    def insert(self, table: str, data: dict) -> dict:
        response = self._request(
            "POST",
            f"{REST_PREFIX}/{table}",
            params={"select": "*"},
            json=data,
            headers={"Prefer": "return=representation"},
        )
        rows = response.json()
        if not rows:
            raise RemoteError(f"Insert into {table} returned no row")
        return rows[0]

    def update(self, table: str, data: dict, filters: Dict[str, str]) -> List[dict]:
        response = self._request(
            "PATCH",
            f"{REST_PREFIX}/{table}",
            params={**filters, "select": "*"},
            json=data,
            headers={"Prefer": "return=representation"},
        )
        return response.json()

    def delete(self, table: str, filters: Dict[str, str]) -> List[dict]:
        response = self._request(
            "DELETE",
            f"{REST_PREFIX}/{table}",
            params={**filters, "select": "*"},
            headers={"Prefer": "return=representation"},
        )
        return response.json()

    def count(self, table: str, filters: Optional[Dict[str, str]] = None) -> int:
        response = self._request(
            "HEAD",
            f"{REST_PREFIX}/{table}",
            params={**(filters or {}), "select": "id"},
            headers={"Prefer": "count=exact", "Range": "0-0"},
        )
        return _total_from_content_range(response.headers.get("Content-Range"))

    # REMOTE PROCEDURES

    def rpc(self, name: str, params: Optional[dict] = None) -> Any:
        response = self._request("POST", f"{REST_PREFIX}/rpc/{name}", json=params or {})
        if not response.content:
            return None
        return response.json()

    def set_user_context(self, user_id: str) -> None:
        """Tell the row-level policies who is calling."""
        self.rpc("set_user_context", {"user_id": str(user_id)})


_client: Optional[SupabaseClient] = None


def get_client() -> SupabaseClient:
    global _client
    if _client is None:
        _client = SupabaseClient()
    return _client


def close_client() -> None:
    global _client
    if _client is not None:
        _client.close()
        _client = None


def get_db():
    yield get_client()

from __future__ import annotations

import logging
from typing import Any

import requests

from app.core.errors import NotFoundError, RemoteCallError
from app.services.store.base import DataStore, Query, QueryResult


logger = logging.getLogger(__name__)


def _parse_content_range(raw: str | None) -> int | None:
    # "0-9/57", "*/0"
    value = (raw or "").strip()
    if "/" not in value:
        return None
    total = value.rsplit("/", 1)[1].strip()
    if not total or total == "*":
        return None
    try:
        return int(total)
    except ValueError:
        return None


def build_select_params(query: Query) -> list[tuple[str, str]]:
    select = "*"
    if query.joins_profiles:
        columns = query.profile_columns or ("email",)
        select = f"*,profiles!inner({','.join(columns)})"
    params: list[tuple[str, str]] = [("select", select)]
    for f in query.filters:
        params.append((f.column, f"{f.op}.{f.value}"))
    if query.order_by:
        params.append(("order", f"{query.order_by}.{'desc' if query.descending else 'asc'}"))
    if query.offset is not None:
        params.append(("offset", str(query.offset)))
    if query.limit is not None:
        params.append(("limit", str(query.limit)))
    return params


class SupabaseStore(DataStore):
    """PostgREST client for the hosted project.

    Calls carry the caller's access token so the project's row-level
    security policies decide what each user may read and write.
    """

    name = "supabase"

    def __init__(
        self,
        *,
        supabase_url: str,
        api_key: str,
        access_token: str | None = None,
        timeout_s: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self._base = f"{(supabase_url or '').rstrip('/')}/rest/v1"
        self._api_key = (api_key or "").strip()
        self._bearer = (access_token or self._api_key).strip()
        self._timeout_s = timeout_s
        self._owns_session = session is None
        self._session = session or requests.Session()

    def close(self) -> None:
        # A session handed in by the caller stays open.
        if self._owns_session:
            self._session.close()

    def _headers(self, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "apikey": self._api_key,
            "authorization": f"Bearer {self._bearer}",
            "accept": "application/json",
        }
        if prefer:
            headers["prefer"] = prefer
        return headers

    def _request(
        self,
        method: str,
        table: str,
        *,
        params: list[tuple[str, str]] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> requests.Response:
        url = f"{self._base}/{table}"
        try:
            resp = self._session.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(prefer),
                timeout=self._timeout_s,
            )
        except requests.RequestException as exc:
            logger.exception("supabase.request.error method=%s table=%s", method, table)
            raise RemoteCallError(f"{method} {table} failed") from exc
        status = int(resp.status_code)
        if status >= 400:
            detail = ""
            try:
                body = resp.json()
                if isinstance(body, dict):
                    detail = str(body.get("message") or body.get("hint") or "")
            except ValueError:
                detail = (resp.text or "")[:200]
            logger.error("supabase.request.status method=%s table=%s status=%s detail=%s", method, table, status, detail)
            raise RemoteCallError(f"{method} {table} returned {status}", status_code=status)
        return resp

    def _rows(self, resp: requests.Response) -> list[dict[str, Any]]:
        try:
            rows = resp.json()
        except ValueError as exc:
            raise RemoteCallError("Invalid JSON from data store") from exc
        if not isinstance(rows, list):
            raise RemoteCallError("Unexpected response shape from data store")
        return [r for r in rows if isinstance(r, dict)]

    def select(self, query: Query) -> QueryResult:
        resp = self._request(
            "GET",
            query.table,
            params=build_select_params(query),
            prefer=("count=exact" if query.count else None),
        )
        rows = self._rows(resp)
        total = _parse_content_range(resp.headers.get("content-range")) if query.count else None
        if query.count and total is None:
            total = len(rows)
        return QueryResult(rows=rows, total=total)

    def insert(self, table: str, values: dict[str, Any]) -> dict[str, Any]:
        resp = self._request("POST", table, json=values, prefer="return=representation")
        rows = self._rows(resp)
        if not rows:
            raise RemoteCallError(f"Insert into {table} returned no row")
        return rows[0]

    def update(self, table: str, row_id: str, values: dict[str, Any]) -> dict[str, Any]:
        resp = self._request(
            "PATCH",
            table,
            params=[("id", f"eq.{row_id}")],
            json=values,
            prefer="return=representation",
        )
        rows = self._rows(resp)
        if not rows:
            raise NotFoundError(f"{table} row {row_id} not found")
        return rows[0]

    def delete(self, table: str, row_id: str) -> None:
        resp = self._request(
            "DELETE",
            table,
            params=[("id", f"eq.{row_id}")],
            prefer="return=representation",
        )
        if not self._rows(resp):
            raise NotFoundError(f"{table} row {row_id} not found")

from __future__ import annotations

from typing import Any, Optional, Tuple

import httpx

from app.core.settings import settings


class SupaCacheBackend:
    """
    Cache backing table on Supabase REST (PostgREST):
      - read one row by key
      - upsert by key (merge-duplicates)

    Table shape: key text primary key, value jsonb, expires_at timestamptz.
    Uses service role key (bypasses RLS).
    """

    name = "supabase"

    def __init__(self, *, transport: httpx.BaseTransport | None = None) -> None:
        if not settings.supa_url or not settings.supa_service_role_key:
            raise RuntimeError("Supabase not configured (SUPA_URL / SUPA_SERVICE_ROLE_KEY)")
        self.base = settings.supa_url.rstrip("/")
        self.key = settings.supa_service_role_key
        self.table = settings.supa_cache_table
        self.timeout = float(settings.supa_timeout_s)
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Content-Type": "application/json",
        }

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout, transport=self._transport)

    def read(self, key: str) -> Optional[Tuple[Any, str]]:
        url = f"{self.base}/rest/v1/{self.table}"
        params = [
            ("select", "value,expires_at"),
            ("key", f"eq.{key}"),
            ("limit", "1"),
        ]
        with self._client() as client:
            resp = client.get(url, headers=self._headers(), params=params)
            resp.raise_for_status()
            rows = resp.json()

        if not rows:
            return None
        row = rows[0]
        return row.get("value"), str(row.get("expires_at") or "")

    def upsert(self, key: str, value: Any, expires_at: str) -> None:
        url = f"{self.base}/rest/v1/{self.table}?on_conflict=key"
        headers = self._headers()
        headers["Prefer"] = "resolution=merge-duplicates,return=minimal"

        row = {"key": key, "value": value, "expires_at": expires_at}
        with self._client() as client:
            try:
                resp = client.post(url, headers=headers, json=[row])
                resp.raise_for_status()
            except httpx.HTTPStatusError as e:
                body = (e.response.text or "")[:800]
                raise RuntimeError(
                    f"supa_cache_upsert_failed status={e.response.status_code} key={key!r} body={body}"
                ) from e

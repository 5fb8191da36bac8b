# -*- coding: utf-8 -*-
"""PostgREST (Supabase REST) catalog backend over aiohttp.

Notes
- Filters render to PostgREST query params: `col=eq.v`, `col=in.(a,b)`,
  `col=ilike.<pattern>`, `col=cs.<json>`; repeated params are AND-ed.
- HTTP 429 is a throttle signal: retried with exponential backoff
  (base 2s, cap 10s, `max_retries` times).
- Network errors, timeouts and 5xx raise `TransientStoreError` at once; the
  gateway decides about fallbacks.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from tataru.errors import PredicateUnsupported, StoreError, TransientStoreError
from tataru.store.base import CatalogBackend, Filter, Query

__all__ = ["PostgrestBackend", "render_params"]

logger = logging.getLogger(__name__)

RATE_LIMIT_BASE_DELAY = 2.0
RATE_LIMIT_MAX_DELAY = 10.0


def _render_filter(flt: Filter) -> Tuple[str, str]:
    if flt.op == "eq":
        return flt.column, f"eq.{flt.value}"
    if flt.op == "in":
        return flt.column, "in.(" + ",".join(str(v) for v in flt.value) + ")"
    if flt.op == "ilike":
        return flt.column, f"ilike.{flt.value}"
    if flt.op == "contains":
        return flt.column, "cs." + json.dumps(flt.value, separators=(",", ":"), ensure_ascii=False)
    raise PredicateUnsupported(f"unknown operator: {flt.op}")


def render_params(query: Query) -> List[Tuple[str, str]]:
    """Render a Query into an ordered PostgREST param list."""
    params: List[Tuple[str, str]] = [("select", query.columns or "*")]
    for flt in query.filters:
        params.append(_render_filter(flt))
    if query.order:
        params.append(("order", f"{query.order}.asc"))
    if query.offset:
        params.append(("offset", str(int(query.offset))))
    if query.limit is not None:
        params.append(("limit", str(int(query.limit))))
    return params


def retry_delay(attempt: int) -> float:
    return min(RATE_LIMIT_BASE_DELAY * (2 ** attempt), RATE_LIMIT_MAX_DELAY)


class PostgrestBackend(CatalogBackend):
    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        *,
        timeout: float = 20.0,
        max_retries: int = 3,
        min_request_interval: float = 0.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = str(base_url or "").rstrip("/")
        self.api_key = str(api_key or "")
        self.timeout = float(timeout)
        self.max_retries = max(0, int(max_retries))
        self.min_request_interval = max(0.0, float(min_request_interval))
        self._session = session
        self._own_session = session is None
        self._throttle: Optional[asyncio.Lock] = None
        self._last_request = 0.0

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers=self._headers(),
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
            self._own_session = True
        return self._session

    async def _wait_turn(self) -> None:
        if self.min_request_interval <= 0:
            return
        if self._throttle is None:
            self._throttle = asyncio.Lock()
        async with self._throttle:
            loop = asyncio.get_running_loop()
            wait = self._last_request + self.min_request_interval - loop.time()
            if wait > 0:
                await asyncio.sleep(wait)
            self._last_request = loop.time()

    async def select(self, query: Query) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/rest/v1/{query.table}"
        params = render_params(query)
        uses_contains = any(f.op == "contains" for f in query.filters)

        attempt = 0
        while True:
            await self._wait_turn()
            try:
                async with self._get_session().get(url, params=params) as resp:
                    status = resp.status
                    text = await resp.text()
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                raise TransientStoreError(f"{query.table}: {type(e).__name__}: {e}") from e

            if status == 429 and attempt < self.max_retries:
                delay = retry_delay(attempt)
                logger.warning("%s rate limited, retry %d in %.1fs", query.table, attempt + 1, delay)
                attempt += 1
                await asyncio.sleep(delay)
                continue
            if status == 429 or status >= 500:
                raise TransientStoreError(f"{query.table}: HTTP {status}", status=status)
            if status >= 400:
                if uses_contains and status == 400:
                    raise PredicateUnsupported(f"{query.table}: containment filter rejected: {text[:200]}", status=status)
                raise StoreError(f"{query.table}: HTTP {status}: {text[:200]}", status=status)
            break

        try:
            data = json.loads(text) if text else []
        except ValueError as e:
            raise StoreError(f"{query.table}: invalid JSON payload") from e
        if not isinstance(data, list):
            raise StoreError(f"{query.table}: unexpected payload type {type(data).__name__}")
        return [r for r in data if isinstance(r, dict)]

    async def close(self) -> None:
        if self._session is not None and self._own_session and not self._session.closed:
            await self._session.close()
        self._session = None

# -*- coding: utf-8 -*-
"""Cache-coalescing gateway over a `CatalogBackend`.

Responsibilities
- Targeted reads: point lookup, AND-ed substring search, batched id-set fetch,
  structural predicate query.
- `full_scan()` is the discouraged path: only fuzzy matching and error
  recovery use it.
- Process-lifetime cache keyed by table + query signature (or sorted id set).
  No TTL; `clear()` is the only invalidation.
- In-flight registry: concurrent calls with the same key share one fetch.

Every public operation takes a `CancelToken`, checked right before and right
after each remote call, and returns a `Result`. Only OK / NOT_FOUND results
are cached.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .errors import Cancelled, StoreError
from .fuzzy import clean_name, like_pattern, matches_all, split_words
from .models import row_id
from .result import CancelToken, Result, ensure_token
from .store.base import CatalogBackend, Filter, Query

logger = logging.getLogger(__name__)

Fetch = Callable[[CancelToken], Awaitable[Result]]


def _chunks(seq: Sequence[Any], size: int) -> Iterable[Sequence[Any]]:
    for i in range(0, len(seq), size):
        yield seq[i : i + size]


def _normalize_ids(ids: Iterable[Any]) -> Tuple[int, ...]:
    out = set()
    for v in ids or []:
        try:
            iv = int(v)
        except (TypeError, ValueError):
            continue
        if iv > 0:
            out.add(iv)
    return tuple(sorted(out))


class Gateway:
    def __init__(self, backend: CatalogBackend, *, page_size: int = 1000, max_in_list: int = 1000):
        self.backend = backend
        self.page_size = max(1, int(page_size))
        self.max_in_list = max(1, int(max_in_list))
        self._cache: Dict[Tuple[Any, ...], Result] = {}
        self._inflight: Dict[Tuple[Any, ...], "asyncio.Task[Result]"] = {}
        self._generation = 0
        self.stats: Dict[str, int] = {"hits": 0, "coalesced": 0, "fetches": 0}

    def clear(self) -> None:
        """Drop every cached result (global reset).

        Fetches still in flight finish for their callers but are not cached.
        """
        self._generation += 1
        self._cache.clear()
        self._inflight.clear()
        for k in self.stats:
            self.stats[k] = 0

    def cached_keys(self) -> List[Tuple[Any, ...]]:
        return list(self._cache.keys())

    # ----------------- coordination -----------------

    async def _remote(self, query: Query, cancel: CancelToken) -> List[Dict[str, Any]]:
        cancel.raise_if_cancelled()
        rows = await self.backend.select(query)
        cancel.raise_if_cancelled()
        return rows

    async def _paged(self, query: Query, cancel: CancelToken) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = []
        offset = 0
        while True:
            page = await self._remote(query.page(offset, self.page_size), cancel)
            out.extend(page)
            if len(page) < self.page_size:
                return out
            offset += self.page_size

    async def _run(self, key: Tuple[Any, ...], fetch: Fetch, cancel: CancelToken, generation: int) -> Result:
        me = asyncio.current_task()
        try:
            res = await fetch(cancel)
        except Cancelled:
            res = Result.cancelled()
        except StoreError as e:
            logger.warning("store request failed for %s: %s", key[:2], e)
            res = Result.store_error(e)
        finally:
            if self._inflight.get(key) is me:
                del self._inflight[key]
        if res.cacheable and generation == self._generation:
            self._cache[key] = res
        return res

    async def _coalesce(self, key: Tuple[Any, ...], fetch: Fetch, cancel: Optional[CancelToken]) -> Result:
        token = ensure_token(cancel)
        while True:
            if token.cancelled:
                return Result.cancelled()
            cached = self._cache.get(key)
            if cached is not None:
                self.stats["hits"] += 1
                logger.debug("cache hit %s", key[:2])
                return cached

            task = self._inflight.get(key)
            if task is None:
                self.stats["fetches"] += 1
                task = asyncio.ensure_future(self._run(key, fetch, token, self._generation))
                self._inflight[key] = task
            else:
                self.stats["coalesced"] += 1
                logger.debug("joining in-flight request %s", key[:2])

            res = await asyncio.shield(task)
            if token.cancelled:
                return Result.cancelled()
            if res.is_cancelled:
                # cancelled by the token of the caller that started the fetch
                continue
            return res

    # ----------------- operations -----------------

    async def get_by_id(self, table: str, item_id: int, cancel: Optional[CancelToken] = None) -> Result:
        """Point lookup: row or NOT_FOUND."""
        key = ("id", table, int(item_id))

        async def fetch(token: CancelToken) -> Result:
            query = Query(table, (Filter("id", "eq", int(item_id)),), limit=1)
            rows = await self._remote(query, token)
            return Result.ok(rows[0]) if rows else Result.not_found()

        return await self._coalesce(key, fetch, cancel)

    async def search_by_text(
        self,
        table: str,
        column: str,
        text: str,
        fuzzy: bool = False,
        cancel: Optional[CancelToken] = None,
    ) -> Result:
        """id -> cleaned name for rows whose `column` matches every word.

        exact: case-insensitive substring per word
        fuzzy: ordered-subsequence pattern per word (c1 ... c2 ... cn)
        """
        words = split_words(text)
        if not words:
            return Result.ok({})
        key = ("search", table, column, bool(fuzzy), tuple(words))

        async def fetch(token: CancelToken) -> Result:
            filters = tuple(Filter(column, "ilike", like_pattern(w, fuzzy)) for w in words)
            rows = await self._paged(Query(table, filters, columns=f"id,{column}"), token)
            starred = [w for w in words if "*" in w]
            out: Dict[int, str] = {}
            for row in rows:
                iid = row_id(row)
                name = clean_name(row.get(column))
                if iid is None or not name:
                    continue
                # `*` went out as a one-character wildcard
                if starred and not matches_all(starred, str(row.get(column)), fuzzy):
                    continue
                out[iid] = name
            return Result.ok(out)

        return await self._coalesce(key, fetch, cancel)

    async def _fetch_in(self, table: str, column: str, values: Tuple[int, ...], token: CancelToken) -> List[Dict[str, Any]]:
        rows: List[Dict[str, Any]] = []
        for chunk in _chunks(values, self.max_in_list):
            query = Query(table, (Filter(column, "in", tuple(chunk)),))
            rows.extend(await self._paged(query, token))
        return rows

    async def get_by_ids(self, table: str, ids: Iterable[Any], cancel: Optional[CancelToken] = None) -> Result:
        """Batched fetch by primary id: {id: row} (missing ids are absent)."""
        wanted = _normalize_ids(ids)
        if not wanted:
            return Result.ok({})
        key = ("ids", table, wanted)

        async def fetch(token: CancelToken) -> Result:
            out: Dict[int, Dict[str, Any]] = {}
            for row in await self._fetch_in(table, "id", wanted, token):
                iid = row_id(row)
                if iid is not None:
                    out[iid] = row
            return Result.ok(out)

        return await self._coalesce(key, fetch, cancel)

    async def get_by_values(
        self,
        table: str,
        column: str,
        values: Iterable[Any],
        cancel: Optional[CancelToken] = None,
    ) -> Result:
        """Batched "column in (values)" fetch; rows in store order."""
        wanted = _normalize_ids(values)
        if not wanted:
            return Result.ok([])
        key = ("values", table, column, wanted)

        async def fetch(token: CancelToken) -> Result:
            return Result.ok(await self._fetch_in(table, column, wanted, token))

        return await self._coalesce(key, fetch, cancel)

    async def select_where(self, table: str, filters: Sequence[Filter], cancel: Optional[CancelToken] = None) -> Result:
        """Targeted structural predicate query; rows in store order."""
        query = Query(table, tuple(filters))
        key = ("where", query.signature())

        async def fetch(token: CancelToken) -> Result:
            return Result.ok(await self._paged(query, token))

        return await self._coalesce(key, fetch, cancel)

    async def full_scan(self, table: str, cancel: Optional[CancelToken] = None) -> Result:
        """Fetch a whole table page by page.

        Discouraged: only for fuzzy matching and recovery after a failed
        targeted query.
        """
        key = ("scan", table)

        async def fetch(token: CancelToken) -> Result:
            logger.info("full scan of %s", table)
            rows = await self._paged(Query(table), token)
            logger.info("full scan of %s: %d rows", table, len(rows))
            return Result.ok(rows)

        return await self._coalesce(key, fetch, cancel)

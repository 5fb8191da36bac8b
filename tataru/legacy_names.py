# -*- coding: utf-8 -*-
"""Legacy simplified-name dataset (datamining Item.csv over plain HTTP).

Only consulted when the alternate-name table of the store has no hit. The
file is fetched wholesale once per process.

CSV layout
- row 0: column keys  (key, 0, 1, ...)
- row 1: labels       (#, Singular, ..., Name, ...)
- rows 2-3: type / default rows
- data rows; column names are "<key>: <label>", e.g. "key: #", "9: Name"
"""

from __future__ import annotations

import asyncio
import csv
import io
import logging
from typing import Dict, List, Optional

import aiohttp

from .errors import StoreError, TransientStoreError
from .fuzzy import clean_name, contains_all, split_words
from .result import CancelToken, ensure_token

logger = logging.getLogger(__name__)

HEADER_ROWS = 4
ID_COLUMN = "key: #"
NAME_COLUMNS = ("9: Name", "0: Singular")


def parse_item_csv(text: str) -> Dict[int, str]:
    """Parse the datamining CSV into {item id: cleaned name}."""
    rows = list(csv.reader(io.StringIO(text or "")))
    if len(rows) < 2:
        return {}
    keys, labels = rows[0], rows[1]
    columns = [f"{k.strip()}: {lb.strip()}" for k, lb in zip(keys, labels)]

    out: Dict[int, str] = {}
    for raw in rows[HEADER_ROWS:]:
        if not raw or not any(cell.strip() for cell in raw):
            continue
        rec = {col: (raw[i].strip() if i < len(raw) else "") for i, col in enumerate(columns)}
        try:
            iid = int(rec.get(ID_COLUMN) or "")
        except ValueError:
            continue
        if iid <= 0:
            continue
        name = ""
        for col in NAME_COLUMNS:
            name = clean_name(rec.get(col))
            if name:
                break
        if name:
            out[iid] = name
    return out


class LegacyNameSource:
    def __init__(
        self,
        url: str,
        *,
        timeout: float = 60.0,
        session: Optional[aiohttp.ClientSession] = None,
        names: Optional[Dict[int, str]] = None,
    ):
        self.url = str(url or "")
        self.timeout = float(timeout)
        self._session = session
        self._own_session = session is None
        # preloaded names (offline snapshots, tests) skip the download
        self._names: Optional[Dict[int, str]] = dict(names) if names is not None else None
        self._lock: Optional[asyncio.Lock] = None

    def clear(self) -> None:
        if self.url:
            self._names = None

    async def _download(self, token: CancelToken) -> str:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
            self._own_session = True
        token.raise_if_cancelled()
        try:
            async with self._session.get(self.url) as resp:
                if resp.status >= 500 or resp.status == 429:
                    raise TransientStoreError(f"legacy names: HTTP {resp.status}", status=resp.status)
                if resp.status >= 400:
                    raise StoreError(f"legacy names: HTTP {resp.status}", status=resp.status)
                text = await resp.text(encoding="utf-8")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransientStoreError(f"legacy names: {type(e).__name__}: {e}") from e
        token.raise_if_cancelled()
        return text

    async def names(self, cancel: Optional[CancelToken] = None) -> Dict[int, str]:
        """{item id: simplified name}; raises StoreError / Cancelled."""
        token = ensure_token(cancel)
        token.raise_if_cancelled()
        if self._names is not None:
            return self._names
        if self._lock is None:
            # bound to the loop that first awaits it
            self._lock = asyncio.Lock()
        async with self._lock:
            if self._names is None:
                if not self.url:
                    raise StoreError("legacy names: no dataset url configured")
                logger.info("loading legacy name dataset from %s", self.url)
                self._names = parse_item_csv(await self._download(token))
                logger.info("legacy name dataset: %d names", len(self._names))
        token.raise_if_cancelled()
        return self._names

    async def search(self, text: str, cancel: Optional[CancelToken] = None) -> List[int]:
        """Ids whose name contains every query word (exact, never fuzzy)."""
        words = split_words(text)
        if not words:
            return []
        names = await self.names(cancel)
        return sorted(iid for iid, name in names.items() if contains_all(words, name))

    async def close(self) -> None:
        if self._session is not None and self._own_session and not self._session.closed:
            await self._session.close()
        self._session = None

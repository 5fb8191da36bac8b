# -*- coding: utf-8 -*-
"""In-memory catalog backend.

Used by tests and by offline runs against a JSON snapshot
(`{"tables": {"tw_items": [...], ...}, "legacy_names": {...}}`, see
devtools/dump_catalog.py).
Every executed query is appended to `calls` so callers can assert how many
store round trips an operation cost.
"""

from __future__ import annotations

import asyncio
import json
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from tataru.errors import PredicateUnsupported, StoreError
from tataru.store.base import OPERATORS, CatalogBackend, Filter, Query

__all__ = ["MemoryBackend", "like_to_regex"]


def like_to_regex(pattern: str) -> "re.Pattern[str]":
    """Compile a LIKE pattern (backslash escapes) into an anchored regex."""
    out: List[str] = []
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "\\" and i + 1 < len(pattern):
            out.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        if ch == "%":
            out.append(".*")
        elif ch == "_":
            out.append(".")
        else:
            out.append(re.escape(ch))
        i += 1
    return re.compile("^" + "".join(out) + "$", re.IGNORECASE | re.DOTALL)


def _json_contains(haystack: Any, needle: Any) -> bool:
    if isinstance(haystack, str):
        try:
            haystack = json.loads(haystack)
        except ValueError:
            return False
    if isinstance(needle, dict):
        if not isinstance(haystack, dict):
            return False
        return all(k in haystack and _json_contains(haystack[k], v) for k, v in needle.items())
    if isinstance(needle, list):
        if not isinstance(haystack, list):
            return False
        return all(any(_json_contains(h, n) for h in haystack) for n in needle)
    return haystack == needle


def _same(a: Any, b: Any) -> bool:
    if a == b:
        return True
    return a is not None and b is not None and str(a) == str(b)


def _match(row: Dict[str, Any], flt: Filter) -> bool:
    val = row.get(flt.column)
    if flt.op == "eq":
        return _same(val, flt.value)
    if flt.op == "in":
        return any(_same(val, v) for v in flt.value)
    if flt.op == "ilike":
        if val is None:
            return False
        return like_to_regex(str(flt.value)).match(str(val)) is not None
    if flt.op == "contains":
        return _json_contains(val, flt.value)
    raise PredicateUnsupported(f"unknown operator: {flt.op}")


class MemoryBackend(CatalogBackend):
    def __init__(
        self,
        tables: Optional[Dict[str, Iterable[Dict[str, Any]]]] = None,
        *,
        max_in_list: int = 1000,
        capabilities: Iterable[str] = OPERATORS,
        delay: float = 0.0,
    ):
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            str(name): [dict(r) for r in rows] for name, rows in (tables or {}).items()
        }
        self.max_in_list = int(max_in_list)
        self.capabilities = frozenset(capabilities)
        self.delay = float(delay)
        self.calls: List[Query] = []
        # table -> exception raised by every query on that table
        self.failures: Dict[str, StoreError] = {}
        # optional {id: simplified name} carried by offline snapshots
        self.legacy_names: Optional[Dict[int, str]] = None

    @classmethod
    def from_json(cls, path: Path, **kwargs: Any) -> "MemoryBackend":
        doc = json.loads(Path(path).read_text(encoding="utf-8"))
        tables = doc.get("tables") if isinstance(doc, dict) else None
        if not isinstance(tables, dict):
            raise StoreError(f"snapshot has no 'tables' mapping: {path}")
        backend = cls(tables, **kwargs)
        names = doc.get("legacy_names")
        if isinstance(names, dict):
            backend.legacy_names = {int(k): str(v) for k, v in names.items() if str(k).isdigit()}
        return backend

    def calls_for(self, table: str) -> List[Query]:
        return [q for q in self.calls if q.table == table]

    async def select(self, query: Query) -> List[Dict[str, Any]]:
        self.calls.append(query)
        if self.delay:
            await asyncio.sleep(self.delay)
        else:
            await asyncio.sleep(0)

        err = self.failures.get(query.table)
        if err is not None:
            raise err
        for flt in query.filters:
            if flt.op not in self.capabilities:
                raise PredicateUnsupported(f"operator '{flt.op}' not supported", status=400)
            if flt.op == "in" and len(flt.value) > self.max_in_list:
                raise StoreError(f"in-list too long: {len(flt.value)} > {self.max_in_list}", status=400)

        rows = [r for r in self.tables.get(query.table, []) if all(_match(r, f) for f in query.filters)]
        if query.order:
            rows.sort(key=lambda r: (r.get(query.order) is None, r.get(query.order) or 0))
        start = max(0, int(query.offset or 0))
        end = start + int(query.limit) if query.limit is not None else None
        return [dict(r) for r in rows[start:end]]

# -*- coding: utf-8 -*-
"""Query model for the remote catalog store.

A `Query` is a table read with AND-chained filters plus offset/limit
pagination. Operators:

- eq        column = value
- in        column in (values...)        (batch size bounded by the store)
- ilike     case-insensitive LIKE        (% and _ wildcards, backslash escapes)
- contains  JSON containment             (optional capability)
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

__all__ = ["CatalogBackend", "Filter", "Query", "OPERATORS"]

OPERATORS = ("eq", "in", "ilike", "contains")


@dataclass(frozen=True)
class Filter:
    column: str
    op: str
    value: Any

    def signature(self) -> str:
        if self.op == "in":
            val = ",".join(str(v) for v in self.value)
        elif self.op == "contains":
            val = json.dumps(self.value, sort_keys=True, ensure_ascii=False)
        else:
            val = str(self.value)
        return f"{self.column}.{self.op}.{val}"


@dataclass(frozen=True)
class Query:
    table: str
    filters: Tuple[Filter, ...] = ()
    columns: str = "*"
    order: Optional[str] = "id"
    offset: int = 0
    limit: Optional[int] = None

    def page(self, offset: int, limit: int) -> "Query":
        return Query(self.table, self.filters, self.columns, self.order, offset, limit)

    def signature(self) -> str:
        parts = [self.table, self.columns] + [f.signature() for f in self.filters]
        return "|".join(parts)


class CatalogBackend:
    """Async read-only access to the catalog tables.

    Implementations raise `StoreError` subclasses; `PredicateUnsupported`
    when an operator is outside `capabilities`.
    """

    capabilities: FrozenSet[str] = frozenset(OPERATORS)

    async def select(self, query: Query) -> List[Dict[str, Any]]:
        raise NotImplementedError

    async def close(self) -> None:
        return None

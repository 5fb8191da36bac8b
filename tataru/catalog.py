# -*- coding: utf-8 -*-
"""Typed catalog view over the gateway.

All methods return a `Result` whose data is made of `Item` / `Recipe` records;
raw rows never leave this module.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Set

from .config import TableNames
from .gateway import Gateway
from .models import Item, Recipe, item_from_row, recipe_from_row
from .result import CancelToken, Result
from .store.base import Filter

logger = logging.getLogger(__name__)


def canonical_recipes(recipes: Iterable[Recipe]) -> Dict[int, Recipe]:
    """result id -> first-registered recipe.

    First-registered is the first row in store order (rows are requested
    ordered by recipe id). Other job variants of the same result are ignored,
    even when their yields or ingredients differ.
    """
    out: Dict[int, Recipe] = {}
    for rec in recipes:
        out.setdefault(rec.result, rec)
    return out


class Catalog:
    def __init__(self, gateway: Gateway, tables: Optional[TableNames] = None):
        self.gateway = gateway
        self.tables = tables or TableNames()

    # ----------------- items -----------------

    def _items_from_names(self, names: Dict[int, str]) -> Dict[int, Item]:
        return {iid: Item(id=iid, name=name) for iid, name in names.items()}

    async def search_names(self, text: str, fuzzy: bool = False, cancel: Optional[CancelToken] = None) -> Result:
        """Targeted name search on the canonical item table."""
        t = self.tables
        res = await self.gateway.search_by_text(t.items, t.item_name_column, text, fuzzy=fuzzy, cancel=cancel)
        if not res.is_ok:
            return res
        return Result.ok(self._items_from_names(res.data))

    async def search_alt_names(self, text: str, cancel: Optional[CancelToken] = None) -> Result:
        """Exact name search on the alternate-script table: {id: alt name}."""
        t = self.tables
        return await self.gateway.search_by_text(t.alt_items, t.alt_name_column, text, fuzzy=False, cancel=cancel)

    async def all_items(self, cancel: Optional[CancelToken] = None) -> Result:
        """Every canonical item (full scan)."""
        t = self.tables
        res = await self.gateway.full_scan(t.items, cancel=cancel)
        if not res.is_ok:
            return res
        out: Dict[int, Item] = {}
        for row in res.data:
            it = item_from_row(row, t.item_name_column)
            if it is not None:
                out[it.id] = it
        return Result.ok(out)

    async def items_by_ids(self, ids: Iterable[int], cancel: Optional[CancelToken] = None) -> Result:
        t = self.tables
        res = await self.gateway.get_by_ids(t.items, ids, cancel=cancel)
        if not res.is_ok:
            return res
        out: Dict[int, Item] = {}
        for row in res.data.values():
            it = item_from_row(row, t.item_name_column)
            if it is not None:
                out[it.id] = it
        return Result.ok(out)

    async def item(self, item_id: int, cancel: Optional[CancelToken] = None) -> Result:
        t = self.tables
        res = await self.gateway.get_by_id(t.items, item_id, cancel=cancel)
        if not res.is_ok:
            return res
        it = item_from_row(res.data, t.item_name_column)
        return Result.ok(it) if it is not None else Result.not_found()

    async def market_ids(self, ids: Iterable[int], cancel: Optional[CancelToken] = None) -> Result:
        """Subset of `ids` listed in the market-eligibility table."""
        res = await self.gateway.get_by_ids(self.tables.market, ids, cancel=cancel)
        if not res.is_ok:
            return res
        return Result.ok(set(res.data.keys()))

    async def apply_tradeability(self, items: Dict[int, Item], cancel: Optional[CancelToken] = None) -> Result:
        """Set `Item.tradeable` from the market set, else from the per-row flag.

        Returns CANCELLED untouched; a store failure leaves the per-row flags
        in place.
        """
        if not items:
            return Result.ok(items)
        res = await self.market_ids(items.keys(), cancel=cancel)
        if res.is_cancelled:
            return res
        if res.is_ok:
            market: Set[int] = res.data
            for iid, it in items.items():
                it.tradeable = iid in market
        else:
            logger.warning("market set unavailable, using per-row tradeable flags")
        return Result.ok(items)

    async def hydrate(self, items: List[Item], cancel: Optional[CancelToken] = None) -> Result:
        """Fill item level, description and tradeability (batched lookups)."""
        if not items:
            return Result.ok(items)
        t = self.tables
        ids = [it.id for it in items]
        by_id = {it.id: it for it in items}

        res = await self.apply_tradeability(by_id, cancel=cancel)
        if res.is_cancelled:
            return res

        ilvls = await self.gateway.get_by_ids(t.ilvls, ids, cancel=cancel)
        if ilvls.is_cancelled:
            return ilvls
        if ilvls.is_ok:
            for iid, row in ilvls.data.items():
                if iid in by_id and row.get("value") is not None:
                    try:
                        by_id[iid].item_level = int(row["value"])
                    except (TypeError, ValueError):
                        pass

        descs = await self.gateway.get_by_ids(t.descriptions, ids, cancel=cancel)
        if descs.is_cancelled:
            return descs
        if descs.is_ok:
            for iid, row in descs.data.items():
                if iid in by_id:
                    by_id[iid].description = str(row.get(t.description_column) or "").strip().strip("\"'")
        return Result.ok(items)

    # ----------------- recipes -----------------

    async def recipes_for(self, result_ids: Iterable[int], cancel: Optional[CancelToken] = None) -> Result:
        """Canonical recipe per result id (targeted, batched)."""
        res = await self.gateway.get_by_values(self.tables.recipes, "result", result_ids, cancel=cancel)
        if not res.is_ok:
            return res
        return Result.ok(canonical_recipes(self._recipes(res.data)))

    async def all_recipes(self, cancel: Optional[CancelToken] = None) -> Result:
        res = await self.gateway.full_scan(self.tables.recipes, cancel=cancel)
        if not res.is_ok:
            return res
        return Result.ok(self._recipes(res.data))

    async def recipes_using(self, item_id: int, cancel: Optional[CancelToken] = None) -> Result:
        """Recipes whose ingredient list contains `item_id` (JSON containment)."""
        flt = Filter("ingredients", "contains", [{"id": int(item_id)}])
        res = await self.gateway.select_where(self.tables.recipes, [flt], cancel=cancel)
        if not res.is_ok:
            return res
        return Result.ok(self._recipes(res.data))

    @staticmethod
    def _recipes(rows: Iterable[dict]) -> List[Recipe]:
        out: List[Recipe] = []
        for row in rows:
            rec = recipe_from_row(row)
            if rec is not None:
                out.append(rec)
        return out


__all__ = ["Catalog", "canonical_recipes"]

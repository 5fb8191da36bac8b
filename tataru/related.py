# -*- coding: utf-8 -*-
"""Reverse ingredient lookup: which items are crafted from a given item."""

from __future__ import annotations

import logging
from typing import List, Optional

from .catalog import Catalog
from .errors import Cancelled, PredicateUnsupported, StoreError
from .models import Recipe
from .result import CancelToken, ensure_token

logger = logging.getLogger(__name__)


def _uses(recipe: Recipe, item_id: int) -> bool:
    return any(ing.item_id == item_id for ing in recipe.ingredients)


class ReverseIngredientIndex:
    def __init__(self, catalog: Catalog):
        self.catalog = catalog
        # flipped off once the store rejects JSON containment
        self.containment = True

    async def related_items(self, item_id: int, cancel: Optional[CancelToken] = None) -> List[int]:
        """Ascending result ids of every recipe that consumes `item_id`."""
        token = ensure_token(cancel)
        iid = int(item_id)

        recipes: Optional[List[Recipe]] = None
        if self.containment:
            res = await self.catalog.recipes_using(iid, cancel=token)
            if res.is_cancelled:
                raise Cancelled()
            if res.is_ok:
                recipes = res.data
            elif isinstance(res.error, PredicateUnsupported):
                logger.info("store has no containment filter, using recipe scans for related items")
                self.containment = False
            else:
                logger.warning("related lookup for %s failed (%s), falling back to a full recipe scan", iid, res.error)

        if recipes is None:
            scan = await self.catalog.all_recipes(cancel=token)
            if scan.is_cancelled:
                raise Cancelled()
            if not scan.is_ok:
                raise scan.error or StoreError("recipe scan failed")
            recipes = scan.data

        return sorted({rec.result for rec in recipes if _uses(rec, iid)})

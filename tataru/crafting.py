# -*- coding: utf-8 -*-
"""Crafting-tree expansion.

Notes
- One canonical recipe per result id (first registered); other job variants
  are ignored.
- The tree is grown level by level: every recipe lookup of one level is a
  single batched catalog fetch. Each frontier entry carries the ids of its
  own ancestors, so an id may repeat across siblings but never along a path.
- crafts_needed = ceil(quantity / yields); child quantity = unit amount *
  crafts_needed.
- Elemental crystals (ids 2-19) are dropped by default. When kept, they are
  spread over the gaps between the other ingredients.
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Iterator, List, Optional, Sequence, Set, Tuple

from .catalog import Catalog, canonical_recipes
from .errors import Cancelled, StoreError
from .models import Ingredient, MaterialNode, Recipe
from .result import CancelToken, ensure_token

logger = logging.getLogger(__name__)

CRYSTAL_IDS: FrozenSet[int] = frozenset(range(2, 20))
MAX_DEPTH = 10


def is_crystal(item_id: int) -> bool:
    return item_id in CRYSTAL_IDS


def order_ingredients(ingredients: Sequence[Ingredient], exclude_crystals: bool = True) -> List[Ingredient]:
    """Drop crystals, or interleave them between the other ingredients.

    With n non-crystals there are n - 1 gaps; gap i gets floor(c / gaps)
    crystals plus one more for the first c % gaps gaps. Whatever is left
    (always all of them when n == 1) goes after the last non-crystal.
    """
    others = [ing for ing in ingredients if not is_crystal(ing.item_id)]
    if exclude_crystals:
        return others
    crystals = [ing for ing in ingredients if is_crystal(ing.item_id)]
    if not crystals or not others:
        return list(ingredients)

    gaps = len(others) - 1
    per_gap = len(crystals) // gaps if gaps > 0 else 0
    extra = len(crystals) % gaps if gaps > 0 else 0

    out: List[Ingredient] = []
    pending = list(crystals)
    for i, ing in enumerate(others):
        out.append(ing)
        if i < gaps:
            take = per_gap + (1 if i < extra else 0)
            out.extend(pending[:take])
            pending = pending[take:]
    out.extend(pending)
    return out


class RecipeTreeBuilder:
    def __init__(self, catalog: Catalog, max_depth: int = MAX_DEPTH):
        self.catalog = catalog
        self.max_depth = int(max_depth)

    async def _recipes_for(self, ids: Set[int], token: CancelToken) -> Dict[int, Recipe]:
        res = await self.catalog.recipes_for(ids, cancel=token)
        if res.is_cancelled:
            raise Cancelled()
        if res.is_ok:
            return res.data

        logger.warning("recipe lookup failed (%s), falling back to a full recipe scan", res.error)
        scan = await self.catalog.all_recipes(cancel=token)
        if scan.is_cancelled:
            raise Cancelled()
        if not scan.is_ok:
            raise scan.error or StoreError("recipe scan failed")
        by_result = canonical_recipes(scan.data)
        return {iid: by_result[iid] for iid in ids if iid in by_result}

    async def build(
        self,
        item_id: int,
        quantity: int = 1,
        exclude_crystals: bool = True,
        cancel: Optional[CancelToken] = None,
    ) -> MaterialNode:
        """Expand `item_id` x `quantity` into a MaterialNode tree.

        Raises `Cancelled` on cancellation and `StoreError` when both the
        targeted lookup and the full-scan fallback fail.
        """
        token = ensure_token(cancel)
        root = MaterialNode(item_id=int(item_id), quantity=int(quantity))
        frontier: List[Tuple[MaterialNode, FrozenSet[int]]] = [(root, frozenset())]
        depth = 0

        while frontier:
            token.raise_if_cancelled()
            expandable: List[Tuple[MaterialNode, FrozenSet[int]]] = []
            for node, path in frontier:
                if node.item_id in path or depth > self.max_depth:
                    node.is_cyclic = node.item_id in path
                    node.max_depth_reached = depth > self.max_depth
                else:
                    expandable.append((node, path))
            if not expandable:
                break

            recipes = await self._recipes_for({node.item_id for node, _ in expandable}, token)
            logger.debug("tree %s depth %d: %d nodes, %d recipes", root.item_id, depth, len(expandable), len(recipes))

            next_frontier: List[Tuple[MaterialNode, FrozenSet[int]]] = []
            for node, path in expandable:
                recipe = recipes.get(node.item_id)
                if recipe is None:
                    node.is_base_material = True
                    continue
                crafts = -(-node.quantity // recipe.yields)
                node.recipe_id = recipe.id
                node.job = recipe.job
                node.level = recipe.level
                node.yields = recipe.yields
                node.crafts_needed = crafts

                child_path = path | {node.item_id}
                for ing in order_ingredients(recipe.ingredients, exclude_crystals):
                    child = MaterialNode(item_id=ing.item_id, quantity=ing.amount * crafts)
                    node.children.append(child)
                    next_frontier.append((child, child_path))

            frontier = next_frontier
            depth += 1

        return root


# ----------------- tree helpers -----------------


def walk(tree: Optional[MaterialNode]) -> Iterator[MaterialNode]:
    """Pre-order traversal (node, then children in order)."""
    stack = [tree] if tree is not None else []
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def flatten(tree: Optional[MaterialNode]) -> Dict[int, int]:
    """item id -> total quantity over every occurrence in the tree."""
    out: Dict[int, int] = {}
    for node in walk(tree):
        out[node.item_id] = out.get(node.item_id, 0) + node.quantity
    return out


def collect_ids(tree: Optional[MaterialNode]) -> List[int]:
    """Unique item ids, in first-seen order."""
    return list(flatten(tree).keys())


def base_materials(tree: Optional[MaterialNode]) -> Dict[int, int]:
    """item id -> total quantity over leaf nodes only."""
    out: Dict[int, int] = {}
    for node in walk(tree):
        if node.is_leaf:
            out[node.item_id] = out.get(node.item_id, 0) + node.quantity
    return out

# -*- coding: utf-8 -*-
"""Typed records for catalog rows.

Remote rows are loosely typed dicts; everything downstream of the catalog
boundary works on these dataclasses. `item_from_row` / `recipe_from_row`
return None for rows that cannot satisfy the record invariants.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .fuzzy import clean_name


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    s = str(value).strip().lower()
    if s in ("true", "1", "yes"):
        return True
    if s in ("false", "0", "no"):
        return False
    return default


@dataclass
class Item:
    id: int
    name: str
    tradeable: bool = True
    item_level: Optional[int] = None
    description: Optional[str] = None
    can_be_hq: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "isTradable": self.tradeable,
            "itemLevel": self.item_level,
            "description": self.description,
            "canBeHQ": self.can_be_hq,
        }


@dataclass(frozen=True)
class Ingredient:
    item_id: int
    amount: int


@dataclass
class Recipe:
    id: int
    result: int
    job: Optional[int]
    level: Optional[int]
    yields: int
    ingredients: List[Ingredient]
    can_hq: bool = True


@dataclass
class MaterialNode:
    item_id: int
    quantity: int
    recipe_id: Optional[int] = None
    job: Optional[int] = None
    level: Optional[int] = None
    yields: Optional[int] = None
    crafts_needed: Optional[int] = None
    is_base_material: bool = False
    is_cyclic: bool = False
    max_depth_reached: bool = False
    children: List["MaterialNode"] = field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "itemId": self.item_id,
            "amount": self.quantity,
            "children": [c.to_dict() for c in self.children],
            "isBaseMaterial": self.is_base_material,
        }
        if self.recipe_id is not None:
            out.update(
                {
                    "recipeId": self.recipe_id,
                    "job": self.job,
                    "level": self.level,
                    "yields": self.yields,
                    "craftsNeeded": self.crafts_needed,
                }
            )
        if self.is_cyclic:
            out["isCyclic"] = True
        if self.max_depth_reached:
            out["maxDepthReached"] = True
        return out


@dataclass
class SearchOutcome:
    results: List[Item] = field(default_factory=list)
    converted: bool = False
    original_text: str = ""
    converted_text: Optional[str] = None
    searched_simplified: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [it.to_dict() for it in self.results],
            "converted": self.converted,
            "originalText": self.original_text,
            "convertedText": self.converted_text,
            "searchedSimplified": self.searched_simplified,
        }


# ----------------- row normalization -----------------


def row_id(row: Dict[str, Any], key: str = "id") -> Optional[int]:
    iid = _as_int((row or {}).get(key))
    if iid is None or iid <= 0:
        return None
    return iid


def is_untradable_row(row: Dict[str, Any]) -> bool:
    """Per-row fallback flag; rows without the field count as tradeable."""
    for key in ("untradable", "isUntradable", "IsUntradable"):
        if key in (row or {}):
            return _as_bool(row.get(key), False)
    return False


def item_from_row(row: Dict[str, Any], name_column: str = "tw") -> Optional[Item]:
    iid = row_id(row)
    if iid is None:
        return None
    name = clean_name(row.get(name_column))
    if not name:
        return None
    return Item(
        id=iid,
        name=name,
        tradeable=not is_untradable_row(row),
        item_level=_as_int(row.get("ilvl")),
        can_be_hq=_as_bool(row.get("canBeHq", row.get("can_be_hq")), True),
    )


def _parse_ingredients(raw: Any) -> List[Ingredient]:
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return []
    if not isinstance(raw, list):
        return []
    out: List[Ingredient] = []
    for ing in raw:
        if not isinstance(ing, dict):
            continue
        iid = _as_int(ing.get("id"))
        amount = _as_int(ing.get("amount"))
        if iid is None or iid <= 0 or amount is None or amount <= 0:
            continue
        out.append(Ingredient(item_id=iid, amount=amount))
    return out


def recipe_from_row(row: Dict[str, Any]) -> Optional[Recipe]:
    rid = row_id(row)
    result = row_id(row, "result")
    if rid is None or result is None:
        return None
    yields = _as_int(row.get("yields"))
    return Recipe(
        id=rid,
        result=result,
        job=_as_int(row.get("job")),
        level=_as_int(row.get("lvl")),
        yields=yields if yields and yields > 0 else 1,
        ingredients=_parse_ingredients(row.get("ingredients")),
        can_hq=_as_bool(row.get("hq"), True),
    )

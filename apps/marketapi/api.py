# -*- coding: utf-8 -*-
from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from tataru.crafting import base_materials, flatten
from tataru.engine import TataruEngine


def get_engine(request: Request) -> TataruEngine:
    """Resolve the shared engine (gateway cache lives as long as the app)."""
    return request.app.state.engine  # type: ignore[attr-defined]


router = APIRouter(prefix="/api/v1")


class ItemsRequest(BaseModel):
    ids: List[int] = Field(default_factory=list)


def _totals(mapping: Dict[int, int]) -> List[Dict[str, int]]:
    return [{"itemId": iid, "totalAmount": qty} for iid, qty in mapping.items()]


# ----------------- search -----------------


@router.get("/search")
async def search(
    q: str = Query(..., min_length=1, max_length=200),
    fuzzy: bool = Query(False, description="Fuzzy-only match (full scan)"),
    engine: TataruEngine = Depends(get_engine),
):
    outcome = await engine.search_items(q, fuzzy_only=fuzzy)
    return outcome.to_dict()


# ----------------- items -----------------


@router.get("/items/{item_id}")
async def item_detail(item_id: int, engine: TataruEngine = Depends(get_engine)):
    item = await engine.get_item_by_id(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail=f"Item not found: {item_id}")
    return {"item": item.to_dict()}


@router.post("/items/batch")
async def items_batch(req: ItemsRequest, engine: TataruEngine = Depends(get_engine)):
    if len(req.ids) > 5000:
        raise HTTPException(status_code=422, detail="too many ids (max 5000)")
    items = await engine.get_items(req.ids)
    return {"items": [it.to_dict() for it in items], "count": len(items)}


@router.get("/items/{item_id}/tree")
async def item_tree(
    item_id: int,
    quantity: int = Query(1, ge=1, le=9999),
    exclude_crystals: bool = Query(True),
    engine: TataruEngine = Depends(get_engine),
):
    root = await engine.build_crafting_tree(item_id, quantity, exclude_crystals=exclude_crystals)
    out: Dict[str, Any] = {
        "tree": root.to_dict(),
        "totals": _totals(flatten(root)),
        "baseMaterials": _totals(base_materials(root)),
    }
    return out


@router.get("/items/{item_id}/related")
async def item_related(item_id: int, engine: TataruEngine = Depends(get_engine)):
    ids = await engine.find_related_items(item_id)
    return {"itemId": item_id, "related": ids, "count": len(ids)}


# ----------------- maintenance -----------------


@router.post("/cache/clear")
def cache_clear(engine: TataruEngine = Depends(get_engine)):
    engine.clear_cache()
    return {"ok": True}

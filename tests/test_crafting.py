# -*- coding: utf-8 -*-
import asyncio

import pytest

from tataru.crafting import (
    CRYSTAL_IDS,
    base_materials,
    collect_ids,
    flatten,
    is_crystal,
    order_ingredients,
)
from tataru.errors import Cancelled, StoreError, TransientStoreError
from tataru.models import Ingredient, MaterialNode
from tataru.result import CancelToken


def _ing(*ids):
    return [Ingredient(item_id=i, amount=1) for i in ids]


def _ids(ingredients):
    return [i.item_id for i in ingredients]


def test_crystal_ids():
    assert CRYSTAL_IDS == frozenset(range(2, 20))
    assert is_crystal(2) and is_crystal(19)
    assert not is_crystal(1) and not is_crystal(20)


def test_order_ingredients_drops_crystals_by_default():
    assert _ids(order_ingredients(_ing(5058, 2, 5061, 8))) == [5058, 5061]


def test_crystals_interleave_between_non_crystals():
    ordered = _ids(order_ingredients(_ing(2, 5, 5058, 5061, 5062, 5063), exclude_crystals=False))
    assert ordered == [5058, 2, 5061, 5, 5062, 5063]
    assert not is_crystal(ordered[0])


@pytest.mark.parametrize(
    "ids,expected",
    [
        # 2 gaps, 5 crystals: 3 + 2
        ((10, 11, 12, 13, 14, 100, 200, 300), [100, 10, 11, 12, 200, 13, 14, 300]),
        # one non-crystal: nothing to interleave, crystals go after it
        ((2, 3, 100), [100, 2, 3]),
        # only crystals: original order
        ((8, 2, 5), [8, 2, 5]),
        # no crystals: untouched
        ((300, 100, 200), [300, 100, 200]),
    ],
)
def test_crystal_distribution(ids, expected):
    assert _ids(order_ingredients(_ing(*ids), exclude_crystals=False)) == expected


def test_item_without_recipe_is_base_material(engine):
    tree = asyncio.run(engine.build_crafting_tree(5058, 2))
    assert tree.is_base_material
    assert tree.children == []
    assert tree.quantity == 2
    assert tree.recipe_id is None
    d = tree.to_dict()
    assert d["isBaseMaterial"] is True
    assert "recipeId" not in d


def test_first_registered_recipe_is_canonical(engine):
    tree = asyncio.run(engine.build_crafting_tree(5057))
    assert tree.recipe_id == 100
    assert tree.job == 9
    assert _ids_of(tree.children) == [5058]


def _ids_of(nodes):
    return [n.item_id for n in nodes]


def test_quantities_propagate_through_yields(engine):
    tree = asyncio.run(engine.build_crafting_tree(5061, 4))
    assert tree.yields == 3
    assert tree.crafts_needed == 2
    assert [(c.item_id, c.quantity) for c in tree.children] == [(5062, 4)]


def test_flatten_sums_across_branches(engine):
    tree = asyncio.run(engine.build_crafting_tree(5060))
    # 5057 needs 3 x 5058, 5063 needs 5 x 5058
    assert flatten(tree)[5058] == 8
    assert base_materials(tree) == {5058: 8}
    assert collect_ids(tree) == [5060, 5057, 5058, 5063]


def test_crystals_kept_when_requested(engine):
    tree = asyncio.run(engine.build_crafting_tree(5090, exclude_crystals=False))
    ids = _ids_of(tree.children)
    assert ids == [5058, 2, 5061, 5, 5062, 5063]
    assert ids[0] not in CRYSTAL_IDS
    assert all(n.is_base_material for n in tree.children if n.item_id in CRYSTAL_IDS)


def test_crystals_excluded_by_default(engine):
    tree = asyncio.run(engine.build_crafting_tree(5090))
    assert _ids_of(tree.children) == [5058, 5061, 5062, 5063]
    assert not any(n.item_id in CRYSTAL_IDS for n in _walk(tree))


def _walk(node):
    yield node
    for c in node.children:
        yield from _walk(c)


def test_cycle_is_flagged_at_the_revisit(engine):
    tree = asyncio.run(engine.build_crafting_tree(5080))
    assert tree.item_id == 5080 and not tree.is_cyclic
    child = tree.children[0]
    assert child.item_id == 5081 and not child.is_cyclic
    leaf = child.children[0]
    assert leaf.item_id == 5080
    assert leaf.is_cyclic
    assert leaf.children == []
    assert leaf.to_dict()["isCyclic"] is True


def test_siblings_may_repeat_an_id(engine):
    tree = asyncio.run(engine.build_crafting_tree(5060))
    leaves = [n for n in _walk(tree) if n.item_id == 5058]
    assert len(leaves) == 2
    assert not any(n.is_cyclic for n in leaves)


def test_depth_is_bounded():
    from tataru.engine import TataruEngine
    from tataru.store import MemoryBackend

    # chain 1 <- 2 <- 3 <- ... each item crafted from the next one
    rows = [
        {"id": 1000 + i, "result": 100 + i, "yields": 1, "ingredients": [{"id": 101 + i, "amount": 1}]}
        for i in range(20)
    ]
    engine = TataruEngine(MemoryBackend({"tw_recipes": rows}), max_depth=10)
    tree = asyncio.run(engine.build_crafting_tree(100))

    depth = 0
    node = tree
    while node.children:
        node = node.children[0]
        depth += 1
    assert depth == 11
    assert node.max_depth_reached
    assert not node.is_cyclic


def test_one_batched_recipe_query_per_level(engine, backend):
    asyncio.run(engine.build_crafting_tree(5060))
    # levels: {5060}, {5057, 5063}, {5058} (leaves)
    assert len(backend.calls_for("tw_recipes")) == 3


def test_recipe_lookup_falls_back_to_full_scan(engine, backend, monkeypatch):
    orig = backend.select

    async def flaky(query):
        if query.table == "tw_recipes" and query.filters:
            backend.calls.append(query)
            raise TransientStoreError("timeout")
        return await orig(query)

    monkeypatch.setattr(backend, "select", flaky)
    tree = asyncio.run(engine.build_crafting_tree(5060))
    assert flatten(tree)[5058] == 8


def test_recipe_store_down_raises(engine, backend):
    backend.failures["tw_recipes"] = TransientStoreError("down")
    with pytest.raises(StoreError):
        asyncio.run(engine.build_crafting_tree(5060))


def test_cancelled_build_raises(engine):
    token = CancelToken()
    token.cancel()
    with pytest.raises(Cancelled):
        asyncio.run(engine.build_crafting_tree(5060, cancel=token))


@pytest.mark.parametrize("item_id,qty", [(0, 1), (-5, 1), (5057, 0)])
def test_invalid_arguments(engine, item_id, qty):
    with pytest.raises(ValueError):
        asyncio.run(engine.build_crafting_tree(item_id, qty))


def test_tree_helpers_on_handmade_tree():
    tree = MaterialNode(
        item_id=1,
        quantity=1,
        recipe_id=10,
        children=[
            MaterialNode(item_id=2, quantity=3, is_base_material=True),
            MaterialNode(item_id=3, quantity=1, recipe_id=11, children=[MaterialNode(item_id=2, quantity=5, is_base_material=True)]),
        ],
    )
    assert flatten(tree) == {1: 1, 2: 8, 3: 1}
    assert base_materials(tree) == {2: 8}
    assert collect_ids(tree) == [1, 2, 3]
    assert flatten(None) == {}

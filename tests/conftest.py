# -*- coding: utf-8 -*-
"""Shared fixtures: a small Traditional-Chinese catalog on the in-memory store."""

from __future__ import annotations

import copy
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from tataru.engine import TataruEngine  # noqa: E402
from tataru.legacy_names import LegacyNameSource  # noqa: E402
from tataru.store import MemoryBackend  # noqa: E402


def _recipe(rid, result, ingredients, job=9, lvl=50, yields=1):
    return {
        "id": rid,
        "result": result,
        "job": job,
        "lvl": lvl,
        "yields": yields,
        "hq": True,
        "ingredients": [{"id": iid, "amount": amt} for iid, amt in ingredients],
    }


SAMPLE_TABLES = {
    "tw_items": [
        {"id": 2, "tw": "火之碎晶"},
        {"id": 5, "tw": "風之碎晶"},
        {"id": 8, "tw": "火之水晶"},
        {"id": 5057, "tw": "精金錠"},
        {"id": 5058, "tw": "精金礦"},
        {"id": 5059, "tw": "鉍金精準指環"},
        {"id": 5060, "tw": "精金指環"},
        {"id": 5061, "tw": "黑鐵錠"},
        {"id": 5062, "tw": "鐵礦"},
        {"id": 5063, "tw": "\"精金板\""},
        {"id": 5070, "tw": "皇家甲殼蟲"},
        {"id": 5071, "tw": "砂漠蜜糖"},
        {"id": 5080, "tw": "循環零件甲"},
        {"id": 5081, "tw": "循環零件乙"},
        {"id": 5090, "tw": "Mythril Ring"},
        {"id": 5091, "tw": "Darksteel Nugget"},
    ],
    "cn_items": [
        {"id": 5057, "zh": "精金锭"},
        {"id": 5070, "zh": "王家甲虫"},
    ],
    "tw_item_descriptions": [
        {"id": 5057, "tw": "由精金礦精煉而成的金屬錠。"},
    ],
    "market_items": [
        {"id": iid}
        for iid in (2, 5, 8, 5057, 5058, 5059, 5061, 5062, 5063, 5070, 5071, 5080, 5081, 5090, 5091)
    ],
    "ilvls": [
        {"id": 5057, "value": 50},
        {"id": 5060, "value": 55},
    ],
    "tw_recipes": [
        _recipe(100, 5057, [(5058, 3), (2, 1), (8, 1)]),
        _recipe(101, 5060, [(5057, 1), (5063, 1)], job=11),
        _recipe(102, 5063, [(5058, 5), (5, 2)]),
        # second job variant of 5057: never canonical
        _recipe(103, 5057, [(5062, 9)], job=10),
        _recipe(104, 5080, [(5081, 1)]),
        _recipe(105, 5081, [(5080, 1)]),
        _recipe(106, 5090, [(5058, 1), (2, 1), (5061, 1), (5, 1), (5062, 1), (5063, 1)], job=11),
        _recipe(107, 5061, [(5062, 2)], yields=3),
    ],
}

LEGACY_NAMES = {5071: "沙漠蜂蜜", 5057: "精金锭"}


@pytest.fixture
def tables():
    return copy.deepcopy(SAMPLE_TABLES)


@pytest.fixture
def backend(tables):
    return MemoryBackend(tables)


@pytest.fixture
def legacy():
    return LegacyNameSource("", names=LEGACY_NAMES)


@pytest.fixture
def engine(backend, legacy):
    return TataruEngine(backend, legacy=legacy)

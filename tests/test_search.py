# -*- coding: utf-8 -*-
import asyncio

import pytest

from tataru.errors import Cancelled, TransientStoreError
from tataru.result import CancelToken


def _ids(outcome):
    return [it.id for it in outcome.results]


def test_exact_search_keeps_literal_substring_only(engine):
    outcome = asyncio.run(engine.search_items("精金"))
    ids = _ids(outcome)
    assert 5059 not in ids  # 鉍金精準指環
    assert all("精金" in it.name for it in outcome.results)
    assert outcome.converted is False
    assert outcome.searched_simplified is False
    assert outcome.original_text == "精金"


def test_untradeable_items_are_filtered_out(engine):
    # 精金指環 (5060) is missing from the market set
    assert _ids(asyncio.run(engine.search_items("精金"))) == [5057, 5058, 5063]


def test_exact_stage_is_targeted(engine, backend):
    asyncio.run(engine.search_items("精金"))
    for q in backend.calls_for("tw_items"):
        assert q.filters, "exact stage must not scan the item table"
    assert backend.calls_for("market_items")


def test_nothing_found_returns_empty_outcome(engine):
    outcome = asyncio.run(engine.search_items("完全不存在的東西"))
    assert outcome.results == []
    assert outcome.searched_simplified is False
    d = outcome.to_dict()
    assert d["results"] == []
    assert d["searchedSimplified"] is False


def test_nothing_found_for_latin_query(engine):
    outcome = asyncio.run(engine.search_items("zzzz"))
    assert outcome.to_dict()["results"] == []
    assert outcome.converted is False
    assert outcome.searched_simplified is False


def test_empty_input_issues_no_store_call(engine, backend):
    outcome = asyncio.run(engine.search_items("   "))
    assert outcome.results == []
    assert backend.calls == []


def test_single_token_is_never_fuzzy_matched(engine, backend):
    # 精錠 is an ordered subsequence of 精金錠 but the query has no space
    outcome = asyncio.run(engine.search_items("精錠"))
    assert 5057 not in _ids(outcome)


def test_spaced_query_falls_back_to_fuzzy_scan(engine, backend):
    outcome = asyncio.run(engine.search_items("mythr rng"))
    assert _ids(outcome) == [5090]
    scans = [q for q in backend.calls_for("tw_items") if not q.filters]
    assert scans, "fuzzy stage reads the whole table"


def test_script_converted_query(engine):
    outcome = asyncio.run(engine.search_items("精金锭"))
    assert outcome.converted is True
    assert outcome.converted_text == "精金錠"
    assert outcome.converted_text != outcome.original_text
    assert _ids(outcome) == [5057]
    assert outcome.searched_simplified is False


def test_alternate_name_table_lookup(engine):
    outcome = asyncio.run(engine.search_items("王家甲虫"))
    assert _ids(outcome) == [5070]
    assert outcome.searched_simplified is True
    assert outcome.converted is True
    assert outcome.converted_text


def test_legacy_dataset_when_alternate_table_is_empty(engine):
    outcome = asyncio.run(engine.search_items("沙漠蜂蜜"))
    assert _ids(outcome) == [5071]
    assert outcome.searched_simplified is True
    assert outcome.converted is True


def test_fuzzy_only_skips_conversion(engine):
    outcome = asyncio.run(engine.search_items("精金锭", fuzzy_only=True))
    assert outcome.results == []
    assert outcome.converted is False
    assert outcome.converted_text is None

    outcome = asyncio.run(engine.search_items("dark nug", fuzzy_only=True))
    assert _ids(outcome) == [5091]


def test_results_sorted_by_id(engine):
    outcome = asyncio.run(engine.search_items("碎晶"))
    assert _ids(outcome) == [2, 5]


def test_exact_stage_recovers_with_full_scan(engine, backend, monkeypatch):
    orig = backend.select

    async def flaky(query):
        if query.table == "tw_items" and any(f.op == "ilike" for f in query.filters):
            backend.calls.append(query)
            raise TransientStoreError("timeout")
        return await orig(query)

    monkeypatch.setattr(backend, "select", flaky)
    outcome = asyncio.run(engine.search_items("精金"))
    assert _ids(outcome) == [5057, 5058, 5063]


def test_market_failure_uses_per_row_flags(engine, backend):
    backend.failures["market_items"] = TransientStoreError("down")
    outcome = asyncio.run(engine.search_items("精金"))
    # no per-row untradable flags in the sample rows: everything counts as tradeable
    assert _ids(outcome) == [5057, 5058, 5060, 5063]


def test_total_store_outage_gives_empty_result(engine, backend):
    for table in ("tw_items", "cn_items", "market_items"):
        backend.failures[table] = TransientStoreError("down")
    outcome = asyncio.run(engine.search_items("精金"))
    assert outcome.results == []


def test_cancelled_search_raises(engine, backend):
    token = CancelToken()
    token.cancel()
    with pytest.raises(Cancelled):
        asyncio.run(engine.search_items("精金", cancel=token))
    assert backend.calls == []


def test_cancel_mid_cascade_stops_later_stages(engine, backend, monkeypatch):
    token = CancelToken()
    orig = backend.select

    async def cancel_after_first(query):
        rows = await orig(query)
        token.cancel()
        return rows

    monkeypatch.setattr(backend, "select", cancel_after_first)
    with pytest.raises(Cancelled):
        asyncio.run(engine.search_items("王家甲虫", cancel=token))
    assert len(backend.calls) == 1

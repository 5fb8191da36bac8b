# -*- coding: utf-8 -*-
import asyncio

from tataru.store import Filter, PostgrestBackend, Query
from tataru.store.postgrest import render_params, retry_delay


def test_render_params_filters_and_paging():
    q = Query(
        "tw_items",
        (Filter("tw", "ilike", "%精%金%"), Filter("id", "in", (1, 2, 3))),
        columns="id,tw",
    ).page(2000, 1000)
    assert render_params(q) == [
        ("select", "id,tw"),
        ("tw", "ilike.%精%金%"),
        ("id", "in.(1,2,3)"),
        ("order", "id.asc"),
        ("offset", "2000"),
        ("limit", "1000"),
    ]


def test_render_params_point_lookup_and_containment():
    assert render_params(Query("tw_items", (Filter("id", "eq", 5057),), limit=1)) == [
        ("select", "*"),
        ("id", "eq.5057"),
        ("order", "id.asc"),
        ("limit", "1"),
    ]
    params = dict(render_params(Query("tw_recipes", (Filter("ingredients", "contains", [{"id": 5058}]),))))
    assert params["ingredients"] == 'cs.[{"id":5058}]'


def test_retry_delay_is_capped():
    assert retry_delay(0) == 2.0
    assert retry_delay(1) == 4.0
    assert retry_delay(5) == 10.0


def test_auth_headers():
    backend = PostgrestBackend("https://example.supabase.co/", "anon-key")
    assert backend.base_url == "https://example.supabase.co"
    headers = backend._headers()
    assert headers["apikey"] == "anon-key"
    assert headers["Authorization"] == "Bearer anon-key"


def test_throttle_works_on_a_loop_started_after_construction():
    backend = PostgrestBackend("https://example.supabase.co", min_request_interval=0.01)

    async def go():
        await asyncio.gather(backend._wait_turn(), backend._wait_turn(), backend._wait_turn())
        return asyncio.get_running_loop().time()

    now = asyncio.run(go())
    assert 0 < backend._last_request <= now

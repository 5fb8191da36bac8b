# -*- coding: utf-8 -*-
import pytest
from fastapi.testclient import TestClient

from apps.marketapi.app import create_app
from tataru.errors import TransientStoreError


@pytest.fixture
def client(engine):
    return TestClient(create_app(engine))


def test_healthz(client):
    assert client.get("/healthz").json() == {"ok": True}


def test_search(client):
    r = client.get("/api/v1/search", params={"q": "精金锭"})
    assert r.status_code == 200
    body = r.json()
    assert body["converted"] is True
    assert body["convertedText"] == "精金錠"
    assert body["originalText"] == "精金锭"
    assert [it["id"] for it in body["results"]] == [5057]


def test_search_requires_query(client):
    assert client.get("/api/v1/search").status_code == 422


def test_item_detail(client):
    body = client.get("/api/v1/items/5057").json()
    assert body["item"]["name"] == "精金錠"
    assert body["item"]["itemLevel"] == 50


def test_unknown_item_is_404(client):
    assert client.get("/api/v1/items/424242").status_code == 404


def test_non_positive_id_is_422(client):
    assert client.get("/api/v1/items/0").status_code == 422


def test_items_batch(client):
    body = client.post("/api/v1/items/batch", json={"ids": [5063, 5057]}).json()
    assert [it["id"] for it in body["items"]] == [5057, 5063]


def test_tree(client):
    body = client.get("/api/v1/items/5060/tree", params={"quantity": 2}).json()
    tree = body["tree"]
    assert tree["itemId"] == 5060
    assert tree["amount"] == 2
    assert tree["recipeId"] == 101
    totals = {t["itemId"]: t["totalAmount"] for t in body["baseMaterials"]}
    assert totals == {5058: 16}


def test_tree_with_crystals(client):
    body = client.get("/api/v1/items/5090/tree", params={"exclude_crystals": "false"}).json()
    assert [c["itemId"] for c in body["tree"]["children"]] == [5058, 2, 5061, 5, 5062, 5063]


def test_related(client):
    body = client.get("/api/v1/items/5058/related").json()
    assert body["related"] == [5057, 5063, 5090]


def test_store_failure_is_502(client, backend):
    backend.failures["tw_recipes"] = TransientStoreError("down")
    assert client.get("/api/v1/items/5058/related").status_code == 502


def test_cache_clear(client, backend):
    client.get("/api/v1/items/5057")
    n = len(backend.calls)
    assert client.post("/api/v1/cache/clear").json() == {"ok": True}
    client.get("/api/v1/items/5057")
    assert len(backend.calls) == 2 * n

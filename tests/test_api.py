import pytest
from fastapi.testclient import TestClient

from catalog_api.main import create_app

from conftest import make_settings

API = "/api"


def _create(client, **fields):
    res = client.post(f"{API}/products", json=fields)
    assert res.status_code == 201, res.text
    return res.json()["data"]


def test_root_and_health(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert "message" in client.get("/").json()


def test_caneca_azul_scenario(any_client):
    created = _create(any_client, name="Caneca Azul", category="Canecas", price=29.9)
    pid = created["id"]

    listed = any_client.get(f"{API}/products", params={"search": "Caneca"}).json()
    assert listed["message"] == "success"
    assert pid in [p["id"] for p in listed["data"]]

    res = any_client.put(f"{API}/products/{pid}", json={"price": 24.9})
    assert res.status_code == 200
    assert res.json()["changes"] == 1

    got = any_client.get(f"{API}/products/{pid}").json()["data"]
    assert got["price"] == pytest.approx(24.9)
    assert got["name"] == "Caneca Azul"
    assert got["category"] == "Canecas"

    assert any_client.delete(f"{API}/products/{pid}").status_code == 200
    res = any_client.get(f"{API}/products/{pid}")
    assert res.status_code == 404
    assert "error" in res.json()


def test_create_returns_full_record(client):
    data = _create(client, name="Camiseta", description="Algodão", price=49.0)
    assert data == {
        "id": data["id"],
        "name": "Camiseta",
        "description": "Algodão",
        "price": 49.0,
        "category": None,
        "google_drive_link": None,
        "image_url": None,
        "on_sale": False,
        "campaign_id": None,
    }


def test_create_without_name_is_400(client):
    res = client.post(f"{API}/products", json={"price": 10})
    assert res.status_code == 400
    assert res.json() == {"error": "Product name is required"}


def test_negative_price_is_400(client):
    res = client.post(f"{API}/products", json={"name": "Caneca", "price": -3})
    assert res.status_code == 400
    assert "price" in res.json()["error"]


def test_non_integer_id_is_400(client):
    assert client.get(f"{API}/products/abc").status_code == 400


def test_update_and_delete_unknown_product_are_404(client):
    assert client.put(f"{API}/products/41", json={"price": 1}).status_code == 404
    res = client.delete(f"{API}/products/41")
    assert res.status_code == 404
    assert res.json() == {"error": "Product 41 not found"}


def test_delete_twice_is_404(client):
    pid = _create(client, name="Caneca")["id"]
    assert client.delete(f"{API}/products/{pid}").json()["changes"] == 1
    assert client.delete(f"{API}/products/{pid}").status_code == 404


def test_empty_update_leaves_record_unchanged(client):
    before = _create(client, name="Caneca", price=10.0, on_sale=True)
    res = client.put(f"{API}/products/{before['id']}", json={})
    assert res.status_code == 200
    assert client.get(f"{API}/products/{before['id']}").json()["data"] == before


def test_listing_filters(any_client):
    _create(any_client, name="Caneca Azul", category="Canecas", on_sale=True)
    _create(any_client, name="Caneca Branca", category="Canecas")
    _create(any_client, name="Boné", category="Bonés", on_sale=True)

    def names(**params):
        return [p["name"] for p in any_client.get(f"{API}/products", params=params).json()["data"]]

    assert names() == ["Boné", "Caneca Azul", "Caneca Branca"]
    assert names(category="Canecas") == ["Caneca Azul", "Caneca Branca"]
    assert names(on_sale="true") == ["Boné", "Caneca Azul"]
    assert names(search="caneca", on_sale="false") == ["Caneca Branca"]
    assert names(search="inexistente") == []


def test_ai_search_keeps_rank(client, vector_index):
    a = _create(client, name="Avental")["id"]
    b = _create(client, name="Caneca")["id"]
    vector_index.matches = [(a, 0.2), (b, 0.95)]

    res = client.get(f"{API}/products/ai-search", params={"query": "algo para café"})
    assert res.status_code == 200
    body = res.json()
    assert body["message"] == "success"
    assert [p["id"] for p in body["data"]] == [b, a]


def test_ai_search_with_no_neighbours(client, vector_index):
    vector_index.matches = []
    res = client.get(f"{API}/products/ai-search", params={"query": "qualquer coisa"})
    assert res.status_code == 200
    assert res.json()["data"] == []
    assert res.json()["message"]


def test_ai_search_requires_query(client, embedder):
    res = client.get(f"{API}/products/ai-search")
    assert res.status_code == 400
    assert res.json() == {"error": "The 'query' parameter is required."}
    assert embedder.calls == []


def test_ai_search_surfaces_service_errors(client, embedder):
    embedder.error = ConnectionError("inference endpoint unreachable")
    res = client.get(f"{API}/products/ai-search", params={"query": "caneca"})
    assert res.status_code == 500
    assert "inference endpoint unreachable" in res.json()["error"]


def test_ai_search_not_configured(tmp_path):
    app = create_app(make_settings(tmp_path))
    with TestClient(app) as c:
        res = c.get(f"{API}/products/ai-search", params={"query": "caneca"})
    assert res.status_code == 500
    assert "not configured" in res.json()["error"]


def test_campaign_endpoints(client):
    res = client.post(f"{API}/campaigns", json={"title": "Natal", "description": "Dezembro"})
    assert res.status_code == 201
    cid = res.json()["data"]["id"]

    assert client.post(f"{API}/campaigns", json={}).status_code == 400

    p1 = _create(client, name="Toalha", campaign_id=cid)["id"]
    p2 = _create(client, name="Avental", campaign_id=cid)["id"]
    _create(client, name="Caneca")

    assert [c["title"] for c in client.get(f"{API}/campaigns").json()["data"]] == ["Natal"]
    assert client.get(f"{API}/campaigns/{cid}").json()["data"]["description"] == "Dezembro"
    products = client.get(f"{API}/campaigns/{cid}/products").json()["data"]
    assert [p["name"] for p in products] == ["Avental", "Toalha"]

    res = client.put(f"{API}/campaigns/{cid}", json={"title": "Natal 2024"})
    assert res.json()["data"] == {"id": cid, "title": "Natal 2024", "description": "Dezembro", "image_url": None}

    assert client.delete(f"{API}/campaigns/{cid}").status_code == 200
    assert client.get(f"{API}/campaigns/{cid}").status_code == 404
    assert client.get(f"{API}/campaigns/{cid}/products").status_code == 404
    for pid in (p1, p2):
        assert client.get(f"{API}/products/{pid}").json()["data"]["campaign_id"] is None

    assert client.put(f"{API}/campaigns/{cid}", json={"title": "x"}).status_code == 404
    assert client.delete(f"{API}/campaigns/{cid}").status_code == 404


def test_product_with_unknown_campaign_is_400(client):
    res = client.post(f"{API}/products", json={"name": "Caneca", "campaign_id": 77})
    assert res.status_code == 400
    assert res.json() == {"error": "Campaign 77 does not exist"}


def test_unknown_route_and_wrong_method_use_error_envelope(client):
    res = client.get(f"{API}/nope")
    assert res.status_code == 404
    assert res.json() == {"error": "Not Found"}

    res = client.patch(f"{API}/products")
    assert res.status_code == 405
    assert res.json() == {"error": "Method Not Allowed"}

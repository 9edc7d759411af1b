# tests/test_api.py
from math import degrees

from app.utils import now_ms

HOUR = 3600 * 1000
SELLER = {"X-Caller-Id": "seller-1"}
BUYER = {"X-Caller-Id": "buyer-1"}
ADMIN = {"X-Caller-Id": "ops-1", "X-Caller-Groups": "staff, biddu-admin"}


def _payload(**fields):
    now = now_ms()
    data = {
        "name": "Road bike",
        "expected_price": 1000,
        "bid_start_date": now - HOUR,
        "bid_end_date": now + HOUR,
        "location": {"lat": 12.97, "lng": 77.59},
    }
    data.update(fields)
    return data


def _create(client, **fields):
    resp = client.post("/listings", json=_payload(**fields), headers=SELLER)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_create_and_read(client):
    created = _create(client)
    resp = client.get(f"/listings/{created['listing_id']}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["owner_id"] == "seller-1"
    assert body["location"] == {"lat": 12.97, "lng": 77.59}
    assert body["total_bids"] == 0
    assert "bids" not in body


def test_create_requires_caller(client):
    resp = client.post("/listings", json=_payload())
    assert resp.status_code == 401
    assert resp.json()["error"] == "unauthenticated"


def test_create_rejects_bad_input(client):
    assert client.post("/listings", json=_payload(expected_price=-1), headers=SELLER).status_code == 422
    assert client.post("/listings", json=_payload(location={"lat": 91, "lng": 0}), headers=SELLER).status_code == 422
    now = now_ms()
    resp = client.post("/listings", json=_payload(bid_start_date=now, bid_end_date=now - 1), headers=SELLER)
    assert resp.status_code == 400
    assert resp.json()["error"] == "validation_error"


def test_unknown_listing(client):
    resp = client.get("/listings/nope")
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


def test_bid_flow_and_disclosure(client):
    lid = _create(client)["listing_id"]

    resp = client.post(f"/listings/{lid}/bids", json={"bid_price": 900}, headers=BUYER)
    assert resp.status_code == 201
    assert resp.json()["user_id"] == "buyer-1"

    resp = client.post(f"/listings/{lid}/bids", json={"bid_price": 799}, headers=BUYER)
    assert resp.status_code == 409
    assert resp.json()["error"] == "bid_below_floor"

    resp = client.post(f"/listings/{lid}/bids", json={"bid_price": 2000}, headers=SELLER)
    assert resp.json()["error"] == "self_bid"

    assert client.get(f"/listings/{lid}/bids", headers=BUYER).status_code == 403
    assert client.get(f"/listings/{lid}/bids").status_code == 401

    history = client.get(f"/listings/{lid}/bids", headers=SELLER).json()
    assert [(b["bid_price"], b["user"]) for b in history] == [(900, None)]
    assert len(client.get(f"/listings/{lid}/bids", headers=ADMIN).json()) == 1

    listing = client.get(f"/listings/{lid}").json()
    assert (listing["total_bids"], listing["highest_bid_price"]) == (1, 900)


def test_non_finite_prices_are_rejected(client):
    lid = _create(client)["listing_id"]
    json_headers = {"Content-Type": "application/json"}
    for token in ("Infinity", "-Infinity", "NaN"):
        resp = client.post(
            f"/listings/{lid}/bids", content=f'{{"bid_price": {token}}}', headers={**BUYER, **json_headers}
        )
        assert resp.status_code == 422, token
        resp = client.patch(
            f"/listings/{lid}", content=f'{{"expected_price": {token}}}', headers={**SELLER, **json_headers}
        )
        assert resp.status_code == 422, token

    listing = client.get(f"/listings/{lid}").json()
    assert (listing["total_bids"], listing["highest_bid_price"]) == (0, None)
    assert listing["expected_price"] == 1000


def test_patch(client):
    lid = _create(client)["listing_id"]
    resp = client.patch(f"/listings/{lid}", json={"name": "Gravel bike"}, headers=SELLER)
    assert resp.status_code == 200
    assert resp.json()["name"] == "Gravel bike"
    assert resp.json()["expected_price"] == 1000

    assert client.patch(f"/listings/{lid}", json={}, headers=SELLER).json()["error"] == "no_fields"
    assert client.patch(f"/listings/{lid}", json={"name": "Mine"}, headers=BUYER).status_code == 403
    resp = client.patch(f"/listings/{lid}", json={"verified": True}, headers=ADMIN)
    assert resp.json()["verified"] is True


def test_search_and_nearby(client):
    lid = _create(client, name="Vintage lamp", category_id="home")["listing_id"]
    _create(client, name="Sofa", category_id="home")
    far_lat = 12.97 + degrees(6 / 6371.0)
    far = _create(client, name="Far lamp", location={"lat": far_lat, "lng": 77.59})["listing_id"]

    found = client.post("/listings/search", json={"name": "lamp", "category_id": "home"}).json()
    assert [l["listing_id"] for l in found] == [lid]

    # unverified listings are not shown nearby
    assert client.get("/listings/nearby", params={"lat": 12.97, "lng": 77.59}).json() == []
    for listing_id in (lid, far):
        client.patch(f"/listings/{listing_id}", json={"verified": True}, headers=ADMIN)

    nearby = client.get("/listings/nearby", params={"lat": 12.97, "lng": 77.59, "radius_km": 5}).json()
    assert [(l["listing_id"], l["distance"]) for l in nearby] == [(lid, 0.0)]
    wide = client.get("/listings/nearby", params={"lat": 12.97, "lng": 77.59, "radius_km": 10}).json()
    assert [l["listing_id"] for l in wide] == [lid, far]


def test_my_listings(client):
    lid = _create(client)["listing_id"]
    assert [l["listing_id"] for l in client.get("/listings/mine", headers=SELLER).json()] == [lid]
    assert client.get("/listings/mine", headers=BUYER).json() == []


def test_serve_runs_the_app_under_uvicorn(monkeypatch):
    import uvicorn
    from app import main

    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda target, **kwargs: calls.append((target, kwargs)))
    main.serve()
    assert calls == [("app.main:app", {"host": "127.0.0.1", "port": 8000})]

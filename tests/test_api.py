import random

import pytest
from fastapi.testclient import TestClient

from safepath.crime_data import SimulatedCrimeEstimator
from safepath.geo import GeoPoint
from safepath.main import app, get_crime_estimator
from safepath.scoring import score_route
from safepath.signals import get_signal_store
from tests.conftest import FailingEstimator

ROUTE_QUERY = {
    "origin_lat": 37.7749,
    "origin_lng": -122.4194,
    "dest_lat": 37.7699,
    "dest_lng": -122.4130,
}


@pytest.fixture
def client(store):
    app.dependency_overrides[get_signal_store] = lambda: store
    app.dependency_overrides[get_crime_estimator] = lambda: SimulatedCrimeEstimator(rng=random.Random(0))
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def failing_client(store):
    app.dependency_overrides[get_signal_store] = lambda: store
    app.dependency_overrides[get_crime_estimator] = lambda: FailingEstimator()
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["health"] == "/health"


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    d = r.json()
    assert d["estimator"] == "simulated"
    assert d["estimator_ok"] is True
    assert d["signals"] == {"crime": 9, "lighting": 3, "services": 3}


def test_health_degraded_when_estimator_down(failing_client):
    d = failing_client.get("/health").json()
    assert d["status"] == "degraded"
    assert d["estimator_ok"] is False


def test_routes(client):
    r = client.get("/routes", params=ROUTE_QUERY)
    assert r.status_code == 200
    d = r.json()

    assert [c["id"] for c in d["candidates"]] == ["route-1", "route-2", "route-3"]
    assert d["selected_id"] in {"route-1", "route-2", "route-3"}
    assert d["recommendations"][0] == "Stay aware of your surroundings at all times."
    for candidate in d["candidates"]:
        score = candidate["safety_score"]
        assert score["overall"] == round(score["crime"] * 0.6 + score["lighting"] * 0.4)
        assert candidate["path"][0] == {"lat": 37.7749, "lng": -122.4194}
        assert candidate["path"][-1] == {"lat": 37.7699, "lng": -122.4130}
        assert candidate["crime_data"] is not None


def test_routes_without_crime_service_uses_local_scores(failing_client, store):
    d = failing_client.get("/routes", params=ROUTE_QUERY).json()

    for candidate in d["candidates"]:
        assert candidate["crime_data"] is None
        path = [GeoPoint(p["lat"], p["lng"]) for p in candidate["path"]]
        assert candidate["safety_score"]["overall"] == score_route(path, store).overall
    assert d["recommendations"] == []


@pytest.mark.parametrize("query", [
    {"origin_lat": 89.999, "origin_lng": 0.0, "dest_lat": 90.0, "dest_lng": 0.0},
    {"origin_lat": 0.0, "origin_lng": 179.999, "dest_lat": 0.0, "dest_lng": 180.0},
    {"origin_lat": -90.0, "origin_lng": -180.0, "dest_lat": -89.999, "dest_lng": -179.999},
])
def test_routes_near_pole_and_antimeridian(client, query):
    r = client.get("/routes", params=query)
    assert r.status_code == 200
    d = r.json()

    assert len(d["candidates"]) == 3
    for candidate in d["candidates"]:
        assert candidate["path"][0] == {"lat": query["origin_lat"], "lng": query["origin_lng"]}
        assert candidate["path"][-1] == {"lat": query["dest_lat"], "lng": query["dest_lng"]}


def test_routes_requires_both_endpoints(client):
    r = client.get("/routes", params={"origin_lat": 37.7, "origin_lng": -122.4})
    assert r.status_code == 422


def test_score_path(client, store):
    path = [{"lat": 37.770, "lng": -122.413}, {"lat": 37.772, "lng": -122.416}]
    r = client.post("/score", json={"path": path})
    assert r.status_code == 200

    expected = score_route([GeoPoint(**p) for p in path], store)
    assert r.json()["overall"] == expected.overall
    assert r.json()["crime"] == expected.crime
    assert r.json()["lighting"] == expected.lighting


def test_score_rejects_out_of_range_points(client):
    r = client.post("/score", json={"path": [{"lat": 90.5, "lng": 0.0}]})
    assert r.status_code == 422


def test_score_empty_path(client):
    r = client.post("/score", json={"path": []})
    assert r.json() == {"overall": 0, "crime": 0, "lighting": 0, "level": "unsafe"}


def test_crime_estimate(client):
    r = client.get("/crime/estimate", params={"lat": 38.0, "lng": -123.0, "radius": 2})
    d = r.json()
    assert d["estimate"]["safety_score"] == 100
    assert d["estimate"]["radius"] == 2
    assert d["recommendations"][-1] == "This area generally has lower crime rates compared to surrounding areas."


def test_crime_estimate_unavailable(failing_client):
    d = failing_client.get("/crime/estimate", params={"lat": 37.77, "lng": -122.41}).json()
    assert d == {"estimate": None, "recommendations": []}


def test_services_filters(client):
    assert client.get("/services").json()["count"] == 3

    police = client.get("/services", params={"category": "police"}).json()
    assert police["count"] == 1
    assert police["services"][0]["name"] == "Central Police Station"

    boxed = client.get("/services", params={"bbox": "-122.416,37.772,-122.414,37.774"}).json()
    assert [s["name"] for s in boxed["services"]] == ["Central Police Station"]


def test_services_invalid_bbox(client):
    assert client.get("/services", params={"bbox": "1,2,3"}).status_code == 400
    assert client.get("/services", params={"bbox": "a,b,c,d"}).status_code == 400

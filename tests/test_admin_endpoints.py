"""Tests for admin endpoints."""

from fastapi.testclient import TestClient

from food_catalog.api.app import create_app
from tests.conftest import make_candidate


def test_admin_requires_token(container) -> None:
    client = TestClient(create_app(container))

    missing = client.post("/admin/cache/clear")
    wrong = client.post("/admin/cache/clear", headers={"X-Admin-Token": "nope"})

    assert missing.status_code == 401
    assert wrong.status_code == 401


def test_admin_seed_endpoint(container, usda_adapter, catalog_repository) -> None:
    container.settings.seed_staples = "eggs, oats"
    usda_adapter.results = [make_candidate(name="Eggs, whole, raw")]
    client = TestClient(create_app(container))

    response = client.post("/admin/seed", headers={"X-Admin-Token": "admin-token"})

    assert response.status_code == 200
    assert response.json() == {"seeded": ["eggs", "oats"]}
    assert [query for query, _limit in usda_adapter.search_calls] == ["eggs", "oats"]
    assert len(catalog_repository.foods) == 2


def test_admin_cache_clear_endpoint(container, usda_adapter) -> None:
    client = TestClient(create_app(container))
    client.get("/foods/search", params={"q": "rice"})
    usda_adapter.results = [make_candidate(name="Brown rice, cooked")]

    cached = client.get("/foods/search", params={"q": "rice"})
    cleared = client.post(
        "/admin/cache/clear", headers={"X-Admin-Token": "admin-token"}
    )
    fresh = client.get("/foods/search", params={"q": "rice"})

    assert cached.json()["items"] == []
    assert cleared.json() == {"status": "ok"}
    assert [item["name"] for item in fresh.json()["items"]] == ["Brown rice, cooked"]

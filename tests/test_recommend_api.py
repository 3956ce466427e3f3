import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient

from app.config import settings
from app.main import app
from app.routers.recommend import get_body_client, get_catalog_client


HEADERS = {"X-API-Key": settings.api_key}

ALO_BRAND = {
    "display_name": "Alo Yoga",
    "fit_tendency": "runs_small",
    "size_scale": "letter",
    "available_sizes": ["XS", "S", "M", "L", "XL"],
}

ALO_ROWS = [
    {"size_label": "XS", "measurements": {"bust": "30-32", "waist": "23-24"}},
    {"size_label": "S", "measurements": {"bust": "32-34", "waist": "25-26"}},
    {"size_label": "M", "measurements": {"bust": "34-36", "waist": "27-28"}},
    {"size_label": "L", "measurements": {"bust": "36-38", "waist": "29-30"}},
]

ZIMMERMANN_ROWS = [
    {"brand_key": "zimmermann", "size_label": "1", "measurements": {"bust": {"mid": 33}, "waist": {"mid": 25.5}}},
    {"brand_key": "zimmermann", "size_label": "2", "measurements": {"bust": {"mid": 35}, "waist": {"mid": 27.5}}},
]


@pytest.fixture
def client():
    catalog = MagicMock()
    catalog.get_brand = AsyncMock(return_value=ALO_BRAND)
    catalog.get_sizing_rows = AsyncMock(return_value=[])
    body = MagicMock()
    body.estimate = AsyncMock(return_value={})
    app.dependency_overrides[get_catalog_client] = lambda: catalog
    app.dependency_overrides[get_body_client] = lambda: body
    c = TestClient(app)
    c.catalog = catalog
    c.body = body
    yield c
    app.dependency_overrides.clear()


def test_same_brand_alo_m(client):
    r = client.post("/v1/recommend", headers=HEADERS, json={
        "anchor_brands": [{"brand_key": "alo_yoga", "display_name": "Alo Yoga", "size": "M"}],
        "fit_preference": "true_to_size",
        "target_brand_key": "alo_yoga",
        "target_category": "tops",
    })
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "OK"
    assert data["size"] == "M"
    assert data["need_more_info"] is False
    assert len(data["bullets"]) == 3
    assert data["debug"] is None


def test_zimmermann_to_alo_keeps_brand_specific_track(client):
    client.catalog.get_sizing_rows = AsyncMock(side_effect=[ALO_ROWS, ZIMMERMANN_ROWS])
    r = client.post("/v1/recommend", headers=HEADERS, json={
        "anchor_brands": [{"brand_key": "zimmermann", "display_name": "Zimmermann", "size": "2"}],
        "fit_preference": "true_to_size",
        "target_brand_key": "alo_yoga",
        "target_category": "tops",
        "debug_mode": True,
    })
    assert r.status_code == 200
    data = r.json()
    assert data["debug"]["resolved_track"] == "brand_specific"
    assert data["size"] not in ("2", "20")
    assert data["size"] == "M"


def test_inline_data_skips_catalog(client):
    r = client.post("/v1/recommend", headers=HEADERS, json={
        "anchor_brands": [{"brand_key": "zimmermann", "display_name": "Zimmermann", "size": "2"}],
        "target_brand_key": "alo_yoga",
        "target_brand": ALO_BRAND,
        "target_rows": ALO_ROWS,
        "anchor_rows": ZIMMERMANN_ROWS,
        "fit_preference": "relaxed",
    })
    assert r.status_code == 200
    assert r.json()["size"] == "L"
    client.catalog.get_brand.assert_not_awaited()
    client.catalog.get_sizing_rows.assert_not_awaited()


def test_no_anchor_measurements_needs_more_info(client):
    r = client.post("/v1/recommend", headers=HEADERS, json={
        "anchor_brands": [{"brand_key": "reformation", "display_name": "Reformation", "size": "6"}],
        "target_brand_key": "alo_yoga",
        "target_category": "tops",
        "target_rows": ALO_ROWS,
        "anchor_rows": [],
    })
    assert r.status_code == 200
    data = r.json()
    assert data["need_more_info"] is True
    assert data["status"] == "NEED_MORE_INFO"
    assert data["size"] is None
    assert data["ask_for"] == "bust"


def test_weight_and_height_request_an_estimate(client):
    client.body.estimate = AsyncMock(return_value={"bust": {"min": 34.5, "max": 35.5}, "waist": {"min": 27, "max": 28}})
    r = client.post("/v1/recommend", headers=HEADERS, json={
        "anchor_brands": [{"brand_key": "reformation", "display_name": "Reformation", "size": "6"}],
        "target_brand_key": "alo_yoga",
        "target_rows": ALO_ROWS,
        "anchor_rows": [],
        "weight": "130 lb",
        "height": "5'6\"",
        "debug_mode": True,
    })
    assert r.status_code == 200
    data = r.json()
    assert data["size"] == "M"
    assert data["debug"]["used_estimated_measurements"] is True
    client.body.estimate.assert_awaited_once()


def test_failed_estimate_is_ignored(client):
    client.body.estimate = AsyncMock(side_effect=httpx.ConnectError("down"))
    r = client.post("/v1/recommend", headers=HEADERS, json={
        "anchor_brands": [{"brand_key": "reformation", "display_name": "Reformation", "size": "6"}],
        "target_brand_key": "alo_yoga",
        "target_rows": ALO_ROWS,
        "anchor_rows": [],
        "weight": "130 lb",
    })
    assert r.status_code == 200
    assert r.json()["need_more_info"] is True


def test_catalog_failure_maps_to_502(client):
    client.catalog.get_brand = AsyncMock(side_effect=httpx.ConnectError("down"))
    r = client.post("/v1/recommend", headers=HEADERS, json={
        "anchor_brands": [{"brand_key": "reformation", "display_name": "Reformation", "size": "6"}],
        "target_brand_key": "alo_yoga",
    })
    assert r.status_code == 502


def test_invalid_fit_preference_is_rejected(client):
    r = client.post("/v1/recommend", headers=HEADERS, json={
        "anchor_brands": [{"brand_key": "a", "display_name": "A", "size": "M"}],
        "target_brand_key": "b",
        "fit_preference": "baggy",
    })
    assert r.status_code == 422

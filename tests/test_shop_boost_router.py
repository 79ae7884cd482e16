"""
tests/test_shop_boost_router.py

HTTP contract of the profile trigger endpoint.
"""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.routers.shop_boost import router
from app.services.shop_boost_service import get_shop_boost_service
from llm_synthesis.schema import MenuSuggestion, ShopHealthSnapshot
from tests.conftest import INTAKE_ID, SHOP_ID


class StubService:
    def __init__(self, snapshot: ShopHealthSnapshot | None) -> None:
        self.snapshot = snapshot
        self.calls: list[tuple[str, str | None]] = []

    def build_shop_boost_profile(self, shop_id: str, intake_id: str | None = None):
        self.calls.append((shop_id, intake_id))
        return self.snapshot


def _snapshot() -> ShopHealthSnapshot:
    return ShopHealthSnapshot(
        shop_id=SHOP_ID,
        time_range_description="Last 12 months",
        total_repair_orders=3,
        total_revenue=630,
        average_ro=210,
        narrative_summary="Brakes drive revenue.",
        menu_suggestions=[MenuSuggestion(id="m1", name="Brake package", recommended_price=289)],
    )


def _client(service: StubService) -> TestClient:
    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_shop_boost_service] = lambda: service
    return TestClient(app)


def test_returns_camel_case_snapshot() -> None:
    service = StubService(_snapshot())

    response = _client(service).post(f"/shop-boost/{SHOP_ID}/profile")

    assert response.status_code == 200
    body = response.json()
    assert body["shopId"] == SHOP_ID
    assert body["averageRo"] == 210
    assert body["menuSuggestions"][0]["recommendedPrice"] == 289
    assert body["issuesDetected"] == []
    assert service.calls == [(SHOP_ID, None)]


def test_intake_id_is_forwarded() -> None:
    service = StubService(_snapshot())

    response = _client(service).post(
        f"/shop-boost/{SHOP_ID}/profile", json={"intake_id": INTAKE_ID}
    )

    assert response.status_code == 200
    assert service.calls == [(SHOP_ID, INTAKE_ID)]


def test_no_snapshot_is_404() -> None:
    response = _client(StubService(None)).post(f"/shop-boost/{SHOP_ID}/profile")

    assert response.status_code == 404
    assert response.json() == {
        "detail": "No pending intake could be turned into a shop health snapshot."
    }


@pytest.mark.parametrize("path", ["/shop-boost/not-a-uuid/profile", "/shop-boost/123/profile"])
def test_invalid_shop_id_is_rejected(path: str) -> None:
    service = StubService(_snapshot())

    response = _client(service).post(path)

    assert response.status_code == 422
    assert service.calls == []


def test_invalid_intake_id_is_rejected() -> None:
    service = StubService(_snapshot())

    response = _client(service).post(f"/shop-boost/{SHOP_ID}/profile", json={"intake_id": "nope"})

    assert response.status_code == 422
    assert service.calls == []

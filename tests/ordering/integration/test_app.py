"""Smoke tests for the assembled storefront application."""

import importlib
import sys

import pytest
from fastapi.testclient import TestClient


@pytest.fixture()
def storefront_app(monkeypatch):
    from ordering.domain import ordering

    # The test domain is already initialized and logging stays unconfigured
    monkeypatch.setattr(
        importlib.import_module("ordering.utils.logging"), "configure_logging", lambda: None
    )
    monkeypatch.setattr(ordering, "init", lambda *args, **kwargs: None)
    monkeypatch.delitem(sys.modules, "app", raising=False)

    module = importlib.import_module("app")
    yield module.app
    sys.modules.pop("app", None)


class TestStorefrontApp:
    def test_health(self, storefront_app):
        response = TestClient(storefront_app).get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "domain": "ordering"}

    def test_routers_are_mounted(self, storefront_app):
        paths = {route.path for route in storefront_app.routes}

        assert "/orders/gateway" in paths
        assert "/payments/gateway/verify" in paths
        assert "/admin/orders/{order_id}/adjudicate" in paths

    def test_ordering_errors_are_rendered(self, storefront_app):
        response = TestClient(storefront_app).get("/orders/track", params={"reference": "ORD-NOPE"})

        assert response.status_code == 404
        assert response.json()["code"] == "order_not_found"

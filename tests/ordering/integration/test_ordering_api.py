"""Integration tests for the order, payment and admin endpoints via TestClient."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ordering.api import admin_router, order_router, payment_router, register_error_handlers
from ordering.order.order import Order, OrderStatus
from protean import current_domain

CUSTOMER = {
    "name": "Ada Obi",
    "email": "ada@example.com",
    "phone": "+2348012345678",
    "address": "12 Marina Road, Lagos",
}
ITEMS = [
    {
        "product_id": "prod-001",
        "name": "Ankara Tote Bag",
        "quantity": 2,
        "unit_amount": 12500.0,
        "sku": "TOTE-ANK-01",
    }
]
BANK_DETAILS = {
    "account_name": "Storefront Ltd",
    "account_number": "0123456789",
    "bank_name": "First Bank",
}


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(order_router)
    app.include_router(payment_router)
    app.include_router(admin_router)
    register_error_handlers(app)
    return TestClient(app)


def _create_gateway_order(client, **overrides):
    body = {"order_id": "ORD-API-001", "customer": CUSTOMER, "items": ITEMS, **overrides}
    response = client.post("/orders/gateway", json=body)
    assert response.status_code == 201
    return response.json()


def _create_bank_order(client):
    response = client.post(
        "/orders/bank-transfer",
        json={"customer": CUSTOMER, "items": ITEMS, "bank_details": BANK_DETAILS},
    )
    assert response.status_code == 201
    return response.json()["order_id"]


def _submit_reference(client, order_id, reference="FT2406110001"):
    return client.post(
        "/payments/bank-transfer/reference",
        json={"order_id": order_id, "reference": reference},
    )


class TestCreateOrderAPI:
    def test_create_gateway_order(self, client):
        data = _create_gateway_order(client, final_total=25910.0)

        assert data["order_id"] == "ORD-API-001"
        assert data["doc_id"] == "ORD-API-001"
        assert data["tx_ref"] == "ORD-API-001"
        assert data["status"] == "pending"
        assert data["amounts"]["final_total"] == 25910.0
        assert data["amounts"]["currency"] == "NGN"

    def test_client_total_mismatch_returns_400(self, client):
        response = client.post(
            "/orders/gateway",
            json={"customer": CUSTOMER, "items": ITEMS, "final_total": 100.0},
        )
        assert response.status_code == 400

    def test_unknown_field_returns_400(self, client):
        response = client.post(
            "/orders/gateway",
            json={"customer": CUSTOMER, "items": ITEMS, "total_amount": 25910.0},
        )
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_request"
        assert "total_amount" in response.json()["errors"]

    def test_zero_quantity_returns_400(self, client):
        response = client.post(
            "/orders/gateway",
            json={"customer": CUSTOMER, "items": [{**ITEMS[0], "quantity": 0}]},
        )
        assert response.status_code == 400

    def test_duplicate_tx_ref_returns_409(self, client):
        _create_gateway_order(client)
        response = client.post(
            "/orders/gateway",
            json={"order_id": "ORD-API-002", "tx_ref": "ORD-API-001", "customer": CUSTOMER, "items": ITEMS},
        )
        assert response.status_code == 409
        assert response.json()["code"] == "duplicate_reference"

    def test_create_bank_transfer_order(self, client):
        response = client.post(
            "/orders/bank-transfer",
            json={"customer": CUSTOMER, "items": ITEMS, "bank_details": BANK_DETAILS},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["order_id"].startswith("BT-")
        assert data["status"] == "pending_payment"
        assert data["bank_details"]["account_number"] == "0123456789"
        assert data["email_results"] == {"customer": True, "admin": True}

    def test_bank_transfer_without_bank_details_returns_400(self, client):
        response = client.post("/orders/bank-transfer", json={"customer": CUSTOMER, "items": ITEMS})
        assert response.status_code == 400


class TestGatewayVerificationAPI:
    def test_successful_verification(self, client, fake_gateway):
        _create_gateway_order(client)
        fake_gateway.register_transaction("4521887", amount=25910.0, tx_ref="ORD-API-001")

        response = client.post(
            "/payments/gateway/verify",
            json={"transaction_id": "4521887", "tx_ref": "ORD-API-001"},
        )

        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"
        assert current_domain.repository_for(Order).get("ORD-API-001").payment_verified is True

    def test_amount_mismatch_returns_400_with_reason(self, client, fake_gateway):
        _create_gateway_order(client)
        fake_gateway.register_transaction("4521888", amount=10.0)

        response = client.post(
            "/payments/gateway/verify",
            json={"transaction_id": "4521888", "tx_ref": "ORD-API-001"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "payment_failed"
        assert body["reason_code"] == "amount_mismatch"
        assert body["order_id"] == "ORD-API-001"

    def test_repeat_verification_returns_409(self, client, fake_gateway):
        _create_gateway_order(client)
        fake_gateway.register_transaction("4521887", amount=25910.0)
        payload = {"transaction_id": "4521887", "tx_ref": "ORD-API-001"}
        client.post("/payments/gateway/verify", json=payload)

        response = client.post("/payments/gateway/verify", json=payload)

        assert response.status_code == 409
        assert response.json()["code"] == "already_verified"

    def test_gateway_timeout_returns_504(self, client, fake_gateway):
        _create_gateway_order(client)
        fake_gateway.configure(timeout=True)

        response = client.post(
            "/payments/gateway/verify",
            json={"transaction_id": "4521887", "tx_ref": "ORD-API-001"},
        )

        assert response.status_code == 504
        assert response.json()["retryable"] is True
        assert current_domain.repository_for(Order).get("ORD-API-001").status == OrderStatus.PENDING.value

    def test_gateway_error_returns_502_without_detail(self, client, fake_gateway):
        _create_gateway_order(client)
        fake_gateway.configure(error="Gateway returned 500: secret upstream detail")

        response = client.post(
            "/payments/gateway/verify",
            json={"transaction_id": "4521887", "tx_ref": "ORD-API-001"},
        )

        assert response.status_code == 502
        assert "detail" not in response.json()

    def test_unknown_reference_returns_404(self, client):
        response = client.post(
            "/payments/gateway/verify",
            json={"transaction_id": "4521887", "tx_ref": "ORD-MISSING"},
        )
        assert response.status_code == 404
        assert response.json()["code"] == "order_not_found"


class TestBankTransferAPI:
    def test_submit_reference(self, client):
        order_id = _create_bank_order(client)

        response = _submit_reference(client, order_id)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "pending_verification"
        assert data["reference"] == "FT2406110001"
        assert data["amount_discrepancy"] is False

    def test_short_reference_returns_400(self, client):
        response = _submit_reference(client, "BT-ANY", reference="AB12")
        assert response.status_code == 400

    def test_second_reference_returns_409(self, client):
        order_id = _create_bank_order(client)
        _submit_reference(client, order_id)

        response = _submit_reference(client, order_id, reference="FT2406110002")

        assert response.status_code == 409
        assert response.json()["error"] == "A payment reference was already submitted and is being verified"

    def test_reference_status(self, client):
        order_id = _create_bank_order(client)

        before = client.get(f"/payments/bank-transfer/reference/{order_id}").json()
        _submit_reference(client, order_id)
        after = client.get(f"/payments/bank-transfer/reference/{order_id}").json()

        assert before["can_submit_reference"] is True
        assert after["can_submit_reference"] is False
        assert after["reference"] == "FT2406110001"

    def test_submit_proof(self, client):
        order_id = _create_bank_order(client)

        response = client.post(
            "/payments/bank-transfer/proof",
            json={
                "order_id": order_id,
                "filename": "proofs/receipt.png",
                "content_type": "image/png",
                "file_size": 1024,
                "customer_email": "ada@example.com",
            },
        )

        assert response.status_code == 200
        assert response.json()["status"] == "payment_submitted"

    def test_proof_with_wrong_email_returns_403(self, client):
        order_id = _create_bank_order(client)

        response = client.post(
            "/payments/bank-transfer/proof",
            json={
                "order_id": order_id,
                "filename": "proofs/receipt.png",
                "content_type": "image/png",
                "file_size": 1024,
                "customer_email": "mallory@example.com",
            },
        )

        assert response.status_code == 403


class TestTrackingAPI:
    def test_track_by_reference(self, client):
        order_id = _create_bank_order(client)
        _submit_reference(client, order_id)

        response = client.get("/orders/track", params={"reference": "FT2406110001", "email": "ada@example.com"})

        assert response.status_code == 200
        assert response.json()["order_id"] == order_id
        assert response.json()["status"] == "pending_verification"

    def test_wrong_email_returns_403(self, client):
        _create_gateway_order(client)
        response = client.get("/orders/track", params={"reference": "ORD-API-001", "email": "eve@example.com"})
        assert response.status_code == 403

    def test_unknown_reference_returns_404(self, client):
        response = client.get("/orders/track", params={"reference": "ORD-NOPE"})
        assert response.status_code == 404


class TestAdminAPI:
    def test_review_queue(self, client):
        order_id = _create_bank_order(client)
        _submit_reference(client, order_id)

        response = client.get("/admin/orders")

        assert response.status_code == 200
        data = response.json()
        assert data["stats"]["total"] == 1
        assert data["orders"][0]["order_id"] == order_id

    def test_approve(self, client, fake_email):
        order_id = _create_bank_order(client)
        _submit_reference(client, order_id)

        response = client.post(f"/admin/orders/{order_id}/adjudicate", json={"action": "approve"})

        assert response.status_code == 200
        data = response.json()
        assert data["new_status"] == "confirmed"
        assert data["payment_verified"] is True
        assert data["email_results"]["customer"] is True

    def test_reject(self, client):
        order_id = _create_bank_order(client)
        _submit_reference(client, order_id)

        response = client.post(
            f"/admin/orders/{order_id}/adjudicate",
            json={"action": "reject", "notes": "Transfer not found"},
        )

        assert response.status_code == 200
        assert response.json()["new_status"] == "payment_rejected"
        assert response.json()["payment_verified"] is False

    def test_adjudicating_unsubmitted_order_returns_409_with_detail(self, client):
        order_id = _create_bank_order(client)

        response = client.post(f"/admin/orders/{order_id}/adjudicate", json={"action": "approve"})

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "illegal_state_transition"
        assert "pending_payment" in body["detail"]

    def test_invalid_action_returns_400(self, client):
        order_id = _create_bank_order(client)
        response = client.post(f"/admin/orders/{order_id}/adjudicate", json={"action": "maybe"})
        assert response.status_code == 400

    def test_expire_stale_with_nothing_due(self, client):
        _create_gateway_order(client)

        response = client.post("/admin/orders/expire-stale", json={"older_than_minutes": 30})

        assert response.status_code == 200
        assert response.json() == {"expired_count": 0, "order_ids": []}

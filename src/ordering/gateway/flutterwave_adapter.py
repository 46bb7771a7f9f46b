"""Flutterwave payment gateway adapter.

Verifies transactions with ``GET /v3/transactions/{id}/verify``. The
secret key is read from ``FLUTTERWAVE_SECRET_KEY`` unless given explicitly.
"""

import os

import httpx
import structlog

from ordering.errors import ExternalServiceError, GatewayTimeout
from ordering.gateway.port import PaymentGateway, TransactionVerification

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://api.flutterwave.com/v3"
DEFAULT_TIMEOUT_SECONDS = 15.0


class FlutterwaveGateway(PaymentGateway):
    def __init__(
        self,
        secret_key: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.Client | None = None,
    ) -> None:
        self.secret_key = secret_key or os.environ.get("FLUTTERWAVE_SECRET_KEY")
        if not self.secret_key:
            raise ValueError("FLUTTERWAVE_SECRET_KEY is not configured")
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)
        self._headers = {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

    def close(self) -> None:
        self._client.close()

    def verify_transaction(self, transaction_id: str) -> TransactionVerification:
        try:
            response = self._client.get(
                f"/transactions/{transaction_id}/verify",
                headers=self._headers,
            )
        except httpx.TimeoutException as exc:
            logger.warning("Gateway verification timed out", transaction_id=transaction_id)
            raise GatewayTimeout(
                f"Timed out verifying transaction {transaction_id}",
                transaction_id=transaction_id,
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("Gateway unreachable", transaction_id=transaction_id, error=str(exc))
            raise ExternalServiceError(
                f"Gateway unreachable: {exc}",
                transaction_id=transaction_id,
            ) from exc

        if not response.is_success:
            logger.error(
                "Gateway verification request failed",
                transaction_id=transaction_id,
                upstream_status=response.status_code,
                body=response.text,
            )
            raise ExternalServiceError(
                f"Gateway returned {response.status_code}: {response.text}",
                transaction_id=transaction_id,
                upstream_status=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ExternalServiceError(
                f"Gateway returned a non-JSON body: {response.text}",
                transaction_id=transaction_id,
            ) from exc

        data = payload.get("data") or {}
        if payload.get("status") != "success" or not data:
            raise ExternalServiceError(
                f"Gateway could not verify transaction: {payload.get('message') or response.text}",
                transaction_id=transaction_id,
            )

        return TransactionVerification(
            transaction_id=str(data.get("id", transaction_id)),
            status=str(data.get("status", "")),
            amount=float(data.get("amount") or 0.0),
            currency=str(data.get("currency", "")),
            tx_ref=data.get("tx_ref"),
            gateway_ref=data.get("flw_ref"),
            raw_response=payload,
        )

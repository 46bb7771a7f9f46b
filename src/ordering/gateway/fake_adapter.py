"""Configurable fake payment gateway for development and testing.

Transactions are registered up front with ``register_transaction`` and
returned verbatim by ``verify_transaction``. The adapter can also be told
to time out or fail, which is how the failure paths are exercised without
a real gateway.
"""

from ordering.errors import ExternalServiceError, GatewayTimeout
from ordering.gateway.port import SUCCESSFUL_STATUS, PaymentGateway, TransactionVerification


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.transactions: dict[str, TransactionVerification] = {}
        self.error: str | None = None
        self.timeout: bool = False
        self.calls: list[dict] = []

    def configure(self, error: str | None = None, timeout: bool = False) -> None:
        """Make subsequent calls fail with ``error`` or time out."""
        self.error = error
        self.timeout = timeout

    def register_transaction(
        self,
        transaction_id: str,
        amount: float,
        currency: str = "NGN",
        tx_ref: str | None = None,
        status: str = SUCCESSFUL_STATUS,
        gateway_ref: str | None = None,
    ) -> TransactionVerification:
        verification = TransactionVerification(
            transaction_id=transaction_id,
            status=status,
            amount=amount,
            currency=currency,
            tx_ref=tx_ref,
            gateway_ref=gateway_ref or f"FLW-MOCK-{transaction_id}",
            raw_response={"status": "success", "data": {"id": transaction_id, "status": status}},
        )
        self.transactions[transaction_id] = verification
        return verification

    def verify_transaction(self, transaction_id: str) -> TransactionVerification:
        self.calls.append({"method": "verify_transaction", "transaction_id": transaction_id})

        if self.timeout:
            raise GatewayTimeout(f"Timed out verifying transaction {transaction_id}")
        if self.error:
            raise ExternalServiceError(self.error, transaction_id=transaction_id)

        verification = self.transactions.get(transaction_id)
        if verification is None:
            raise ExternalServiceError(
                f"Gateway returned 404: transaction {transaction_id} not found",
                transaction_id=transaction_id,
            )
        return verification

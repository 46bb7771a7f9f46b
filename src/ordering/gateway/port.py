"""Payment gateway port (abstract interface).

The ordering context only needs one thing from a gateway: an authoritative
answer about a transaction. Adapters translate transport failures into
``GatewayTimeout`` or ``ExternalServiceError`` so callers never see
library-specific exceptions.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

# The only gateway status treated as a completed payment
SUCCESSFUL_STATUS = "successful"


@dataclass(frozen=True)
class TransactionVerification:
    """What the gateway reports about a transaction."""

    transaction_id: str
    status: str
    amount: float
    currency: str
    tx_ref: str | None = None
    gateway_ref: str | None = None
    raw_response: dict = field(default_factory=dict)

    @property
    def is_successful(self) -> bool:
        return self.status == SUCCESSFUL_STATUS


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def verify_transaction(self, transaction_id: str) -> TransactionVerification:
        """Query the gateway for the authoritative state of a transaction.

        Raises:
            GatewayTimeout: the gateway did not answer in time.
            ExternalServiceError: the gateway was unreachable or answered with an error.
        """
        ...

"""Error taxonomy for order and payment operations.

Bad input is reported with protean's ``ValidationError``. Everything else
raised by the ordering context derives from ``OrderingError``, which
carries a stable ``code``, an HTTP ``status_code`` and a customer-safe
``public_message``. The full ``detail`` is kept for logs and admin views.
"""


class OrderingError(Exception):
    code = "ordering_error"
    status_code = 500
    public_message = "Something went wrong while processing your order"
    retryable = False

    def __init__(self, detail: str | None = None, public_message: str | None = None, **context):
        if public_message:
            self.public_message = public_message
        self.detail = detail or self.public_message
        self.context = context
        super().__init__(self.detail)

    def to_dict(self, include_detail: bool = False) -> dict:
        payload = {"error": self.public_message, "code": self.code}
        if include_detail:
            payload["detail"] = self.detail
            if self.context:
                payload["context"] = {k: str(v) for k, v in self.context.items()}
        return payload


class OrderNotFound(OrderingError):
    code = "order_not_found"
    status_code = 404
    public_message = "Order not found"


class PaymentConflict(OrderingError):
    """A business rule forbids this payment action in the order's current state."""

    code = "payment_conflict"
    status_code = 409
    public_message = "This payment action is not allowed for the order"


class AlreadyVerified(PaymentConflict):
    code = "already_verified"
    public_message = "Payment for this order has already been verified"


class IllegalStateTransition(PaymentConflict):
    code = "illegal_state_transition"
    public_message = "This action is not available for the order in its current status"


class DuplicateReference(PaymentConflict):
    code = "duplicate_reference"
    public_message = "This reference was already used for another order"


class OwnershipMismatch(OrderingError):
    code = "ownership_mismatch"
    status_code = 403
    public_message = "The details provided do not match this order"


class ExternalServiceError(OrderingError):
    """An upstream service (payment gateway, email provider) failed or was unreachable."""

    code = "external_service_error"
    status_code = 502
    public_message = "Payment could not be verified, please try again"
    retryable = True


class GatewayTimeout(ExternalServiceError):
    code = "gateway_timeout"
    status_code = 504
    public_message = "Payment verification timed out, please try again"


class StoreWriteError(OrderingError):
    code = "store_write_error"
    status_code = 500
    public_message = "We could not save your order, please try again"

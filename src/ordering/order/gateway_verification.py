"""Gateway payment verification — commands, handler and the verification service.

The service asks the gateway for the authoritative transaction state, then
records the outcome through a command. The handler re-reads the order and
re-applies the guards, so a duplicate callback that lost the race never
re-runs side effects.

Outcomes:
- gateway status ``successful`` with matching reference, currency and amount → confirmed
- anything else the gateway reports → failed, with a reason code
- gateway unreachable or erroring → failed with the raw error, retryable error raised
- gateway timeout → order untouched, retryable error raised
"""

from dataclasses import dataclass, field, replace

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.errors import ExternalServiceError, GatewayTimeout, OrderNotFound
from ordering.gateway import get_gateway
from ordering.gateway.port import SUCCESSFUL_STATUS
from ordering.order import side_effects
from ordering.order.execution import run
from ordering.order.order import (
    FailureReason,
    Order,
    OrderStatus,
    PaymentMethod,
    VerificationMethod,
)
from ordering.pricing import amounts_match, round_up_10

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class VerificationOutcome:
    order_id: str
    status: str
    confirmed: bool
    transaction_id: str
    amount: float | None = None
    reason_code: str | None = None
    detail: str | None = None
    email_results: dict = field(default_factory=dict)


@ordering.command(part_of="Order")
class RecordGatewayVerification:
    """Apply what the gateway reported about a transaction to an order."""

    order_id = String(required=True, max_length=64)
    transaction_id = String(required=True, max_length=255)
    gateway_status = String(required=True, max_length=50)
    amount = Float(required=True)
    currency = String(max_length=10)
    tx_ref = String(max_length=255)
    gateway_ref = String(max_length=255)


@ordering.command(part_of="Order")
class RecordGatewayError:
    """The gateway could not be queried; fail the order with the raw error."""

    order_id = String(required=True, max_length=64)
    transaction_id = String(required=True, max_length=255)
    detail = Text(required=True)


def _mismatch(order: Order, command: RecordGatewayVerification, expected_total: float):
    """Return (reason, detail) for the first check the gateway report fails, or None."""
    if command.gateway_status != SUCCESSFUL_STATUS:
        return (
            FailureReason.GATEWAY_NOT_SUCCESSFUL,
            f"Gateway reported status '{command.gateway_status}'",
        )
    if command.tx_ref and command.tx_ref != order.external_ref:
        return (
            FailureReason.REFERENCE_MISMATCH,
            f"Gateway tx_ref {command.tx_ref} does not match order reference {order.external_ref}",
        )
    if (command.currency or "").upper() != (order.amounts.currency or "").upper():
        return (
            FailureReason.CURRENCY_MISMATCH,
            f"Expected currency {order.amounts.currency}, gateway reported {command.currency}",
        )
    if not amounts_match(expected_total, command.amount):
        return (
            FailureReason.AMOUNT_MISMATCH,
            f"Expected {expected_total}, gateway reported {command.amount} "
            f"(rounded {round_up_10(command.amount)})",
        )
    return None


@ordering.command_handler(part_of=Order)
class GatewayVerificationHandler:
    @handle(RecordGatewayVerification)
    def record_gateway_verification(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.find_by_order_id(command.order_id)
        order.assert_can_transition(OrderStatus.CONFIRMED)

        expected_total = order.expected_totals().final_total
        if not amounts_match(expected_total, order.amounts.final_total):
            logger.warning(
                "Stored total differs from recomputed total",
                order_id=order.order_id,
                stored_final_total=order.amounts.final_total,
                expected_final_total=expected_total,
            )

        mismatch = _mismatch(order, command, expected_total)
        if mismatch is not None:
            reason, detail = mismatch
            logger.warning(
                "Gateway verification failed",
                order_id=order.order_id,
                external_ref=order.external_ref,
                transaction_id=command.transaction_id,
                reason_code=reason.value,
                expected_total=expected_total,
                reported_amount=command.amount,
                reported_currency=command.currency,
            )
            order.fail_payment(reason, detail, transaction_id=command.transaction_id)
            repo.save(order)
            return VerificationOutcome(
                order_id=order.order_id,
                status=order.status,
                confirmed=False,
                transaction_id=command.transaction_id,
                amount=command.amount,
                reason_code=reason.value,
                detail=detail,
            )

        order.confirm_payment(
            VerificationMethod.GATEWAY,
            verified_amount=round_up_10(command.amount),
            verified_by="gateway",
            transaction_id=command.transaction_id,
            gateway_ref=command.gateway_ref,
        )
        repo.save(order)
        logger.info(
            "Gateway payment confirmed",
            order_id=order.order_id,
            transaction_id=command.transaction_id,
            amount=command.amount,
        )
        return VerificationOutcome(
            order_id=order.order_id,
            status=order.status,
            confirmed=True,
            transaction_id=command.transaction_id,
            amount=round_up_10(command.amount),
        )

    @handle(RecordGatewayError)
    def record_gateway_error(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.find_by_order_id(command.order_id)
        order.fail_payment(
            FailureReason.GATEWAY_ERROR,
            command.detail,
            transaction_id=command.transaction_id,
        )
        repo.save(order)
        return VerificationOutcome(
            order_id=order.order_id,
            status=order.status,
            confirmed=False,
            transaction_id=command.transaction_id,
            reason_code=FailureReason.GATEWAY_ERROR.value,
            detail=command.detail,
        )


def verify_gateway_payment(transaction_id: str, tx_ref: str) -> VerificationOutcome:
    """Verify a gateway transaction and settle the order it belongs to.

    Raises:
        ValidationError: missing transaction id or reference.
        OrderNotFound: no gateway order carries ``tx_ref``.
        AlreadyVerified / IllegalStateTransition: the order is already settled.
        GatewayTimeout: the gateway did not answer; the order is unchanged.
        ExternalServiceError: the gateway failed; the order is now ``failed``.
    """
    transaction_id = str(transaction_id or "").strip()
    tx_ref = (tx_ref or "").strip()
    errors = {}
    if not transaction_id:
        errors["transaction_id"] = ["Transaction ID is required"]
    if not tx_ref:
        errors["tx_ref"] = ["Transaction reference is required"]
    if errors:
        raise ValidationError(errors)

    repo = current_domain.repository_for(Order)
    order = repo.find_by_external_ref(tx_ref, PaymentMethod.GATEWAY)
    if order is None:
        raise OrderNotFound(f"No gateway order with reference {tx_ref}", external_ref=tx_ref)

    # Resolved orders are refused before the gateway is called
    order.assert_can_transition(OrderStatus.CONFIRMED)

    try:
        verification = get_gateway().verify_transaction(transaction_id)
    except GatewayTimeout:
        logger.warning(
            "Gateway timed out, order left pending",
            order_id=order.order_id,
            transaction_id=transaction_id,
        )
        raise
    except ExternalServiceError as exc:
        logger.error(
            "Gateway error during verification",
            order_id=order.order_id,
            external_ref=tx_ref,
            transaction_id=transaction_id,
            error=exc.detail,
        )
        run(
            RecordGatewayError(
                order_id=order.order_id,
                transaction_id=transaction_id,
                detail=exc.detail,
            )
        )
        side_effects.on_payment_failed(repo.find_by_order_id(order.order_id))
        raise

    outcome = run(
        RecordGatewayVerification(
            order_id=order.order_id,
            transaction_id=transaction_id,
            gateway_status=verification.status,
            amount=verification.amount,
            currency=verification.currency,
            tx_ref=verification.tx_ref,
            gateway_ref=verification.gateway_ref,
        )
    )

    settled = repo.find_by_order_id(order.order_id)
    if outcome.confirmed:
        email_results = side_effects.on_payment_confirmed(settled)
    else:
        email_results = side_effects.on_payment_failed(settled)
    return replace(outcome, email_results=email_results)

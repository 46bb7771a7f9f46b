"""Admin adjudication — approve or reject a bank transfer awaiting verification.

This is the only path that confirms a bank-transfer order. Approval stores
the re-derived total as the verified amount; rejection stores the admin's
notes as the reason shown to the customer.
"""

from dataclasses import dataclass, field, replace
from enum import Enum

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.errors import IllegalStateTransition
from ordering.order import side_effects
from ordering.order.execution import run
from ordering.order.order import Order, OrderStatus, VerificationMethod
from ordering.pricing import amounts_match

logger = structlog.get_logger(__name__)

DEFAULT_REJECTION_REASON = "Payment could not be verified"


class AdjudicationAction(Enum):
    APPROVE = "approve"
    REJECT = "reject"


@dataclass(frozen=True)
class AdjudicationOutcome:
    order_id: str
    new_status: str
    payment_verified: bool
    email_results: dict = field(default_factory=dict)


@ordering.command(part_of="Order")
class AdjudicatePayment:
    order_id = String(required=True, max_length=64)
    action = String(required=True, choices=AdjudicationAction)
    notes = Text()
    verified_by = String(max_length=255, default="admin")


@ordering.command_handler(part_of=Order)
class AdjudicationHandler:
    @handle(AdjudicatePayment)
    def adjudicate_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.find_by_order_id(command.order_id)

        action = AdjudicationAction(command.action)
        target = OrderStatus.CONFIRMED if action == AdjudicationAction.APPROVE else OrderStatus.PAYMENT_REJECTED
        order.assert_can_transition(target)
        if OrderStatus(order.status) != OrderStatus.PENDING_VERIFICATION:
            raise IllegalStateTransition(
                f"Order {order.order_id} is {order.status}, only orders pending verification can be adjudicated",
                public_message="Only orders pending verification can be approved or rejected",
                order_id=order.order_id,
                status=order.status,
            )

        verified_by = command.verified_by or "admin"
        notes = (command.notes or "").strip() or None

        if action == AdjudicationAction.APPROVE:
            expected_total = order.expected_totals().final_total
            if order.customer_submitted_amount is not None and not amounts_match(
                expected_total, order.customer_submitted_amount
            ):
                logger.warning(
                    "Approving order whose submitted amount differs from its total",
                    order_id=order.order_id,
                    reference=order.external_ref,
                    expected_total=expected_total,
                    submitted_amount=order.customer_submitted_amount,
                    verified_by=verified_by,
                )
            order.confirm_payment(
                VerificationMethod.MANUAL_ADMIN,
                verified_amount=expected_total,
                verified_by=verified_by,
                notes=notes,
            )
        else:
            order.reject_payment(notes or DEFAULT_REJECTION_REASON, rejected_by=verified_by)

        repo.save(order)
        logger.info(
            "Bank transfer adjudicated",
            order_id=order.order_id,
            action=action.value,
            new_status=order.status,
            verified_by=verified_by,
        )
        return AdjudicationOutcome(
            order_id=order.order_id,
            new_status=order.status,
            payment_verified=order.payment_verified,
        )


def adjudicate_payment(
    order_id: str,
    action: str,
    notes: str | None = None,
    verified_by: str | None = None,
) -> AdjudicationOutcome:
    """Apply an admin decision and notify the customer of the result."""
    if action not in {a.value for a in AdjudicationAction}:
        raise ValidationError({"action": ["Action must be 'approve' or 'reject'"]})

    outcome = run(
        AdjudicatePayment(
            order_id=order_id,
            action=action,
            notes=notes,
            verified_by=verified_by or "admin",
        )
    )

    order = current_domain.repository_for(Order).find_by_order_id(order_id)
    if outcome.payment_verified:
        email_results = side_effects.on_payment_confirmed(order)
    else:
        email_results = side_effects.on_payment_rejected(order)
    return replace(outcome, email_results=email_results)

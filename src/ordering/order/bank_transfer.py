"""Bank transfer evidence — reference submission and proof-of-payment upload.

Neither entry point confirms an order. A reference moves the order to
``pending_verification``, where it waits for an admin decision; a proof
upload moves it to ``payment_submitted`` until a reference follows.
"""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.errors import DuplicateReference, IllegalStateTransition, OwnershipMismatch
from ordering.order import side_effects
from ordering.order.execution import run
from ordering.order.order import Order, OrderStatus, PaymentMethod, legal_sources
from ordering.settings import get_settings

logger = structlog.get_logger(__name__)

ALLOWED_PROOF_CONTENT_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "application/pdf",
}

_REFERENCE_STATE_MESSAGES = {
    OrderStatus.PENDING_VERIFICATION.value: "A payment reference was already submitted and is being verified",
    OrderStatus.PAYMENT_REJECTED.value: "Payment for this order was rejected, please place a new order",
}


@ordering.command(part_of="Order")
class SubmitPaymentReference:
    order_id = String(required=True, max_length=64)
    reference = String(required=True, max_length=255)
    customer_submitted_amount = Float()
    notes = Text()


@ordering.command(part_of="Order")
class SubmitPaymentProof:
    order_id = String(required=True, max_length=64)
    filename = String(required=True, max_length=255)
    content_type = String(required=True, max_length=100)
    file_size = Integer(required=True, min_value=1)
    file_url = String(max_length=2048)
    original_name = String(max_length=255)
    customer_email = String(max_length=255)


@ordering.command_handler(part_of=Order)
class BankTransferEvidenceHandler:
    @handle(SubmitPaymentReference)
    def submit_payment_reference(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.find_by_order_id(command.order_id)

        try:
            order.assert_can_transition(OrderStatus.PENDING_VERIFICATION)
        except IllegalStateTransition as exc:
            raise IllegalStateTransition(
                exc.detail,
                public_message=_REFERENCE_STATE_MESSAGES.get(order.status),
                **exc.context,
            ) from exc

        reference = command.reference.strip()
        claimed_by = repo.find_by_external_ref(reference, PaymentMethod.BANK_TRANSFER)
        if claimed_by is not None and claimed_by.order_id != order.order_id:
            logger.warning(
                "Duplicate bank reference submitted",
                order_id=order.order_id,
                reference=reference,
                claimed_by=claimed_by.order_id,
            )
            raise DuplicateReference(
                f"Reference {reference} already belongs to order {claimed_by.order_id}",
                order_id=order.order_id,
                reference=reference,
            )

        expected_total = order.expected_totals().final_total
        order.submit_reference(
            reference,
            expected_total=expected_total,
            submitted_amount=command.customer_submitted_amount,
            notes=command.notes,
        )
        repo.save(order)

        if order.amount_discrepancy:
            logger.warning(
                "Submitted amount differs from order total",
                order_id=order.order_id,
                reference=reference,
                expected_total=expected_total,
                submitted_amount=order.customer_submitted_amount,
            )
        return order.order_id

    @handle(SubmitPaymentProof)
    def submit_payment_proof(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.find_by_order_id(command.order_id)

        if command.customer_email and command.customer_email.strip().lower() != order.customer.email.lower():
            raise OwnershipMismatch(
                f"Email does not match order {order.order_id}",
                order_id=order.order_id,
            )

        order.submit_proof(
            filename=command.filename,
            content_type=command.content_type,
            file_size=command.file_size,
            file_url=command.file_url,
            original_name=command.original_name,
        )
        repo.save(order)
        return order.order_id


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------
def submit_payment_reference(
    order_id: str,
    reference: str,
    customer_submitted_amount: float | None = None,
    notes: str | None = None,
) -> Order:
    """Record a customer's bank reference and ask an admin to verify it.

    Short references are refused before the order is looked up.
    """
    settings = get_settings()
    reference = (reference or "").strip()
    if len(reference) < settings.min_reference_length:
        raise ValidationError(
            {"reference": [f"Reference must be at least {settings.min_reference_length} characters"]}
        )
    if not (order_id or "").strip():
        raise ValidationError({"order_id": ["Order ID is required"]})

    run(
        SubmitPaymentReference(
            order_id=order_id.strip(),
            reference=reference,
            customer_submitted_amount=customer_submitted_amount,
            notes=(notes or "").strip() or None,
        )
    )

    repo = current_domain.repository_for(Order)
    order = repo.find_by_order_id(order_id.strip())
    logger.info(
        "Bank reference submitted",
        order_id=order.order_id,
        reference=reference,
        amount_discrepancy=order.amount_discrepancy,
    )
    _report_shared_reference(repo, order, reference)
    side_effects.on_payment_evidence_submitted(order)
    return order


def _report_shared_reference(repo, order: Order, reference: str) -> None:
    """Flag a reference that ended up on more than one bank order.

    The duplicate check in the handler reads other orders before this one is
    written, and the version guard only covers a single order. Two orders
    submitting the same reference at the same moment can therefore both
    commit. Neither is confirmed by this, since approval is manual, so the
    clash is logged for the admin to settle.
    """
    claimants = [
        other.order_id
        for other in repo.find_all_by_external_ref(reference, PaymentMethod.BANK_TRANSFER)
        if other.order_id != order.order_id
    ]
    if claimants:
        logger.error(
            "Bank reference claimed by more than one order",
            order_id=order.order_id,
            reference=reference,
            other_order_ids=claimants,
        )


def submit_payment_proof(
    order_id: str,
    filename: str,
    content_type: str,
    file_size: int,
    file_url: str | None = None,
    original_name: str | None = None,
    customer_email: str | None = None,
) -> Order:
    """Attach proof-of-payment metadata to an order. The file itself lives elsewhere."""
    settings = get_settings()
    errors = {}
    if not (order_id or "").strip():
        errors["order_id"] = ["Order ID is required"]
    if not (filename or "").strip():
        errors["filename"] = ["File name is required"]
    if (content_type or "").lower() not in ALLOWED_PROOF_CONTENT_TYPES:
        errors["content_type"] = ["Only JPEG, PNG and PDF files are accepted"]
    if not file_size or file_size <= 0:
        errors["file_size"] = ["File is empty"]
    elif file_size > settings.max_proof_size_bytes:
        errors["file_size"] = [f"File exceeds the {settings.max_proof_size_bytes // (1024 * 1024)}MB limit"]
    if errors:
        raise ValidationError(errors)

    run(
        SubmitPaymentProof(
            order_id=order_id.strip(),
            filename=filename.strip(),
            content_type=content_type.lower(),
            file_size=file_size,
            file_url=file_url,
            original_name=original_name,
            customer_email=customer_email,
        )
    )

    order = current_domain.repository_for(Order).find_by_order_id(order_id.strip())
    logger.info(
        "Proof of payment submitted",
        order_id=order.order_id,
        filename=filename,
        file_size=file_size,
    )
    side_effects.on_payment_evidence_submitted(order)
    return order


def reference_status(order_id: str) -> dict:
    """Report whether a bank reference can still be submitted for the order."""
    order = current_domain.repository_for(Order).find_by_order_id(order_id)
    can_submit = (
        PaymentMethod(order.payment_method) == PaymentMethod.BANK_TRANSFER
        and not order.payment_verified
        and OrderStatus(order.status)
        in legal_sources(PaymentMethod.BANK_TRANSFER, OrderStatus.PENDING_VERIFICATION)
    )
    return {
        "order_id": order.order_id,
        "status": order.status,
        "reference": order.external_ref,
        "reference_submitted_at": order.reference_submitted_at,
        "payment_verified": order.payment_verified,
        "final_total": order.amounts.final_total,
        "currency": order.amounts.currency,
        "can_submit_reference": can_submit,
    }

"""Order tracking for customers and the admin review queue.

Read-only views over the Order aggregate. Customer-facing views never
include raw failure detail; admin views do.
"""

import re
from datetime import UTC, datetime, timedelta

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.errors import OrderNotFound, OwnershipMismatch
from ordering.order.order import Order, OrderStatus, as_utc
from ordering.settings import get_settings

URGENT_AFTER = timedelta(hours=4)
RECENT_WITHIN = timedelta(hours=2)

_STATUS_DESCRIPTIONS = {
    OrderStatus.CONFIRMED.value: ("payment_confirmed", "Payment confirmed"),
    OrderStatus.PAYMENT_REJECTED.value: ("payment_rejected", "Payment rejected"),
    OrderStatus.FAILED.value: ("payment_failed", "Payment could not be verified"),
}


def _digits(value: str | None) -> str:
    return re.sub(r"\D", "", value or "")


def _check_ownership(order: Order, email: str | None, phone: str | None) -> None:
    if email and email.strip().lower() != (order.customer.email or "").lower():
        raise OwnershipMismatch(f"Email does not match order {order.order_id}", order_id=order.order_id)
    if phone:
        last_four = _digits(phone)[-4:]
        if len(last_four) < 4 or last_four not in _digits(order.customer.phone):
            raise OwnershipMismatch(f"Phone does not match order {order.order_id}", order_id=order.order_id)


def activity_timeline(order: Order) -> list[dict]:
    """Chronological list of what happened to the order."""
    entries = [("order_placed", "Order placed", order.created_at)]
    if order.payment_submitted_at:
        entries.append(("proof_submitted", "Proof of payment uploaded", order.payment_submitted_at))
    if order.reference_submitted_at:
        entries.append(("reference_submitted", "Payment reference submitted", order.reference_submitted_at))

    if order.status in _STATUS_DESCRIPTIONS:
        kind, description = _STATUS_DESCRIPTIONS[order.status]
        when = order.verification.verified_at if order.verification and order.verification.verified_at else None
        entries.append((kind, description, when or order.updated_at))
    elif order.status == OrderStatus.EXPIRED.value:
        entries.append(("order_expired", "Order expired", order.expired_at or order.updated_at))

    timeline = [
        {"type": kind, "description": description, "timestamp": as_utc(when)}
        for kind, description, when in entries
        if when is not None
    ]
    return sorted(timeline, key=lambda entry: entry["timestamp"])


def _amounts(order: Order) -> dict:
    return {
        "subtotal": order.amounts.subtotal,
        "shipping_cost": order.amounts.shipping_cost,
        "tax_amount": order.amounts.tax_amount,
        "final_total": order.amounts.final_total,
        "is_free_shipping": order.amounts.is_free_shipping,
        "currency": order.amounts.currency,
    }


def track_order(reference: str, email: str | None = None, phone: str | None = None) -> dict:
    """Look an order up by order id or payment reference, with optional ownership checks."""
    reference = (reference or "").strip()
    if not reference:
        raise ValidationError({"reference": ["Order ID or payment reference is required"]})

    order = current_domain.repository_for(Order).find_by_reference(reference)
    if order is None:
        raise OrderNotFound(f"No order matches {reference}", reference=reference)
    _check_ownership(order, email, phone)

    return {
        "order_id": order.order_id,
        "status": order.status,
        "payment_method": order.payment_method,
        "payment_verified": order.payment_verified,
        "external_ref": order.external_ref,
        "customer_name": order.customer.name,
        "amounts": _amounts(order),
        "items": [
            {
                "product_id": item.product_id,
                "name": item.name,
                "quantity": item.quantity,
                "unit_amount": item.unit_amount,
                "image_ref": item.image_ref,
                "sku": item.sku,
            }
            for item in order.items
        ],
        "rejection_reason": order.rejection_reason,
        "failure_reason_code": order.failure_reason_code,
        "created_at": as_utc(order.created_at),
        "updated_at": as_utc(order.updated_at),
        "timeline": activity_timeline(order),
    }


def list_orders_for_review(
    status: str = OrderStatus.PENDING_VERIFICATION.value,
    as_of: datetime | None = None,
) -> dict:
    """Admin queue of orders in ``status``, newest submission first, with triage stats."""
    if status not in {s.value for s in OrderStatus}:
        raise ValidationError({"status": [f"Unknown status '{status}'"]})

    settings = get_settings()
    now = as_utc(as_of) or datetime.now(UTC)
    orders = current_domain.repository_for(Order).find_by_status(status)

    def submitted_at(order: Order) -> datetime:
        return as_utc(order.reference_submitted_at or order.payment_submitted_at or order.created_at)

    orders = sorted(orders, key=submitted_at, reverse=True)

    stats = {"total": len(orders), "urgent": 0, "recent": 0, "high_value": 0}
    summaries = []
    for order in orders:
        waiting = now - submitted_at(order)
        if waiting > URGENT_AFTER:
            stats["urgent"] += 1
        elif waiting < RECENT_WITHIN:
            stats["recent"] += 1
        if order.amounts.final_total > settings.high_value_threshold:
            stats["high_value"] += 1

        summaries.append(
            {
                "order_id": order.order_id,
                "status": order.status,
                "payment_method": order.payment_method,
                "external_ref": order.external_ref,
                "customer_name": order.customer.name,
                "customer_email": order.customer.email,
                "customer_phone": order.customer.phone,
                "amounts": _amounts(order),
                "customer_submitted_amount": order.customer_submitted_amount,
                "amount_discrepancy": order.amount_discrepancy,
                "customer_notes": order.customer_notes,
                "proof_file_url": order.proof_of_payment.file_url if order.proof_of_payment else None,
                "reference_submitted_at": as_utc(order.reference_submitted_at),
                "created_at": as_utc(order.created_at),
                "failure_detail": order.failure_detail,
                "waiting_minutes": int(waiting.total_seconds() // 60),
            }
        )

    return {"status": status, "orders": summaries, "stats": stats}

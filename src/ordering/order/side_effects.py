"""Post-commit reactions to order outcomes: customer/admin emails and stock release.

These run only after the state change has been committed. Each one is
best-effort: failures are logged with enough context for manual
reconciliation and reported in the return value, never raised.
"""

import structlog

from ordering.inventory import get_inventory
from ordering.notification.dispatcher import get_dispatcher, order_context
from ordering.notification.types import NotificationType
from ordering.order.order import Order, PaymentMethod

logger = structlog.get_logger(__name__)


def _notify(notification_type: NotificationType, order: Order, **extra) -> bool:
    result = get_dispatcher().send(notification_type.value, order_context(order, **extra))
    return result.delivered


def release_inventory(order: Order, reason: str) -> bool:
    items = [{"product_id": item.product_id, "sku": item.sku, "quantity": item.quantity} for item in order.items]
    try:
        get_inventory().release(order.order_id, items, reason)
    except Exception as exc:
        logger.error(
            "Inventory release failed, stock needs manual release",
            order_id=order.order_id,
            external_ref=order.external_ref,
            reason=reason,
            items=items,
            error=str(exc),
        )
        return False

    logger.info("Inventory released", order_id=order.order_id, reason=reason, line_count=len(items))
    return True


def on_bank_order_placed(order: Order) -> dict:
    return {
        "customer": _notify(NotificationType.BANK_TRANSFER_INSTRUCTIONS, order),
        "admin": _notify(NotificationType.ADMIN_NEW_ORDER, order),
    }


def on_payment_evidence_submitted(order: Order) -> dict:
    return {"admin": _notify(NotificationType.ADMIN_VERIFICATION_REQUIRED, order)}


def on_payment_confirmed(order: Order) -> dict:
    if PaymentMethod(order.payment_method) == PaymentMethod.GATEWAY:
        customer_type = NotificationType.ORDER_CONFIRMATION
    else:
        customer_type = NotificationType.BANK_TRANSFER_CONFIRMATION
    return {
        "customer": _notify(customer_type, order),
        "admin": _notify(NotificationType.ADMIN_PAYMENT_RECEIVED, order),
    }


def on_payment_failed(order: Order) -> dict:
    released = release_inventory(order, reason=order.failure_reason_code or "payment_failed")
    return {
        "customer": _notify(NotificationType.PAYMENT_FAILED, order),
        "inventory_released": released,
    }


def on_payment_rejected(order: Order) -> dict:
    released = release_inventory(order, reason="payment_rejected")
    return {
        "customer": _notify(NotificationType.PAYMENT_REJECTED, order, reason=order.rejection_reason),
        "inventory_released": released,
    }


def on_order_expired(order: Order) -> dict:
    released = release_inventory(order, reason="order_expired")
    return {
        "customer": _notify(NotificationType.ORDER_EXPIRED, order),
        "inventory_released": released,
    }

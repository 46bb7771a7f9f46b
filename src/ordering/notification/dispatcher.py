"""Notification dispatcher — renders a template and hands it to the email channel.

Delivery is best-effort. A failed or crashing send is logged and reported
in the returned ``DeliveryResult``; it never propagates to the caller, so
an order transition is never undone because an email did not go out.
"""

from dataclasses import dataclass

import structlog

from ordering.channel import get_email_channel
from ordering.channel.email_port import EmailPort
from ordering.notification.types import RecipientType
from ordering.settings import Settings, get_settings
from ordering.templates import get_template

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DeliveryResult:
    notification_type: str
    recipient: str | None
    delivered: bool
    message_id: str | None = None
    error: str | None = None


def order_context(order, **extra) -> dict:
    """Flatten an order into the context dict templates render from."""
    amounts = order.amounts
    context = {
        "order_id": order.order_id,
        "payment_method": order.payment_method,
        "status": order.status,
        "external_ref": order.external_ref,
        "customer_name": order.customer.name if order.customer else None,
        "customer_email": order.customer.email if order.customer else None,
        "items": [{"name": item.name, "quantity": item.quantity} for item in order.items],
        "subtotal": amounts.subtotal if amounts else None,
        "shipping_cost": amounts.shipping_cost if amounts else None,
        "tax_amount": amounts.tax_amount if amounts else None,
        "final_total": amounts.final_total if amounts else None,
        "currency": amounts.currency if amounts else None,
        "customer_submitted_amount": order.customer_submitted_amount,
        "amount_discrepancy": order.amount_discrepancy,
    }
    if order.bank_details:
        context["bank_details"] = {
            "account_name": order.bank_details.account_name,
            "account_number": order.bank_details.account_number,
            "bank_name": order.bank_details.bank_name,
        }
    if order.proof_of_payment:
        context["proof_filename"] = order.proof_of_payment.filename
    if order.verification:
        context["verified_by"] = order.verification.verified_by
    context.update(extra)
    return context


class NotificationDispatcher:
    def __init__(self, channel: EmailPort | None = None, settings: Settings | None = None):
        self.channel = channel or get_email_channel()
        self.settings = settings or get_settings()

    def send(self, notification_type: str, context: dict) -> DeliveryResult:
        template = get_template(notification_type)
        if template.recipient_type == RecipientType.INTERNAL.value:
            recipient = self.settings.admin_email
        else:
            recipient = context.get("customer_email")

        if not recipient:
            logger.warning(
                "Notification has no recipient, skipping",
                notification_type=notification_type,
                order_id=context.get("order_id"),
            )
            return DeliveryResult(notification_type, None, False, error="No recipient")

        try:
            content = template.render(context)
            result = self.channel.send(
                to=recipient,
                subject=content["subject"],
                body=content["body"],
                html_body=content.get("html_body"),
            )
        except Exception as exc:
            logger.error(
                "Notification dispatch failed",
                notification_type=notification_type,
                order_id=context.get("order_id"),
                recipient=recipient,
                error=str(exc),
            )
            return DeliveryResult(notification_type, recipient, False, error=str(exc))

        if result.get("status") == "sent":
            logger.info(
                "Notification sent",
                notification_type=notification_type,
                order_id=context.get("order_id"),
                message_id=result.get("message_id"),
            )
            return DeliveryResult(notification_type, recipient, True, message_id=result.get("message_id"))

        logger.warning(
            "Notification not delivered",
            notification_type=notification_type,
            order_id=context.get("order_id"),
            recipient=recipient,
            error=result.get("error"),
        )
        return DeliveryResult(notification_type, recipient, False, error=result.get("error"))


def get_dispatcher() -> NotificationDispatcher:
    """Build a dispatcher bound to the currently configured email channel."""
    return NotificationDispatcher()

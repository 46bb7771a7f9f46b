"""Payment rejected template — sent when an admin rejects a bank transfer."""

from ordering.notification.types import NotificationType, RecipientType


class PaymentRejectedTemplate:
    notification_type = NotificationType.PAYMENT_REJECTED.value
    recipient_type = RecipientType.CUSTOMER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        reason = context.get("reason") or "Payment could not be verified"
        return {
            "subject": f"Payment for order #{order_id} could not be verified",
            "body": (
                f"We were unable to verify the payment for order #{order_id}.\n\n"
                f"Reason: {reason}\n\n"
                "If you believe this is a mistake, reply to this email with your "
                "transfer receipt and we will look into it."
            ),
        }

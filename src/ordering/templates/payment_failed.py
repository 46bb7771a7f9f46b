"""Payment failed template — sent when a gateway payment cannot be verified."""

from ordering.notification.types import NotificationType, RecipientType


class PaymentFailedTemplate:
    notification_type = NotificationType.PAYMENT_FAILED.value
    recipient_type = RecipientType.CUSTOMER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        return {
            "subject": f"Payment for order #{order_id} failed",
            "body": (
                f"Your payment for order #{order_id} could not be verified, "
                "so the order was not completed.\n\n"
                "If you were debited, reply with your transaction ID and we will "
                "reconcile it. Otherwise please place a new order to try again."
            ),
        }

"""Admin alert — an order's payment was confirmed."""

from ordering.notification.types import NotificationType, RecipientType


class AdminPaymentReceivedTemplate:
    notification_type = NotificationType.ADMIN_PAYMENT_RECEIVED.value
    recipient_type = RecipientType.INTERNAL.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        currency = context.get("currency", "NGN")
        return {
            "subject": f"Payment received for order #{order_id}",
            "body": (
                f"Order #{order_id} ({context.get('payment_method', '')}) is confirmed.\n\n"
                f"Amount: {currency} {context.get('final_total', '0.00')}\n"
                f"Verified by: {context.get('verified_by', 'gateway')}"
            ),
        }

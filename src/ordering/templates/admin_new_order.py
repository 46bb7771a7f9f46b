"""Admin alert — a new bank-transfer order is awaiting payment."""

from ordering.notification.types import NotificationType, RecipientType


class AdminNewOrderTemplate:
    notification_type = NotificationType.ADMIN_NEW_ORDER.value
    recipient_type = RecipientType.INTERNAL.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        currency = context.get("currency", "NGN")
        final_total = context.get("final_total", "0.00")
        return {
            "subject": f"New {context.get('payment_method', 'bank_transfer')} order #{order_id}",
            "body": (
                f"Order #{order_id} was placed by {context.get('customer_name', '')} "
                f"<{context.get('customer_email', '')}>.\n\n"
                f"Total: {currency} {final_total}\n"
                f"Items: {len(context.get('items', []))}\n"
                f"Status: {context.get('status', '')}"
            ),
        }

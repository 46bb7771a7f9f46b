"""Order confirmation template — sent when a gateway payment is verified."""

from ordering.notification.types import NotificationType, RecipientType


class OrderConfirmationTemplate:
    notification_type = NotificationType.ORDER_CONFIRMATION.value
    recipient_type = RecipientType.CUSTOMER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        final_total = context.get("final_total", "0.00")
        currency = context.get("currency", "NGN")
        lines = "\n".join(
            f"- {item['name']} x {item['quantity']}" for item in context.get("items", [])
        )
        return {
            "subject": f"Order #{order_id} Confirmed",
            "body": (
                f"Your payment for order #{order_id} has been received.\n\n"
                f"{lines}\n\n"
                f"Order Total: {currency} {final_total}\n\n"
                "We'll let you know when your order is on its way."
            ),
        }

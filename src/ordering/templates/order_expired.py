"""Order expired template — sent when an unpaid gateway order times out."""

from ordering.notification.types import NotificationType, RecipientType


class OrderExpiredTemplate:
    notification_type = NotificationType.ORDER_EXPIRED.value
    recipient_type = RecipientType.CUSTOMER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        return {
            "subject": f"Order #{order_id} has expired",
            "body": (
                f"We did not receive payment for order #{order_id} in time, "
                "so it has expired and the items were returned to stock.\n\n"
                "You are welcome to place the order again."
            ),
        }

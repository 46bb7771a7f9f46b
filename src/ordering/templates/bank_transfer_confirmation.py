"""Bank transfer confirmation — sent when an admin approves the transfer."""

from ordering.notification.types import NotificationType, RecipientType


class BankTransferConfirmationTemplate:
    notification_type = NotificationType.BANK_TRANSFER_CONFIRMATION.value
    recipient_type = RecipientType.CUSTOMER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        final_total = context.get("final_total", "0.00")
        currency = context.get("currency", "NGN")
        reference = context.get("external_ref") or "N/A"
        return {
            "subject": f"Bank transfer verified for order #{order_id}",
            "body": (
                f"We have verified your bank transfer of {currency} {final_total} "
                f"(reference {reference}).\n\n"
                f"Order #{order_id} is now confirmed and will be processed shortly."
            ),
        }

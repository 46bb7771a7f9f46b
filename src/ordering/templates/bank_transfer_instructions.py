"""Bank transfer instructions — sent when a bank-transfer order is created."""

from ordering.notification.types import NotificationType, RecipientType


class BankTransferInstructionsTemplate:
    notification_type = NotificationType.BANK_TRANSFER_INSTRUCTIONS.value
    recipient_type = RecipientType.CUSTOMER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        currency = context.get("currency", "NGN")
        final_total = context.get("final_total", "0.00")
        bank = context.get("bank_details") or {}
        return {
            "subject": f"Payment instructions for order #{order_id}",
            "body": (
                f"Hi {context.get('customer_name', 'there')},\n\n"
                f"Thank you for your order #{order_id}. Please transfer "
                f"{currency} {final_total} to the account below:\n\n"
                f"Bank: {bank.get('bank_name', '')}\n"
                f"Account name: {bank.get('account_name', '')}\n"
                f"Account number: {bank.get('account_number', '')}\n\n"
                f"Use {order_id} as the transfer narration, then submit your "
                "bank transaction reference so we can verify the payment.\n\n"
                "Your order will be confirmed once the transfer is verified."
            ),
        }

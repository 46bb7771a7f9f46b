"""Admin alert — a customer submitted bank transfer evidence for review."""

from ordering.notification.types import NotificationType, RecipientType


class AdminVerificationRequiredTemplate:
    notification_type = NotificationType.ADMIN_VERIFICATION_REQUIRED.value
    recipient_type = RecipientType.INTERNAL.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        currency = context.get("currency", "NGN")
        evidence = context.get("external_ref") or context.get("proof_filename") or "N/A"
        body = (
            f"Order #{order_id} needs payment verification.\n\n"
            f"Customer: {context.get('customer_name', '')} <{context.get('customer_email', '')}>\n"
            f"Evidence: {evidence}\n"
            f"Expected: {currency} {context.get('final_total', '0.00')}\n"
            f"Customer says: {currency} {context.get('customer_submitted_amount', 'N/A')}"
        )
        if context.get("amount_discrepancy"):
            body += "\n\nWARNING: the submitted amount does not match the order total."
        return {
            "subject": f"Payment verification required: order #{order_id}",
            "body": body,
        }

"""Template registry — maps NotificationType to template classes.

Each template knows who receives it and how to render its content from an
order context.
"""

from ordering.notification.types import NotificationType
from ordering.templates.admin_new_order import AdminNewOrderTemplate
from ordering.templates.admin_payment_received import AdminPaymentReceivedTemplate
from ordering.templates.admin_verification_required import (
    AdminVerificationRequiredTemplate,
)
from ordering.templates.bank_transfer_confirmation import (
    BankTransferConfirmationTemplate,
)
from ordering.templates.bank_transfer_instructions import (
    BankTransferInstructionsTemplate,
)
from ordering.templates.order_confirmation import OrderConfirmationTemplate
from ordering.templates.order_expired import OrderExpiredTemplate
from ordering.templates.payment_failed import PaymentFailedTemplate
from ordering.templates.payment_rejected import PaymentRejectedTemplate

TEMPLATE_REGISTRY: dict[str, type] = {
    NotificationType.BANK_TRANSFER_INSTRUCTIONS.value: BankTransferInstructionsTemplate,
    NotificationType.ORDER_CONFIRMATION.value: OrderConfirmationTemplate,
    NotificationType.BANK_TRANSFER_CONFIRMATION.value: BankTransferConfirmationTemplate,
    NotificationType.PAYMENT_REJECTED.value: PaymentRejectedTemplate,
    NotificationType.PAYMENT_FAILED.value: PaymentFailedTemplate,
    NotificationType.ORDER_EXPIRED.value: OrderExpiredTemplate,
    NotificationType.ADMIN_NEW_ORDER.value: AdminNewOrderTemplate,
    NotificationType.ADMIN_VERIFICATION_REQUIRED.value: AdminVerificationRequiredTemplate,
    NotificationType.ADMIN_PAYMENT_RECEIVED.value: AdminPaymentReceivedTemplate,
}


def get_template(notification_type: str):
    """Look up a template class by notification type string."""
    template_cls = TEMPLATE_REGISTRY.get(notification_type)
    if template_cls is None:
        raise ValueError(f"No template registered for notification type: {notification_type}")
    return template_cls

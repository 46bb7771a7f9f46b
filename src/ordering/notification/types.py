"""Notification vocabulary shared by templates and the dispatcher."""

from enum import Enum


class NotificationType(Enum):
    BANK_TRANSFER_INSTRUCTIONS = "BankTransferInstructions"
    ORDER_CONFIRMATION = "OrderConfirmation"
    BANK_TRANSFER_CONFIRMATION = "BankTransferConfirmation"
    PAYMENT_REJECTED = "PaymentRejected"
    PAYMENT_FAILED = "PaymentFailed"
    ORDER_EXPIRED = "OrderExpired"
    ADMIN_NEW_ORDER = "AdminNewOrder"
    ADMIN_VERIFICATION_REQUIRED = "AdminVerificationRequired"
    ADMIN_PAYMENT_RECEIVED = "AdminPaymentReceived"


class RecipientType(Enum):
    CUSTOMER = "Customer"
    INTERNAL = "Internal"

"""Domain events for the Order aggregate.

Every state change raises one of these. Together they form the audit
trail of an order.
"""

from protean.fields import Boolean, DateTime, Float, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A new order was created and is waiting for payment."""

    __version__ = 1

    order_id = String(required=True)
    payment_method = String(required=True)
    status = String(required=True)
    customer_email = String(required=True)
    external_ref = String()
    user_id = String()
    final_total = Float(required=True)
    currency = String()
    created_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentReferenceSubmitted:
    """The customer supplied the reference of a bank transfer."""

    __version__ = 1

    order_id = String(required=True)
    reference = String(required=True)
    submitted_amount = Float()
    expected_total = Float()
    amount_discrepancy = Boolean(default=False)
    submitted_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentProofSubmitted:
    """The customer uploaded a proof-of-payment document."""

    __version__ = 1

    order_id = String(required=True)
    filename = String(required=True)
    content_type = String()
    file_size = Float()
    submitted_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentConfirmed:
    __version__ = 1

    order_id = String(required=True)
    payment_method = String(required=True)
    verification_method = String(required=True)
    verified_amount = Float()
    verified_by = String()
    transaction_id = String()
    confirmed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentFailed:
    __version__ = 1

    order_id = String(required=True)
    reason_code = String(required=True)
    detail = Text()
    transaction_id = String()
    failed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentRejected:
    """An admin rejected the bank transfer submitted for the order."""

    __version__ = 1

    order_id = String(required=True)
    reason = Text(required=True)
    rejected_by = String()
    rejected_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderExpired:
    __version__ = 1

    order_id = String(required=True)
    reason = String()
    expired_at = DateTime(required=True)

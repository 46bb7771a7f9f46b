"""Order aggregate — the core of the ordering domain.

One aggregate covers both payment rails; ``payment_method`` selects which
state machine applies. Amounts are always derived by the money calculator
from the stored items, never taken from the client.

Gateway orders:
    PENDING → CONFIRMED | FAILED | EXPIRED

Bank-transfer orders:
    PENDING_PAYMENT → PAYMENT_SUBMITTED → PENDING_VERIFICATION
    PENDING_PAYMENT → PENDING_VERIFICATION
    PENDING_VERIFICATION → CONFIRMED | PAYMENT_REJECTED

CONFIRMED, FAILED, PAYMENT_REJECTED and EXPIRED are terminal.
"""

import re
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Integer,
    String,
    Text,
    ValueObject,
)

from ordering.domain import ordering
from ordering.errors import AlreadyVerified, IllegalStateTransition
from ordering.order.events import (
    OrderExpired,
    OrderPlaced,
    PaymentConfirmed,
    PaymentFailed,
    PaymentProofSubmitted,
    PaymentReferenceSubmitted,
    PaymentRejected,
)
from ordering.pricing import OrderTotals, amounts_match, compute_totals
from ordering.settings import Settings, get_settings

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class PaymentMethod(Enum):
    GATEWAY = "gateway"
    BANK_TRANSFER = "bank_transfer"


class OrderStatus(Enum):
    # Status strings are read by the tracking UI and must stay stable
    PENDING = "pending"
    PENDING_PAYMENT = "pending_payment"
    PAYMENT_SUBMITTED = "payment_submitted"
    PENDING_VERIFICATION = "pending_verification"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    PAYMENT_REJECTED = "payment_rejected"
    EXPIRED = "expired"


class VerificationMethod(Enum):
    GATEWAY = "gateway"
    PENDING_MANUAL = "pending_manual"
    MANUAL_ADMIN = "manual_admin"


class FailureReason(Enum):
    GATEWAY_NOT_SUCCESSFUL = "gateway_status_not_successful"
    AMOUNT_MISMATCH = "amount_mismatch"
    CURRENCY_MISMATCH = "currency_mismatch"
    REFERENCE_MISMATCH = "reference_mismatch"
    GATEWAY_ERROR = "gateway_error"


INITIAL_STATUS = {
    PaymentMethod.GATEWAY: OrderStatus.PENDING,
    PaymentMethod.BANK_TRANSFER: OrderStatus.PENDING_PAYMENT,
}

_VALID_TRANSITIONS = {
    PaymentMethod.GATEWAY: {
        OrderStatus.PENDING: {
            OrderStatus.CONFIRMED,
            OrderStatus.FAILED,
            OrderStatus.EXPIRED,
        },
    },
    PaymentMethod.BANK_TRANSFER: {
        OrderStatus.PENDING_PAYMENT: {
            OrderStatus.PENDING_VERIFICATION,
            OrderStatus.PAYMENT_SUBMITTED,
        },
        OrderStatus.PAYMENT_SUBMITTED: {OrderStatus.PENDING_VERIFICATION},
        OrderStatus.PENDING_VERIFICATION: {
            OrderStatus.CONFIRMED,
            OrderStatus.PAYMENT_REJECTED,
        },
    },
}

TERMINAL_STATUSES = {
    OrderStatus.CONFIRMED,
    OrderStatus.FAILED,
    OrderStatus.PAYMENT_REJECTED,
    OrderStatus.EXPIRED,
}


def legal_sources(payment_method: PaymentMethod, target: OrderStatus) -> set[OrderStatus]:
    """Return the statuses from which ``target`` can be reached."""
    return {
        source for source, targets in _VALID_TRANSITIONS[payment_method].items() if target in targets
    }


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class Customer:
    """Contact details captured at checkout.

    The email is the durable identity of guest orders, so it is required
    even when no account is attached.
    """

    name = String(required=True, max_length=255)
    email = String(required=True, max_length=255)
    phone = String(max_length=50)
    address = Text()


@ordering.value_object(part_of="Order")
class OrderAmounts:
    subtotal = Float(default=0.0)
    shipping_cost = Float(default=0.0)
    tax_amount = Float(default=0.0)
    final_total = Float(default=0.0)
    is_free_shipping = Boolean(default=False)
    currency = String(max_length=3, default="NGN")


@ordering.value_object(part_of="Order")
class BankDetails:
    """Store bank account the customer is asked to pay into."""

    account_name = String(required=True, max_length=255)
    account_number = String(required=True, max_length=50)
    bank_name = String(required=True, max_length=255)


@ordering.value_object(part_of="Order")
class PaymentVerification:
    method = String(choices=VerificationMethod, required=True)
    notes = Text()
    verified_at = DateTime()
    verified_by = String(max_length=255)
    verified_amount = Float()


@ordering.value_object(part_of="Order")
class ProofOfPayment:
    filename = String(required=True, max_length=255)
    original_name = String(max_length=255)
    file_url = String(max_length=2048)
    content_type = String(max_length=100)
    file_size = Integer(min_value=0)
    uploaded_at = DateTime()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A purchased line. Items never change once the order exists."""

    product_id = String(required=True, max_length=255)
    name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_amount = Float(required=True, min_value=0.0)
    image_ref = String(max_length=2048)
    sku = String(max_length=100)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    order_id = String(identifier=True, max_length=64)
    payment_method = String(choices=PaymentMethod, required=True)
    status = String(choices=OrderStatus, required=True)
    external_ref = String(max_length=255)
    customer = ValueObject(Customer)
    items = HasMany(OrderItem)
    amounts = ValueObject(OrderAmounts)
    bank_details = ValueObject(BankDetails)
    payment_verified = Boolean(default=False)
    verification = ValueObject(PaymentVerification)
    proof_of_payment = ValueObject(ProofOfPayment)
    user_id = String(max_length=255)  # None for guest orders
    transaction_id = String(max_length=255)
    gateway_ref = String(max_length=255)
    customer_submitted_amount = Float()
    customer_notes = Text()
    amount_discrepancy = Boolean(default=False)
    reference_submitted_at = DateTime()
    payment_submitted_at = DateTime()
    failure_reason_code = String(max_length=50)
    failure_detail = Text()
    rejection_reason = Text()
    expired_reason = String(max_length=255)
    expired_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        order_id: str,
        payment_method: PaymentMethod,
        customer: dict,
        items_data: list[dict],
        external_ref: str | None = None,
        user_id: str | None = None,
        bank_details: dict | None = None,
        settings: Settings | None = None,
    ) -> "Order":
        """Validate checkout input and build a new order in its initial status.

        Args:
            order_id: Client-visible identifier, generated by the caller.
            payment_method: Which rail the order is paid through.
            customer: Dict with name, email, phone and optional address.
            items_data: List of dicts with product_id, name, quantity,
                        unit_amount, image_ref and sku.
            external_ref: Gateway ``tx_ref`` for gateway orders.
            user_id: Account identifier, or None for guest checkout.
            bank_details: Dict with account_name, account_number, bank_name.
                          Required for bank transfers.
        """
        settings = settings or get_settings()
        errors: dict[str, list[str]] = {}

        if not items_data:
            errors["items"] = ["Order must contain at least one item"]

        name = (customer.get("name") or "").strip()
        email = (customer.get("email") or "").strip()
        phone = (customer.get("phone") or "").strip()
        if not name:
            errors["customer_name"] = ["Customer name is required"]
        if not email:
            errors["customer_email"] = ["Customer email is required"]
        elif not EMAIL_PATTERN.match(email):
            errors["customer_email"] = ["Customer email is not a valid email address"]
        if payment_method == PaymentMethod.BANK_TRANSFER:
            if not phone:
                errors["customer_phone"] = ["Customer phone is required for bank transfers"]
            if not bank_details or not all(
                (bank_details.get(key) or "").strip() for key in ("account_name", "account_number", "bank_name")
            ):
                errors["bank_details"] = ["Complete bank details are required for bank transfers"]

        if errors:
            raise ValidationError(errors)

        totals = compute_totals(items_data, settings)
        if totals.final_total <= 0:
            raise ValidationError({"final_total": ["Order total must be greater than zero"]})

        now = datetime.now(UTC)
        status = INITIAL_STATUS[payment_method]

        order = cls(
            order_id=order_id,
            payment_method=payment_method.value,
            status=status.value,
            external_ref=external_ref,
            customer=Customer(
                name=name,
                email=email,
                phone=phone or None,
                address=customer.get("address"),
            ),
            items=[
                OrderItem(
                    product_id=str(item["product_id"]),
                    name=item["name"],
                    quantity=int(item["quantity"]),
                    unit_amount=float(item["unit_amount"]),
                    image_ref=item.get("image_ref"),
                    sku=item.get("sku"),
                )
                for item in items_data
            ],
            amounts=OrderAmounts(**totals.to_dict(), currency=settings.currency),
            bank_details=BankDetails(**bank_details) if bank_details else None,
            payment_verified=False,
            user_id=user_id,
            created_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=order_id,
                payment_method=payment_method.value,
                status=status.value,
                customer_email=email,
                external_ref=external_ref,
                user_id=user_id,
                final_total=totals.final_total,
                currency=settings.currency,
                created_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------
    def assert_can_transition(self, target_status: OrderStatus) -> None:
        """Idempotency and legality guards shared by every entry point."""
        if self.payment_verified:
            raise AlreadyVerified(
                f"Order {self.order_id} is already verified",
                order_id=self.order_id,
                status=self.status,
            )

        current = OrderStatus(self.status)
        allowed = _VALID_TRANSITIONS[PaymentMethod(self.payment_method)].get(current, set())
        if target_status not in allowed:
            raise IllegalStateTransition(
                f"Cannot transition order {self.order_id} from {current.value} to {target_status.value}",
                order_id=self.order_id,
                status=current.value,
                target=target_status.value,
            )

    @property
    def is_terminal(self) -> bool:
        return OrderStatus(self.status) in TERMINAL_STATUSES

    def expected_totals(self, settings: Settings | None = None) -> OrderTotals:
        """Re-derive the totals from the stored items."""
        return compute_totals(self.items, settings)

    def _touch(self) -> datetime:
        now = datetime.now(UTC)
        self.updated_at = now
        return now

    # -------------------------------------------------------------------
    # Bank transfer entry points
    # -------------------------------------------------------------------
    def submit_reference(
        self,
        reference: str,
        expected_total: float,
        submitted_amount: float | None = None,
        notes: str | None = None,
    ) -> None:
        """Record the customer's bank reference and park the order for review."""
        self.assert_can_transition(OrderStatus.PENDING_VERIFICATION)

        submitted_amount = expected_total if submitted_amount is None else submitted_amount
        now = self._touch()

        self.status = OrderStatus.PENDING_VERIFICATION.value
        self.external_ref = reference
        self.customer_submitted_amount = submitted_amount
        self.customer_notes = notes
        self.amount_discrepancy = not amounts_match(expected_total, submitted_amount)
        self.reference_submitted_at = now
        self.verification = PaymentVerification(method=VerificationMethod.PENDING_MANUAL.value)

        self.raise_(
            PaymentReferenceSubmitted(
                order_id=self.order_id,
                reference=reference,
                submitted_amount=submitted_amount,
                expected_total=expected_total,
                amount_discrepancy=self.amount_discrepancy,
                submitted_at=now,
            )
        )

    def submit_proof(
        self,
        filename: str,
        content_type: str,
        file_size: int,
        file_url: str | None = None,
        original_name: str | None = None,
    ) -> None:
        self.assert_can_transition(OrderStatus.PAYMENT_SUBMITTED)

        now = self._touch()
        self.status = OrderStatus.PAYMENT_SUBMITTED.value
        self.payment_submitted_at = now
        self.proof_of_payment = ProofOfPayment(
            filename=filename,
            original_name=original_name or filename,
            file_url=file_url,
            content_type=content_type,
            file_size=file_size,
            uploaded_at=now,
        )

        self.raise_(
            PaymentProofSubmitted(
                order_id=self.order_id,
                filename=filename,
                content_type=content_type,
                file_size=float(file_size),
                submitted_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Terminal transitions
    # -------------------------------------------------------------------
    def confirm_payment(
        self,
        verification_method: VerificationMethod,
        verified_amount: float,
        verified_by: str,
        notes: str | None = None,
        transaction_id: str | None = None,
        gateway_ref: str | None = None,
    ) -> None:
        """Mark the order paid. ``payment_verified`` flips to True only here."""
        self.assert_can_transition(OrderStatus.CONFIRMED)

        now = self._touch()
        self.status = OrderStatus.CONFIRMED.value
        self.payment_verified = True
        if transaction_id:
            self.transaction_id = transaction_id
        if gateway_ref:
            self.gateway_ref = gateway_ref
        self.verification = PaymentVerification(
            method=verification_method.value,
            notes=notes,
            verified_at=now,
            verified_by=verified_by,
            verified_amount=verified_amount,
        )

        self.raise_(
            PaymentConfirmed(
                order_id=self.order_id,
                payment_method=self.payment_method,
                verification_method=verification_method.value,
                verified_amount=verified_amount,
                verified_by=verified_by,
                transaction_id=self.transaction_id,
                confirmed_at=now,
            )
        )

    def fail_payment(
        self,
        reason: FailureReason,
        detail: str,
        transaction_id: str | None = None,
    ) -> None:
        self.assert_can_transition(OrderStatus.FAILED)

        now = self._touch()
        self.status = OrderStatus.FAILED.value
        self.failure_reason_code = reason.value
        self.failure_detail = detail
        if transaction_id:
            self.transaction_id = transaction_id

        self.raise_(
            PaymentFailed(
                order_id=self.order_id,
                reason_code=reason.value,
                detail=detail,
                transaction_id=transaction_id,
                failed_at=now,
            )
        )

    def reject_payment(self, reason: str, rejected_by: str) -> None:
        """Reject a bank transfer. ``reason`` is shown to the customer."""
        self.assert_can_transition(OrderStatus.PAYMENT_REJECTED)

        now = self._touch()
        self.status = OrderStatus.PAYMENT_REJECTED.value
        self.rejection_reason = reason
        self.verification = PaymentVerification(
            method=VerificationMethod.MANUAL_ADMIN.value,
            notes=reason,
            verified_at=now,
            verified_by=rejected_by,
        )

        self.raise_(
            PaymentRejected(
                order_id=self.order_id,
                reason=reason,
                rejected_by=rejected_by,
                rejected_at=now,
            )
        )

    def expire(self, reason: str) -> None:
        self.assert_can_transition(OrderStatus.EXPIRED)

        now = self._touch()
        self.status = OrderStatus.EXPIRED.value
        self.expired_reason = reason
        self.expired_at = now

        self.raise_(
            OrderExpired(
                order_id=self.order_id,
                reason=reason,
                expired_at=now,
            )
        )


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes coming back from the store as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)

"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands. Every schema forbids unknown fields, so a client
sending ``amount`` or ``total_amount`` instead of ``final_total`` gets a
clear error rather than a silently ignored value.
"""

from datetime import datetime

from pydantic import BaseModel, Field

_STRICT = {"extra": "forbid"}


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class CustomerSchema(BaseModel):
    model_config = _STRICT

    name: str
    email: str
    phone: str | None = None
    address: str | None = None


class OrderItemSchema(BaseModel):
    model_config = _STRICT

    product_id: str
    name: str
    quantity: int = Field(ge=1)
    unit_amount: float = Field(ge=0)
    image_ref: str | None = None
    sku: str | None = None


class BankDetailsSchema(BaseModel):
    model_config = _STRICT

    account_name: str
    account_number: str
    bank_name: str


class AmountsSchema(BaseModel):
    subtotal: float
    shipping_cost: float
    tax_amount: float
    final_total: float
    is_free_shipping: bool
    currency: str


# ---------------------------------------------------------------------------
# Order creation
# ---------------------------------------------------------------------------
class CreateGatewayOrderRequest(BaseModel):
    order_id: str | None = None
    tx_ref: str | None = None
    customer: CustomerSchema
    items: list[OrderItemSchema]
    user_id: str | None = None
    final_total: float | None = None

    model_config = {
        **_STRICT,
        "json_schema_extra": {
            "examples": [
                {
                    "order_id": "ORD-1718000000000-K3J9X0PQA",
                    "tx_ref": "ORD-1718000000000-K3J9X0PQA",
                    "customer": {
                        "name": "Ada Obi",
                        "email": "ada@example.com",
                        "phone": "+2348012345678",
                        "address": "12 Marina Road, Lagos",
                    },
                    "items": [
                        {
                            "product_id": "prod-001",
                            "name": "Ankara Tote Bag",
                            "quantity": 2,
                            "unit_amount": 12500.0,
                            "sku": "TOTE-ANK-01",
                        }
                    ],
                    "user_id": None,
                    "final_total": 25910.0,
                }
            ]
        },
    }


class CreateGatewayOrderResponse(BaseModel):
    order_id: str
    doc_id: str
    tx_ref: str
    status: str
    amounts: AmountsSchema


class CreateBankTransferOrderRequest(BaseModel):
    customer: CustomerSchema
    items: list[OrderItemSchema]
    bank_details: BankDetailsSchema | None = None
    user_id: str | None = None
    final_total: float | None = None

    model_config = {
        **_STRICT,
        "json_schema_extra": {
            "examples": [
                {
                    "customer": {
                        "name": "Ada Obi",
                        "email": "ada@example.com",
                        "phone": "+2348012345678",
                    },
                    "items": [
                        {
                            "product_id": "prod-001",
                            "name": "Ankara Tote Bag",
                            "quantity": 1,
                            "unit_amount": 12500.0,
                        }
                    ],
                    "bank_details": {
                        "account_name": "Storefront Ltd",
                        "account_number": "0123456789",
                        "bank_name": "First Bank",
                    },
                }
            ]
        },
    }


class CreateBankTransferOrderResponse(BaseModel):
    order_id: str
    status: str
    amounts: AmountsSchema
    bank_details: BankDetailsSchema
    email_results: dict[str, bool]


# ---------------------------------------------------------------------------
# Payment verification
# ---------------------------------------------------------------------------
class VerifyGatewayPaymentRequest(BaseModel):
    model_config = _STRICT

    transaction_id: str
    tx_ref: str


class VerifyGatewayPaymentResponse(BaseModel):
    order_id: str
    status: str
    transaction_id: str
    amount: float | None = None


class PaymentFailureResponse(BaseModel):
    error: str
    code: str
    reason_code: str | None = None
    order_id: str | None = None


class SubmitReferenceRequest(BaseModel):
    model_config = _STRICT

    order_id: str
    reference: str
    customer_submitted_amount: float | None = None
    notes: str | None = None


class SubmitReferenceResponse(BaseModel):
    order_id: str
    status: str
    reference: str
    amount_discrepancy: bool


class ReferenceStatusResponse(BaseModel):
    order_id: str
    status: str
    reference: str | None = None
    reference_submitted_at: datetime | None = None
    payment_verified: bool
    final_total: float
    currency: str
    can_submit_reference: bool


class SubmitProofRequest(BaseModel):
    model_config = _STRICT

    order_id: str
    filename: str
    content_type: str
    file_size: int
    file_url: str | None = None
    original_name: str | None = None
    customer_email: str | None = None


class SubmitProofResponse(BaseModel):
    order_id: str
    status: str
    filename: str


# ---------------------------------------------------------------------------
# Tracking
# ---------------------------------------------------------------------------
class TimelineEntrySchema(BaseModel):
    type: str
    description: str
    timestamp: datetime


class TrackedItemSchema(BaseModel):
    product_id: str
    name: str
    quantity: int
    unit_amount: float
    image_ref: str | None = None
    sku: str | None = None


class TrackOrderResponse(BaseModel):
    order_id: str
    status: str
    payment_method: str
    payment_verified: bool
    external_ref: str | None = None
    customer_name: str
    amounts: AmountsSchema
    items: list[TrackedItemSchema]
    rejection_reason: str | None = None
    failure_reason_code: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    timeline: list[TimelineEntrySchema]


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------
class AdjudicateRequest(BaseModel):
    model_config = _STRICT

    action: str
    notes: str | None = None
    verified_by: str | None = None


class AdjudicateResponse(BaseModel):
    order_id: str
    new_status: str
    payment_verified: bool
    email_results: dict[str, bool]


class ReviewOrderSchema(BaseModel):
    order_id: str
    status: str
    payment_method: str
    external_ref: str | None = None
    customer_name: str
    customer_email: str
    customer_phone: str | None = None
    amounts: AmountsSchema
    customer_submitted_amount: float | None = None
    amount_discrepancy: bool = False
    customer_notes: str | None = None
    proof_file_url: str | None = None
    reference_submitted_at: datetime | None = None
    created_at: datetime | None = None
    failure_detail: str | None = None
    waiting_minutes: int


class ReviewStatsSchema(BaseModel):
    total: int
    urgent: int
    recent: int
    high_value: int


class ReviewQueueResponse(BaseModel):
    status: str
    orders: list[ReviewOrderSchema]
    stats: ReviewStatsSchema


class ExpireStaleRequest(BaseModel):
    model_config = _STRICT

    older_than_minutes: int | None = Field(default=None, ge=1)


class ExpireStaleResponse(BaseModel):
    expired_count: int
    order_ids: list[str]

"""FastAPI routes for the Ordering domain — orders, payments and admin review."""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from ordering.api.schemas import (
    AdjudicateRequest,
    AdjudicateResponse,
    CreateBankTransferOrderRequest,
    CreateBankTransferOrderResponse,
    CreateGatewayOrderRequest,
    CreateGatewayOrderResponse,
    ExpireStaleRequest,
    ExpireStaleResponse,
    PaymentFailureResponse,
    ReferenceStatusResponse,
    ReviewQueueResponse,
    SubmitProofRequest,
    SubmitProofResponse,
    SubmitReferenceRequest,
    SubmitReferenceResponse,
    TrackOrderResponse,
    VerifyGatewayPaymentRequest,
    VerifyGatewayPaymentResponse,
)
from ordering.order.adjudication import adjudicate_payment
from ordering.order.bank_transfer import (
    reference_status,
    submit_payment_proof,
    submit_payment_reference,
)
from ordering.order.creation import place_bank_transfer_order, place_gateway_order
from ordering.order.expiry import expire_stale_orders
from ordering.order.gateway_verification import verify_gateway_payment
from ordering.order.order import OrderStatus
from ordering.order.tracking import list_orders_for_review, track_order


def _amounts(order) -> dict:
    return {
        "subtotal": order.amounts.subtotal,
        "shipping_cost": order.amounts.shipping_cost,
        "tax_amount": order.amounts.tax_amount,
        "final_total": order.amounts.final_total,
        "is_free_shipping": order.amounts.is_free_shipping,
        "currency": order.amounts.currency,
    }


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("/gateway", status_code=201, response_model=CreateGatewayOrderResponse)
async def create_gateway_order(body: CreateGatewayOrderRequest) -> CreateGatewayOrderResponse:
    """Create an order before redirecting the customer to the hosted checkout."""
    order = place_gateway_order(
        customer=body.customer.model_dump(),
        items=[item.model_dump() for item in body.items],
        order_id=body.order_id,
        tx_ref=body.tx_ref,
        user_id=body.user_id,
        client_final_total=body.final_total,
    )
    return CreateGatewayOrderResponse(
        order_id=order.order_id,
        doc_id=order.order_id,
        tx_ref=order.external_ref,
        status=order.status,
        amounts=_amounts(order),
    )


@order_router.post("/bank-transfer", status_code=201, response_model=CreateBankTransferOrderResponse)
async def create_bank_transfer_order(body: CreateBankTransferOrderRequest) -> CreateBankTransferOrderResponse:
    order, email_results = place_bank_transfer_order(
        customer=body.customer.model_dump(),
        items=[item.model_dump() for item in body.items],
        bank_details=body.bank_details.model_dump() if body.bank_details else None,
        user_id=body.user_id,
        client_final_total=body.final_total,
    )
    return CreateBankTransferOrderResponse(
        order_id=order.order_id,
        status=order.status,
        amounts=_amounts(order),
        bank_details={
            "account_name": order.bank_details.account_name,
            "account_number": order.bank_details.account_number,
            "bank_name": order.bank_details.bank_name,
        },
        email_results=email_results,
    )


@order_router.get("/track", response_model=TrackOrderResponse)
async def get_order_tracking(
    reference: str = Query(..., description="Order ID or payment reference"),
    email: str | None = None,
    phone: str | None = None,
) -> TrackOrderResponse:
    return TrackOrderResponse(**track_order(reference, email=email, phone=phone))


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post(
    "/gateway/verify",
    response_model=VerifyGatewayPaymentResponse,
    responses={400: {"model": PaymentFailureResponse}},
)
async def verify_gateway(body: VerifyGatewayPaymentRequest):
    """Verify a gateway transaction after the hosted checkout redirects back."""
    outcome = verify_gateway_payment(body.transaction_id, body.tx_ref)
    if not outcome.confirmed:
        return JSONResponse(
            status_code=400,
            content=PaymentFailureResponse(
                error="Payment could not be verified",
                code="payment_failed",
                reason_code=outcome.reason_code,
                order_id=outcome.order_id,
            ).model_dump(),
        )
    return VerifyGatewayPaymentResponse(
        order_id=outcome.order_id,
        status=outcome.status,
        transaction_id=outcome.transaction_id,
        amount=outcome.amount,
    )


@payment_router.post("/bank-transfer/reference", response_model=SubmitReferenceResponse)
async def submit_reference(body: SubmitReferenceRequest) -> SubmitReferenceResponse:
    order = submit_payment_reference(
        order_id=body.order_id,
        reference=body.reference,
        customer_submitted_amount=body.customer_submitted_amount,
        notes=body.notes,
    )
    return SubmitReferenceResponse(
        order_id=order.order_id,
        status=order.status,
        reference=order.external_ref,
        amount_discrepancy=order.amount_discrepancy,
    )


@payment_router.get("/bank-transfer/reference/{order_id}", response_model=ReferenceStatusResponse)
async def get_reference_status(order_id: str) -> ReferenceStatusResponse:
    return ReferenceStatusResponse(**reference_status(order_id))


@payment_router.post("/bank-transfer/proof", response_model=SubmitProofResponse)
async def submit_proof(body: SubmitProofRequest) -> SubmitProofResponse:
    order = submit_payment_proof(
        order_id=body.order_id,
        filename=body.filename,
        content_type=body.content_type,
        file_size=body.file_size,
        file_url=body.file_url,
        original_name=body.original_name,
        customer_email=body.customer_email,
    )
    return SubmitProofResponse(
        order_id=order.order_id,
        status=order.status,
        filename=order.proof_of_payment.filename,
    )


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin/orders", tags=["admin"])


@admin_router.get("", response_model=ReviewQueueResponse)
async def list_review_queue(status: str = OrderStatus.PENDING_VERIFICATION.value) -> ReviewQueueResponse:
    return ReviewQueueResponse(**list_orders_for_review(status))


@admin_router.post("/expire-stale", response_model=ExpireStaleResponse)
async def expire_stale(body: ExpireStaleRequest | None = None) -> ExpireStaleResponse:
    """Expire unpaid gateway orders. Meant to be called by an external scheduler."""
    order_ids = expire_stale_orders(older_than_minutes=body.older_than_minutes if body else None)
    return ExpireStaleResponse(expired_count=len(order_ids), order_ids=order_ids)


@admin_router.post("/{order_id}/adjudicate", response_model=AdjudicateResponse)
async def adjudicate(order_id: str, body: AdjudicateRequest) -> AdjudicateResponse:
    outcome = adjudicate_payment(
        order_id=order_id,
        action=body.action,
        notes=body.notes,
        verified_by=body.verified_by,
    )
    return AdjudicateResponse(
        order_id=outcome.order_id,
        new_status=outcome.new_status,
        payment_verified=outcome.payment_verified,
        email_results=outcome.email_results,
    )

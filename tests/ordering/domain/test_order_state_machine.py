"""Tests for the Order state machine — per-rail transitions, terminal states and guards."""

import pytest
from ordering.errors import AlreadyVerified, IllegalStateTransition
from ordering.order.events import (
    OrderExpired,
    PaymentConfirmed,
    PaymentFailed,
    PaymentProofSubmitted,
    PaymentReferenceSubmitted,
    PaymentRejected,
)
from ordering.order.order import (
    FailureReason,
    Order,
    OrderStatus,
    PaymentMethod,
    VerificationMethod,
    legal_sources,
)

TOTAL = 25910.0


def _gateway_order(customer, items):
    order = Order.create(
        order_id="ORD-SM-1",
        payment_method=PaymentMethod.GATEWAY,
        customer=customer,
        items_data=items,
        external_ref="ORD-SM-1",
    )
    order._events.clear()
    return order


def _bank_order(customer, items, bank_details):
    order = Order.create(
        order_id="BT-SM-1",
        payment_method=PaymentMethod.BANK_TRANSFER,
        customer=customer,
        items_data=items,
        bank_details=bank_details,
    )
    order._events.clear()
    return order


def _confirm(order, method=VerificationMethod.GATEWAY):
    order.confirm_payment(method, verified_amount=TOTAL, verified_by="gateway", transaction_id="TX-1")


@pytest.fixture()
def gateway(customer, items):
    return _gateway_order(customer, items)


@pytest.fixture()
def bank(customer, items, bank_details):
    return _bank_order(customer, items, bank_details)


@pytest.fixture()
def pending_verification(bank):
    bank.submit_reference("FT2406110001", expected_total=TOTAL)
    bank._events.clear()
    return bank


class TestLegalSources:
    def test_confirmation_sources_per_rail(self):
        assert legal_sources(PaymentMethod.GATEWAY, OrderStatus.CONFIRMED) == {OrderStatus.PENDING}
        assert legal_sources(PaymentMethod.BANK_TRANSFER, OrderStatus.CONFIRMED) == {
            OrderStatus.PENDING_VERIFICATION
        }

    def test_reference_can_follow_proof_or_come_first(self):
        assert legal_sources(PaymentMethod.BANK_TRANSFER, OrderStatus.PENDING_VERIFICATION) == {
            OrderStatus.PENDING_PAYMENT,
            OrderStatus.PAYMENT_SUBMITTED,
        }

    def test_bank_orders_never_expire_or_fail(self):
        assert legal_sources(PaymentMethod.BANK_TRANSFER, OrderStatus.EXPIRED) == set()
        assert legal_sources(PaymentMethod.BANK_TRANSFER, OrderStatus.FAILED) == set()


class TestGatewayTransitions:
    def test_confirm(self, gateway):
        _confirm(gateway)
        assert gateway.status == OrderStatus.CONFIRMED.value
        assert gateway.payment_verified is True
        assert gateway.transaction_id == "TX-1"
        assert gateway.verification.method == VerificationMethod.GATEWAY.value
        assert gateway.verification.verified_amount == TOTAL
        assert gateway.verification.verified_at is not None
        assert isinstance(gateway._events[-1], PaymentConfirmed)

    def test_fail(self, gateway):
        gateway.fail_payment(FailureReason.AMOUNT_MISMATCH, "Expected 25910, got 100", transaction_id="TX-1")
        assert gateway.status == OrderStatus.FAILED.value
        assert gateway.payment_verified is False
        assert gateway.failure_reason_code == "amount_mismatch"
        assert gateway.failure_detail == "Expected 25910, got 100"
        assert isinstance(gateway._events[-1], PaymentFailed)

    def test_expire(self, gateway):
        gateway.expire("Payment not completed within 30 minutes")
        assert gateway.status == OrderStatus.EXPIRED.value
        assert gateway.expired_at is not None
        assert gateway.expired_reason == "Payment not completed within 30 minutes"
        assert isinstance(gateway._events[-1], OrderExpired)

    def test_gateway_order_cannot_take_a_bank_reference(self, gateway):
        with pytest.raises(IllegalStateTransition):
            gateway.submit_reference("FT2406110001", expected_total=TOTAL)

    @pytest.mark.parametrize(
        "settle",
        [
            lambda o: o.fail_payment(FailureReason.GATEWAY_ERROR, "boom"),
            lambda o: o.expire("late"),
        ],
    )
    def test_terminal_orders_cannot_be_confirmed(self, gateway, settle):
        settle(gateway)
        assert gateway.is_terminal
        with pytest.raises(IllegalStateTransition):
            _confirm(gateway)
        assert gateway.payment_verified is False

    def test_confirmed_order_reports_already_verified(self, gateway):
        _confirm(gateway)
        with pytest.raises(AlreadyVerified):
            _confirm(gateway)
        with pytest.raises(AlreadyVerified):
            gateway.fail_payment(FailureReason.AMOUNT_MISMATCH, "late callback")
        with pytest.raises(AlreadyVerified):
            gateway.expire("late")
        assert gateway.status == OrderStatus.CONFIRMED.value

    def test_failed_guard_leaves_state_untouched(self, gateway):
        gateway.expire("late")
        before = gateway.updated_at
        with pytest.raises(IllegalStateTransition):
            gateway.fail_payment(FailureReason.AMOUNT_MISMATCH, "too late")
        assert gateway.status == OrderStatus.EXPIRED.value
        assert gateway.failure_reason_code is None
        assert gateway.updated_at == before


class TestBankTransferTransitions:
    def test_reference_moves_to_pending_verification(self, bank):
        bank.submit_reference("FT2406110001", expected_total=TOTAL, notes="Paid from GTBank")
        assert bank.status == OrderStatus.PENDING_VERIFICATION.value
        assert bank.external_ref == "FT2406110001"
        assert bank.customer_submitted_amount == TOTAL
        assert bank.customer_notes == "Paid from GTBank"
        assert bank.amount_discrepancy is False
        assert bank.reference_submitted_at is not None
        assert bank.verification.method == VerificationMethod.PENDING_MANUAL.value
        assert bank.payment_verified is False
        assert isinstance(bank._events[-1], PaymentReferenceSubmitted)

    def test_reference_flags_amount_discrepancy(self, bank):
        bank.submit_reference("FT2406110001", expected_total=TOTAL, submitted_amount=20000.0)
        assert bank.amount_discrepancy is True
        assert bank.customer_submitted_amount == 20000.0

    def test_proof_then_reference(self, bank):
        bank.submit_proof("receipt.pdf", "application/pdf", 2048, file_url="proofs/receipt.pdf")
        assert bank.status == OrderStatus.PAYMENT_SUBMITTED.value
        assert bank.proof_of_payment.filename == "receipt.pdf"
        assert bank.proof_of_payment.original_name == "receipt.pdf"
        assert isinstance(bank._events[-1], PaymentProofSubmitted)

        bank.submit_reference("FT2406110001", expected_total=TOTAL)
        assert bank.status == OrderStatus.PENDING_VERIFICATION.value

    def test_reference_cannot_be_submitted_twice(self, pending_verification):
        with pytest.raises(IllegalStateTransition):
            pending_verification.submit_reference("FT2406110002", expected_total=TOTAL)
        assert pending_verification.external_ref == "FT2406110001"

    def test_admin_confirmation(self, pending_verification):
        pending_verification.confirm_payment(
            VerificationMethod.MANUAL_ADMIN,
            verified_amount=TOTAL,
            verified_by="admin@example.com",
            notes="Seen on statement",
        )
        assert pending_verification.status == OrderStatus.CONFIRMED.value
        assert pending_verification.payment_verified is True
        assert pending_verification.verification.verified_by == "admin@example.com"
        assert pending_verification.verification.notes == "Seen on statement"

    def test_rejection(self, pending_verification):
        pending_verification.reject_payment("Transfer not found", rejected_by="admin")
        assert pending_verification.status == OrderStatus.PAYMENT_REJECTED.value
        assert pending_verification.rejection_reason == "Transfer not found"
        assert pending_verification.payment_verified is False
        assert pending_verification.is_terminal
        assert isinstance(pending_verification._events[-1], PaymentRejected)

    def test_cannot_confirm_before_reference(self, bank):
        with pytest.raises(IllegalStateTransition):
            bank.confirm_payment(VerificationMethod.MANUAL_ADMIN, verified_amount=TOTAL, verified_by="admin")
        assert bank.payment_verified is False

    def test_rejected_order_takes_no_new_reference(self, pending_verification):
        pending_verification.reject_payment("Transfer not found", rejected_by="admin")
        with pytest.raises(IllegalStateTransition):
            pending_verification.submit_reference("FT2406110009", expected_total=TOTAL)

    def test_confirmed_order_rejects_further_evidence(self, pending_verification):
        pending_verification.confirm_payment(
            VerificationMethod.MANUAL_ADMIN, verified_amount=TOTAL, verified_by="admin"
        )
        with pytest.raises(AlreadyVerified):
            pending_verification.reject_payment("changed my mind", rejected_by="admin")
        with pytest.raises(AlreadyVerified):
            pending_verification.submit_proof("late.png", "image/png", 100)


class TestExpectedTotals:
    def test_recomputed_from_stored_items(self, gateway):
        assert gateway.expected_totals().final_total == gateway.amounts.final_total

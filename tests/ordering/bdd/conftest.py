"""Shared BDD fixtures and step definitions for the order payment flows."""

import pytest
from ordering.errors import OrderingError
from ordering.order.bank_transfer import submit_payment_reference
from ordering.order.creation import place_bank_transfer_order, place_gateway_order
from ordering.order.order import Order
from ordering.settings import Settings
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

_ERRORS = {
    "validation": ValidationError,
    "already verified": OrderingError,
    "illegal transition": OrderingError,
    "duplicate reference": OrderingError,
}
_ERROR_CODES = {
    "already verified": "already_verified",
    "illegal transition": "illegal_state_transition",
    "duplicate reference": "duplicate_reference",
}


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for the error raised by the last When step."""
    return {"exc": None}


@pytest.fixture()
def emails_before():
    return {"count": 0}


@pytest.fixture()
def attempt(error):
    """Run an action, keeping a business error for the Then steps."""

    def _attempt(action):
        try:
            return action()
        except (OrderingError, ValidationError) as exc:
            error["exc"] = exc
            return None

    return _attempt


def _reload(order):
    return current_domain.repository_for(Order).get(order.order_id)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse('a gateway order "{order_id}" for {quantity:d} item at {unit_amount:f}'),
    target_fixture="order",
)
def _(customer, order_id, quantity, unit_amount):
    return place_gateway_order(
        customer=customer,
        items=[{"product_id": "prod-001", "name": "Ankara Tote Bag", "quantity": quantity, "unit_amount": unit_amount}],
        order_id=order_id,
    )


@given(
    parsers.cfparse("a bank transfer order for {quantity:d} item at {unit_amount:f}"),
    target_fixture="order",
)
def _(customer, bank_details, quantity, unit_amount):
    order, _ = place_bank_transfer_order(
        customer=customer,
        items=[{"product_id": "prod-001", "name": "Ankara Tote Bag", "quantity": quantity, "unit_amount": unit_amount}],
        bank_details=bank_details,
    )
    return order


@given(parsers.cfparse('the customer submitted reference "{reference}"'), target_fixture="order")
def _(order, reference):
    return submit_payment_reference(order.order_id, reference)


@given("no emails have been sent since")
def _(fake_email, emails_before):
    emails_before["count"] = len(fake_email.sent_emails)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(order, status):
    assert _reload(order).status == status


@then("the payment is verified")
def _(order):
    assert _reload(order).payment_verified is True


@then("the payment is not verified")
def _(order):
    assert _reload(order).payment_verified is False


@then(parsers.cfparse("the order total is {total:f}"))
def _(order, total):
    assert _reload(order).amounts.final_total == total


@then(parsers.cfparse('the action fails with "{kind}"'))
def _(error, kind):
    assert error["exc"] is not None, "Expected an error but none was raised"
    assert isinstance(error["exc"], _ERRORS[kind])
    if kind in _ERROR_CODES:
        assert error["exc"].code == _ERROR_CODES[kind]


@then(parsers.cfparse('the customer receives an email titled "{subject}"'))
def _(order, fake_email, subject):
    subjects = [email["subject"] for email in fake_email.sent_to(order.customer.email)]
    assert subject.format(order_id=order.order_id) in subjects


@then("the admin is alerted")
def _(fake_email):
    assert fake_email.sent_to(Settings().admin_email)


@then("no further email is sent")
def _(fake_email, emails_before):
    assert len(fake_email.sent_emails) == emails_before["count"]


@then("the reserved stock is released")
def _(order, fake_inventory):
    assert fake_inventory.released_for(order.order_id)


@then("no stock is released")
def _(fake_inventory):
    assert fake_inventory.releases == []

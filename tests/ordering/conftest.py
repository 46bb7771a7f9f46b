import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    from ordering.channel import reset_email_channel
    from ordering.gateway import reset_gateway
    from ordering.inventory import reset_inventory
    from ordering.settings import Settings, reset_settings, set_settings

    set_settings(Settings())
    with ordering_bed.domain_context():
        yield

        from protean import current_domain

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()

    reset_gateway()
    reset_email_channel()
    reset_inventory()
    reset_settings()


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------
@pytest.fixture()
def fake_gateway():
    from ordering.gateway import get_gateway

    return get_gateway()


@pytest.fixture()
def fake_email():
    from ordering.channel import get_email_channel

    return get_email_channel()


@pytest.fixture()
def fake_inventory():
    from ordering.inventory import get_inventory

    return get_inventory()


# ---------------------------------------------------------------------------
# Checkout data
# ---------------------------------------------------------------------------
@pytest.fixture()
def customer():
    return {
        "name": "Ada Obi",
        "email": "ada@example.com",
        "phone": "+234 801 234 5678",
        "address": "12 Marina Road, Lagos",
    }


@pytest.fixture()
def items():
    """Two bags at 12,500: subtotal 25,000, shipping 900, tax 10, total 25,910."""
    return [
        {
            "product_id": "prod-001",
            "name": "Ankara Tote Bag",
            "quantity": 2,
            "unit_amount": 12500.0,
            "image_ref": "products/tote.jpg",
            "sku": "TOTE-ANK-01",
        }
    ]


@pytest.fixture()
def bank_details():
    return {
        "account_name": "Storefront Ltd",
        "account_number": "0123456789",
        "bank_name": "First Bank",
    }


@pytest.fixture()
def gateway_order(customer, items):
    """A pending gateway order whose tx_ref equals its order id."""
    from ordering.order.creation import place_gateway_order

    return place_gateway_order(customer=customer, items=items, order_id="ORD-TEST-001")


@pytest.fixture()
def bank_order(customer, items, bank_details):
    from ordering.order.creation import place_bank_transfer_order

    order, _ = place_bank_transfer_order(customer=customer, items=items, bank_details=bank_details)
    return order


@pytest.fixture()
def submitted_bank_order(bank_order):
    """A bank-transfer order waiting for admin verification."""
    from ordering.order.bank_transfer import submit_payment_reference

    return submit_payment_reference(bank_order.order_id, "FT2406110001")

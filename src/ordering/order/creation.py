"""Order creation — commands, handler and placement services.

Gateway orders are created before the customer is redirected to the hosted
checkout. Bank-transfer orders are created with the store's bank details
and trigger payment instructions. In both cases the totals come from the
money calculator; a client-displayed total is only cross-checked.
"""

import json
import secrets
import string
import time

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.errors import DuplicateReference
from ordering.order import side_effects
from ordering.order.execution import run
from ordering.order.order import Order, PaymentMethod
from ordering.pricing import amounts_match

logger = structlog.get_logger(__name__)

_SUFFIX_ALPHABET = string.digits + string.ascii_uppercase


def generate_order_id(prefix: str) -> str:
    """Timestamp plus random suffix, e.g. ``BT-1718000000000-K3J9X0PQA``."""
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(9))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


@ordering.command(part_of="Order")
class PlaceGatewayOrder:
    order_id = String(max_length=64)
    tx_ref = String(max_length=255)
    customer = Text(required=True)  # JSON: name, email, phone, address
    items = Text(required=True)  # JSON: list of item dicts
    user_id = String(max_length=255)
    client_final_total = Float()


@ordering.command(part_of="Order")
class PlaceBankTransferOrder:
    customer = Text(required=True)  # JSON: name, email, phone, address
    items = Text(required=True)  # JSON: list of item dicts
    bank_details = Text()  # JSON: account_name, account_number, bank_name
    user_id = String(max_length=255)
    client_final_total = Float()


def _load(value):
    return json.loads(value) if isinstance(value, str) else value


def _check_client_total(order: Order, client_final_total: float | None) -> None:
    if client_final_total is None:
        return
    if not amounts_match(order.amounts.final_total, client_final_total):
        logger.warning(
            "Client total disagrees with computed total",
            order_id=order.order_id,
            client_final_total=client_final_total,
            computed_final_total=order.amounts.final_total,
        )
        raise ValidationError(
            {
                "final_total": [
                    f"Submitted total {client_final_total} does not match the order total "
                    f"{order.amounts.final_total}"
                ]
            }
        )


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceGatewayOrder)
    def place_gateway_order(self, command):
        repo = current_domain.repository_for(Order)

        order_id = command.order_id or generate_order_id("ORD")
        tx_ref = command.tx_ref or order_id
        if repo.exists(order_id):
            raise ValidationError({"order_id": [f"Order {order_id} already exists"]})
        if repo.find_by_external_ref(tx_ref, PaymentMethod.GATEWAY) is not None:
            raise DuplicateReference(
                f"Gateway reference {tx_ref} is already attached to another order",
                external_ref=tx_ref,
            )

        order = Order.create(
            order_id=order_id,
            payment_method=PaymentMethod.GATEWAY,
            customer=_load(command.customer),
            items_data=_load(command.items),
            external_ref=tx_ref,
            user_id=command.user_id,
        )
        _check_client_total(order, command.client_final_total)

        repo.save(order)
        return order.order_id

    @handle(PlaceBankTransferOrder)
    def place_bank_transfer_order(self, command):
        repo = current_domain.repository_for(Order)

        order = Order.create(
            order_id=generate_order_id("BT"),
            payment_method=PaymentMethod.BANK_TRANSFER,
            customer=_load(command.customer),
            items_data=_load(command.items),
            user_id=command.user_id,
            bank_details=_load(command.bank_details) if command.bank_details else None,
        )
        _check_client_total(order, command.client_final_total)

        repo.save(order)
        return order.order_id


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------
def place_gateway_order(
    customer: dict,
    items: list[dict],
    order_id: str | None = None,
    tx_ref: str | None = None,
    user_id: str | None = None,
    client_final_total: float | None = None,
) -> Order:
    """Create a gateway order awaiting the customer's hosted checkout payment."""
    order_id = run(
        PlaceGatewayOrder(
            order_id=order_id,
            tx_ref=tx_ref,
            customer=json.dumps(customer),
            items=json.dumps(items),
            user_id=user_id,
            client_final_total=client_final_total,
        )
    )
    order = current_domain.repository_for(Order).find_by_order_id(order_id)
    logger.info(
        "Gateway order placed",
        order_id=order.order_id,
        tx_ref=order.external_ref,
        final_total=order.amounts.final_total,
        guest=order.user_id is None,
    )
    return order


def place_bank_transfer_order(
    customer: dict,
    items: list[dict],
    bank_details: dict | None,
    user_id: str | None = None,
    client_final_total: float | None = None,
) -> tuple[Order, dict]:
    """Create a bank-transfer order and send payment instructions.

    Returns the order and the delivery results of the customer and admin
    emails. A failed email never undoes the order.
    """
    order_id = run(
        PlaceBankTransferOrder(
            customer=json.dumps(customer),
            items=json.dumps(items),
            bank_details=json.dumps(bank_details) if bank_details else None,
            user_id=user_id,
            client_final_total=client_final_total,
        )
    )
    order = current_domain.repository_for(Order).find_by_order_id(order_id)
    logger.info(
        "Bank transfer order placed",
        order_id=order.order_id,
        final_total=order.amounts.final_total,
        guest=order.user_id is None,
    )
    return order, side_effects.on_bank_order_placed(order)

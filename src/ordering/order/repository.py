"""Repository for the Order aggregate.

Orders are always read fresh from the store; nothing in the ordering
context caches order state between requests.
"""

import structlog
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError

from ordering.domain import ordering
from ordering.errors import DuplicateReference, IllegalStateTransition, OrderNotFound, StoreWriteError
from ordering.order.order import Order, PaymentMethod

logger = structlog.get_logger(__name__)


@ordering.repository(part_of=Order)
class OrderRepository:
    def find_by_order_id(self, order_id: str) -> Order:
        try:
            return self.get(order_id)
        except ObjectNotFoundError as exc:
            raise OrderNotFound(f"Order {order_id} does not exist", order_id=order_id) from exc

    def exists(self, order_id: str) -> bool:
        return bool(self._dao.query.filter(order_id=order_id).all().items)

    def find_all_by_external_ref(self, reference: str, payment_method: PaymentMethod) -> list[Order]:
        return self._dao.query.filter(
            external_ref=reference,
            payment_method=payment_method.value,
        ).all().items

    def find_by_external_ref(self, reference: str, payment_method: PaymentMethod) -> Order | None:
        """Find the order of the given payment method carrying ``reference``."""
        matches = self.find_all_by_external_ref(reference, payment_method)
        return matches[0] if matches else None

    def find_by_reference(self, reference: str) -> Order | None:
        """Resolve a customer-supplied reference: order id first, then external ref.

        Bank references and gateway ``tx_ref`` values share one namespace
        here. A reference carried by more than one order is refused rather
        than resolved to whichever the store returns first.
        """
        try:
            return self.get(reference)
        except ObjectNotFoundError:
            pass
        matches = self._dao.query.filter(external_ref=reference).all().items
        if len(matches) > 1:
            logger.warning(
                "Reference matches more than one order",
                reference=reference,
                order_ids=[order.order_id for order in matches],
            )
            raise DuplicateReference(
                f"Reference {reference} matches orders {', '.join(order.order_id for order in matches)}",
                public_message="This reference matches more than one order, please use your order ID",
                reference=reference,
            )
        return matches[0] if matches else None

    def find_by_status(self, status: str, payment_method: PaymentMethod | None = None) -> list[Order]:
        filters = {"status": status}
        if payment_method is not None:
            filters["payment_method"] = payment_method.value
        return self._dao.query.filter(**filters).all().items

    def save(self, order: Order) -> None:
        """Persist ``order``, translating store failures into domain errors.

        A stale ``_version`` means another request changed the order since it
        was read, so the transition is refused instead of overwriting it.
        """
        try:
            self.add(order)
        except ExpectedVersionError as exc:
            logger.warning(
                "Concurrent modification detected",
                order_id=order.order_id,
                status=order.status,
            )
            raise IllegalStateTransition(
                f"Order {order.order_id} was modified concurrently",
                order_id=order.order_id,
            ) from exc
        except ValidationError:
            raise
        except Exception as exc:
            logger.error(
                "Failed to persist order",
                order_id=order.order_id,
                status=order.status,
                error=str(exc),
            )
            raise StoreWriteError(str(exc), order_id=order.order_id) from exc

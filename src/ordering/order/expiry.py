"""Stale gateway order expiry.

Designed to be triggered periodically by an external scheduler (cron, K8s
CronJob) via the maintenance API endpoint. Gateway orders still ``pending``
after the expiry window are expired one command at a time, their stock is
released and the customer is told.
"""

from datetime import UTC, datetime, timedelta

import structlog
from protean import handle
from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.errors import PaymentConflict
from ordering.order import side_effects
from ordering.order.execution import run
from ordering.order.order import Order, OrderStatus, PaymentMethod, as_utc
from ordering.settings import get_settings

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class ExpireOrder:
    order_id = String(required=True, max_length=64)
    reason = String(max_length=255)


@ordering.command_handler(part_of=Order)
class ExpireOrderHandler:
    @handle(ExpireOrder)
    def expire_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.find_by_order_id(command.order_id)
        order.expire(command.reason or "Payment not completed in time")
        repo.save(order)
        return order.order_id


def expire_stale_orders(older_than_minutes: int | None = None, as_of: datetime | None = None) -> list[str]:
    """Expire gateway orders left pending longer than the window.

    Returns the ids of the orders that were expired. An order settled by a
    concurrent request is skipped with a warning.
    """
    settings = get_settings()
    minutes = settings.pending_order_expiry_minutes if older_than_minutes is None else older_than_minutes
    if minutes < 0:
        raise ValidationError({"older_than_minutes": ["Expiry window cannot be negative"]})
    as_of = as_utc(as_of) or datetime.now(UTC)
    cutoff = as_of - timedelta(minutes=minutes)

    logger.info("Checking for stale gateway orders", cutoff=cutoff.isoformat(), window_minutes=minutes)

    repo = current_domain.repository_for(Order)
    stale = [
        order
        for order in repo.find_by_status(OrderStatus.PENDING.value, PaymentMethod.GATEWAY)
        if order.created_at and as_utc(order.created_at) <= cutoff
    ]
    if not stale:
        logger.info("No stale gateway orders found")
        return []

    reason = f"Payment not completed within {minutes} minutes"
    expired = []
    for candidate in stale:
        try:
            run(ExpireOrder(order_id=candidate.order_id, reason=reason))
        except (PaymentConflict, ValidationError, InvalidOperationError) as exc:
            logger.warning("Failed to expire order", order_id=candidate.order_id, error=str(exc))
            continue

        order = repo.find_by_order_id(candidate.order_id)
        side_effects.on_order_expired(order)
        expired.append(order.order_id)
        logger.info(
            "Expired stale order",
            order_id=order.order_id,
            created_at=str(order.created_at),
            final_total=order.amounts.final_total,
        )

    logger.info("Stale order expiry complete", expired_count=len(expired))
    return expired

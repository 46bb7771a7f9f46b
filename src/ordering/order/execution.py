"""Synchronous command execution for the ordering services."""

import structlog
from protean.exceptions import ExpectedVersionError
from protean.utils.globals import current_domain

from ordering.errors import IllegalStateTransition

logger = structlog.get_logger(__name__)


def run(command):
    """Process ``command`` in-line and return the handler's result.

    Two requests that read the same order version race to write it; the
    loser gets ``ExpectedVersionError`` from the store and is reported as an
    illegal transition, so its side effects never run.
    """
    try:
        return current_domain.process(command, asynchronous=False)
    except ExpectedVersionError as exc:
        order_id = getattr(command, "order_id", None)
        logger.warning(
            "Order changed while the command was running",
            command=command.__class__.__name__,
            order_id=order_id,
        )
        raise IllegalStateTransition(
            f"Order {order_id} was modified by another request",
            order_id=order_id,
        ) from exc

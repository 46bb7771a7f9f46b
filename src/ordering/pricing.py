"""Money calculator — the single source of order totals.

Every amount shown to a customer, stored on an order or compared against
a gateway report goes through this module. Each line total is rounded up
to the nearest 10 before summing, and shipping, tax and the final total
are rounded the same way.
"""

import math
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass

from ordering.settings import Settings, get_settings

# Floating point slack allowed when comparing two already-rounded amounts
AMOUNT_EPSILON = 0.01


@dataclass(frozen=True)
class OrderTotals:
    subtotal: float
    shipping_cost: float
    tax_amount: float
    final_total: float
    is_free_shipping: bool

    def to_dict(self) -> dict:
        return asdict(self)


def round_up_10(amount: float) -> float:
    """Round ``amount`` up to the nearest multiple of 10."""
    return float(math.ceil(amount / 10) * 10)


def _line_values(item) -> tuple[float, int]:
    if isinstance(item, Mapping):
        return float(item["unit_amount"]), int(item["quantity"])
    return float(item.unit_amount), int(item.quantity)


def compute_totals(items: Iterable, settings: Settings | None = None) -> OrderTotals:
    """Compute subtotal, shipping, tax and final total for a list of items.

    Items may be mappings or objects exposing ``unit_amount`` and ``quantity``.
    An empty list yields a zero subtotal; rejecting it is the caller's job.
    """
    settings = settings or get_settings()

    subtotal = 0.0
    for item in items:
        unit_amount, quantity = _line_values(item)
        subtotal += round_up_10(unit_amount * quantity)

    is_free_shipping = subtotal >= settings.free_shipping_threshold
    shipping_cost = 0.0 if is_free_shipping else round_up_10(settings.base_shipping_cost)
    tax_amount = round_up_10(subtotal * settings.tax_rate)
    final_total = round_up_10(subtotal + shipping_cost + tax_amount)

    return OrderTotals(
        subtotal=subtotal,
        shipping_cost=shipping_cost,
        tax_amount=tax_amount,
        final_total=final_total,
        is_free_shipping=is_free_shipping,
    )


def amounts_match(expected: float, reported: float, epsilon: float = AMOUNT_EPSILON) -> bool:
    """Compare two amounts after rounding both sides identically."""
    return abs(round_up_10(expected) - round_up_10(reported)) < epsilon

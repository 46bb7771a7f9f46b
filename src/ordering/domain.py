"""Ordering bounded context — order lifecycle and payment reconciliation.

Covers order creation for both payment rails (card gateway and manual bank
transfer), gateway verification, bank reference and proof submission,
admin adjudication, stale order expiry and order tracking.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)

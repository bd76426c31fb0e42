"""Ordering bounded context: orders, carts, inventory and coupons.

Handles the order lifecycle (event-sourced), payment verification against
the payment gateway, and shipment orchestration against the carrier.
"""

from protean.domain import Domain

from ordering.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

ordering = Domain(name="ordering")

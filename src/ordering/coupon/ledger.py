"""Coupon ledger: checkout validation and usage counting."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.coupon.coupon import Coupon
from ordering.errors import ConflictError
from ordering.utils.logging import get_logger

logger = get_logger(__name__)


def discount_for(coupon_id, subtotal, now=None):
    """Validate the coupon against ``subtotal`` and return ``(coupon, discount)``.

    Raises ConflictError when the coupon is inactive, expired, used up or the
    order is below its minimum value. A missing coupon propagates
    ObjectNotFoundError from the repository.
    """
    coupon = current_domain.repository_for(Coupon).get(coupon_id)

    if not coupon.is_valid(now):
        raise ConflictError(f"Coupon {coupon.code} is invalid or expired")
    if subtotal < coupon.min_order_value:
        raise ConflictError(f"Minimum order value of {coupon.min_order_value:.2f} is required for coupon {coupon.code}")

    return coupon, coupon.calculate_discount(subtotal)


def commit_usage(coupon_id, order_id):
    """Count one use of the coupon for a paid order."""
    repo = current_domain.repository_for(Coupon)
    try:
        coupon = repo.get(coupon_id)
    except ObjectNotFoundError:
        # Removed after the order was placed; the payment still stands
        logger.warning("coupon_missing_at_commit", coupon_id=str(coupon_id), order_id=str(order_id))
        return

    coupon.record_usage()
    repo.add(coupon)

    logger.info("coupon_usage_committed", coupon_id=str(coupon_id), order_id=str(order_id), used_count=coupon.used_count)

"""Inventory ledger: stock and sales counters driven by the order lifecycle.

``commit`` runs once, right after a payment is verified. ``restore`` runs
only when a cancelled order had committed stock. Both work from the order's
item snapshot, never from live catalogue quantities.
"""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.inventory.product import Product
from ordering.utils.logging import get_logger

logger = get_logger(__name__)


def _load(repo, product_id, order_id):
    try:
        return repo.get(product_id)
    except ObjectNotFoundError:
        logger.warning("inventory_product_missing", product_id=str(product_id), order_id=str(order_id))
        return None


def commit(order):
    """Move every ordered quantity from stock to sales."""
    repo = current_domain.repository_for(Product)
    for item in order.items:
        product = _load(repo, item.product_id, order.id)
        if product is None:
            continue

        product.commit_sale(item.quantity, order.id)
        if product.stock < 0:
            logger.warning(
                "inventory_oversold",
                product_id=str(product.id),
                order_id=str(order.id),
                stock=product.stock,
            )
        repo.add(product)

    logger.info("inventory_committed", order_id=str(order.id), lines=len(order.items))


def restore(order):
    """Put every ordered quantity back into stock. Sales are left as recorded."""
    repo = current_domain.repository_for(Product)
    for item in order.items:
        product = _load(repo, item.product_id, order.id)
        if product is None:
            continue

        product.restock(item.quantity, order.id)
        repo.add(product)

    logger.info("inventory_restored", order_id=str(order.id), lines=len(order.items))

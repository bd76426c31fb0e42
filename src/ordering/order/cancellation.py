"""Order cancellation: command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.inventory import ledger as inventory_ledger
from ordering.order.order import CancellationActor, Order
from ordering.utils.logging import get_logger

logger = get_logger(__name__)


@ordering.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500, default="Cancelled by user")
    cancelled_by = String(choices=CancellationActor, default=CancellationActor.CUSTOMER.value)


def cancel_order(order, reason, cancelled_by):
    """Cancel ``order`` and put back any stock its payment took."""
    stock_taken = bool(order.inventory_committed)
    order.cancel(reason=reason, cancelled_by=cancelled_by)
    if stock_taken:
        inventory_ledger.restore(order)

    logger.info(
        "order_cancelled",
        order_id=str(order.id),
        cancelled_by=cancelled_by,
        payment_status=order.payment_status,
        stock_restored=stock_taken,
    )


@ordering.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        cancel_order(
            order,
            reason=command.reason or "Cancelled by user",
            cancelled_by=command.cancelled_by or CancellationActor.CUSTOMER.value,
        )
        repo.add(order)

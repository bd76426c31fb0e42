"""Admin status updates: command and handler.

Admins can move an order along the fulfilment path, cancel it or mark it
returned. PAID and PACKED are reachable only through payment verification
and shipment creation, never by hand.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.cancellation import cancel_order
from ordering.order.order import CancellationActor, Order, OrderStatus


@ordering.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, choices=OrderStatus)
    tracking_number = String(max_length=255)


def _apply_status(order, target):
    if target == OrderStatus.SHIPPED:
        order.mark_shipped(source="admin")
    elif target == OrderStatus.DELIVERED:
        order.mark_delivered(source="admin")
    elif target == OrderStatus.RETURNED:
        order.mark_returned()
    elif target == OrderStatus.CANCELLED:
        cancel_order(order, reason="Cancelled by admin", cancelled_by=CancellationActor.ADMIN.value)
    elif target == OrderStatus.PAID:
        raise ValidationError({"status": ["Orders become paid only through payment verification"]})
    elif target == OrderStatus.PACKED:
        raise ValidationError({"status": ["Orders are packed when a shipment is created"]})
    else:
        raise ValidationError({"status": [f"Cannot transition from {order.status} to {target.value}"]})


@ordering.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        if command.tracking_number:
            order.assign_tracking_number(command.tracking_number)

        target = OrderStatus(command.status)
        # Re-sending the current status only updates the tracking number
        if target != OrderStatus(order.status) or not command.tracking_number:
            _apply_status(order, target)

        repo.add(order)

"""Shipment tracking: pull the carrier's view and ratchet the order forward.

Tracking never moves an order backwards. Stale carrier reports are ignored,
and a carrier outage falls back to the last status recorded on the order.
"""

from dataclasses import dataclass, field

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from fulfillment.carrier.port import CarrierError, ShipmentStatus, TrackingEvent
from ordering.domain import ordering
from ordering.integrations import current_integrations
from ordering.order.order import Order, OrderStatus
from ordering.utils.logging import get_logger

logger = get_logger(__name__)

_MOVING = {ShipmentStatus.IN_TRANSIT, ShipmentStatus.OUT_FOR_DELIVERY}


@dataclass(frozen=True)
class TrackingSnapshot:
    awb: str
    status: str
    courier_name: str | None
    tracking_url: str | None
    order_status: str
    shipment_status: str
    events: tuple[TrackingEvent, ...] = field(default_factory=tuple)
    estimated_delivery: str | None = None
    current_location: str | None = None
    live: bool = True
    message: str | None = None


@ordering.command(part_of="Order")
class TrackShipment:
    order_id = Identifier(required=True)


def sync_order_status(order):
    """Move the order forward to match the recorded carrier status."""
    carrier_status = ShipmentStatus(order.shipment_status)

    if carrier_status == ShipmentStatus.DELIVERED:
        if OrderStatus(order.status) == OrderStatus.PACKED:
            order.mark_shipped(source="carrier")
        if OrderStatus(order.status) == OrderStatus.SHIPPED:
            order.mark_delivered(source="carrier")
    elif carrier_status in _MOVING and OrderStatus(order.status) == OrderStatus.PACKED:
        order.mark_shipped(source="carrier")


def _cached_snapshot(order, message):
    return TrackingSnapshot(
        awb=order.awb,
        status=order.shipment_status,
        courier_name=order.courier_name,
        tracking_url=order.tracking_url,
        order_status=order.status,
        shipment_status=order.shipment_status,
        live=False,
        message=message,
    )


@ordering.command_handler(part_of=Order)
class TrackShipmentHandler:
    @handle(TrackShipment)
    def track_shipment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        if not order.has_shipment:
            raise ValidationError({"awb": ["Tracking not available. Shipment not created yet."]})

        try:
            tracking = current_integrations().carrier.track_shipment(order.awb)
        except CarrierError as exc:
            logger.warning("shipment_tracking_failed", order_id=str(order.id), awb=order.awb, error=str(exc))
            return _cached_snapshot(order, str(exc) or "Failed to fetch tracking information")

        if order.record_carrier_status(tracking.status, tracking.tracking_url):
            logger.info(
                "shipment_status_advanced",
                order_id=str(order.id),
                awb=order.awb,
                shipment_status=order.shipment_status,
            )
        sync_order_status(order)
        repo.add(order)

        return TrackingSnapshot(
            awb=tracking.awb,
            status=tracking.status.value,
            courier_name=tracking.courier_name or order.courier_name,
            tracking_url=tracking.tracking_url or order.tracking_url,
            order_status=order.status,
            shipment_status=order.shipment_status,
            events=tracking.events,
            estimated_delivery=tracking.estimated_delivery,
            current_location=tracking.current_location,
        )

"""Shipment orchestration: booking and cancelling carrier shipments.

Booking a shipment never raises carrier failures to the caller. The carrier
call yields a ``ShipmentOutcome``: ``ShipmentCreated`` moves the order to
PACKED, ``ShipmentPending`` only raises the ``shipping_pending`` flag so an
operator can retry. Payment state is never touched here.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from fulfillment.carrier.port import CarrierError, ShipmentItem, ShipmentRequest, ShipmentStatus
from ordering.customer.customer import Customer
from ordering.domain import ordering
from ordering.integrations import current_integrations
from ordering.order.order import Order, PaymentStatus
from ordering.utils.logging import get_logger

logger = get_logger(__name__)

_CANCELLABLE_SHIPMENT_STATES = {ShipmentStatus.CREATED, ShipmentStatus.PICKED_UP}


@dataclass(frozen=True)
class ShipmentCreated:
    awb: str
    courier_name: str
    tracking_url: str
    shipment_id: str | None = None


@dataclass(frozen=True)
class ShipmentPending:
    reason: str


ShipmentOutcome = ShipmentCreated | ShipmentPending


def _load_customer(customer_id):
    try:
        return current_domain.repository_for(Customer).get(customer_id)
    except ObjectNotFoundError:
        return None


def build_shipment_request(order, customer=None, weight_per_item=0.5) -> ShipmentRequest:
    """Carrier booking for a prepaid order.

    Contact details come from the shipping address, falling back to the
    customer profile.
    """
    address = order.shipping_address

    def contact(field):
        value = getattr(address, field, None)
        if not value and customer is not None:
            value = getattr(customer, field, None)
        return value or ""

    total_quantity = sum(item.quantity for item in order.items)

    return ShipmentRequest(
        order_reference=order.order_number,
        order_date=datetime.now(UTC).isoformat(),
        payment_mode="Prepaid",
        customer_name=contact("name"),
        customer_phone=contact("phone"),
        customer_email=contact("email"),
        address_line1=address.address_line1,
        address_line2=address.address_line2 or "",
        city=address.city,
        state=address.state,
        pincode=address.pincode,
        country=address.country or "India",
        order_amount=order.pricing.total,
        cod_amount=0.0,
        weight=total_quantity * float(weight_per_item),
        items=tuple(
            ShipmentItem(
                name=item.name,
                sku=str(item.product_id),
                quantity=item.quantity,
                price=item.unit_price,
            )
            for item in order.items
        ),
    )


def book_shipment(order, carrier) -> ShipmentOutcome:
    """Ask the carrier for a pickup. Carrier failures become ShipmentPending."""
    request = build_shipment_request(
        order,
        customer=_load_customer(order.customer_id),
        weight_per_item=current_domain.WEIGHT_PER_ITEM_KG,
    )
    try:
        booking = carrier.create_shipment(request)
    except CarrierError as exc:
        logger.warning(
            "shipment_booking_failed",
            order_id=str(order.id),
            order_number=order.order_number,
            error=str(exc),
        )
        return ShipmentPending(reason=str(exc) or type(exc).__name__)

    return ShipmentCreated(
        awb=booking.awb,
        courier_name=booking.courier_name,
        tracking_url=booking.tracking_url,
        shipment_id=booking.shipment_id,
    )


def apply_outcome(order, outcome: ShipmentOutcome) -> None:
    if isinstance(outcome, ShipmentCreated):
        order.record_shipment(
            awb=outcome.awb,
            courier_name=outcome.courier_name,
            tracking_url=outcome.tracking_url,
            carrier_shipment_id=outcome.shipment_id,
        )
        logger.info("shipment_created", order_id=str(order.id), awb=outcome.awb)
    else:
        order.record_shipment_pending(outcome.reason)


def ship(order) -> ShipmentOutcome:
    """Book a shipment for a paid order and record the outcome on it."""
    outcome = book_shipment(order, current_integrations().carrier)
    apply_outcome(order, outcome)
    return outcome


@ordering.command(part_of="Order")
class CreateShipment:
    """Retry carrier booking for a paid order (admin)."""

    order_id = Identifier(required=True)


@ordering.command(part_of="Order")
class CancelShipment:
    """Cancel a carrier shipment that has not left the warehouse (admin)."""

    order_id = Identifier(required=True)


@ordering.command_handler(part_of=Order)
class ShipmentHandler:
    @handle(CreateShipment)
    def create_shipment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        if order.has_shipment:
            raise ValidationError({"awb": ["Shipment already created"]})
        if PaymentStatus(order.payment_status) != PaymentStatus.PAID:
            raise ValidationError({"payment_status": ["Cannot create shipment for unpaid order"]})

        outcome = ship(order)
        repo.add(order)
        return outcome

    @handle(CancelShipment)
    def cancel_shipment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        if not order.has_shipment:
            raise ValidationError({"awb": ["No shipment to cancel"]})
        if ShipmentStatus(order.shipment_status) not in _CANCELLABLE_SHIPMENT_STATES:
            raise ValidationError({"shipment_status": [f"Shipment is {order.shipment_status} and cannot be cancelled"]})

        current_integrations().carrier.cancel_shipment(order.awb)
        order.record_carrier_status(ShipmentStatus.CANCELLED)
        repo.add(order)

        logger.info("shipment_cancelled", order_id=str(order.id), awb=order.awb)

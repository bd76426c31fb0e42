"""Domain events for the Order aggregate.

All events are versioned, immutable facts representing state changes.
Events are persisted to the event store and used for:
- Rebuilding aggregate state via @apply (event sourcing)
- Updating the order summary projection via its projector
"""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderCreated:
    """A pending order was created from a shopping cart at checkout."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of item snapshots
    shipping_address = Text(required=True)  # JSON: address dict
    payment_method = String(required=True)
    subtotal = Float(required=True)
    discount = Float()
    shipping_cost = Float()
    tax = Float()
    total = Float(required=True)
    currency = String(default="INR")
    coupon_id = Identifier()
    coupon_code = String()
    created_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentIntentCreated:
    """The payment gateway issued an order the customer can pay against."""

    __version__ = 1

    order_id = Identifier(required=True)
    gateway_order_id = String(required=True)
    amount = Integer(required=True)  # minor units
    currency = String(required=True)


@ordering.event(part_of="Order")
class PaymentConfirmed:
    """The checkout signature matched: the order is paid."""

    __version__ = 1

    order_id = Identifier(required=True)
    gateway_order_id = String(required=True)
    payment_id = String(required=True)
    signature = String(required=True)
    amount = Float(required=True)
    paid_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentVerificationFailed:
    """The checkout signature did not match. Terminal: the order is cancelled."""

    __version__ = 1

    order_id = Identifier(required=True)
    gateway_order_id = String(required=True)
    payment_id = String()
    reason = String(required=True)
    failed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class ShipmentCreated:
    """The carrier accepted a shipment for a paid order."""

    __version__ = 1

    order_id = Identifier(required=True)
    awb = String(required=True)
    courier_name = String(required=True)
    tracking_url = String(max_length=500, sanitize=False)
    carrier_shipment_id = String()
    created_at = DateTime(required=True)


@ordering.event(part_of="Order")
class ShipmentCreationFailed:
    """Shipment booking failed; the order waits for a manual retry."""

    __version__ = 1

    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)
    failed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class ShipmentStatusUpdated:
    """The carrier reported a newer shipment status."""

    __version__ = 1

    order_id = Identifier(required=True)
    awb = String(required=True)
    shipment_status = String(required=True)
    tracking_url = String(max_length=500, sanitize=False)
    updated_at = DateTime(required=True)


@ordering.event(part_of="Order")
class TrackingNumberAssigned:
    """An administrator recorded a tracking number on the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    tracking_number = String(required=True)
    assigned_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderShipped:
    """The order left the warehouse."""

    __version__ = 1

    order_id = Identifier(required=True)
    source = String(required=True)  # "carrier" or "admin"
    shipped_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderDelivered:
    """The order reached the customer."""

    __version__ = 1

    order_id = Identifier(required=True)
    source = String(required=True)  # "carrier" or "admin"
    delivered_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderReturned:
    """An administrator marked the order as returned."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    returned_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled by the customer or an administrator."""

    __version__ = 1

    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)
    cancelled_by = String(required=True)
    refunded = Boolean(default=False)
    cancelled_at = DateTime(required=True)

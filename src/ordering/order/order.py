"""Order aggregate (Event Sourced): the core of the ordering domain.

The Order aggregate uses event sourcing: all state changes are captured as
domain events, and the current state is rebuilt by replaying events via
@apply decorators.

State Machine (7 states):
    PENDING → PAID → PACKED → SHIPPED → DELIVERED
    PENDING / PAID → CANCELLED
    any → RETURNED (admin only)

PENDING → PAID happens only through payment verification, PAID → PACKED only
through a successful carrier booking. The carrier-side shipment status is
tracked separately and only ever moves forward.
"""

import json
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean import apply, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Dict,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from fulfillment.carrier.port import ShipmentStatus
from ordering.domain import ordering
from ordering.order.events import (
    OrderCancelled,
    OrderCreated,
    OrderDelivered,
    OrderReturned,
    OrderShipped,
    PaymentConfirmed,
    PaymentIntentCreated,
    PaymentVerificationFailed,
    ShipmentCreated,
    ShipmentCreationFailed,
    ShipmentStatusUpdated,
    TrackingNumberAssigned,
)
from ordering.order.pricing import totals_balance


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    PACKED = "packed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    RETURNED = "returned"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class CancellationActor(Enum):
    CUSTOMER = "Customer"
    SYSTEM = "System"
    ADMIN = "Admin"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELLED, OrderStatus.RETURNED},
    OrderStatus.PAID: {OrderStatus.PACKED, OrderStatus.CANCELLED, OrderStatus.RETURNED},
    OrderStatus.PACKED: {OrderStatus.SHIPPED, OrderStatus.RETURNED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.RETURNED},
    OrderStatus.DELIVERED: {OrderStatus.RETURNED},
    OrderStatus.CANCELLED: {OrderStatus.RETURNED},
    OrderStatus.RETURNED: set(),  # Terminal
}

# States from which cancellation is allowed
_CANCELLABLE_STATES = {OrderStatus.PENDING, OrderStatus.PAID}

# Forward order of the carrier-side lifecycle; the alternates below end it early
_SHIPMENT_PROGRESS = [
    ShipmentStatus.NONE,
    ShipmentStatus.CREATED,
    ShipmentStatus.PICKED_UP,
    ShipmentStatus.IN_TRANSIT,
    ShipmentStatus.OUT_FOR_DELIVERY,
    ShipmentStatus.DELIVERED,
]
_SHIPMENT_ALTERNATE_ENDS = {ShipmentStatus.RETURNED, ShipmentStatus.RTO, ShipmentStatus.CANCELLED}
_SHIPMENT_TERMINAL = _SHIPMENT_ALTERNATE_ENDS | {ShipmentStatus.DELIVERED}


def shipment_status_advances(current: ShipmentStatus, reported: ShipmentStatus) -> bool:
    """True when ``reported`` is newer than ``current`` in the carrier lifecycle."""
    if current in _SHIPMENT_TERMINAL or reported == current:
        return False
    if reported in _SHIPMENT_ALTERNATE_ENDS:
        return True
    return _SHIPMENT_PROGRESS.index(reported) > _SHIPMENT_PROGRESS.index(current)


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class ShippingAddress:
    """Where the order is delivered, captured at checkout.

    Once recorded on an Order the address is immutable, regardless of later
    changes to the customer's saved addresses.
    """

    name = String(required=True, max_length=100)
    phone = String(required=True, max_length=20)
    email = String(max_length=254)
    address_line1 = String(required=True, max_length=255)
    address_line2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    pincode = String(required=True, max_length=10)
    country = String(max_length=100, default="India")


@ordering.value_object(part_of="Order")
class OrderPricing:
    """Financial summary of an order, locked at checkout."""

    subtotal = Float(default=0.0, min_value=0.0)
    discount = Float(default=0.0, min_value=0.0)
    shipping_cost = Float(default=0.0, min_value=0.0)
    tax = Float(default=0.0, min_value=0.0)
    total = Float(default=0.0, min_value=0.0)
    currency = String(max_length=3, default="INR")

    @invariant.post
    def total_must_balance(self):
        if not totals_balance(self.subtotal, self.discount, self.shipping_cost, self.tax, self.total):
            raise ValidationError({"total": ["Total must equal subtotal - discount + shipping + tax"]})


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A product snapshot taken when the order was placed.

    Name, image and price are copied from the catalogue so later product
    edits never change what the customer bought.
    """

    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    image = String(max_length=500, sanitize=False)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    variant = Dict()

    @property
    def line_total(self):
        return self.unit_price * self.quantity


@ordering.entity(part_of="Order")
class StatusEntry:
    """One row of the append-only status history."""

    status = String(required=True, choices=OrderStatus)
    changed_at = DateTime(required=True)
    note = String(max_length=500)


# ---------------------------------------------------------------------------
# Aggregate Root (Event Sourced)
# ---------------------------------------------------------------------------
@ordering.aggregate(is_event_sourced=True)
class Order:
    order_number = String(required=True, max_length=40)
    customer_id = Identifier(required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    items = HasMany(OrderItem)
    status_history = HasMany(StatusEntry)
    shipping_address = ValueObject(ShippingAddress)
    pricing = ValueObject(OrderPricing)
    payment_method = String(max_length=50)
    coupon_id = Identifier()
    coupon_code = String(max_length=50)

    # Payment
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    gateway_order_id = String(max_length=255)
    gateway_payment_id = String(max_length=255)
    gateway_signature = String(max_length=255)
    paid_at = DateTime()
    inventory_committed = Boolean(default=False)

    # Fulfillment
    tracking_number = String(max_length=255)
    awb = String(max_length=100)
    courier_name = String(max_length=100)
    tracking_url = String(max_length=500, sanitize=False)
    carrier_shipment_id = String(max_length=100)
    shipment_status = String(choices=ShipmentStatus, default=ShipmentStatus.NONE.value)
    shipping_pending = Boolean(default=False)
    shipment_error = String(max_length=500)
    delivered_at = DateTime()

    # Cancellation
    cancelled_at = DateTime()
    cancellation_reason = String(max_length=500)
    cancelled_by = String(max_length=50)

    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        order_number,
        customer_id,
        items_data,
        shipping_address,
        payment_method,
        pricing,
        coupon_id=None,
        coupon_code=None,
    ):
        """Create a new pending order from checkout data.

        Uses _create_new() to get a blank aggregate with auto-generated
        identity. All state is established by the OrderCreated event's
        @apply handler.

        Args:
            order_number: Human-readable number issued by OrderNumberSequence.
            customer_id: The customer placing the order.
            items_data: List of dicts with product_id, name, image,
                        unit_price, quantity, variant.
            shipping_address: Dict matching ShippingAddress.
            payment_method: Gateway method the customer pays with.
            pricing: Dict with subtotal, discount, shipping_cost, tax,
                     total, currency.
        """
        now = datetime.now(UTC)

        # Pre-generate item IDs for deterministic replay
        items_with_ids = [{**item, "id": str(uuid4())} for item in items_data]

        order = cls._create_new()
        order.raise_(
            OrderCreated(
                order_id=str(order.id),
                order_number=order_number,
                customer_id=str(customer_id),
                items=json.dumps(items_with_ids),
                shipping_address=json.dumps(shipping_address),
                payment_method=payment_method,
                subtotal=pricing["subtotal"],
                discount=pricing.get("discount", 0.0),
                shipping_cost=pricing.get("shipping_cost", 0.0),
                tax=pricing.get("tax", 0.0),
                total=pricing["total"],
                currency=pricing.get("currency", "INR"),
                coupon_id=str(coupon_id) if coupon_id else None,
                coupon_code=coupon_code,
                created_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # State transition helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def _record_status(self, status, changed_at, note=None):
        self.status = status.value
        self.updated_at = changed_at
        self.add_status_history(StatusEntry(status=status.value, changed_at=changed_at, note=note))

    @property
    def has_shipment(self):
        return bool(self.awb)

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def record_payment_intent(self, gateway_order_id, amount, currency):
        """Attach the gateway order the customer will pay against."""
        if OrderStatus(self.status) != OrderStatus.PENDING:
            raise ValidationError({"status": ["Payment can only be requested for pending orders"]})

        self.raise_(
            PaymentIntentCreated(
                order_id=str(self.id),
                gateway_order_id=gateway_order_id,
                amount=amount,
                currency=currency,
            )
        )

    def assert_awaiting_payment(self, gateway_order_id):
        if PaymentStatus(self.payment_status) != PaymentStatus.PENDING:
            raise ValidationError({"payment_status": [f"Order payment is already {self.payment_status}"]})
        if OrderStatus(self.status) != OrderStatus.PENDING:
            raise ValidationError({"status": [f"Order is {self.status} and no longer awaiting payment"]})
        if not self.gateway_order_id or gateway_order_id != self.gateway_order_id:
            raise ValidationError({"gateway_order_id": ["Gateway order does not belong to this order"]})

    def confirm_payment(self, gateway_order_id, payment_id, signature):
        """Record a verified payment. The only way into PAID."""
        self.assert_awaiting_payment(gateway_order_id)
        self._assert_can_transition(OrderStatus.PAID)

        self.raise_(
            PaymentConfirmed(
                order_id=str(self.id),
                gateway_order_id=gateway_order_id,
                payment_id=payment_id,
                signature=signature,
                amount=self.pricing.total,
                paid_at=datetime.now(UTC),
            )
        )

    def fail_payment(self, gateway_order_id, payment_id, reason):
        """Record a signature mismatch. Terminal: the order is cancelled."""
        self.assert_awaiting_payment(gateway_order_id)

        self.raise_(
            PaymentVerificationFailed(
                order_id=str(self.id),
                gateway_order_id=gateway_order_id,
                payment_id=payment_id,
                reason=reason,
                failed_at=datetime.now(UTC),
            )
        )

    # -------------------------------------------------------------------
    # Shipment
    # -------------------------------------------------------------------
    def record_shipment(self, awb, courier_name, tracking_url, carrier_shipment_id=None):
        """Record a carrier booking and move the order to PACKED."""
        if self.has_shipment:
            raise ValidationError({"awb": ["Shipment already created"]})
        if PaymentStatus(self.payment_status) != PaymentStatus.PAID:
            raise ValidationError({"payment_status": ["Cannot create shipment for unpaid order"]})
        self._assert_can_transition(OrderStatus.PACKED)

        self.raise_(
            ShipmentCreated(
                order_id=str(self.id),
                awb=awb,
                courier_name=courier_name,
                tracking_url=tracking_url,
                carrier_shipment_id=carrier_shipment_id,
                created_at=datetime.now(UTC),
            )
        )

    def record_shipment_pending(self, reason):
        """Flag a failed carrier booking for manual retry. Status is untouched."""
        if self.has_shipment:
            raise ValidationError({"awb": ["Shipment already created"]})

        self.raise_(
            ShipmentCreationFailed(
                order_id=str(self.id),
                reason=reason[:500],
                failed_at=datetime.now(UTC),
            )
        )

    def record_carrier_status(self, shipment_status, tracking_url=None):
        """Apply a carrier-reported status if it is newer than the current one.

        Returns True when the status moved forward, False for stale or
        repeated reports.
        """
        if not self.has_shipment:
            raise ValidationError({"awb": ["Tracking not available. Shipment not created yet."]})

        if not shipment_status_advances(ShipmentStatus(self.shipment_status), shipment_status):
            return False

        self.raise_(
            ShipmentStatusUpdated(
                order_id=str(self.id),
                awb=self.awb,
                shipment_status=shipment_status.value,
                tracking_url=tracking_url or self.tracking_url,
                updated_at=datetime.now(UTC),
            )
        )
        return True

    def assign_tracking_number(self, tracking_number):
        self.raise_(
            TrackingNumberAssigned(
                order_id=str(self.id),
                tracking_number=tracking_number,
                assigned_at=datetime.now(UTC),
            )
        )

    # -------------------------------------------------------------------
    # Fulfillment lifecycle
    # -------------------------------------------------------------------
    def mark_shipped(self, source):
        self._assert_can_transition(OrderStatus.SHIPPED)
        self.raise_(
            OrderShipped(
                order_id=str(self.id),
                source=source,
                shipped_at=datetime.now(UTC),
            )
        )

    def mark_delivered(self, source):
        self._assert_can_transition(OrderStatus.DELIVERED)
        self.raise_(
            OrderDelivered(
                order_id=str(self.id),
                source=source,
                delivered_at=datetime.now(UTC),
            )
        )

    def mark_returned(self):
        """Admin override: any state except RETURNED itself."""
        self._assert_can_transition(OrderStatus.RETURNED)
        self.raise_(
            OrderReturned(
                order_id=str(self.id),
                previous_status=self.status,
                returned_at=datetime.now(UTC),
            )
        )

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel(self, reason, cancelled_by):
        """Cancel the order. A paid order is flagged as refunded."""
        if OrderStatus(self.status) not in _CANCELLABLE_STATES:
            raise ValidationError({"status": ["Order cannot be cancelled at this stage"]})

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                reason=reason,
                cancelled_by=cancelled_by,
                refunded=PaymentStatus(self.payment_status) == PaymentStatus.PAID,
                cancelled_at=datetime.now(UTC),
            )
        )

    # -------------------------------------------------------------------
    # @apply methods: rebuild state during event replay
    # -------------------------------------------------------------------
    @apply
    def _on_order_created(self, event: OrderCreated):
        self.id = event.order_id
        self.order_number = event.order_number
        self.customer_id = event.customer_id
        self.status = OrderStatus.PENDING.value
        self.payment_status = PaymentStatus.PENDING.value
        self.shipment_status = ShipmentStatus.NONE.value
        # _create_new() skips field defaults
        self.shipping_pending = False
        self.inventory_committed = False
        self.payment_method = event.payment_method
        self.coupon_id = event.coupon_id
        self.coupon_code = event.coupon_code
        self.created_at = event.created_at
        self.updated_at = event.created_at

        # Reconstruct items from JSON (includes IDs for deterministic replay)
        items_data = json.loads(event.items) if isinstance(event.items, str) else []
        self.items = [OrderItem(**item_data) for item_data in items_data]

        address_data = json.loads(event.shipping_address) if isinstance(event.shipping_address, str) else {}
        if address_data:
            self.shipping_address = ShippingAddress(**address_data)

        self.pricing = OrderPricing(
            subtotal=event.subtotal,
            discount=event.discount or 0.0,
            shipping_cost=event.shipping_cost or 0.0,
            tax=event.tax or 0.0,
            total=event.total,
            currency=event.currency or "INR",
        )

    @apply
    def _on_payment_intent_created(self, event: PaymentIntentCreated):
        self.gateway_order_id = event.gateway_order_id

    @apply
    def _on_payment_confirmed(self, event: PaymentConfirmed):
        self.payment_status = PaymentStatus.PAID.value
        self.gateway_payment_id = event.payment_id
        self.gateway_signature = event.signature
        self.paid_at = event.paid_at
        self.inventory_committed = True
        self._record_status(OrderStatus.PAID, event.paid_at)

    @apply
    def _on_payment_verification_failed(self, event: PaymentVerificationFailed):
        self.payment_status = PaymentStatus.FAILED.value
        self.gateway_payment_id = event.payment_id
        self.cancelled_at = event.failed_at
        self.cancellation_reason = "Payment verification failed"
        self.cancelled_by = CancellationActor.SYSTEM.value
        self._record_status(OrderStatus.CANCELLED, event.failed_at, note=event.reason)

    @apply
    def _on_shipment_created(self, event: ShipmentCreated):
        self.awb = event.awb
        self.courier_name = event.courier_name
        self.tracking_url = event.tracking_url
        self.carrier_shipment_id = event.carrier_shipment_id
        self.shipment_status = ShipmentStatus.CREATED.value
        self.shipping_pending = False
        self.shipment_error = None
        self._record_status(OrderStatus.PACKED, event.created_at, note=f"AWB {event.awb}")

    @apply
    def _on_shipment_creation_failed(self, event: ShipmentCreationFailed):
        self.shipping_pending = True
        self.shipment_error = event.reason
        self.updated_at = event.failed_at

    @apply
    def _on_shipment_status_updated(self, event: ShipmentStatusUpdated):
        self.shipment_status = event.shipment_status
        if event.tracking_url:
            self.tracking_url = event.tracking_url
        self.updated_at = event.updated_at

    @apply
    def _on_tracking_number_assigned(self, event: TrackingNumberAssigned):
        self.tracking_number = event.tracking_number
        self.updated_at = event.assigned_at

    @apply
    def _on_order_shipped(self, event: OrderShipped):
        self._record_status(OrderStatus.SHIPPED, event.shipped_at, note=f"via {event.source}")

    @apply
    def _on_order_delivered(self, event: OrderDelivered):
        if self.delivered_at is None:
            self.delivered_at = event.delivered_at
        self._record_status(OrderStatus.DELIVERED, event.delivered_at, note=f"via {event.source}")

    @apply
    def _on_order_returned(self, event: OrderReturned):
        self._record_status(OrderStatus.RETURNED, event.returned_at)

    @apply
    def _on_order_cancelled(self, event: OrderCancelled):
        self.cancelled_at = event.cancelled_at
        self.cancellation_reason = event.reason
        self.cancelled_by = event.cancelled_by
        if event.refunded:
            self.payment_status = PaymentStatus.REFUNDED.value
        self._record_status(OrderStatus.CANCELLED, event.cancelled_at, note=event.reason)

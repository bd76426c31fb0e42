"""Order summary: lightweight listing/history view."""

import json

from protean.core.projector import on
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.events import (
    OrderCancelled,
    OrderCreated,
    OrderDelivered,
    OrderReturned,
    OrderShipped,
    PaymentConfirmed,
    PaymentVerificationFailed,
    ShipmentCreated,
    ShipmentCreationFailed,
    ShipmentStatusUpdated,
)
from ordering.order.order import Order


@ordering.projection
class OrderSummary:
    order_id = Identifier(identifier=True, required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    status = String(required=True)
    payment_status = String(required=True)
    shipment_status = String(default="none")
    shipping_pending = Boolean(default=False)
    awb = String()
    item_count = Integer(default=0)
    total = Float()
    currency = String(default="INR")
    created_at = DateTime()
    updated_at = DateTime()


def orders_for_customer(customer_id):
    """Every order the customer has placed, newest first."""
    repo = current_domain.repository_for(OrderSummary)
    return (
        repo._dao.query.filter(customer_id=str(customer_id)).order_by("-created_at").limit(None).all().items
    )


def order_page(status=None, page=1, limit=20):
    """One page of all orders, newest first, optionally filtered by status."""
    repo = current_domain.repository_for(OrderSummary)
    query = repo._dao.query
    if status:
        query = query.filter(status=status)
    return query.order_by("-created_at").offset((page - 1) * limit).limit(limit).all()


@ordering.projector(projector_for=OrderSummary, aggregates=[Order])
class OrderSummaryProjector:
    def _update(self, order_id, updated_at=None, **changes):
        repo = current_domain.repository_for(OrderSummary)
        summary = repo.get(order_id)
        for name, value in changes.items():
            setattr(summary, name, value)
        if updated_at is not None:
            summary.updated_at = updated_at
        repo.add(summary)

    @on(OrderCreated)
    def on_order_created(self, event):
        items = json.loads(event.items) if isinstance(event.items, str) else []
        current_domain.repository_for(OrderSummary).add(
            OrderSummary(
                order_id=event.order_id,
                order_number=event.order_number,
                customer_id=event.customer_id,
                status="pending",
                payment_status="pending",
                item_count=sum(item["quantity"] for item in items),
                total=event.total,
                currency=event.currency or "INR",
                created_at=event.created_at,
                updated_at=event.created_at,
            )
        )

    @on(PaymentConfirmed)
    def on_payment_confirmed(self, event):
        self._update(event.order_id, event.paid_at, status="paid", payment_status="paid")

    @on(PaymentVerificationFailed)
    def on_payment_verification_failed(self, event):
        self._update(event.order_id, event.failed_at, status="cancelled", payment_status="failed")

    @on(ShipmentCreated)
    def on_shipment_created(self, event):
        self._update(
            event.order_id,
            event.created_at,
            status="packed",
            awb=event.awb,
            shipment_status="created",
            shipping_pending=False,
        )

    @on(ShipmentCreationFailed)
    def on_shipment_creation_failed(self, event):
        self._update(event.order_id, event.failed_at, shipping_pending=True)

    @on(ShipmentStatusUpdated)
    def on_shipment_status_updated(self, event):
        self._update(event.order_id, event.updated_at, shipment_status=event.shipment_status)

    @on(OrderShipped)
    def on_order_shipped(self, event):
        self._update(event.order_id, event.shipped_at, status="shipped")

    @on(OrderDelivered)
    def on_order_delivered(self, event):
        self._update(event.order_id, event.delivered_at, status="delivered")

    @on(OrderReturned)
    def on_order_returned(self, event):
        self._update(event.order_id, event.returned_at, status="returned")

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        changes = {"status": "cancelled"}
        if event.refunded:
            changes["payment_status"] = "refunded"
        self._update(event.order_id, event.cancelled_at, **changes)

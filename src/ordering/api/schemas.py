"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    name: str
    phone: str
    email: str | None = None
    address_line1: str
    address_line2: str | None = None
    city: str
    state: str
    pincode: str
    country: str = "India"


class OrderItemSchema(BaseModel):
    product_id: str
    name: str
    image: str | None = None
    unit_price: float
    quantity: int
    variant: dict = Field(default_factory=dict)


class StatusEntrySchema(BaseModel):
    status: str
    changed_at: datetime
    note: str | None = None


class PricingSchema(BaseModel):
    subtotal: float
    discount: float
    shipping_cost: float
    tax: float
    total: float
    currency: str


class PaymentSchema(BaseModel):
    status: str
    method: str | None = None
    gateway_order_id: str | None = None
    gateway_payment_id: str | None = None
    paid_at: datetime | None = None


class ShipmentSchema(BaseModel):
    awb: str | None = None
    courier_name: str | None = None
    tracking_url: str | None = None
    tracking_number: str | None = None
    status: str
    shipping_pending: bool = False
    error: str | None = None
    delivered_at: datetime | None = None


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class CreateCartRequest(BaseModel):
    customer_id: str

    model_config = {"json_schema_extra": {"examples": [{"customer_id": "cust-001"}]}}


class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)
    variant: dict = Field(default_factory=dict)


class ApplyCouponToCartRequest(BaseModel):
    coupon_code: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    cart_id: str
    shipping_address: AddressSchema
    payment_method: str = "razorpay"

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "cart_id": "cart-001",
                    "shipping_address": {
                        "name": "Asha Verma",
                        "phone": "9876543210",
                        "address_line1": "12 Lake View Road",
                        "city": "Pune",
                        "state": "Maharashtra",
                        "pincode": "411001",
                    },
                    "payment_method": "razorpay",
                }
            ]
        }
    }


class VerifyPaymentRequest(BaseModel):
    gateway_order_id: str
    payment_id: str
    signature: str


class CancelOrderRequest(BaseModel):
    reason: str | None = None


class UpdateOrderStatusRequest(BaseModel):
    status: str
    tracking_number: str | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class CartIdResponse(BaseModel):
    cart_id: str


class CartItemResponse(BaseModel):
    item_id: str


class CouponAppliedResponse(BaseModel):
    coupon_code: str


class StatusResponse(BaseModel):
    status: str = "ok"


class OrderResponse(BaseModel):
    order_id: str
    order_number: str
    customer_id: str
    status: str
    items: list[OrderItemSchema]
    shipping_address: AddressSchema | None = None
    pricing: PricingSchema
    coupon_code: str | None = None
    payment: PaymentSchema
    shipment: ShipmentSchema
    status_history: list[StatusEntrySchema] = Field(default_factory=list)
    cancellation_reason: str | None = None
    cancelled_by: str | None = None
    cancelled_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        address = order.shipping_address
        return cls(
            order_id=str(order.id),
            order_number=order.order_number,
            customer_id=str(order.customer_id),
            status=order.status,
            items=[
                OrderItemSchema(
                    product_id=str(item.product_id),
                    name=item.name,
                    image=item.image,
                    unit_price=item.unit_price,
                    quantity=item.quantity,
                    variant=item.variant or {},
                )
                for item in order.items
            ],
            shipping_address=AddressSchema(**address.to_dict()) if address else None,
            pricing=PricingSchema(**order.pricing.to_dict()),
            coupon_code=order.coupon_code,
            payment=PaymentSchema(
                status=order.payment_status,
                method=order.payment_method,
                gateway_order_id=order.gateway_order_id,
                gateway_payment_id=order.gateway_payment_id,
                paid_at=order.paid_at,
            ),
            shipment=ShipmentSchema(
                awb=order.awb,
                courier_name=order.courier_name,
                tracking_url=order.tracking_url,
                tracking_number=order.tracking_number,
                status=order.shipment_status,
                shipping_pending=bool(order.shipping_pending),
                error=order.shipment_error,
                delivered_at=order.delivered_at,
            ),
            status_history=[
                StatusEntrySchema(status=entry.status, changed_at=entry.changed_at, note=entry.note)
                for entry in order.status_history
            ],
            cancellation_reason=order.cancellation_reason,
            cancelled_by=order.cancelled_by,
            cancelled_at=order.cancelled_at,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class PaymentIntentResponse(BaseModel):
    gateway_order_id: str
    amount: int
    currency: str
    receipt: str


class PlaceOrderResponse(BaseModel):
    order: OrderResponse
    payment_intent: PaymentIntentResponse


class OrderSummaryResponse(BaseModel):
    order_id: str
    order_number: str
    customer_id: str
    status: str
    payment_status: str
    shipment_status: str | None = None
    shipping_pending: bool = False
    item_count: int = 0
    total: float | None = None
    currency: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_summary(cls, summary) -> "OrderSummaryResponse":
        return cls(
            order_id=str(summary.order_id),
            order_number=summary.order_number,
            customer_id=str(summary.customer_id),
            status=summary.status,
            payment_status=summary.payment_status,
            shipment_status=summary.shipment_status,
            shipping_pending=bool(summary.shipping_pending),
            item_count=summary.item_count or 0,
            total=summary.total,
            currency=summary.currency,
            created_at=summary.created_at,
        )


class OrderListResponse(BaseModel):
    orders: list[OrderSummaryResponse]


class PaginationSchema(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class OrderPageResponse(BaseModel):
    orders: list[OrderSummaryResponse]
    pagination: PaginationSchema


class TrackingEventSchema(BaseModel):
    status: str
    description: str | None = None
    location: str | None = None
    occurred_at: str | None = None


class TrackingResponse(BaseModel):
    awb: str
    status: str
    courier_name: str | None = None
    tracking_url: str | None = None
    events: list[TrackingEventSchema] = Field(default_factory=list)
    estimated_delivery: str | None = None
    current_location: str | None = None
    order_status: str
    shipment_status: str
    live: bool = True
    message: str | None = None

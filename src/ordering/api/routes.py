"""FastAPI routes for the Ordering domain: carts and orders."""

import json
import math
from dataclasses import asdict

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from protean.utils.globals import current_domain

from ordering.api.schemas import (
    AddToCartRequest,
    ApplyCouponToCartRequest,
    CancelOrderRequest,
    CartIdResponse,
    CartItemResponse,
    CouponAppliedResponse,
    CreateCartRequest,
    OrderListResponse,
    OrderPageResponse,
    OrderResponse,
    OrderSummaryResponse,
    PaginationSchema,
    PaymentIntentResponse,
    PlaceOrderRequest,
    PlaceOrderResponse,
    StatusResponse,
    TrackingResponse,
    UpdateOrderStatusRequest,
    VerifyPaymentRequest,
)
from ordering.cart.coupons import ApplyCouponToCart
from ordering.cart.items import AddToCart, RemoveFromCart
from ordering.cart.management import CreateCart
from ordering.order.cancellation import CancelOrder
from ordering.order.creation import PlaceOrder
from ordering.order.fulfillment import UpdateOrderStatus
from ordering.order.order import Order
from ordering.order.payment import VerifyPayment
from ordering.order.shipment import CancelShipment, CreateShipment, ShipmentPending
from ordering.order.tracking import TrackShipment
from ordering.projections.order_summary import order_page, orders_for_customer


def _order_response(order_id: str) -> OrderResponse:
    order = current_domain.repository_for(Order).get(order_id)
    return OrderResponse.from_order(order)


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.post("", status_code=201, response_model=CartIdResponse)
async def create_cart(body: CreateCartRequest) -> CartIdResponse:
    command = CreateCart(customer_id=body.customer_id)
    result = current_domain.process(command, asynchronous=False)
    return CartIdResponse(cart_id=result)


@cart_router.post("/{cart_id}/items", status_code=201, response_model=CartItemResponse)
async def add_cart_item(cart_id: str, body: AddToCartRequest) -> CartItemResponse:
    command = AddToCart(
        cart_id=cart_id,
        product_id=body.product_id,
        quantity=body.quantity,
        variant=body.variant,
    )
    item_id = current_domain.process(command, asynchronous=False)
    return CartItemResponse(item_id=item_id)


@cart_router.delete("/{cart_id}/items/{item_id}", response_model=StatusResponse)
async def remove_cart_item(cart_id: str, item_id: str) -> StatusResponse:
    command = RemoveFromCart(cart_id=cart_id, item_id=item_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.post("/{cart_id}/coupon", response_model=CouponAppliedResponse)
async def apply_cart_coupon(cart_id: str, body: ApplyCouponToCartRequest) -> CouponAppliedResponse:
    command = ApplyCouponToCart(cart_id=cart_id, coupon_code=body.coupon_code)
    coupon_code = current_domain.process(command, asynchronous=False)
    return CouponAppliedResponse(coupon_code=coupon_code)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=PlaceOrderResponse)
async def place_order(body: PlaceOrderRequest) -> PlaceOrderResponse:
    command = PlaceOrder(
        cart_id=body.cart_id,
        shipping_address=json.dumps(body.shipping_address.model_dump(exclude_none=True)),
        payment_method=body.payment_method,
    )
    placed = current_domain.process(command, asynchronous=False)
    intent = placed.payment_intent
    return PlaceOrderResponse(
        order=_order_response(placed.order_id),
        payment_intent=PaymentIntentResponse(
            gateway_order_id=intent.gateway_order_id,
            amount=intent.amount,
            currency=intent.currency,
            receipt=intent.receipt,
        ),
    )


@order_router.post("/{order_id}/verify-payment", response_model=OrderResponse)
async def verify_payment(order_id: str, body: VerifyPaymentRequest):
    command = VerifyPayment(
        order_id=order_id,
        gateway_order_id=body.gateway_order_id,
        payment_id=body.payment_id,
        signature=body.signature,
    )
    if not current_domain.process(command, asynchronous=False):
        return JSONResponse(status_code=400, content={"error": "Payment verification failed"})
    return _order_response(order_id)


@order_router.get("", response_model=OrderListResponse)
async def list_my_orders(customer_id: str) -> OrderListResponse:
    summaries = orders_for_customer(customer_id)
    return OrderListResponse(orders=[OrderSummaryResponse.from_summary(s) for s in summaries])


@order_router.get("/admin/all", response_model=OrderPageResponse)
async def list_all_orders(
    status: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
) -> OrderPageResponse:
    results = order_page(status=status, page=page, limit=limit)
    return OrderPageResponse(
        orders=[OrderSummaryResponse.from_summary(s) for s in results.items],
        pagination=PaginationSchema(
            page=page,
            limit=limit,
            total=results.total,
            pages=math.ceil(results.total / limit),
        ),
    )


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    return _order_response(order_id)


@order_router.put("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest | None = None) -> OrderResponse:
    reason = body.reason if body and body.reason else "Cancelled by user"
    command = CancelOrder(order_id=order_id, reason=reason)
    current_domain.process(command, asynchronous=False)
    return _order_response(order_id)


@order_router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(order_id: str, body: UpdateOrderStatusRequest) -> OrderResponse:
    command = UpdateOrderStatus(
        order_id=order_id,
        status=body.status,
        tracking_number=body.tracking_number,
    )
    current_domain.process(command, asynchronous=False)
    return _order_response(order_id)


@order_router.get("/{order_id}/track", response_model=TrackingResponse)
async def track_shipment(order_id: str) -> TrackingResponse:
    snapshot = current_domain.process(TrackShipment(order_id=order_id), asynchronous=False)
    return TrackingResponse(**asdict(snapshot))


@order_router.post("/{order_id}/create-shipment", response_model=OrderResponse)
async def create_shipment(order_id: str):
    outcome = current_domain.process(CreateShipment(order_id=order_id), asynchronous=False)
    if isinstance(outcome, ShipmentPending):
        return JSONResponse(
            status_code=502,
            content={"error": outcome.reason, "shipping_pending": True},
        )
    return _order_response(order_id)


@order_router.post("/{order_id}/cancel-shipment", response_model=OrderResponse)
async def cancel_shipment(order_id: str) -> OrderResponse:
    current_domain.process(CancelShipment(order_id=order_id), asynchronous=False)
    return _order_response(order_id)

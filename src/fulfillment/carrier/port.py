"""Carrier port: abstract interface for shipping carrier integrations.

All carrier adapters implement this interface. Carrier responses are parsed
into strict result types here; a response that lacks required fields or
reports a status outside the known vocabulary is rejected with
CarrierResponseError instead of being patched up with defaults.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum


class CarrierError(Exception):
    """A carrier call failed. Recoverable: the shipment stays pending for manual retry."""


class CarrierTimeoutError(CarrierError):
    """The carrier did not answer within the configured timeout."""


class CarrierResponseError(CarrierError):
    """The carrier answered with a shape or status that is not recognised."""


class ShipmentStatus(Enum):
    NONE = "none"
    CREATED = "created"
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    RETURNED = "returned"
    RTO = "rto"
    CANCELLED = "cancelled"


def parse_status(raw) -> ShipmentStatus:
    """Map a carrier status string (``"In Transit"``, ``"in-transit"``...) onto ShipmentStatus."""
    if not isinstance(raw, str):
        raise CarrierResponseError(f"Carrier status must be a string, got {raw!r}")

    normalized = raw.strip().lower().replace("-", "_").replace(" ", "_")
    try:
        status = ShipmentStatus(normalized)
    except ValueError:
        raise CarrierResponseError(f"Unrecognised carrier status: {raw!r}") from None

    if status == ShipmentStatus.NONE:
        raise CarrierResponseError("Carrier reported no shipment status")
    return status


def _payload_data(body) -> dict:
    if not isinstance(body, dict) or body.get("success") is not True:
        raise CarrierResponseError("Carrier response is not a successful envelope")
    data = body.get("data")
    if not isinstance(data, dict):
        raise CarrierResponseError("Carrier response has no data object")
    return data


def _required_str(data: dict, key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise CarrierResponseError(f"Carrier response is missing '{key}'")
    return value


def _optional_str(data: dict, key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str | int | float):
        raise CarrierResponseError(f"Carrier response field '{key}' has an unexpected type")
    return str(value)


@dataclass(frozen=True)
class ShipmentItem:
    name: str
    sku: str
    quantity: int
    price: float


@dataclass(frozen=True)
class ShipmentRequest:
    """Everything the carrier needs to book a pickup for one order."""

    order_reference: str
    order_date: str
    payment_mode: str
    customer_name: str
    customer_phone: str
    customer_email: str
    address_line1: str
    address_line2: str
    city: str
    state: str
    pincode: str
    country: str
    order_amount: float
    cod_amount: float
    weight: float
    items: tuple[ShipmentItem, ...] = ()
    product_type: str = "Standard"

    def to_payload(self) -> dict:
        """Carrier wire format."""
        return {
            "order_id": self.order_reference,
            "order_date": self.order_date,
            "payment_mode": self.payment_mode,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "customer_email": self.customer_email,
            "address_line1": self.address_line1,
            "address_line2": self.address_line2,
            "city": self.city,
            "state": self.state,
            "pincode": self.pincode,
            "country": self.country,
            "order_amount": self.order_amount,
            "cod_amount": self.cod_amount,
            "items": [
                {"name": item.name, "sku": item.sku, "quantity": item.quantity, "price": item.price}
                for item in self.items
            ],
            "weight": self.weight,
            "product_type": self.product_type,
        }


@dataclass(frozen=True)
class CarrierBooking:
    """A shipment the carrier accepted."""

    awb: str
    courier_name: str
    tracking_url: str
    shipment_id: str | None = None

    @classmethod
    def from_response(cls, body) -> "CarrierBooking":
        data = _payload_data(body)
        return cls(
            awb=_required_str(data, "awb"),
            courier_name=_required_str(data, "courier_name"),
            tracking_url=_required_str(data, "tracking_url"),
            shipment_id=_optional_str(data, "shipment_id"),
        )


@dataclass(frozen=True)
class TrackingEvent:
    status: str
    description: str | None = None
    location: str | None = None
    occurred_at: str | None = None

    @classmethod
    def from_dict(cls, data) -> "TrackingEvent":
        if not isinstance(data, dict):
            raise CarrierResponseError("Tracking event is not an object")
        return cls(
            status=_required_str(data, "status"),
            description=_optional_str(data, "description"),
            location=_optional_str(data, "location"),
            occurred_at=_optional_str(data, "occurred_at"),
        )


@dataclass(frozen=True)
class CarrierTracking:
    """Current carrier-side view of a shipment."""

    awb: str
    status: ShipmentStatus
    courier_name: str | None = None
    tracking_url: str | None = None
    events: tuple[TrackingEvent, ...] = field(default_factory=tuple)
    estimated_delivery: str | None = None
    current_location: str | None = None

    @classmethod
    def from_response(cls, body, awb: str) -> "CarrierTracking":
        data = _payload_data(body)

        reported_awb = _optional_str(data, "awb")
        if reported_awb is not None and reported_awb != awb:
            raise CarrierResponseError(f"Carrier returned tracking for {reported_awb}, expected {awb}")

        events = data.get("events", [])
        if not isinstance(events, list):
            raise CarrierResponseError("Carrier tracking events must be a list")

        return cls(
            awb=awb,
            status=parse_status(data.get("status")),
            courier_name=_optional_str(data, "courier_name"),
            tracking_url=_optional_str(data, "tracking_url"),
            events=tuple(TrackingEvent.from_dict(event) for event in events),
            estimated_delivery=_optional_str(data, "estimated_delivery"),
            current_location=_optional_str(data, "current_location"),
        )


class CarrierPort(ABC):
    """Abstract interface for carrier adapters."""

    @abstractmethod
    def create_shipment(self, request: ShipmentRequest) -> CarrierBooking:
        """Book a shipment with the carrier.

        Raises:
            CarrierError: network failure, timeout, rejection or unparseable response.
        """
        ...

    @abstractmethod
    def track_shipment(self, awb: str) -> CarrierTracking:
        """Get the current tracking status for a shipment."""
        ...

    @abstractmethod
    def cancel_shipment(self, awb: str) -> None:
        """Cancel a booked shipment with the carrier."""
        ...

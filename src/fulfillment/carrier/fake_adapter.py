"""Fake carrier adapter: deterministic carrier for testing and development.

Books shipments with generated AWBs and keeps a per-AWB status that tests
can move along with ``advance()``. Configurable success/failure behavior.
"""

from datetime import UTC, datetime
from uuid import uuid4

from fulfillment.carrier.port import (
    CarrierBooking,
    CarrierError,
    CarrierPort,
    CarrierTracking,
    ShipmentRequest,
    ShipmentStatus,
    TrackingEvent,
)


class FakeCarrier(CarrierPort):
    """Fake carrier that always succeeds by default."""

    courier_name = "FakeExpress"

    def __init__(self):
        self.should_succeed = True
        self.failure_reason = "Carrier unavailable"
        self.calls: list[dict] = []
        self.bookings: dict[str, ShipmentRequest] = {}
        self._history: dict[str, list[TrackingEvent]] = {}

    def configure(self, should_succeed: bool = True, failure_reason: str = "Carrier unavailable"):
        """Configure the fake carrier behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def advance(self, awb: str, status: ShipmentStatus, location: str | None = None):
        """Record a new carrier-side status for ``awb``."""
        self._history.setdefault(awb, []).append(
            TrackingEvent(
                status=status.value,
                location=location,
                occurred_at=datetime.now(UTC).isoformat(),
            )
        )

    def _check(self, method: str, **details):
        self.calls.append({"method": method, **details})
        if not self.should_succeed:
            raise CarrierError(self.failure_reason)

    def _tracking_url(self, awb: str) -> str:
        return f"https://track.fake-carrier.example.com/{awb}"

    def create_shipment(self, request: ShipmentRequest) -> CarrierBooking:
        self._check("create_shipment", order_reference=request.order_reference)

        awb = f"FAKE{uuid4().hex[:10].upper()}"
        self.bookings[awb] = request
        self._history[awb] = []
        self.advance(awb, ShipmentStatus.CREATED, location="Origin warehouse")

        return CarrierBooking(
            awb=awb,
            courier_name=self.courier_name,
            tracking_url=self._tracking_url(awb),
            shipment_id=f"ship-{uuid4().hex[:8]}",
        )

    def track_shipment(self, awb: str) -> CarrierTracking:
        self._check("track_shipment", awb=awb)
        if awb not in self._history:
            raise CarrierError(f"Unknown AWB {awb}")

        events = self._history[awb]
        return CarrierTracking(
            awb=awb,
            status=ShipmentStatus(events[-1].status),
            courier_name=self.courier_name,
            tracking_url=self._tracking_url(awb),
            events=tuple(events),
            current_location=events[-1].location,
        )

    def cancel_shipment(self, awb: str) -> None:
        self._check("cancel_shipment", awb=awb)
        if awb not in self._history:
            raise CarrierError(f"Unknown AWB {awb}")
        self.advance(awb, ShipmentStatus.CANCELLED)

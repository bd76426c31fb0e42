"""Shipmozo carrier adapter.

Talks to the Shipmozo REST API with the merchant's public/private key pair:

- ``POST /v1/orders/create`` books a shipment and returns the AWB
- ``GET /v1/track/{awb}`` returns the current tracking status
- ``POST /v1/orders/cancel`` cancels a booked shipment

Each call is a single attempt bounded by ``timeout``.
"""

import requests
import structlog

from fulfillment.carrier.port import (
    CarrierBooking,
    CarrierError,
    CarrierPort,
    CarrierResponseError,
    CarrierTimeoutError,
    CarrierTracking,
    ShipmentRequest,
)

logger = structlog.get_logger(__name__)


class ShipmozoCarrier(CarrierPort):
    """Production Shipmozo carrier adapter."""

    def __init__(
        self,
        public_key: str,
        private_key: str,
        base_url: str = "https://api.shipmozo.com",
        timeout: float = 30,
        session: requests.Session | None = None,
    ) -> None:
        self.public_key = public_key
        self.private_key = private_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> dict:
        if not self.public_key or not self.private_key:
            raise CarrierError("Shipmozo API keys are not configured")
        return {
            "Content-Type": "application/json",
            "X-Public-Key": self.public_key,
            "X-Private-Key": self.private_key,
        }

    def _request(self, method: str, path: str, **kwargs) -> dict:
        headers = self._headers()
        url = f"{self.base_url}{path}"

        try:
            response = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.Timeout as exc:
            raise CarrierTimeoutError(f"Shipmozo did not respond within {self.timeout}s") from exc
        except requests.RequestException as exc:
            raise CarrierError(f"Shipmozo request failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise CarrierResponseError(f"Shipmozo returned a non-JSON response ({response.status_code})") from exc

        if not response.ok or not isinstance(body, dict) or body.get("success") is not True:
            message = body.get("message") if isinstance(body, dict) else None
            raise CarrierError(message or f"Shipmozo request failed with HTTP {response.status_code}")

        return body

    def create_shipment(self, request: ShipmentRequest) -> CarrierBooking:
        body = self._request("POST", "/v1/orders/create", json=request.to_payload())
        booking = CarrierBooking.from_response(body)
        logger.info(
            "shipmozo_shipment_created",
            order_reference=request.order_reference,
            awb=booking.awb,
            courier_name=booking.courier_name,
        )
        return booking

    def track_shipment(self, awb: str) -> CarrierTracking:
        if not awb:
            raise CarrierError("AWB number is required")
        body = self._request("GET", f"/v1/track/{awb}")
        return CarrierTracking.from_response(body, awb=awb)

    def cancel_shipment(self, awb: str) -> None:
        if not awb:
            raise CarrierError("AWB number is required")
        self._request("POST", "/v1/orders/cancel", json={"awb": awb})
        logger.info("shipmozo_shipment_cancelled", awb=awb)

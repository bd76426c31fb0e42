"""Razorpay payment gateway adapter.

Creates Razorpay orders over the REST API (``POST /v1/orders`` with HTTP basic
auth) and verifies checkout signatures locally with the key secret. Every call
is a single attempt bounded by ``timeout``; failures surface as GatewayError
subclasses and are never retried here.
"""

import requests
import structlog

from payments.gateway.port import (
    GatewayConfigError,
    GatewayRequestError,
    GatewayTimeoutError,
    PaymentGateway,
    PaymentIntent,
)
from payments.gateway.signature import verify_signature

logger = structlog.get_logger(__name__)


class RazorpayGateway(PaymentGateway):
    """Production Razorpay gateway adapter."""

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com",
        timeout: float = 30,
        session: requests.Session | None = None,
    ) -> None:
        self.key_id = key_id
        self.key_secret = key_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def create_intent(
        self,
        receipt: str,
        amount: int,
        currency: str,
        notes: dict | None = None,
    ) -> PaymentIntent:
        if not self.key_id or not self.key_secret:
            raise GatewayConfigError("Razorpay credentials are not configured")

        payload = {
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "notes": notes or {},
        }

        try:
            response = self.session.post(
                f"{self.base_url}/v1/orders",
                json=payload,
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            raise GatewayTimeoutError(f"Razorpay did not respond within {self.timeout}s") from exc
        except requests.RequestException as exc:
            raise GatewayRequestError(f"Razorpay request failed: {exc}") from exc

        if response.status_code == 401:
            raise GatewayConfigError("Razorpay rejected the configured credentials")

        try:
            body = response.json()
        except ValueError as exc:
            raise GatewayRequestError(f"Razorpay returned a non-JSON response ({response.status_code})") from exc

        if not response.ok:
            description = (body.get("error") or {}).get("description") if isinstance(body, dict) else None
            raise GatewayRequestError(description or f"Razorpay returned HTTP {response.status_code}")

        intent = PaymentIntent.from_response(body)
        if intent.amount != amount or intent.currency != currency:
            raise GatewayRequestError(
                f"Razorpay created {intent.amount} {intent.currency}, expected {amount} {currency}"
            )

        logger.info(
            "razorpay_order_created",
            gateway_order_id=intent.gateway_order_id,
            receipt=receipt,
            amount=amount,
        )
        return intent

    def verify_signature(self, gateway_order_id: str, payment_id: str, signature: str) -> None:
        verify_signature(gateway_order_id, payment_id, signature, secret=self.key_secret)

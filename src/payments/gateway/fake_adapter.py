"""Configurable fake payment gateway for development and testing.

Simulates the gateway without external calls. Intents get a fake gateway
order id, and signatures are real HMAC-SHA256 digests over the configured
secret, so ``sign()`` produces exactly what the checkout widget would hand
back after a successful payment.
"""

from uuid import uuid4

from payments.gateway.port import GatewayRequestError, PaymentGateway, PaymentIntent
from payments.gateway.signature import compute_signature, verify_signature


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, key_secret: str) -> None:
        self.key_secret = key_secret
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Gateway unavailable") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_intent(
        self,
        receipt: str,
        amount: int,
        currency: str,
        notes: dict | None = None,
    ) -> PaymentIntent:
        self.calls.append(
            {
                "method": "create_intent",
                "receipt": receipt,
                "amount": amount,
                "currency": currency,
                "notes": notes or {},
            }
        )

        if not self.should_succeed:
            raise GatewayRequestError(self.failure_reason)

        return PaymentIntent(
            gateway_order_id=f"order_fake{uuid4().hex[:14]}",
            amount=amount,
            currency=currency,
            receipt=receipt,
        )

    def verify_signature(self, gateway_order_id: str, payment_id: str, signature: str) -> None:
        self.calls.append(
            {
                "method": "verify_signature",
                "gateway_order_id": gateway_order_id,
                "payment_id": payment_id,
            }
        )
        verify_signature(gateway_order_id, payment_id, signature, secret=self.key_secret)

    def sign(self, gateway_order_id: str, payment_id: str) -> str:
        """Return the signature a genuine checkout would produce."""
        return compute_signature(self.key_secret, gateway_order_id, payment_id)

"""Payment gateway port (abstract interface).

Defines the contract that payment gateway adapters implement: creating a
payment intent (the gateway-side order a customer pays against) and verifying
the signature the checkout widget hands back once the customer has paid.
Swapping FakeGateway (dev/test) for RazorpayGateway (production) requires no
change in domain or application code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class GatewayError(Exception):
    """Base class for payment gateway failures. Gateway calls are never retried."""


class GatewayConfigError(GatewayError):
    """Gateway credentials are missing or were rejected by the gateway."""


class GatewayRequestError(GatewayError):
    """The gateway could not be reached or refused the request."""


class GatewayTimeoutError(GatewayRequestError):
    """The gateway did not answer within the configured timeout."""


class GatewaySignatureError(GatewayError):
    """The payment signature does not match the recomputed one."""


def _required_str(body: dict, key: str) -> str:
    value = body.get(key)
    if not isinstance(value, str) or not value.strip():
        raise GatewayRequestError(f"Gateway response is missing '{key}'")
    return value


@dataclass(frozen=True)
class PaymentIntent:
    """A gateway-side order the customer pays against.

    ``amount`` is in minor currency units (paise for INR).
    """

    gateway_order_id: str
    amount: int
    currency: str
    receipt: str
    status: str = "created"

    @classmethod
    def from_response(cls, body) -> "PaymentIntent":
        """Parse a gateway order body, rejecting anything without the expected fields."""
        if not isinstance(body, dict):
            raise GatewayRequestError("Gateway response is not an object")

        amount = body.get("amount")
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise GatewayRequestError("Gateway response is missing 'amount'")

        return cls(
            gateway_order_id=_required_str(body, "id"),
            amount=amount,
            currency=_required_str(body, "currency"),
            receipt=_required_str(body, "receipt"),
            status=_required_str(body, "status"),
        )


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_intent(
        self,
        receipt: str,
        amount: int,
        currency: str,
        notes: dict | None = None,
    ) -> PaymentIntent:
        """Create a payment intent for ``amount`` minor units.

        Raises:
            GatewayConfigError: credentials are absent or rejected.
            GatewayRequestError: the gateway is unreachable or declined the request.
        """
        ...

    @abstractmethod
    def verify_signature(
        self,
        gateway_order_id: str,
        payment_id: str,
        signature: str,
    ) -> None:
        """Check a checkout signature.

        Raises:
            GatewaySignatureError: the signature does not match.
            GatewayConfigError: no signing secret is configured.
        """
        ...

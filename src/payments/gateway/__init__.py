"""Payment gateway factory.

``build_gateway()`` constructs the configured adapter once at process start:
- FakeGateway for the test suite
- RazorpayGateway everywhere else

Both sign and verify with the merchant key secret, so a missing secret is a
startup failure rather than something to default.
"""

from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import GatewayConfigError, PaymentGateway
from payments.gateway.razorpay_adapter import RazorpayGateway

GATEWAYS = ("fake", "razorpay")


def build_gateway(
    name: str,
    key_id: str = "",
    key_secret: str = "",
    base_url: str = "https://api.razorpay.com",
    timeout: float = 30,
) -> PaymentGateway:
    """Return a new gateway adapter for ``name`` ("fake" or "razorpay")."""
    if name not in GATEWAYS:
        raise GatewayConfigError(f"Unknown payment gateway: {name}")
    if not key_secret:
        raise GatewayConfigError(f"Key secret for payment gateway {name!r} is not configured")

    if name == "fake":
        return FakeGateway(key_secret=key_secret)
    return RazorpayGateway(
        key_id=key_id,
        key_secret=key_secret,
        base_url=base_url,
        timeout=timeout,
    )

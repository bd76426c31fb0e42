"""HMAC-SHA256 checkout signatures.

The gateway signs ``"<gateway_order_id>|<payment_id>"`` with the merchant's
key secret and hands the hex digest to the client after payment. The server
recomputes the digest and compares it with the one the client sends back.
"""

import hashlib
import hmac

from payments.gateway.port import GatewayConfigError, GatewaySignatureError


def compute_signature(secret: str, gateway_order_id: str, payment_id: str) -> str:
    message = f"{gateway_order_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def verify_signature(gateway_order_id: str, payment_id: str, signature: str, secret: str) -> None:
    """Raise GatewaySignatureError unless ``signature`` matches the recomputed digest."""
    if not secret:
        raise GatewayConfigError("Payment gateway key secret is not configured")

    expected = compute_signature(secret, gateway_order_id, payment_id)
    if not hmac.compare_digest(expected.encode(), (signature or "").encode()):
        raise GatewaySignatureError(f"Signature mismatch for gateway order {gateway_order_id}")

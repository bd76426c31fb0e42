"""External service clients used by the ordering domain.

The payment gateway, the shipment carrier and the order number sequence are
built once at process start from the domain's ``[custom]`` constants and
bound to the domain. Command handlers look them up through
``current_integrations()`` instead of constructing clients themselves.
"""

from dataclasses import dataclass

from protean.exceptions import ConfigurationError
from protean.utils.globals import current_domain

from fulfillment.carrier import build_carrier
from fulfillment.carrier.port import CarrierPort
from ordering.order.numbering import OrderNumberSequence
from ordering.utils.logging import get_logger
from payments.gateway import build_gateway
from payments.gateway.port import PaymentGateway

logger = get_logger(__name__)

_ATTRIBUTE = "integrations"


@dataclass(frozen=True)
class Integrations:
    gateway: PaymentGateway
    carrier: CarrierPort
    order_numbers: OrderNumberSequence


def build_integrations(domain) -> Integrations:
    """Construct every external client from the domain's configuration."""
    timeout = int(getattr(domain, "HTTP_TIMEOUT_SECONDS", 30))

    gateway = build_gateway(
        getattr(domain, "PAYMENT_GATEWAY", "razorpay"),
        key_id=getattr(domain, "RAZORPAY_KEY_ID", ""),
        key_secret=getattr(domain, "RAZORPAY_KEY_SECRET", ""),
        base_url=getattr(domain, "RAZORPAY_BASE_URL", "https://api.razorpay.com"),
        timeout=timeout,
    )
    carrier = build_carrier(
        getattr(domain, "CARRIER_ADAPTER", "shipmozo"),
        public_key=getattr(domain, "SHIPMOZO_PUBLIC_KEY", ""),
        private_key=getattr(domain, "SHIPMOZO_PRIVATE_KEY", ""),
        base_url=getattr(domain, "SHIPMOZO_BASE_URL", "https://api.shipmozo.com"),
        timeout=timeout,
    )
    order_numbers = OrderNumberSequence(prefix=getattr(domain, "ORDER_NUMBER_PREFIX", "WJ"))

    logger.info(
        "integrations_built",
        gateway=type(gateway).__name__,
        carrier=type(carrier).__name__,
    )
    return Integrations(gateway=gateway, carrier=carrier, order_numbers=order_numbers)


def bind_integrations(domain, integrations: Integrations) -> Integrations:
    setattr(domain, _ATTRIBUTE, integrations)
    return integrations


def current_integrations() -> Integrations:
    integrations = getattr(current_domain, _ATTRIBUTE, None)
    if integrations is None:
        raise ConfigurationError("External integrations have not been bound to the domain")
    return integrations

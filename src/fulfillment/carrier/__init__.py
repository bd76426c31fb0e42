"""Carrier adapter abstraction: pluggable shipping carrier integration."""

from fulfillment.carrier.fake_adapter import FakeCarrier
from fulfillment.carrier.port import CarrierPort
from fulfillment.carrier.shipmozo_adapter import ShipmozoCarrier


def build_carrier(
    name: str,
    public_key: str = "",
    private_key: str = "",
    base_url: str = "https://api.shipmozo.com",
    timeout: float = 30,
) -> CarrierPort:
    """Return a new carrier adapter for ``name`` ("fake" or "shipmozo")."""
    if name == "fake":
        return FakeCarrier()
    if name == "shipmozo":
        return ShipmozoCarrier(
            public_key=public_key,
            private_key=private_key,
            base_url=base_url,
            timeout=timeout,
        )
    raise ValueError(f"Unknown carrier adapter: {name}")

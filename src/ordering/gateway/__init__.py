"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations. The
``GATEWAY_ADAPTER`` environment variable selects the default:
- ``fake`` (default): FakeGateway for development and testing
- ``flutterwave``: FlutterwaveGateway, needs FLUTTERWAVE_SECRET_KEY
"""

import os

from ordering.gateway.fake_adapter import FakeGateway
from ordering.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def _build_default_gateway() -> PaymentGateway:
    adapter = os.environ.get("GATEWAY_ADAPTER", "fake").lower()
    if adapter == "flutterwave":
        from ordering.gateway.flutterwave_adapter import FlutterwaveGateway

        return FlutterwaveGateway()
    if adapter == "fake":
        return FakeGateway()
    raise ValueError(f"Unknown gateway adapter: {adapter}")


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _build_default_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None

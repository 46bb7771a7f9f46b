"""Store-wide settings for pricing, verification and notifications.

Values are read once from the environment and cached. Tests override them
with set_settings() and restore the defaults with reset_settings().
"""

import os
from dataclasses import dataclass


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


@dataclass(frozen=True)
class Settings:
    free_shipping_threshold: float = 990000.0
    tax_rate: float = 0.0001
    base_shipping_cost: float = 900.0
    currency: str = "NGN"
    min_reference_length: int = 5
    pending_order_expiry_minutes: int = 30
    admin_email: str = "admin@example.com"
    high_value_threshold: float = 500000.0
    max_proof_size_bytes: int = 5 * 1024 * 1024

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            free_shipping_threshold=_env_float("FREE_SHIPPING_THRESHOLD", cls.free_shipping_threshold),
            tax_rate=_env_float("TAX_RATE", cls.tax_rate),
            base_shipping_cost=_env_float("BASE_SHIPPING_COST", cls.base_shipping_cost),
            currency=os.environ.get("STORE_CURRENCY", cls.currency),
            pending_order_expiry_minutes=_env_int("PENDING_ORDER_EXPIRY_MINUTES", cls.pending_order_expiry_minutes),
            admin_email=os.environ.get("ADMIN_EMAIL", cls.admin_email),
            high_value_threshold=_env_float("HIGH_VALUE_ORDER_THRESHOLD", cls.high_value_threshold),
        )


_current_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the active settings, loading them from the environment on first use."""
    global _current_settings
    if _current_settings is None:
        _current_settings = Settings.from_env()
    return _current_settings


def set_settings(settings: Settings) -> None:
    """Override the active settings (useful for tests)."""
    global _current_settings
    _current_settings = settings


def reset_settings() -> None:
    global _current_settings
    _current_settings = None

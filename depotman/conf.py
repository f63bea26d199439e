"""
Depotman configuration.

Usage in settings.py:
    DEPOTMAN = {
        "STOCK_ENCODINGS": {"ceramique": "boxed", "fer": "bars"},
        "LOCAL_CURRENCY": "HTG",
        "FOREIGN_CURRENCY": "USD",
        "DEFAULT_EXCHANGE_RATE": "132",
        "CLAMP_REMOVE": True,
        "REPORT_TIMEOUT_SECONDS": 10,
        "SALE_LINE_SOURCE": "sales.adapters.SaleItemSource",
    }
"""

from dataclasses import dataclass, field
from typing import Any

from django.conf import settings


def _default_encodings() -> dict[str, str]:
    return {"ceramique": "boxed", "fer": "bars"}


@dataclass
class DepotmanSettings:
    """Depotman configuration settings."""

    # Category tag -> stock encoding ("simple", "boxed", "bars").
    # Categories not listed use the simple encoding.
    STOCK_ENCODINGS: dict[str, str] = field(default_factory=_default_encodings)

    # Currency pair related by the exchange rate (local units per foreign unit)
    LOCAL_CURRENCY: str = "HTG"
    FOREIGN_CURRENCY: str = "USD"

    # Seed value for the exchange rate row
    DEFAULT_EXCHANGE_RATE: str = "132"

    # Default target currency for reports
    DISPLAY_CURRENCY: str = "HTG"

    # True: "remove" clamps at zero. False: over-removal is rejected.
    CLAMP_REMOVE: bool = True

    # Default timeout for bulk report aggregation (0 = no timeout)
    REPORT_TIMEOUT_SECONDS: float = 0

    # Sale line source backend (dotted path)
    SALE_LINE_SOURCE: str = ""


def get_depotman_settings() -> DepotmanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "DEPOTMAN", {})
    return DepotmanSettings(**{
        k: v for k, v in user_settings.items()
        if k in DepotmanSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_depotman_settings(), name)


depotman_settings = _LazySettings()

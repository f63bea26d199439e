"""
Stock alerts — availability sweep over the catalog.

Usage:
    from depotman.services.alerts import check_alerts

    # Run periodically (celery beat, cron) or after stock changes
    triggered = check_alerts()
    # Returns list of (Product, StockLevel) tuples
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from depotman.availability import classify_product
from depotman.conf import depotman_settings
from depotman.currency import normalize_currency, unified_total
from depotman.models.enums import StockLevel
from depotman.models.product import Product

logger = logging.getLogger('depotman')

ALERT_LEVELS = (StockLevel.RUPTURE, StockLevel.ALERT)


def check_alerts(category: str | None = None) -> list[tuple[Product, StockLevel]]:
    """
    Active products in rupture or alert.

    Args:
        category: Optional category tag (None = all).

    Returns:
        List of (product, level) tuples, rupture first.
    """
    qs = Product.objects.active()
    if category is not None:
        qs = qs.in_category(category)

    triggered = []
    for product in qs.order_by('name'):
        level = classify_product(product)
        if level not in ALERT_LEVELS:
            continue
        display = product.display_stock
        triggered.append((product, level))
        logger.warning(
            "stock.alert.triggered",
            extra={
                "product_id": product.pk,
                "level": level.value,
                "display": str(display.value),
                "unit": display.unit,
                "threshold": str(product.alert_threshold),
            },
        )

    triggered.sort(key=lambda pair: ALERT_LEVELS.index(pair[1]))
    return triggered


@dataclass
class InventorySummary:
    """Counts per level and stock value per currency."""

    levels: dict[str, int] = field(default_factory=dict)
    value_by_currency: dict[str, Decimal] = field(default_factory=dict)
    unified_value: Decimal = Decimal('0')
    currency: str = ''

    @property
    def total_products(self) -> int:
        return sum(self.levels.values())


def inventory_summary(rate=None, target: str | None = None) -> InventorySummary:
    """
    Summarize the active catalog.

    Stock value is display value x price, in each product's currency, then
    unified into `target` with one rate.

    Args:
        rate: Exchange rate (None = current ExchangeRateSetting)
        target: Target currency (None = configured display currency)
    """
    target = normalize_currency(target or depotman_settings.DISPLAY_CURRENCY)
    if rate is None:
        from depotman.models.rate import ExchangeRateSetting
        rate = ExchangeRateSetting.current().rate

    summary = InventorySummary(
        levels={level.value: 0 for level in StockLevel},
        currency=target,
    )
    lines = []
    for product in Product.objects.active():
        summary.levels[classify_product(product).value] += 1
        value = product.display_stock.value * product.price
        currency = normalize_currency(product.currency)
        summary.value_by_currency[currency] = (
            summary.value_by_currency.get(currency, Decimal('0')) + value
        )
        lines.append({'subtotal': value, 'currency': currency})

    summary.unified_value = unified_total(lines, rate, target).unified
    return summary

"""
Availability classification — rupture / alert / normal / high.

    rupture  value <= 0
    alert    0 < value <= threshold
    high     value > threshold * 3
    normal   otherwise

The high boundary is exclusive: value == threshold * 3 is normal.
"""

from decimal import Decimal

from depotman.models.enums import StockLevel
from depotman.units import display_stock, to_decimal

HIGH_STOCK_FACTOR = 3


def classify(display_value, alert_threshold) -> StockLevel:
    """Classify a display stock value against an alert threshold."""
    value = to_decimal(display_value)
    threshold = to_decimal(alert_threshold)

    if value <= 0:
        return StockLevel.RUPTURE
    if value <= threshold:
        return StockLevel.ALERT
    if value > threshold * HIGH_STOCK_FACTOR:
        return StockLevel.HIGH
    return StockLevel.NORMAL


def classify_product(product) -> StockLevel:
    """Classify a product by its display stock."""
    return classify(display_stock(product).value, getattr(product, 'alert_threshold', Decimal('0')))

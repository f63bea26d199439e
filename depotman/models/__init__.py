"""
Depotman Models.

Core models for stock management:
- Product: Catalog record with its materialized raw stock
- StockMovement: Immutable ledger of stock changes
- ExchangeRateSetting: Current exchange rate (single row)
"""

from depotman.models.enums import (
    AdjustmentType,
    Bucketing,
    MovementType,
    StockEncoding,
    StockLevel,
)
from depotman.models.movement import StockMovement
from depotman.models.product import Product
from depotman.models.rate import ExchangeRateSetting

__all__ = [
    'AdjustmentType',
    'Bucketing',
    'MovementType',
    'StockEncoding',
    'StockLevel',
    'Product',
    'StockMovement',
    'ExchangeRateSetting',
]

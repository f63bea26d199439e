"""
Django Depotman — stock core for a building-materials depot.

Raw stock in boxes, bars or units, an append-only movement ledger, and
currency-unified reports over HTG and USD.

Usage:
    from depotman import stock, StockError

    stock.apply(tile, 'remove', 3, 'Casse', user)
    stock.display(tile)  # DisplayStock(10.08, 'm²', 7)
    stock.classify(tile)  # StockLevel.ALERT
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'stock':
        from depotman.service import Stock
        return Stock
    elif name == 'StockError':
        from depotman.exceptions import StockError
        return StockError
    elif name == 'Product':
        from depotman.models.product import Product
        return Product
    elif name == 'StockMovement':
        from depotman.models.movement import StockMovement
        return StockMovement
    elif name == 'ExchangeRateSetting':
        from depotman.models.rate import ExchangeRateSetting
        return ExchangeRateSetting
    elif name == 'MovementType':
        from depotman.models.enums import MovementType
        return MovementType
    elif name == 'StockLevel':
        from depotman.models.enums import StockLevel
        return StockLevel
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'stock',
    'StockError',
    'Product',
    'StockMovement',
    'ExchangeRateSetting',
    'MovementType',
    'StockLevel',
]

__version__ = '0.1.0'

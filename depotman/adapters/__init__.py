"""
Depotman Adapters.

Implementations of protocols for external systems.
"""

from depotman.adapters.sources import get_sale_line_source, reset_sale_line_source
from depotman.adapters.static import StaticSaleLineSource

__all__ = [
    "StaticSaleLineSource",
    "get_sale_line_source",
    "reset_sale_line_source",
]

"""
Depotman Protocols.

Defines interfaces for external system integration.
"""

from depotman.protocols.sales import SaleLine, SaleLineSource

__all__ = [
    "SaleLine",
    "SaleLineSource",
]

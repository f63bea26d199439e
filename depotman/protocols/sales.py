"""
Sale Line Source Protocol — Interface to the sale-completion collaborator.

Depotman defines this protocol, the sales application implements it.
Reports only read sale lines; the core never mutates sales.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Protocol, runtime_checkable


@dataclass(frozen=True)
class SaleLine:
    """One completed sale line, as seen by reports."""

    product_id: int
    quantity: Decimal
    subtotal: Decimal
    currency: str
    profit_amount: Decimal
    created_at: datetime
    sale_id: int | str | None = None  # Lines of the same sale share it


@runtime_checkable
class SaleLineSource(Protocol):
    """
    Protocol for reading completed sale lines.

    Implementations should return lines of completed (not cancelled) sales.
    """

    def lines_between(self, start: datetime, end: datetime) -> Iterable[SaleLine]:
        """
        Sale lines with start <= created_at <= end.

        Args:
            start: Window start (aware datetime)
            end: Window end (aware datetime)

        Returns:
            Iterable of SaleLine, in any order
        """
        ...

"""
Static sale line source — in-memory lines for development and testing.

Usage in settings.py:
    DEPOTMAN = {
        "SALE_LINE_SOURCE": "depotman.adapters.static.StaticSaleLineSource",
    }

Lines are held at class level so a test can seed them with
StaticSaleLineSource.load([...]) before running a report.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from depotman.protocols.sales import SaleLine


class StaticSaleLineSource:
    """Serves a fixed, immutable set of sale lines."""

    lines: tuple[SaleLine, ...] = ()

    @classmethod
    def load(cls, lines: Iterable[SaleLine]) -> None:
        cls.lines = tuple(lines)

    @classmethod
    def clear(cls) -> None:
        cls.lines = ()

    def lines_between(self, start: datetime, end: datetime) -> list[SaleLine]:
        return [line for line in self.lines if start <= line.created_at <= end]

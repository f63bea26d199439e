"""
Stock Service — The single public interface for all stock operations.

Usage:
    from depotman import stock, StockError

    stock.display(tile)                          # DisplayStock(14.40, 'm²', 10)
    stock.apply(tile, 'add', 5, 'Réception', user)
    stock.classify(tile)                         # StockLevel.NORMAL
"""

from datetime import datetime
from decimal import Decimal

from depotman import availability, currency, units
from depotman.models.enums import StockLevel
from depotman.models.movement import StockMovement
from depotman.models.product import Product
from depotman.services import adjustments, ledger, reconciliation, reporting, sales
from depotman.services import alerts as alert_service


class Stock:
    """
    Single interface for all stock operations.

    Parameter convention: (product, ..., actor)

    IMPORTANT: All state-changing methods run in atomic transactions with
    the product row locked. See each service module's docstring.
    """

    # ══════════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def display(cls, product: Product) -> units.DisplayStock:
        """Human-facing stock (area, bars or product unit)."""
        return units.display_stock(product)

    @classmethod
    def raw(cls, product: Product) -> Decimal:
        """Authoritative raw stock (boxes, bars or units)."""
        return units.raw_stock(product)

    @classmethod
    def tonnage_label(cls, product: Product) -> str | None:
        """Tonnage of a bar product ('1 1/2 tonnes'), None for other encodings."""
        stock = units.stock_for(product)
        tonnage = getattr(stock, 'tonnage', None)
        return units.tonnage_label(tonnage) if tonnage is not None else None

    @classmethod
    def classify(cls, product: Product) -> StockLevel:
        """Rupture / alert / normal / high from display stock."""
        return availability.classify_product(product)

    @classmethod
    def history(cls, product, start: datetime | None = None, end: datetime | None = None):
        """Movements in forward-time order (restartable QuerySet)."""
        return ledger.history(product, start, end)

    @classmethod
    def current(cls, product) -> Decimal | None:
        """Ledger current stock (None before the first movement)."""
        return ledger.current(product)

    # ══════════════════════════════════════════════════════════════
    # MUTATIONS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def apply(cls, product, adjustment_type: str, quantity, reason: str, actor,
              unit: str | None = None, expected_quantity=None,
              reference: str = '') -> adjustments.AdjustmentResult:
        """Manual adjustment (add / remove / set). See services.adjustments.apply."""
        return adjustments.apply(
            product, adjustment_type, quantity, reason, actor,
            unit=unit, expected_quantity=expected_quantity, reference=reference,
        )

    @classmethod
    def sell(cls, product, quantity, actor, reference: str = '',
             unit: str | None = None) -> adjustments.AdjustmentResult:
        """Decrement stock for a sold line (never clamps)."""
        return sales.record_sale(product, quantity, actor, reference=reference, unit=unit)

    @classmethod
    def restore(cls, product, quantity, actor, reference: str = '',
                unit: str | None = None) -> adjustments.AdjustmentResult:
        """Put back stock of a cancelled or refunded sale."""
        return sales.record_return(product, quantity, actor, reference=reference, unit=unit)

    @classmethod
    def reconcile(cls, product, actor=None, repair: bool = False) -> StockMovement | None:
        """Check stock against the ledger; repair=True appends a compensating movement."""
        return reconciliation.reconcile(product, actor=actor, repair=repair)

    # ══════════════════════════════════════════════════════════════
    # MONEY & REPORTS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def unified_total(cls, items, rate, target: str | None = None) -> currency.UnifiedTotal:
        """Sum mixed-currency items into one currency with one rate."""
        return currency.unified_total(items, rate, target)

    @classmethod
    def bucket(cls, lines, bucketing, rate, target: str | None = None,
               start=None, end=None, timeout=None) -> list[reporting.Bucket]:
        """Group sale lines into daily or weekly unified buckets."""
        return reporting.bucket(lines, bucketing, rate, target,
                                start=start, end=end, timeout=timeout)

    @classmethod
    def report(cls, start: datetime, end: datetime, bucketing='daily',
               target: str | None = None, timeout=None) -> reporting.PeriodReport:
        """Current vs previous period from the configured sale line source."""
        return reporting.period_report(start, end, bucketing, target=target, timeout=timeout)

    @classmethod
    def alerts(cls, category: str | None = None) -> list[tuple[Product, StockLevel]]:
        """Active products in rupture or alert, rupture first."""
        return alert_service.check_alerts(category)

    @classmethod
    def summary(cls, rate=None, target: str | None = None) -> alert_service.InventorySummary:
        """Level counts and stock value of the active catalog."""
        return alert_service.inventory_summary(rate, target)

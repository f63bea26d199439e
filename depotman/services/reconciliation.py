"""
Reconciliation — materialized raw stock vs ledger.

The raw-stock field on Product is a cache of the ledger. If the two ever
diverge (a write outside the adjustment processor, an interrupted legacy
import), the divergence is detected here. Repair never rewrites history:
it appends a compensating set-type movement so that the ledger explains the
materialized value from then on.

Usage:
    from depotman.services.reconciliation import check_all, reconcile

    for discrepancy in check_all():
        reconcile(discrepancy.product, actor=admin, repair=True)
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction
from django.db.models import F

from depotman.exceptions import PartialWriteError, ValidationError
from depotman.models.enums import MovementType
from depotman.models.movement import StockMovement
from depotman.models.product import Product
from depotman.services import ledger
from depotman.services.adjustments import lock_product

logger = logging.getLogger('depotman')

DEFAULT_REASON = 'Réconciliation du stock'


@dataclass(frozen=True)
class Discrepancy:
    """Materialized raw stock differing from the ledger's current value."""

    product: Product
    materialized: Decimal
    ledger: Decimal

    @property
    def difference(self) -> Decimal:
        return self.materialized - self.ledger


def check(product: Product) -> Discrepancy | None:
    """Compare one product against its ledger (None = consistent)."""
    recorded = ledger.current(product)
    if recorded is None:
        return None
    materialized = product.raw_stock
    if materialized == recorded:
        return None
    return Discrepancy(product=product, materialized=materialized, ledger=recorded)


def check_all() -> list[Discrepancy]:
    """Compare every product against its ledger."""
    found = []
    for product in Product.objects.all().iterator():
        discrepancy = check(product)
        if discrepancy is not None:
            logger.warning(
                "stock.reconcile.mismatch",
                extra={
                    "product_id": product.pk,
                    "materialized": str(discrepancy.materialized),
                    "ledger": str(discrepancy.ledger),
                },
            )
            found.append(discrepancy)
    return found


def reconcile(product, actor=None, repair: bool = False,
              reason: str = DEFAULT_REASON) -> StockMovement | None:
    """
    Reconcile a product.

    Returns:
        None if consistent, otherwise the compensating movement (repair=True)

    Raises:
        PartialWriteError('LEDGER_MISMATCH'): diverged and repair=False
        ValidationError('ACTOR_REQUIRED'): repair=True without actor
    """
    with transaction.atomic():
        locked = lock_product(product)
        discrepancy = check(locked)
        if discrepancy is None:
            return None

        logger.warning(
            "stock.reconcile.mismatch",
            extra={
                "product_id": locked.pk,
                "materialized": str(discrepancy.materialized),
                "ledger": str(discrepancy.ledger),
                "repair": repair,
            },
        )

        if not repair:
            raise PartialWriteError(
                'LEDGER_MISMATCH',
                product_id=locked.pk,
                materialized=discrepancy.materialized,
                ledger=discrepancy.ledger,
            )
        if actor is None:
            raise ValidationError('ACTOR_REQUIRED', field='actor')

        movement = ledger.append(
            locked,
            MovementType.ADJUSTMENT_SET,
            discrepancy.materialized,
            previous_quantity=discrepancy.ledger,
            actor=actor,
            reason=reason,
            reconciliation=True,
        )
        Product.objects.filter(pk=locked.pk).update(stock_version=F('stock_version') + 1)

    logger.info(
        "stock.reconcile.repaired",
        extra={
            "product_id": locked.pk,
            "movement_id": movement.pk,
            "difference": str(discrepancy.difference),
        },
    )
    return movement

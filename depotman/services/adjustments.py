"""
Stock adjustments — the only mutation path for raw stock.

apply() validates an add/remove/set request, then inside one transaction:
appends the movement to the ledger and rewrites the product's raw-stock
field with a compare-and-swap on stock_version. If either write fails,
both roll back.

Concurrency (uniform for every raw-stock write):
    - Product row read with select_for_update() where the database supports it
    - Optional expected_quantity: the caller's last-read raw stock
    - Ledger append checks previous_quantity against the last movement
    - Product update is conditional on the stock_version read at load time
    Any mismatch raises ConflictError. Nothing is retried automatically.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from depotman import units
from depotman.conf import depotman_settings
from depotman.exceptions import (
    ConflictError,
    NotFoundError,
    PartialWriteError,
    ValidationError,
)
from depotman.models.enums import AdjustmentType, MovementType, StockEncoding
from depotman.models.movement import StockMovement
from depotman.models.product import Product
from depotman.services import ledger

logger = logging.getLogger('depotman')

ADJUSTMENT_MOVEMENTS = {
    AdjustmentType.ADD: MovementType.RESTOCK,
    AdjustmentType.REMOVE: MovementType.ADJUSTMENT_OUT,
    AdjustmentType.SET: MovementType.ADJUSTMENT_SET,
}


@dataclass(frozen=True)
class AdjustmentResult:
    """Outcome of a stock write: raw stock before and after."""

    previous: Decimal
    new: Decimal
    movement: StockMovement

    @property
    def delta(self) -> Decimal:
        return self.new - self.previous


# ══════════════════════════════════════════════════════════════
# SHARED WRITE PATH
# ══════════════════════════════════════════════════════════════


def parse_quantity(value) -> Decimal:
    """
    Parse a user-supplied quantity.

    Raises:
        ValidationError('INVALID_QUANTITY'): missing, non-numeric or negative
    """
    if value is None or value == '' or isinstance(value, bool):
        raise ValidationError('INVALID_QUANTITY', field='quantity', requested=value)
    try:
        parsed = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError('INVALID_QUANTITY', field='quantity', requested=value)
    if not parsed.is_finite() or parsed < 0:
        raise ValidationError('INVALID_QUANTITY', field='quantity', requested=value)
    return parsed


def lock_product(product_id) -> Product:
    """
    Load a product for a stock write.

    Raises:
        NotFoundError('PRODUCT_NOT_FOUND')
    """
    product_id = getattr(product_id, 'pk', product_id)
    try:
        return Product.objects.select_for_update().get(pk=product_id)
    except Product.DoesNotExist:
        logger.error("stock.product_not_found", extra={"product_id": product_id})
        raise NotFoundError('PRODUCT_NOT_FOUND', product_id=product_id)


def to_raw_quantity(product: Product, value: Decimal, unit: str | None = None) -> Decimal:
    """Convert an input quantity to raw units; bar products need whole bars."""
    raw = units.to_raw(product, value, unit)
    if product.encoding == StockEncoding.BARS and raw != raw.to_integral_value():
        raise ValidationError('FRACTIONAL_BARS', field='quantity', requested=raw)
    return raw


def assert_consistent(product: Product) -> Decimal:
    """
    Check the materialized raw stock against the ledger.

    Returns:
        The current raw stock

    Raises:
        PartialWriteError('LEDGER_MISMATCH'): they diverged; reconcile first
    """
    materialized = product.raw_stock
    recorded = ledger.current(product)
    if recorded is not None and recorded != materialized:
        logger.error(
            "stock.partial_write",
            extra={
                "product_id": product.pk,
                "materialized": str(materialized),
                "ledger": str(recorded),
            },
        )
        raise PartialWriteError(
            'LEDGER_MISMATCH',
            product_id=product.pk,
            materialized=materialized,
            ledger=recorded,
        )
    return materialized


def write_stock(product: Product, previous: Decimal, new: Decimal,
                movement_type: MovementType, actor, reason: str = '',
                reference: str = '', **metadata) -> StockMovement:
    """
    Append the movement and rewrite the raw-stock field, as one unit.

    Must run inside transaction.atomic().
    """
    if movement_type == MovementType.ADJUSTMENT_SET:
        movement_quantity = new
    else:
        movement_quantity = new - previous

    movement = ledger.append(
        product,
        movement_type,
        movement_quantity,
        previous_quantity=previous,
        actor=actor,
        reason=reason,
        reference=reference,
        **metadata,
    )

    updated = Product.objects.filter(
        pk=product.pk,
        stock_version=product.stock_version,
    ).update(**{
        product.raw_stock_field: movement.new_quantity,
        'stock_version': F('stock_version') + 1,
        'updated_at': timezone.now(),
    })
    if updated != 1:
        raise ConflictError('CONCURRENT_MODIFICATION', field='quantity', product_id=product.pk)

    product.refresh_from_db()
    return movement


# ══════════════════════════════════════════════════════════════
# APPLY
# ══════════════════════════════════════════════════════════════


def apply(product_id, adjustment_type, quantity, reason: str, actor,
          unit: str | None = None, expected_quantity=None,
          reference: str = '') -> AdjustmentResult:
    """
    Apply a manual stock adjustment.

        add     current + quantity                  -> restock
        remove  max(0, current - quantity)          -> adjustment_out
        set     quantity                            -> adjustment

    With CLAMP_REMOVE disabled, removing more than the current stock is
    rejected instead of clamped.

    Args:
        product_id: Product pk (or instance)
        adjustment_type: 'add', 'remove' or 'set'
        quantity: Non-negative amount (raw unit unless `unit` is given)
        reason: Required, non-blank
        actor: User performing the adjustment
        unit: Input unit ('area' for boxed, 'tonnes' for bars)
        expected_quantity: Raw stock the caller last read

    Returns:
        AdjustmentResult(previous, new, movement)

    Raises:
        ValidationError: bad type/quantity/reason/unit, or over-removal
            when clamping is disabled
        NotFoundError('PRODUCT_NOT_FOUND')
        ConflictError: stock changed since expected_quantity or during the write
        PartialWriteError('LEDGER_MISMATCH'): product needs reconciliation
    """
    try:
        kind = AdjustmentType(adjustment_type)
    except ValueError:
        raise ValidationError('INVALID_TYPE', field='type', requested=adjustment_type)
    if not reason or not str(reason).strip():
        raise ValidationError('REASON_REQUIRED', field='reason')
    if actor is None:
        raise ValidationError('ACTOR_REQUIRED', field='actor')
    value = parse_quantity(quantity)

    with transaction.atomic():
        product = lock_product(product_id)
        raw_value = to_raw_quantity(product, value, unit)
        current = assert_consistent(product)

        if expected_quantity is not None and parse_quantity(expected_quantity) != current:
            raise ConflictError(
                'CONCURRENT_MODIFICATION',
                field='quantity',
                expected=expected_quantity,
                available=current,
            )

        if kind == AdjustmentType.ADD:
            new = current + raw_value
        elif kind == AdjustmentType.REMOVE:
            if raw_value > current and not depotman_settings.CLAMP_REMOVE:
                raise ValidationError(
                    'INSUFFICIENT_QUANTITY',
                    field='quantity',
                    available=current,
                    requested=raw_value,
                )
            new = max(Decimal('0'), current - raw_value)
        else:
            new = raw_value

        movement = write_stock(
            product,
            previous=current,
            new=new,
            movement_type=ADJUSTMENT_MOVEMENTS[kind],
            actor=actor,
            reason=str(reason).strip(),
            reference=reference,
            adjustment_type=kind.value,
            requested=str(raw_value),
            unit=unit or units.INPUT_RAW,
        )

    logger.info(
        "stock.apply",
        extra={
            "product_id": product.pk,
            "type": kind.value,
            "previous": str(current),
            "new": str(movement.new_quantity),
            "requested": str(raw_value),
            "reason": movement.reason,
        },
    )
    return AdjustmentResult(previous=current, new=movement.new_quantity, movement=movement)

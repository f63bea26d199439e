"""
Stock ledger — append-only, per-product ordered history of stock changes.

The ledger is the source of truth for stock: current stock is the
new_quantity of the latest movement, equivalently the first movement's
previous_quantity plus the sum of all deltas.

Before a product's first movement, the ledger adopts the product's
materialized raw stock as the opening balance.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.db import IntegrityError, models, transaction
from django.db.models import F, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from depotman.exceptions import ConflictError, NotFoundError, ValidationError
from depotman.models.enums import INBOUND_TYPES, OUTBOUND_TYPES, MovementType
from depotman.models.movement import StockMovement
from depotman.models.product import Product

logger = logging.getLogger('depotman')

QUANTITY_PLACES = Decimal('0.001')


def _quantize(value, field: str) -> Decimal:
    if value is None or isinstance(value, bool):
        raise ValidationError('INVALID_MOVEMENT', field=field)
    try:
        value = Decimal(str(value)) if not isinstance(value, Decimal) else value
    except (InvalidOperation, ValueError):
        raise ValidationError('INVALID_MOVEMENT', field=field)
    if not value.is_finite():
        raise ValidationError('INVALID_MOVEMENT', field=field)
    return value.quantize(QUANTITY_PLACES, rounding=ROUND_HALF_UP)


def _product_id(product) -> int:
    return getattr(product, 'pk', product)


# ══════════════════════════════════════════════════════════════
# QUERIES
# ══════════════════════════════════════════════════════════════


def last_movement(product) -> StockMovement | None:
    """Most recent movement of a product."""
    return (
        StockMovement.objects
        .filter(product_id=_product_id(product))
        .order_by('-sequence')
        .first()
    )


def current(product) -> Decimal | None:
    """Ledger current stock (None when the product has no movement)."""
    last = last_movement(product)
    return last.new_quantity if last else None


def derived_current(product) -> Decimal | None:
    """
    Current stock recomputed from the whole history:
    first previous_quantity + sum of all deltas.

    Use for:
    - Integrity audit
    - Cross-checking current()
    """
    qs = StockMovement.objects.filter(product_id=_product_id(product))
    first = qs.order_by('sequence').first()
    if first is None:
        return None

    total = qs.aggregate(
        t=Coalesce(
            Sum(F('new_quantity') - F('previous_quantity'),
                output_field=models.DecimalField(max_digits=14, decimal_places=3)),
            Decimal('0'),
            output_field=models.DecimalField(max_digits=14, decimal_places=3),
        )
    )['t']
    return first.previous_quantity + total


def history(product, start=None, end=None):
    """
    Movements of a product in forward-time order, optionally bounded by
    start <= created_at <= end.

    Returns a QuerySet: iterate it as often as needed, each iteration is a
    fresh read. Never locks.
    """
    return (
        StockMovement.objects
        .filter(product_id=_product_id(product))
        .between(start, end)
        .select_related('actor')
        .order_by('sequence')
    )


@dataclass(frozen=True)
class ChainBreak:
    """A movement whose previous_quantity differs from its predecessor's new_quantity."""

    sequence: int
    expected_previous: Decimal
    previous: Decimal


def verify_chain(product) -> list[ChainBreak]:
    """List every break in a product's movement chain (empty = consistent)."""
    breaks = []
    prior = None
    for movement in history(product).iterator():
        if prior is not None and movement.previous_quantity != prior.new_quantity:
            breaks.append(ChainBreak(
                sequence=movement.sequence,
                expected_previous=prior.new_quantity,
                previous=movement.previous_quantity,
            ))
        prior = movement
    return breaks


# ══════════════════════════════════════════════════════════════
# APPEND
# ══════════════════════════════════════════════════════════════


def append(product, movement_type, quantity, previous_quantity, actor,
           reason: str = '', reference: str = '', new_quantity=None,
           timestamp=None, **metadata) -> StockMovement:
    """
    Append a movement to a product's ledger.

    quantity is a signed delta, except for ADJUSTMENT_SET where it is the
    absolute target. previous_quantity must equal the ledger's last
    recorded value at append time.

    Returns:
        The created StockMovement

    Raises:
        ValidationError('INVALID_MOVEMENT'): malformed movement
        ValidationError('ACTOR_REQUIRED'): no actor
        NotFoundError('PRODUCT_NOT_FOUND'): unknown product
        ConflictError('STALE_PREVIOUS_QUANTITY'): previous_quantity is stale
        ConflictError('CONCURRENT_MODIFICATION'): another append won the race

    Concurrency:
        - Runs under transaction.atomic()
        - (product, sequence) is unique: of two appends built on the same
          predecessor, only one commits
    """
    try:
        movement_type = MovementType(movement_type)
    except ValueError:
        raise ValidationError('INVALID_MOVEMENT', field='movement_type', movement_type=movement_type)
    if actor is None:
        raise ValidationError('ACTOR_REQUIRED', field='actor')

    quantity = _quantize(quantity, 'quantity')
    previous = _quantize(previous_quantity, 'previous_quantity')

    if movement_type == MovementType.ADJUSTMENT_SET:
        computed = quantity
    else:
        computed = previous + quantity
        if movement_type in INBOUND_TYPES and quantity < 0:
            raise ValidationError('INVALID_MOVEMENT', field='quantity',
                                  movement_type=movement_type, requested=quantity)
        if movement_type in OUTBOUND_TYPES and quantity > 0:
            raise ValidationError('INVALID_MOVEMENT', field='quantity',
                                  movement_type=movement_type, requested=quantity)

    if new_quantity is not None and _quantize(new_quantity, 'new_quantity') != computed:
        raise ValidationError('INVALID_MOVEMENT', field='new_quantity',
                              expected=computed, given=new_quantity)

    with transaction.atomic():
        last = last_movement(product)

        if last is not None:
            expected = last.new_quantity
            sequence = last.sequence + 1
            if timestamp is not None and timestamp < last.created_at:
                raise ValidationError('INVALID_MOVEMENT', field='timestamp')
        else:
            try:
                stored = Product.objects.get(pk=_product_id(product))
            except Product.DoesNotExist:
                raise NotFoundError('PRODUCT_NOT_FOUND', product_id=_product_id(product))
            expected = stored.raw_stock
            sequence = 1

        if previous != expected:
            raise ConflictError(
                'STALE_PREVIOUS_QUANTITY',
                field='previous_quantity',
                expected=expected,
                given=previous,
            )

        try:
            with transaction.atomic():
                movement = StockMovement.objects.create(
                    product_id=_product_id(product),
                    sequence=sequence,
                    movement_type=movement_type,
                    quantity=quantity,
                    previous_quantity=previous,
                    new_quantity=computed,
                    reason=reason or '',
                    reference=reference or '',
                    actor=actor,
                    created_at=timestamp or timezone.now(),
                    metadata=metadata,
                )
        except IntegrityError as exc:
            raise ConflictError(
                'CONCURRENT_MODIFICATION',
                field='previous_quantity',
                product_id=_product_id(product),
            ) from exc

    logger.info(
        "stock.ledger.append",
        extra={
            "product_id": movement.product_id,
            "sequence": movement.sequence,
            "movement_type": movement.movement_type,
            "previous": str(previous),
            "new": str(computed),
        },
    )
    return movement

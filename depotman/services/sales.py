"""
Sale stock writes — used by the sale-completion collaborator.

A completed sale decrements raw stock with a `sale` movement; a cancelled or
refunded sale puts it back with a `return` movement. Both share the
adjustment processor's write path (same locking and compare-and-swap).
Sales never clamp: selling more than the stock is rejected.
"""

import logging

from django.db import transaction

from depotman.exceptions import ValidationError
from depotman.models.enums import MovementType
from depotman.services.adjustments import (
    AdjustmentResult,
    assert_consistent,
    lock_product,
    parse_quantity,
    to_raw_quantity,
    write_stock,
)

logger = logging.getLogger('depotman')


def _positive(quantity):
    value = parse_quantity(quantity)
    if value == 0:
        raise ValidationError('INVALID_QUANTITY', field='quantity', requested=quantity)
    return value


def record_sale(product_id, quantity, actor, reference: str = '',
                unit: str | None = None, reason: str = '') -> AdjustmentResult:
    """
    Decrement stock for a sold line.

    Raises:
        ValidationError('INVALID_QUANTITY'): quantity <= 0
        ValidationError('INSUFFICIENT_QUANTITY'): more than the current stock
        NotFoundError, ConflictError, PartialWriteError: as apply()
    """
    if actor is None:
        raise ValidationError('ACTOR_REQUIRED', field='actor')
    value = _positive(quantity)

    with transaction.atomic():
        product = lock_product(product_id)
        raw_value = to_raw_quantity(product, value, unit)
        current = assert_consistent(product)

        if raw_value > current:
            raise ValidationError(
                'INSUFFICIENT_QUANTITY',
                field='quantity',
                available=current,
                requested=raw_value,
            )

        movement = write_stock(
            product,
            previous=current,
            new=current - raw_value,
            movement_type=MovementType.SALE,
            actor=actor,
            reason=reason or f"Vente {reference}".strip(),
            reference=reference,
        )

    logger.info(
        "stock.sale",
        extra={
            "product_id": product.pk,
            "qty": str(raw_value),
            "reference": reference,
            "new": str(movement.new_quantity),
        },
    )
    return AdjustmentResult(previous=current, new=movement.new_quantity, movement=movement)


def record_return(product_id, quantity, actor, reference: str = '',
                  unit: str | None = None, reason: str = '') -> AdjustmentResult:
    """
    Put stock back for a cancelled or refunded sale line.

    Raises:
        ValidationError('INVALID_QUANTITY'): quantity <= 0
        NotFoundError, ConflictError, PartialWriteError: as apply()
    """
    if actor is None:
        raise ValidationError('ACTOR_REQUIRED', field='actor')
    value = _positive(quantity)

    with transaction.atomic():
        product = lock_product(product_id)
        raw_value = to_raw_quantity(product, value, unit)
        current = assert_consistent(product)

        movement = write_stock(
            product,
            previous=current,
            new=current + raw_value,
            movement_type=MovementType.RETURN,
            actor=actor,
            reason=reason or f"Retour {reference}".strip(),
            reference=reference,
        )

    logger.info(
        "stock.return",
        extra={
            "product_id": product.pk,
            "qty": str(raw_value),
            "reference": reference,
            "new": str(movement.new_quantity),
        },
    )
    return AdjustmentResult(previous=current, new=movement.new_quantity, movement=movement)

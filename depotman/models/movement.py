"""
StockMovement model — Immutable ledger of stock changes.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from depotman.models.enums import MovementType


class MovementQuerySet(models.QuerySet):
    """Ledger queryset. Rows are append-only."""

    def for_product(self, product):
        return self.filter(product=product)

    def between(self, start=None, end=None):
        """Movements with start <= created_at <= end (open bounds when None)."""
        qs = self
        if start is not None:
            qs = qs.filter(created_at__gte=start)
        if end is not None:
            qs = qs.filter(created_at__lte=end)
        return qs

    def update(self, **kwargs):
        raise ValueError(
            "Les mouvements sont immuables. "
            "Pour corriger, créez un mouvement compensatoire."
        )

    def delete(self):
        raise ValueError(
            "Les mouvements sont immuables. "
            "Pour annuler, créez un mouvement compensatoire."
        )


class StockMovement(models.Model):
    """
    Immutable record of a stock change.

    Rules:
    - NEVER update() or delete()
    - Corrections are new compensating movements
    - new_quantity = previous_quantity + quantity for delta types
    - ADJUSTMENT_SET stores the target in quantity; delta is inferred
    - sequence is gapless per product; (product, sequence) is unique, so two
      appends computed from the same predecessor cannot both commit

    Movements are created by depotman.services.ledger.append() only.
    """

    product = models.ForeignKey(
        'depotman.Product',
        on_delete=models.PROTECT,
        related_name='movements',
        verbose_name=_('Produit'),
    )
    sequence = models.PositiveIntegerField(verbose_name=_('Séquence'))

    movement_type = models.CharField(
        max_length=20,
        choices=MovementType.choices,
        verbose_name=_('Type'),
    )
    quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Quantité'),
        help_text=_('Variation signée, ou quantité cible pour un ajustement'),
    )
    previous_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Quantité précédente'),
    )
    new_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Nouvelle quantité'),
    )

    reason = models.CharField(
        max_length=255,
        blank=True,
        default='',
        verbose_name=_('Raison'),
        help_text=_('Obligatoire pour les ajustements manuels'),
    )
    reference = models.CharField(
        max_length=100,
        blank=True,
        default='',
        db_index=True,
        verbose_name=_('Référence'),
        help_text=_('Ex: identifiant de vente'),
    )
    metadata = models.JSONField(default=dict, blank=True, verbose_name=_('Métadonnées'))

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Utilisateur'),
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Date'))

    objects = MovementQuerySet.as_manager()

    class Meta:
        verbose_name = _('Mouvement de stock')
        verbose_name_plural = _('Mouvements de stock')
        ordering = ['created_at', 'sequence']
        constraints = [
            models.UniqueConstraint(
                fields=['product', 'sequence'],
                name='unique_movement_sequence',
            ),
        ]
        indexes = [
            models.Index(fields=['product', 'created_at'], name='movement_product_date_idx'),
            models.Index(fields=['movement_type'], name='movement_type_idx'),
        ]

    @property
    def delta(self):
        """Signed change recorded by this movement."""
        return self.new_quantity - self.previous_quantity

    @property
    def is_set(self) -> bool:
        return self.movement_type == MovementType.ADJUSTMENT_SET

    def save(self, *args, **kwargs):
        """Insert only."""
        if self.pk:
            raise ValueError(
                "Les mouvements sont immuables. "
                "Pour corriger, créez un mouvement compensatoire."
            )

        expected = self.quantity if self.is_set else self.previous_quantity + self.quantity
        if self.new_quantity != expected:
            raise ValueError(
                f"Mouvement incohérent: {self.previous_quantity} → {self.new_quantity} "
                f"({self.movement_type} {self.quantity})"
            )

        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        """Prevent deletion — movements are immutable."""
        raise ValueError(
            "Les mouvements sont immuables. "
            "Pour annuler, créez un mouvement compensatoire."
        )

    def __str__(self) -> str:
        delta = self.delta
        sign = '+' if delta > 0 else ''
        return f"{self.product_id}#{self.sequence} {sign}{delta} | {self.movement_type}"

"""
Enums for Depotman models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class StockEncoding(models.TextChoices):
    """
    How a product's raw stock is persisted.

    SIMPLE: counted units in `quantity`
    BOXED:  boxes in `stock_boxes`, displayed as area (boxes x area_per_box)
    BARS:   bars in `stock_bars`, with a tonnage sub-view (bars / bars_per_tonne)
    """
    SIMPLE = 'simple', _('Unités')
    BOXED = 'boxed', _('Boîtes / surface')
    BARS = 'bars', _('Barres / tonnage')


class MovementType(models.TextChoices):
    """
    Ledger entry type.

    Every type except ADJUSTMENT_SET records a signed delta.
    ADJUSTMENT_SET records an absolute target; its delta is inferred.
    """
    RESTOCK = 'restock', _('Réapprovisionnement')
    ADJUSTMENT_IN = 'adjustment_in', _('Ajustement entrée')
    ADJUSTMENT_OUT = 'adjustment_out', _('Ajustement sortie')
    ADJUSTMENT_SET = 'adjustment', _('Ajustement (inventaire)')
    SALE = 'sale', _('Vente')
    RETURN = 'return', _('Retour')
    LOSS = 'loss', _('Perte')


# Direction each delta type must respect (None = either)
INBOUND_TYPES = frozenset({
    MovementType.RESTOCK,
    MovementType.ADJUSTMENT_IN,
    MovementType.RETURN,
})
OUTBOUND_TYPES = frozenset({
    MovementType.ADJUSTMENT_OUT,
    MovementType.SALE,
    MovementType.LOSS,
})


class AdjustmentType(models.TextChoices):
    """Manual adjustment kinds accepted by the adjustment processor."""
    ADD = 'add', _('Ajouter')
    REMOVE = 'remove', _('Retirer')
    SET = 'set', _('Définir')


class StockLevel(models.TextChoices):
    """Availability classification of a product's display stock."""
    RUPTURE = 'rupture', _('Rupture')
    ALERT = 'alert', _('Alerte')
    NORMAL = 'normal', _('Normal')
    HIGH = 'high', _('Élevé')


class Bucketing(models.TextChoices):
    """Time bucket granularity for reports."""
    DAILY = 'daily', _('Journalier')
    WEEKLY = 'weekly', _('Hebdomadaire')

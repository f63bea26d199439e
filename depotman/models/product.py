"""
Product model — catalog record with its materialized raw stock.
"""

from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _

from depotman import units
from depotman.models.enums import StockEncoding, StockLevel

RAW_STOCK_FIELDS = ('quantity', 'stock_boxes', 'stock_bars')
STOCK_WRITE_FIELDS = frozenset(RAW_STOCK_FIELDS) | {'stock_version'}


class ProductQuerySet(models.QuerySet):
    """Custom QuerySet for Product with convenience filters."""

    def active(self):
        return self.filter(is_active=True)

    def in_category(self, category: str):
        return self.filter(category=category)


class Product(models.Model):
    """
    Product with category-encoded raw stock.

    Exactly one raw-stock field is authoritative, selected by the category:

        simple  quantity
        boxed   stock_boxes   (+ area_per_box)
        bars    stock_bars    (+ bars_per_tonne)

    Rules:
    - Catalog fields are edited freely by the catalog.
    - Raw-stock fields are only set at creation (opening balance). Afterwards
      they change exclusively through the adjustment processor, together
      with a ledger append. save() refuses raw-stock changes.
    - Display stock is always derived (see depotman.units).
    - stock_version increases on every raw-stock write (compare-and-swap).
    """

    name = models.CharField(max_length=200, verbose_name=_('Nom'))
    category = models.CharField(
        max_length=50,
        db_index=True,
        verbose_name=_('Catégorie'),
        help_text=_("Détermine l'unité de stock (ex: ceramique, fer)"),
    )
    unit = models.CharField(
        max_length=20,
        default=units.UNIT_DEFAULT,
        verbose_name=_('Unité'),
    )
    currency = models.CharField(max_length=3, default='HTG', verbose_name=_('Devise'))
    price = models.DecimalField(max_digits=14, decimal_places=2, verbose_name=_('Prix'))
    purchase_price = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name=_("Prix d'achat"),
    )
    alert_threshold = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_("Seuil d'alerte"),
        help_text=_('En unité d\'affichage (m², barres, unités)'),
    )
    is_active = models.BooleanField(default=True, verbose_name=_('Actif'))

    # Raw stock (one authoritative field per category)
    quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Quantité'),
    )
    stock_boxes = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Stock (boîtes)'),
    )
    area_per_box = models.DecimalField(
        max_digits=10,
        decimal_places=4,
        null=True,
        blank=True,
        verbose_name=_('Surface par boîte (m²)'),
    )
    stock_bars = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Stock (barres)'),
    )
    bars_per_tonne = models.DecimalField(
        max_digits=10,
        decimal_places=3,
        null=True,
        blank=True,
        verbose_name=_('Barres par tonne'),
    )

    stock_version = models.PositiveIntegerField(default=0, editable=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ProductQuerySet.as_manager()

    class Meta:
        verbose_name = _('Produit')
        verbose_name_plural = _('Produits')
        ordering = ['name']
        indexes = [
            models.Index(fields=['category', 'is_active'], name='product_category_active_idx'),
        ]

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_raw = {
            name: getattr(instance, name)
            for name in RAW_STOCK_FIELDS
            if name in field_names
        }
        return instance

    def save(self, *args, **kwargs):
        """Save catalog fields. Raw stock is immutable here once created."""
        loaded = getattr(self, '_loaded_raw', None)
        if not self._state.adding and loaded:
            changed = [
                name for name, value in loaded.items()
                if units.to_decimal(getattr(self, name)) != units.to_decimal(value)
            ]
            if changed:
                raise ValueError(
                    "Le stock ne peut être modifié que par un ajustement "
                    f"(champs: {', '.join(changed)})."
                )
        if not self._state.adding:
            # Raw stock and stock_version are written by the adjustment path only
            update_fields = kwargs.get('update_fields')
            if update_fields is None:
                kwargs['update_fields'] = [
                    f.name for f in self._meta.concrete_fields
                    if not f.primary_key and f.name not in STOCK_WRITE_FIELDS
                ]
            elif STOCK_WRITE_FIELDS.intersection(update_fields):
                raise ValueError(
                    "Le stock ne peut être modifié que par un ajustement "
                    f"(champs: {', '.join(sorted(STOCK_WRITE_FIELDS.intersection(update_fields)))})."
                )
        super().save(*args, **kwargs)
        self._loaded_raw = {name: getattr(self, name) for name in RAW_STOCK_FIELDS}

    def refresh_from_db(self, *args, **kwargs):
        super().refresh_from_db(*args, **kwargs)
        self._loaded_raw = {name: getattr(self, name) for name in RAW_STOCK_FIELDS}

    # ══════════════════════════════════════════════════════════════
    # PROPERTIES
    # ══════════════════════════════════════════════════════════════

    @property
    def encoding(self) -> StockEncoding:
        return units.encoding_for(self.category)

    @property
    def stock(self):
        """Stock variant (SimpleStock, BoxedStock or BarStock)."""
        return units.stock_for(self)

    @property
    def raw_stock_field(self) -> str:
        return self.stock.raw_field

    @property
    def raw_stock(self) -> Decimal:
        return self.stock.raw

    @property
    def display_stock(self) -> units.DisplayStock:
        return self.stock.display()

    @property
    def stock_level(self) -> StockLevel:
        from depotman.availability import classify
        return classify(self.display_stock.value, self.alert_threshold)

    def __str__(self) -> str:
        return self.name

"""
Depotman Admin.

- Product: catalog fields editable; raw stock read-only once created
  (stock only changes via the Stock service), with a reconcile action
- StockMovement: read-only audit trail
- ExchangeRateSetting: single row, no add once it exists, no delete
"""

import logging

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from depotman.exceptions import StockError
from depotman.models import ExchangeRateSetting, Product, StockMovement
from depotman.models.product import RAW_STOCK_FIELDS

logger = logging.getLogger(__name__)


# =========================================================================
# PRODUCT ADMIN
# =========================================================================

@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    """Product admin — raw stock is read-only after creation."""

    list_display = ['name', 'category', 'display_stock_display', 'level_display',
                    'price', 'currency', 'is_active']
    list_filter = ['category', 'currency', 'is_active']
    search_fields = ['name', 'category']
    readonly_fields = ['stock_version', 'created_at', 'updated_at']
    actions = ['reconcile_products']

    def get_readonly_fields(self, request, obj=None):
        fields = list(super().get_readonly_fields(request, obj))
        if obj is not None:
            fields.extend(RAW_STOCK_FIELDS)
        return fields

    @admin.display(description=_('Stock'))
    def display_stock_display(self, obj):
        display = obj.display_stock
        return f"{display.value} {display.unit}"

    @admin.display(description=_('Niveau'))
    def level_display(self, obj):
        return obj.stock_level.label

    @admin.action(description=_('Réconcilier le stock avec l\'historique'))
    def reconcile_products(self, request, queryset):
        from depotman import stock

        count = 0
        for product in queryset:
            try:
                if stock.reconcile(product, actor=request.user, repair=True) is not None:
                    count += 1
            except StockError as exc:
                logger.warning("reconcile_products: failed for %s: %s", product.pk, exc)

        self.message_user(request, _('{count} produit(s) réconcilié(s).').format(count=count))


# =========================================================================
# STOCK MOVEMENT ADMIN (read-only audit trail)
# =========================================================================

@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    """StockMovement admin — read-only. Immutable audit trail."""

    list_display = ['created_at', 'product', 'movement_type', 'previous_quantity',
                    'quantity', 'new_quantity', 'reason', 'actor']
    list_filter = ['movement_type', 'created_at']
    search_fields = ['product__name', 'reason', 'reference']
    readonly_fields = ['product', 'sequence', 'movement_type', 'quantity',
                       'previous_quantity', 'new_quantity', 'reason', 'reference',
                       'metadata', 'actor', 'created_at']
    date_hierarchy = 'created_at'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =========================================================================
# EXCHANGE RATE ADMIN
# =========================================================================

@admin.register(ExchangeRateSetting)
class ExchangeRateSettingAdmin(admin.ModelAdmin):
    """Exchange rate admin — one row, overwritten in place."""

    list_display = ['__str__', 'display_currency', 'updated_at', 'updated_by']
    readonly_fields = ['updated_at', 'updated_by']

    def has_add_permission(self, request):
        return not ExchangeRateSetting.objects.exists()

    def has_delete_permission(self, request, obj=None):
        return False

    def save_model(self, request, obj, form, change):
        obj.updated_by = request.user
        super().save_model(request, obj, form, change)

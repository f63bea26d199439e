"""
ExchangeRateSetting model — the current exchange rate (single row).
"""

import logging
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from depotman.conf import depotman_settings

logger = logging.getLogger('depotman')


class ExchangeRateSetting(models.Model):
    """
    Current rate between the foreign and local currency.

    Overwritten in place, never versioned: reports always use the rate in
    effect when they are computed, including for past periods.
    """

    SINGLETON_PK = 1

    foreign_currency = models.CharField(max_length=3, verbose_name=_('Devise étrangère'))
    local_currency = models.CharField(max_length=3, verbose_name=_('Devise locale'))
    rate = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        verbose_name=_('Taux'),
        help_text=_('Unités locales pour une unité étrangère'),
    )
    display_currency = models.CharField(
        max_length=3,
        verbose_name=_("Devise d'affichage"),
    )
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_('Mis à jour le'))
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Mis à jour par'),
    )

    class Meta:
        verbose_name = _('Taux de change')
        verbose_name_plural = _('Taux de change')

    def save(self, *args, **kwargs):
        self.pk = self.SINGLETON_PK
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Le taux de change ne peut pas être supprimé.")

    @classmethod
    def current(cls) -> 'ExchangeRateSetting':
        """Return the rate row, creating it from settings on first use."""
        instance, _created = cls.objects.get_or_create(
            pk=cls.SINGLETON_PK,
            defaults={
                'foreign_currency': depotman_settings.FOREIGN_CURRENCY,
                'local_currency': depotman_settings.LOCAL_CURRENCY,
                'rate': Decimal(str(depotman_settings.DEFAULT_EXCHANGE_RATE)),
                'display_currency': depotman_settings.DISPLAY_CURRENCY,
            },
        )
        return instance

    @classmethod
    def set_rate(cls, rate, user=None, display_currency: str | None = None) -> 'ExchangeRateSetting':
        """
        Overwrite the current rate.

        Raises:
            ValidationError('INVALID_RATE'): rate missing or not positive
            ValidationError('UNSUPPORTED_CURRENCY'): unknown display currency
        """
        from depotman.currency import check_rate, normalize_currency

        value = check_rate(rate)
        instance = cls.current()
        old = instance.rate
        instance.rate = value
        instance.updated_by = user
        if display_currency:
            instance.display_currency = normalize_currency(display_currency)
        instance.save()

        logger.info(
            "stock.rate.updated",
            extra={"old": str(old), "new": str(value), "user": str(user)},
        )
        return instance

    def __str__(self) -> str:
        return f"1 {self.foreign_currency} = {self.rate} {self.local_currency}"

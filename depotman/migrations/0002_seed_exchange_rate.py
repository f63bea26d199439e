"""
Create the exchange rate row from DEPOTMAN settings.
"""

from decimal import Decimal

from django.db import migrations


def create_exchange_rate(apps, schema_editor):
    """Seed the single exchange rate row."""
    from depotman.conf import depotman_settings

    ExchangeRateSetting = apps.get_model('depotman', 'ExchangeRateSetting')
    ExchangeRateSetting.objects.get_or_create(
        pk=1,
        defaults={
            'foreign_currency': depotman_settings.FOREIGN_CURRENCY,
            'local_currency': depotman_settings.LOCAL_CURRENCY,
            'rate': Decimal(str(depotman_settings.DEFAULT_EXCHANGE_RATE)),
            'display_currency': depotman_settings.DISPLAY_CURRENCY,
        },
    )


def remove_exchange_rate(apps, schema_editor):
    ExchangeRateSetting = apps.get_model('depotman', 'ExchangeRateSetting')
    ExchangeRateSetting.objects.filter(pk=1).delete()


class Migration(migrations.Migration):

    dependencies = [
        ('depotman', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(create_exchange_rate, remove_exchange_rate),
    ]

"""
Tests for currency conversion and unified totals.
"""

from decimal import Decimal

import pytest

from depotman import currency
from depotman.exceptions import ValidationError


RATE = Decimal('132')


class TestConvert:
    """Tests for currency.convert()."""

    def test_identity(self):
        assert currency.convert(Decimal('10'), 'USD', 'USD', RATE) == Decimal('10')

    def test_foreign_to_local_multiplies(self):
        assert currency.convert(Decimal('10'), 'USD', 'HTG', RATE) == Decimal('1320')

    def test_local_to_foreign_divides(self):
        assert currency.convert(Decimal('264'), 'HTG', 'USD', RATE) == Decimal('2')

    def test_missing_currency_is_local(self):
        assert currency.convert(Decimal('5'), None, 'HTG', RATE) == Decimal('5')

    @pytest.mark.parametrize('rate', [None, 0, Decimal('-1'), 'abc'])
    def test_invalid_rate(self, rate):
        with pytest.raises(ValidationError) as exc:
            currency.convert(Decimal('10'), 'USD', 'HTG', rate)

        assert exc.value.code == 'INVALID_RATE'

    def test_unsupported_currency(self):
        with pytest.raises(ValidationError) as exc:
            currency.convert(Decimal('10'), 'EUR', 'HTG', RATE)

        assert exc.value.code == 'UNSUPPORTED_CURRENCY'


class TestUnifiedTotal:
    """Tests for currency.unified_total()."""

    def test_mixed_currencies_to_local(self):
        """100 HTG + 10 USD at 132 = 1420 HTG."""
        items = [
            {'subtotal': Decimal('100'), 'currency': 'HTG'},
            {'subtotal': Decimal('10'), 'currency': 'USD'},
        ]

        total = currency.unified_total(items, RATE, 'HTG')

        assert total.local_total == Decimal('100')
        assert total.foreign_total == Decimal('10')
        assert total.unified == Decimal('1420')
        assert total.target_total == Decimal('100')
        assert total.other_total == Decimal('10')
        assert total.has_multiple_currencies

    def test_mixed_currencies_to_foreign(self):
        items = [
            {'subtotal': Decimal('264'), 'currency': 'HTG'},
            {'subtotal': Decimal('10'), 'currency': 'USD'},
        ]

        assert currency.unified_total(items, RATE, 'USD').unified == Decimal('12')

    @pytest.mark.parametrize('rate', [Decimal('1'), Decimal('132'), Decimal('0.0001'), None])
    def test_single_currency_is_plain_sum(self, rate):
        """No conversion happens when only the target currency is present."""
        items = [
            {'subtotal': Decimal('100.10'), 'currency': 'HTG'},
            {'subtotal': Decimal('50.20'), 'currency': 'HTG'},
        ]

        total = currency.unified_total(items, rate, 'HTG')

        assert total.unified == Decimal('150.30')
        assert not total.has_multiple_currencies

    def test_order_independent(self):
        items = [
            {'subtotal': Decimal('3'), 'currency': 'USD'},
            {'subtotal': Decimal('100'), 'currency': 'HTG'},
            {'subtotal': Decimal('7'), 'currency': 'USD'},
        ]

        forward = currency.unified_total(items, RATE, 'HTG')
        backward = currency.unified_total(list(reversed(items)), RATE, 'HTG')

        assert forward == backward

    def test_objects_and_field(self):
        """Items may be objects; any amount field can be summed."""
        from depotman.protocols.sales import SaleLine
        from django.utils import timezone

        now = timezone.now()
        lines = [
            SaleLine(1, Decimal('1'), Decimal('100'), 'HTG', Decimal('20'), now),
            SaleLine(2, Decimal('1'), Decimal('10'), 'USD', Decimal('1'), now),
        ]

        assert currency.unified_total(lines, RATE, 'HTG', field='profit_amount').unified == Decimal('152')

    def test_default_target_is_display_currency(self):
        items = [{'subtotal': Decimal('1'), 'currency': 'USD'}]

        total = currency.unified_total(items, RATE)

        assert total.currency == 'HTG'
        assert total.unified == Decimal('132')


class TestMoneyHelpers:
    """Tests for profit, tax and formatting helpers."""

    def test_unified_profit_with_discount(self):
        items = [
            {'profit_amount': Decimal('100'), 'currency': 'HTG'},
            {'profit_amount': Decimal('1'), 'currency': 'USD'},
        ]

        assert currency.unified_profit(items, RATE, 'HTG', discount_percent=10) == Decimal('208.8')

    def test_total_with_tax(self):
        items = [{'subtotal': Decimal('1000'), 'currency': 'HTG'}]

        totals = currency.total_with_tax(
            items, RATE, 'HTG', discount=Decimal('1'), discount_currency='USD', tax_rate=10,
        )

        assert totals.discount == Decimal('132')
        assert totals.after_discount == Decimal('868')
        assert totals.tax == Decimal('86.8')
        assert totals.total == Decimal('954.8')

    def test_discount_clamped_at_zero(self):
        items = [{'subtotal': Decimal('100'), 'currency': 'HTG'}]

        totals = currency.total_with_tax(items, RATE, 'HTG', discount=Decimal('500'), tax_rate=10)

        assert totals.after_discount == Decimal('0')
        assert totals.total == Decimal('0')

    def test_format_amount(self):
        assert currency.format_amount(Decimal('1234.5'), 'USD') == '$1,234.50'
        assert currency.format_amount(Decimal('1234.5'), 'HTG') == '1,234.50 HTG'

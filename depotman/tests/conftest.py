"""
Pytest fixtures for Depotman tests.
"""

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model

from depotman.adapters import StaticSaleLineSource, reset_sale_line_source
from depotman.models import Product


User = get_user_model()


@pytest.fixture
def user(db):
    """Create a test user."""
    return User.objects.create_user(
        username='testuser',
        password='testpass123'
    )


@pytest.fixture
def cement(db):
    """Simple product counted in bags."""
    return Product.objects.create(
        name='Ciment Portland 42.5',
        category='ciment',
        unit='sacs',
        currency='HTG',
        price=Decimal('850.00'),
        purchase_price=Decimal('700.00'),
        alert_threshold=Decimal('20'),
        quantity=Decimal('100'),
    )


@pytest.fixture
def tile(db):
    """Boxed product: 10 boxes of 1.44 m²."""
    return Product.objects.create(
        name='Carreau 60x60 gris',
        category='ceramique',
        currency='USD',
        price=Decimal('12.50'),
        alert_threshold=Decimal('5'),
        stock_boxes=Decimal('10'),
        area_per_box=Decimal('1.44'),
    )


@pytest.fixture
def rebar(db):
    """Bar product: 80 bars per tonne."""
    return Product.objects.create(
        name='Fer 1/2 pouce',
        category='fer',
        unit='barres',
        currency='HTG',
        price=Decimal('450.00'),
        alert_threshold=Decimal('40'),
        stock_bars=Decimal('120'),
        bars_per_tonne=Decimal('80'),
    )


@pytest.fixture
def sale_lines():
    """Seed the static sale line source; cleared after the test."""
    reset_sale_line_source()
    yield StaticSaleLineSource.load
    StaticSaleLineSource.clear()
    reset_sale_line_source()

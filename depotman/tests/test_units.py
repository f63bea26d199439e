"""
Tests for unit conversion (display stock, tonnage, input units).
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest
from django.test import override_settings

from depotman import units
from depotman.exceptions import ValidationError
from depotman.models import Product, StockEncoding


def make(**fields):
    defaults = {'name': 'Produit', 'category': 'divers', 'price': Decimal('1')}
    defaults.update(fields)
    return Product(**defaults)


class TestDisplayStock:
    """Tests for units.display_stock()."""

    def test_boxed_shows_area(self):
        """10 boxes of 1.44 m² display as 14.40 m², raw 10."""
        tile = make(category='ceramique', stock_boxes=Decimal('10'), area_per_box=Decimal('1.44'))

        display = units.display_stock(tile)

        assert display.value == Decimal('14.4')
        assert display.unit == units.UNIT_AREA
        assert display.raw == Decimal('10')

    def test_area_rounds_half_up(self):
        """Area is rounded to 2 places, half-up."""
        tile = make(category='ceramique', stock_boxes=Decimal('3'), area_per_box=Decimal('1.0825'))

        assert units.display_stock(tile).value == Decimal('3.25')

    def test_boxed_without_area_per_box_falls_back(self):
        """No area_per_box: display the simple quantity."""
        tile = make(category='ceramique', stock_boxes=Decimal('10'), quantity=Decimal('4'), unit='boîtes')

        display = units.display_stock(tile)

        assert display == units.DisplayStock(Decimal('4'), 'boîtes', Decimal('4'))

    def test_boxed_zero_boxes_falls_back(self):
        tile = make(category='ceramique', stock_boxes=Decimal('0'), area_per_box=Decimal('1.44'))

        assert units.display_stock(tile).unit == units.UNIT_DEFAULT

    def test_bars_show_bars(self):
        rebar = make(category='fer', stock_bars=Decimal('120'), bars_per_tonne=Decimal('80'))

        display = units.display_stock(rebar)

        assert display.value == Decimal('120')
        assert display.unit == units.UNIT_BARS
        assert display.raw == Decimal('120')

    def test_simple_uses_product_unit(self):
        cement = make(category='ciment', quantity=Decimal('7'), unit='sacs')

        assert units.display_stock(cement) == units.DisplayStock(Decimal('7'), 'sacs', Decimal('7'))

    def test_duck_typed_product(self):
        """Any object with the stock attributes works."""
        item = SimpleNamespace(category='ceramique', stock_boxes=2, area_per_box='1.5')

        assert units.display_stock(item).value == Decimal('3.00')

    def test_pure(self):
        """Same input, same output."""
        tile = make(category='ceramique', stock_boxes=Decimal('7'), area_per_box=Decimal('1.44'))

        assert units.display_stock(tile) == units.display_stock(tile)


class TestEncoding:
    """Tests for encoding selection by category."""

    def test_configured_categories(self):
        assert units.encoding_for('ceramique') == StockEncoding.BOXED
        assert units.encoding_for('fer') == StockEncoding.BARS

    def test_unknown_category_is_simple(self):
        assert units.encoding_for('peinture') == StockEncoding.SIMPLE
        assert units.encoding_for(None) == StockEncoding.SIMPLE

    @override_settings(DEPOTMAN={'STOCK_ENCODINGS': {'bois': 'bars'}})
    def test_encodings_from_settings(self):
        assert units.encoding_for('bois') == StockEncoding.BARS
        assert units.encoding_for('fer') == StockEncoding.SIMPLE

    def test_raw_field_per_encoding(self):
        assert make(category='ceramique').raw_stock_field == 'stock_boxes'
        assert make(category='fer').raw_stock_field == 'stock_bars'
        assert make(category='ciment').raw_stock_field == 'quantity'


class TestTonnage:
    """Tests for tonnage conversion and labels."""

    @pytest.mark.parametrize('tonnage, label', [
        (Decimal('1.5'), '1 1/2 tonnes'),
        (Decimal('0.75'), '3/4 tonne'),
        (Decimal('0.25'), '1/4 tonne'),
        (Decimal('2'), '2 tonnes'),
        (Decimal('1'), '1 tonne'),
        (Decimal('2.255'), '2 1/4 tonnes'),
        (Decimal('1.3'), '1.30 tonnes'),
    ])
    def test_label(self, tonnage, label):
        assert units.tonnage_label(tonnage) == label

    def test_bar_tonnage(self):
        rebar = make(category='fer', stock_bars=Decimal('120'), bars_per_tonne=Decimal('80'))

        assert rebar.stock.tonnage == Decimal('1.5')

    def test_tonnage_needs_bars_per_tonne(self):
        rebar = make(category='fer', stock_bars=Decimal('120'))

        assert rebar.stock.tonnage is None

    def test_tonnes_to_bars_is_integral(self):
        assert units.tonnes_to_bars(Decimal('0.33'), Decimal('80')) == Decimal('26')


class TestToRaw:
    """Tests for units.to_raw()."""

    def test_raw_unit_passthrough(self):
        tile = make(category='ceramique', area_per_box=Decimal('1.44'))

        assert units.to_raw(tile, '3') == Decimal('3')
        assert units.to_raw(tile, Decimal('3'), units.INPUT_RAW) == Decimal('3')

    def test_area_to_boxes(self):
        tile = make(category='ceramique', area_per_box=Decimal('1.44'))

        assert units.to_raw(tile, Decimal('14.4'), units.INPUT_AREA) == Decimal('10')

    def test_tonnes_to_bars(self):
        rebar = make(category='fer', bars_per_tonne=Decimal('80'))

        assert units.to_raw(rebar, Decimal('1.5'), units.INPUT_TONNES) == Decimal('120')

    def test_unit_not_usable_for_product(self):
        cement = make(category='ciment')

        with pytest.raises(ValidationError) as exc:
            units.to_raw(cement, Decimal('1'), units.INPUT_AREA)

        assert exc.value.code == 'INVALID_UNIT'
        assert exc.value.field == 'unit'

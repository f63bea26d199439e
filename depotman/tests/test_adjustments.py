"""
Tests for the adjustment processor.
"""

from decimal import Decimal

import pytest
from django.db import transaction
from django.test import override_settings

from depotman.exceptions import ConflictError, NotFoundError, PartialWriteError, ValidationError
from depotman.models import MovementType, Product, StockMovement
from depotman.services import adjustments, ledger


pytestmark = pytest.mark.django_db


def assert_ledger_matches(product):
    product.refresh_from_db()
    assert ledger.current(product) == product.raw_stock
    assert ledger.derived_current(product) == product.raw_stock


class TestApply:
    """Tests for adjustments.apply()."""

    def test_add_on_boxed_product(self, tile, user):
        """add 5 on raw 10 -> 15, one restock movement 10 -> 15."""
        result = adjustments.apply(tile.pk, 'add', 5, 'restock', user)

        assert result.previous == Decimal('10')
        assert result.new == Decimal('15')
        movement = StockMovement.objects.get()
        assert movement.movement_type == MovementType.RESTOCK
        assert movement.previous_quantity == Decimal('10')
        assert movement.new_quantity == Decimal('15')
        assert movement.actor == user
        tile.refresh_from_db()
        assert tile.stock_boxes == Decimal('15')
        assert tile.stock_version == 1

    def test_remove_is_clamped(self, tile, user):
        """remove 20 on raw 10 -> 0; recorded delta is -10, not -20."""
        result = adjustments.apply(tile.pk, 'remove', 20, 'Casse', user)

        assert result.new == Decimal('0')
        assert result.delta == Decimal('-10')
        movement = StockMovement.objects.get()
        assert movement.movement_type == MovementType.ADJUSTMENT_OUT
        assert movement.delta == Decimal('-10')
        assert movement.metadata['requested'] == '20'

    def test_clamped_remove_on_empty_stock_is_recorded(self, tile, user):
        adjustments.apply(tile.pk, 'set', 0, 'Inventaire', user)

        result = adjustments.apply(tile.pk, 'remove', 3, 'Casse', user)

        assert result.delta == Decimal('0')
        assert StockMovement.objects.count() == 2

    @override_settings(DEPOTMAN={'CLAMP_REMOVE': False})
    def test_over_removal_rejected_when_not_clamping(self, cement, user):
        with pytest.raises(ValidationError) as exc:
            adjustments.apply(cement.pk, 'remove', 150, 'Casse', user)

        assert exc.value.code == 'INSUFFICIENT_QUANTITY'
        assert exc.value.available == Decimal('100')
        assert not StockMovement.objects.exists()

    def test_set(self, rebar, user):
        result = adjustments.apply(rebar.pk, 'set', 96, 'Inventaire annuel', user)

        assert result.new == Decimal('96')
        movement = StockMovement.objects.get()
        assert movement.movement_type == MovementType.ADJUSTMENT_SET
        assert movement.quantity == Decimal('96')
        assert movement.delta == Decimal('-24')

    def test_input_in_area(self, tile, user):
        """2.88 m² of 1.44 m² boxes adds 2 boxes."""
        result = adjustments.apply(tile.pk, 'add', '2.88', 'Réception', user, unit='area')

        assert result.new == Decimal('12')

    def test_input_in_tonnes(self, rebar, user):
        result = adjustments.apply(rebar.pk, 'remove', '0.5', 'Chantier', user, unit='tonnes')

        assert result.new == Decimal('80')

    def test_fractional_bars_rejected(self, rebar, user):
        with pytest.raises(ValidationError) as exc:
            adjustments.apply(rebar.pk, 'add', '1.5', 'Réception', user)

        assert exc.value.code == 'FRACTIONAL_BARS'

    def test_accepts_instance(self, cement, user):
        result = adjustments.apply(cement, 'add', 1, 'Réception', user)

        assert result.new == Decimal('101')

    def test_ledger_matches_materialized_after_sequence(self, tile, user):
        """Ledger-derived stock equals the raw field after every call."""
        operations = [
            ('add', '5'), ('remove', '3.5'), ('set', '40'),
            ('remove', '100'), ('add', '0.75'), ('set', '0'), ('add', '12'),
        ]
        for adjustment_type, quantity in operations:
            adjustments.apply(tile.pk, adjustment_type, quantity, 'Contrôle', user)
            assert_ledger_matches(tile)

        assert tile.raw_stock == Decimal('12')
        assert ledger.verify_chain(tile) == []


class TestApplyValidation:
    """Validation happens before any write."""

    @pytest.mark.parametrize('quantity', [None, '', 'abc', -1, '-0.5', True])
    def test_invalid_quantity(self, cement, user, quantity):
        with pytest.raises(ValidationError) as exc:
            adjustments.apply(cement.pk, 'add', quantity, 'Réception', user)

        assert exc.value.code == 'INVALID_QUANTITY'
        assert exc.value.field == 'quantity'
        assert not StockMovement.objects.exists()

    @pytest.mark.parametrize('reason', ['', '   ', None])
    def test_reason_required(self, cement, user, reason):
        with pytest.raises(ValidationError) as exc:
            adjustments.apply(cement.pk, 'add', 1, reason, user)

        assert exc.value.code == 'REASON_REQUIRED'

    def test_invalid_type(self, cement, user):
        with pytest.raises(ValidationError) as exc:
            adjustments.apply(cement.pk, 'multiply', 2, 'x', user)

        assert exc.value.code == 'INVALID_TYPE'

    def test_actor_required(self, cement):
        with pytest.raises(ValidationError) as exc:
            adjustments.apply(cement.pk, 'add', 1, 'Réception', None)

        assert exc.value.code == 'ACTOR_REQUIRED'

    def test_unknown_product(self, user):
        with pytest.raises(NotFoundError) as exc:
            adjustments.apply(999999, 'add', 1, 'Réception', user)

        assert exc.value.user_message == 'Opération échouée, veuillez réessayer'

    def test_user_message_is_field_specific(self, cement, user):
        with pytest.raises(ValidationError) as exc:
            adjustments.apply(cement.pk, 'add', 1, '', user)

        assert exc.value.as_dict()['message'] == 'La raison est obligatoire'


class TestConcurrency:
    """Two writers on the same product: exactly one wins."""

    def test_stale_expected_quantity(self, cement, user):
        """Both callers read 100; the second one is rejected."""
        read = Product.objects.get(pk=cement.pk).raw_stock

        adjustments.apply(cement.pk, 'remove', 10, 'Vente comptoir', user, expected_quantity=read)
        with pytest.raises(ConflictError) as exc:
            adjustments.apply(cement.pk, 'remove', 5, 'Casse', user, expected_quantity=read)

        assert exc.value.code == 'CONCURRENT_MODIFICATION'
        assert StockMovement.objects.count() == 1
        assert_ledger_matches(cement)
        assert cement.quantity == Decimal('90')

    def test_stale_version_rolls_back_ledger(self, cement, user):
        """A lost compare-and-swap leaves no movement behind."""
        stale = Product.objects.get(pk=cement.pk)
        adjustments.apply(cement.pk, 'add', 10, 'Réception', user)

        with pytest.raises(ConflictError):
            with transaction.atomic():
                adjustments.write_stock(
                    stale, previous=Decimal('110'), new=Decimal('120'),
                    movement_type=MovementType.RESTOCK, actor=user, reason='Réception',
                )

        assert StockMovement.objects.count() == 1
        assert_ledger_matches(cement)

    def test_apply_with_stale_version_conflicts(self, cement, user, monkeypatch):
        """A writer holding an outdated stock_version loses the whole apply()."""
        stale = Product.objects.get(pk=cement.pk)
        adjustments.apply(cement.pk, 'add', 10, 'Réception', user)
        # Same stock as the winner, version from before its write
        stale.quantity = Decimal('110')
        monkeypatch.setattr(adjustments, 'lock_product', lambda product_id: stale)

        with pytest.raises(ConflictError) as exc:
            adjustments.apply(cement.pk, 'remove', 5, 'Casse', user)

        assert exc.value.code == 'CONCURRENT_MODIFICATION'
        assert StockMovement.objects.count() == 1
        cement.refresh_from_db()
        assert cement.quantity == Decimal('110')
        assert cement.stock_version == 1
        assert_ledger_matches(cement)


class TestPartialWrite:
    """Materialized stock diverging from the ledger blocks writes."""

    def test_apply_refuses_diverged_product(self, cement, user):
        adjustments.apply(cement.pk, 'add', 10, 'Réception', user)
        # Simulates a raw-stock write that bypassed the ledger
        Product.objects.filter(pk=cement.pk).update(quantity=Decimal('999'))

        with pytest.raises(PartialWriteError) as exc:
            adjustments.apply(cement.pk, 'add', 1, 'Réception', user)

        assert exc.value.code == 'LEDGER_MISMATCH'
        assert exc.value.user_message == 'Opération échouée, veuillez réessayer'
        assert StockMovement.objects.count() == 1


class TestProductGuard:
    """Raw stock cannot be changed through Product.save()."""

    def test_save_with_changed_raw_stock_raises(self, cement):
        product = Product.objects.get(pk=cement.pk)
        product.quantity = Decimal('5')

        with pytest.raises(ValueError):
            product.save()

    def test_catalog_fields_still_editable(self, cement):
        product = Product.objects.get(pk=cement.pk)
        product.price = Decimal('900')
        product.save()

        assert Product.objects.get(pk=cement.pk).price == Decimal('900')

    def test_stale_instance_save_keeps_stock(self, cement, user):
        """Saving catalog fields on an old instance leaves raw stock and version alone."""
        stale = Product.objects.get(pk=cement.pk)
        adjustments.apply(cement.pk, 'add', 5, 'Réception', user)

        stale.price = Decimal('900')
        stale.save()

        cement.refresh_from_db()
        assert cement.price == Decimal('900')
        assert cement.quantity == Decimal('105')
        assert cement.stock_version == 1
        assert_ledger_matches(cement)

    def test_update_fields_with_raw_stock_raises(self, cement):
        product = Product.objects.get(pk=cement.pk)

        with pytest.raises(ValueError):
            product.save(update_fields=['price', 'stock_version'])

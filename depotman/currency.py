"""
Currency conversion between the local and foreign currency via one rate.

The rate is always passed in explicitly: one report uses one rate value for
all of its items, never a per-item lookup. See ExchangeRateSetting.current()
for the stored rate.

    rate = local units per one foreign unit (e.g. 132 HTG per USD)

Usage:
    convert(Decimal('10'), 'USD', 'HTG', Decimal('132'))   # 1320
    unified_total(lines, Decimal('132'), 'HTG').unified
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from depotman.conf import depotman_settings
from depotman.exceptions import ValidationError


def _item_value(item, name: str):
    """Read a field from a mapping or an attribute-bearing object."""
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def _decimal(value) -> Decimal:
    if value is None:
        return Decimal('0')
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def normalize_currency(currency: str | None) -> str:
    """
    Normalize a currency code. Missing currency means local currency.

    Raises:
        ValidationError('UNSUPPORTED_CURRENCY'): not part of the configured pair
    """
    local = depotman_settings.LOCAL_CURRENCY
    if not currency:
        return local
    code = currency.upper()
    if code not in (local, depotman_settings.FOREIGN_CURRENCY):
        raise ValidationError('UNSUPPORTED_CURRENCY', field='currency', currency=currency)
    return code


def check_rate(rate) -> Decimal:
    """
    Validate an exchange rate.

    Raises:
        ValidationError('INVALID_RATE'): missing, non-numeric or not positive
    """
    try:
        value = _decimal(rate) if rate is not None else None
    except (InvalidOperation, ValueError):
        value = None
    if value is None or not value.is_finite() or value <= 0:
        raise ValidationError('INVALID_RATE', field='rate', rate=rate)
    return value


def convert(amount, source: str | None, target: str | None, rate) -> Decimal:
    """
    Convert an amount between the two currencies.

    Identity when source == target; foreign -> local multiplies by the rate,
    local -> foreign divides by it.
    """
    amount = _decimal(amount)
    source = normalize_currency(source)
    target = normalize_currency(target)

    if source == target:
        return amount

    rate = check_rate(rate)
    if source == depotman_settings.FOREIGN_CURRENCY:
        return amount * rate
    return amount / rate


@dataclass(frozen=True)
class UnifiedTotal:
    """Per-currency partition sums and their total in the target currency."""

    local_total: Decimal
    foreign_total: Decimal
    unified: Decimal
    currency: str

    @property
    def target_total(self) -> Decimal:
        """Sum of the items already in the target currency."""
        if self.currency == depotman_settings.LOCAL_CURRENCY:
            return self.local_total
        return self.foreign_total

    @property
    def other_total(self) -> Decimal:
        """Sum of the items converted into the target currency."""
        if self.currency == depotman_settings.LOCAL_CURRENCY:
            return self.foreign_total
        return self.local_total

    @property
    def has_multiple_currencies(self) -> bool:
        return self.local_total > 0 and self.foreign_total > 0


def unified_total(items: Iterable, rate, target: str | None = None,
                  field: str = 'subtotal') -> UnifiedTotal:
    """
    Sum items of mixed currency into one target currency.

    Items are partitioned by currency and summed per partition; only the
    non-target partition is converted, once. The result does not depend on
    item order.

    Args:
        items: Sale lines (objects or mappings) with `currency` and `field`
        rate: Exchange rate (local per foreign)
        target: Target currency (None = configured display currency)
        field: Amount field to sum ('subtotal', 'profit_amount', ...)
    """
    target = normalize_currency(target or depotman_settings.DISPLAY_CURRENCY)
    local = depotman_settings.LOCAL_CURRENCY
    local_total = Decimal('0')
    foreign_total = Decimal('0')

    for item in items:
        amount = _decimal(_item_value(item, field))
        if normalize_currency(_item_value(item, 'currency')) == local:
            local_total += amount
        else:
            foreign_total += amount

    if target == local:
        other = convert(foreign_total, depotman_settings.FOREIGN_CURRENCY, target, rate) \
            if foreign_total else Decimal('0')
        unified = local_total + other
    else:
        other = convert(local_total, local, target, rate) if local_total else Decimal('0')
        unified = foreign_total + other

    return UnifiedTotal(
        local_total=local_total,
        foreign_total=foreign_total,
        unified=unified,
        currency=target,
    )


def unified_profit(items: Iterable, rate, target: str | None = None,
                   discount_percent=0) -> Decimal:
    """
    Unified profit, reduced proportionally by a sale-level discount percentage.
    """
    profit = unified_total(items, rate, target, field='profit_amount').unified
    return profit * (1 - _decimal(discount_percent) / 100)


@dataclass(frozen=True)
class TaxedTotal:
    """Invoice-style totals in one currency."""

    subtotal: Decimal
    discount: Decimal
    after_discount: Decimal
    tax: Decimal
    total: Decimal
    currency: str


def total_with_tax(items: Iterable, rate, target: str | None = None,
                   discount=0, discount_currency: str | None = None,
                   tax_rate=0) -> TaxedTotal:
    """
    Unified subtotal, minus a discount (converted to the target currency),
    clamped at zero, plus tax computed on the discounted amount.

    Args:
        tax_rate: Percentage (e.g. 10 for 10%)
    """
    totals = unified_total(items, rate, target)
    discount = _decimal(discount)
    if discount > 0:
        discount = convert(discount, discount_currency, totals.currency, rate)
    else:
        discount = Decimal('0')

    after_discount = max(Decimal('0'), totals.unified - discount)
    tax = after_discount * _decimal(tax_rate) / 100

    return TaxedTotal(
        subtotal=totals.unified,
        discount=discount,
        after_discount=after_discount,
        tax=tax,
        total=after_discount + tax,
        currency=totals.currency,
    )


def format_amount(amount, currency: str | None = None) -> str:
    """'$1,234.50' for the foreign currency, '1,234.50 HTG' for the local one."""
    currency = normalize_currency(currency)
    formatted = f"{_decimal(amount):,.2f}"
    if currency == depotman_settings.FOREIGN_CURRENCY:
        return f"${formatted}"
    return f"{formatted} {currency}"

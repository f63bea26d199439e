"""
Unit conversion — raw persisted stock to human-facing display stock.

Each product stores its stock in exactly one raw field, chosen by the
category's encoding:

    simple  quantity      displayed as-is in product.unit
    boxed   stock_boxes   displayed as area (m²) = boxes x area_per_box
    bars    stock_bars    displayed as bars, with a tonnage sub-view

Everything here is pure: no database access, identical input gives identical
output. Works on model instances or any object with the same attributes.

Examples:
    >>> display_stock(tile)            # stock_boxes=10, area_per_box=1.44
    DisplayStock(value=Decimal('14.40'), unit='m²', raw=Decimal('10'))
    >>> tonnage_label(Decimal('1.5'))
    '1 1/2 tonnes'
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from depotman.conf import depotman_settings
from depotman.exceptions import ValidationError
from depotman.models.enums import StockEncoding

UNIT_AREA = 'm²'
UNIT_BARS = 'barres'
UNIT_DEFAULT = 'unités'

# Input units accepted when converting a quantity back to raw stock
INPUT_RAW = 'raw'
INPUT_AREA = 'area'
INPUT_TONNES = 'tonnes'

TWO_PLACES = Decimal('0.01')
RAW_PLACES = Decimal('0.001')
QUARTER_TOLERANCE = Decimal('0.01')

_QUARTER_LABELS = {
    Decimal('0.25'): '1/4',
    Decimal('0.5'): '1/2',
    Decimal('0.75'): '3/4',
}


def to_decimal(value) -> Decimal:
    """Coerce a stored/duck-typed numeric value to Decimal (None -> 0)."""
    if value is None:
        return Decimal('0')
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round2(value: Decimal) -> Decimal:
    """Round half-up to 2 decimal places."""
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class DisplayStock:
    """Human-facing stock: converted value, its unit, and the raw count behind it."""

    value: Decimal
    unit: str
    raw: Decimal


# ══════════════════════════════════════════════════════════════
# VARIANTS
# ══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class SimpleStock:
    """Counted units."""

    quantity: Decimal
    unit: str = UNIT_DEFAULT

    encoding = StockEncoding.SIMPLE
    raw_field = 'quantity'

    @property
    def raw(self) -> Decimal:
        return self.quantity

    def display(self) -> DisplayStock:
        return DisplayStock(value=self.quantity, unit=self.unit, raw=self.quantity)


@dataclass(frozen=True)
class BoxedStock:
    """Boxed goods sold by area (tiles)."""

    stock_boxes: Decimal
    area_per_box: Decimal | None
    fallback: SimpleStock

    encoding = StockEncoding.BOXED
    raw_field = 'stock_boxes'

    @property
    def raw(self) -> Decimal:
        return self.stock_boxes

    def display(self) -> DisplayStock:
        if self.stock_boxes > 0 and self.area_per_box:
            return DisplayStock(
                value=round2(self.stock_boxes * self.area_per_box),
                unit=UNIT_AREA,
                raw=self.stock_boxes,
            )
        return self.fallback.display()


@dataclass(frozen=True)
class BarStock:
    """Bar goods sold by the bar or by the tonne (rebar)."""

    stock_bars: Decimal
    bars_per_tonne: Decimal | None
    fallback: SimpleStock

    encoding = StockEncoding.BARS
    raw_field = 'stock_bars'

    @property
    def raw(self) -> Decimal:
        return self.stock_bars

    def display(self) -> DisplayStock:
        if self.stock_bars > 0:
            return DisplayStock(value=self.stock_bars, unit=UNIT_BARS, raw=self.stock_bars)
        return self.fallback.display()

    @property
    def tonnage(self) -> Decimal | None:
        """Bars expressed in tonnes (None without bars_per_tonne)."""
        if not self.bars_per_tonne:
            return None
        return bars_to_tonnes(self.stock_bars, self.bars_per_tonne)


# ══════════════════════════════════════════════════════════════
# SELECTION
# ══════════════════════════════════════════════════════════════


def encoding_for(category: str | None) -> StockEncoding:
    """Stock encoding selected by a category tag."""
    encodings = depotman_settings.STOCK_ENCODINGS
    return StockEncoding(encodings.get(category or '', StockEncoding.SIMPLE))


def stock_for(product) -> SimpleStock | BoxedStock | BarStock:
    """Build the stock variant matching the product's category."""
    simple = SimpleStock(
        quantity=to_decimal(getattr(product, 'quantity', None)),
        unit=getattr(product, 'unit', None) or UNIT_DEFAULT,
    )
    encoding = encoding_for(getattr(product, 'category', None))

    if encoding == StockEncoding.BOXED:
        area = getattr(product, 'area_per_box', None)
        return BoxedStock(
            stock_boxes=to_decimal(getattr(product, 'stock_boxes', None)),
            area_per_box=to_decimal(area) if area is not None else None,
            fallback=simple,
        )
    if encoding == StockEncoding.BARS:
        per_tonne = getattr(product, 'bars_per_tonne', None)
        return BarStock(
            stock_bars=to_decimal(getattr(product, 'stock_bars', None)),
            bars_per_tonne=to_decimal(per_tonne) if per_tonne is not None else None,
            fallback=simple,
        )
    return simple


def display_stock(product) -> DisplayStock:
    """Display stock for a product."""
    return stock_for(product).display()


def raw_stock(product) -> Decimal:
    """Authoritative raw stock value (the category's raw field)."""
    return stock_for(product).raw


# ══════════════════════════════════════════════════════════════
# TONNAGE / AREA CONVERSIONS
# ══════════════════════════════════════════════════════════════


def bars_to_tonnes(bars: Decimal, bars_per_tonne: Decimal) -> Decimal:
    return to_decimal(bars) / to_decimal(bars_per_tonne)


def tonnes_to_bars(tonnes: Decimal, bars_per_tonne: Decimal) -> Decimal:
    """Tonnes to a whole number of bars (half-up)."""
    bars = to_decimal(tonnes) * to_decimal(bars_per_tonne)
    return bars.to_integral_value(rounding=ROUND_HALF_UP)


def area_to_boxes(area: Decimal, area_per_box: Decimal) -> Decimal:
    boxes = to_decimal(area) / to_decimal(area_per_box)
    return boxes.quantize(RAW_PLACES, rounding=ROUND_HALF_UP)


def tonnage_label(tonnage: Decimal) -> str:
    """
    Presentation label for a tonnage.

    Values within 0.01 of a quarter are shown as fractions
    ("1 1/2 tonnes", "3/4 tonne"); anything else as a decimal.
    """
    tonnage = to_decimal(tonnage)
    quarter = (tonnage * 4).to_integral_value(rounding=ROUND_HALF_UP) / 4

    if abs(tonnage - quarter) >= QUARTER_TOLERANCE:
        suffix = 's' if tonnage > 1 else ''
        return f"{round2(tonnage)} tonne{suffix}"

    whole = int(quarter)
    fraction = _QUARTER_LABELS.get(quarter - whole, '')
    suffix = 's' if quarter > 1 else ''

    if whole and fraction:
        return f"{whole} {fraction} tonne{suffix}"
    if fraction:
        return f"{fraction} tonne"
    return f"{whole} tonne{suffix}"


def to_raw(product, value, unit: str | None = None) -> Decimal:
    """
    Convert a quantity entered in `unit` to the product's raw unit.

    Raises:
        ValidationError('INVALID_UNIT'): unit not usable for this product
    """
    try:
        value = to_decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError('INVALID_QUANTITY', field='quantity', requested=value)

    if unit in (None, '', INPUT_RAW):
        return value

    variant = stock_for(product)

    if unit == INPUT_AREA and isinstance(variant, BoxedStock) and variant.area_per_box:
        return area_to_boxes(value, variant.area_per_box)
    if unit == INPUT_TONNES and isinstance(variant, BarStock) and variant.bars_per_tonne:
        return tonnes_to_bars(value, variant.bars_per_tonne)

    raise ValidationError('INVALID_UNIT', field='unit', unit=unit)

"""
Reporting — sale lines bucketed over time, currency-unified per bucket.

Each bucket sums its lines with currency.unified_total, using one rate for
the whole report. Reports run concurrently with live stock writes: re-running
a report can legitimately change the still-open current bucket.

Bulk aggregation honours a timeout and fails closed: when the deadline
passes, ReportTimeoutError is raised and no partial aggregate is returned.

Usage:
    from depotman.services.reporting import bucket, compare

    current = bucket(lines, 'daily', rate=Decimal('132'), target='HTG')
    points = compare(current, previous)
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from time import monotonic

from django.utils import timezone

from depotman.conf import depotman_settings
from depotman.currency import normalize_currency, unified_total
from depotman.exceptions import ReportTimeoutError, ValidationError
from depotman.models.enums import Bucketing

logger = logging.getLogger('depotman')

BUCKET_STEPS = {
    Bucketing.DAILY: timedelta(days=1),
    Bucketing.WEEKLY: timedelta(weeks=1),
}


@dataclass(frozen=True)
class Bucket:
    """Unified totals of one time bucket."""

    key: date
    revenue: Decimal
    profit: Decimal
    count: int
    currency: str


@dataclass(frozen=True)
class ComparisonPoint:
    key: date
    previous_key: date | None
    current: Decimal
    previous: Decimal


@dataclass(frozen=True)
class Trend:
    percent: Decimal
    is_positive: bool


@dataclass(frozen=True)
class PeriodReport:
    """Current vs previous period, bucketed and compared."""

    current: list[Bucket]
    previous: list[Bucket]
    comparison: list[ComparisonPoint]
    revenue: Decimal
    previous_revenue: Decimal
    profit: Decimal
    previous_profit: Decimal
    revenue_trend: Trend
    profit_trend: Trend
    currency: str
    rate: Decimal


# ══════════════════════════════════════════════════════════════
# BUCKETING
# ══════════════════════════════════════════════════════════════


def _bucketing(value) -> Bucketing:
    try:
        return Bucketing(value)
    except ValueError:
        raise ValidationError('INVALID_BUCKETING', field='bucketing', requested=value)


def _local_date(value) -> date:
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        return value.date()
    return value


def bucket_key(timestamp, bucketing) -> date:
    """Day of the timestamp (daily) or Monday of its ISO week (weekly)."""
    day = _local_date(timestamp)
    if _bucketing(bucketing) == Bucketing.WEEKLY:
        return day - timedelta(days=day.weekday())
    return day


def _line_value(line, name):
    if isinstance(line, dict):
        return line.get(name)
    return getattr(line, name, None)


def _deadline(timeout):
    if timeout is None:
        timeout = depotman_settings.REPORT_TIMEOUT_SECONDS
    if not timeout:
        return None
    return monotonic() + float(timeout)


def _check_deadline(deadline, stage: str) -> None:
    if deadline is not None and monotonic() > deadline:
        logger.warning("stock.report.timeout", extra={"stage": stage})
        raise ReportTimeoutError('REPORT_TIMEOUT', stage=stage)


def _count(lines) -> int:
    sales = set()
    loose = 0
    for line in lines:
        sale_id = _line_value(line, 'sale_id')
        if sale_id is None:
            loose += 1
        else:
            sales.add(sale_id)
    return len(sales) + loose


def _bucket(lines, bucketing, rate, target, start, end, deadline) -> list[Bucket]:
    kind = _bucketing(bucketing)
    target = normalize_currency(target or depotman_settings.DISPLAY_CURRENCY)

    grouped: dict[date, list] = {}
    for line in lines:
        _check_deadline(deadline, 'group')
        created_at = _line_value(line, 'created_at')
        if start is not None and created_at < start:
            continue
        if end is not None and created_at > end:
            continue
        grouped.setdefault(bucket_key(created_at, kind), []).append(line)

    if start is not None and end is not None:
        key = bucket_key(start, kind)
        last = bucket_key(end, kind)
        while key <= last:
            grouped.setdefault(key, [])
            key += BUCKET_STEPS[kind]

    buckets = []
    for key in sorted(grouped):
        _check_deadline(deadline, 'sum')
        group = grouped[key]
        buckets.append(Bucket(
            key=key,
            revenue=unified_total(group, rate, target).unified,
            profit=unified_total(group, rate, target, field='profit_amount').unified,
            count=_count(group),
            currency=target,
        ))
    return buckets


def bucket(lines, bucketing, rate, target: str | None = None,
           start=None, end=None, timeout=None) -> list[Bucket]:
    """
    Group sale lines by time bucket and unify each bucket's totals.

    Args:
        lines: Sale lines (SaleLine or mappings with created_at, subtotal,
            currency, profit_amount and optionally sale_id)
        bucketing: 'daily' or 'weekly'
        rate: Exchange rate, one value for the whole report
        target: Target currency (None = configured display currency)
        start, end: Optional window; lines outside are ignored and, when
            both are given, empty buckets are emitted too
        timeout: Seconds (None = REPORT_TIMEOUT_SECONDS, 0 = none)

    Returns:
        Buckets in ascending key order. count is the number of distinct
        sales (lines without sale_id count one each).

    Raises:
        ValidationError('INVALID_BUCKETING')
        ReportTimeoutError('REPORT_TIMEOUT'): deadline passed
    """
    return _bucket(lines, bucketing, rate, target, start, end, _deadline(timeout))


# ══════════════════════════════════════════════════════════════
# COMPARISON
# ══════════════════════════════════════════════════════════════


def compare(current: list[Bucket], previous: list[Bucket],
            field: str = 'revenue') -> list[ComparisonPoint]:
    """
    Zip two bucketed series positionally.

    When the previous series is shorter (calendar boundaries), its last
    bucket is repeated for the trailing positions. An empty previous series
    compares against zero.
    """
    points = []
    for index, bucket_ in enumerate(current):
        if index < len(previous):
            other = previous[index]
        else:
            other = previous[-1] if previous else None
        points.append(ComparisonPoint(
            key=bucket_.key,
            previous_key=other.key if other else None,
            current=getattr(bucket_, field),
            previous=getattr(other, field) if other else Decimal('0'),
        ))
    return points


def trend(current, previous) -> Trend:
    """
    Percent change from previous to current, rounded to one decimal.

    previous == 0 gives 100% when current > 0, else 0%.
    """
    current = Decimal(str(current))
    previous = Decimal(str(previous))
    if previous == 0:
        if current > 0:
            return Trend(percent=Decimal('100.0'), is_positive=True)
        return Trend(percent=Decimal('0.0'), is_positive=False)
    change = (current - previous) / previous * 100
    return Trend(
        percent=abs(change).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP),
        is_positive=change >= 0,
    )


def period_report(start: datetime, end: datetime, bucketing=Bucketing.DAILY,
                  target: str | None = None, rate=None, source=None,
                  timeout=None) -> PeriodReport:
    """
    Bucket [start, end] and the equally long period just before it.

    Args:
        rate: Exchange rate (None = current ExchangeRateSetting)
        source: SaleLineSource (None = configured SALE_LINE_SOURCE)
        timeout: Seconds for the whole report, both periods included

    Raises:
        ReportTimeoutError('REPORT_TIMEOUT'): no partial report is returned
        ImproperlyConfigured: no sale line source configured
    """
    deadline = _deadline(timeout)
    target = normalize_currency(target or depotman_settings.DISPLAY_CURRENCY)

    if rate is None:
        from depotman.models.rate import ExchangeRateSetting
        rate = ExchangeRateSetting.current().rate
    if source is None:
        from depotman.adapters.sources import get_sale_line_source
        source = get_sale_line_source()

    previous_end = start - timedelta(microseconds=1)
    previous_start = previous_end - (end - start)

    current_lines = list(source.lines_between(start, end))
    _check_deadline(deadline, 'fetch')
    previous_lines = list(source.lines_between(previous_start, previous_end))
    _check_deadline(deadline, 'fetch')

    current = _bucket(current_lines, bucketing, rate, target, start, end, deadline)
    previous = _bucket(previous_lines, bucketing, rate, target,
                       previous_start, previous_end, deadline)

    revenue = sum((b.revenue for b in current), Decimal('0'))
    previous_revenue = sum((b.revenue for b in previous), Decimal('0'))
    profit = sum((b.profit for b in current), Decimal('0'))
    previous_profit = sum((b.profit for b in previous), Decimal('0'))

    logger.info(
        "stock.report",
        extra={
            "start": start.isoformat(),
            "end": end.isoformat(),
            "bucketing": str(bucketing),
            "lines": len(current_lines),
            "currency": target,
        },
    )

    return PeriodReport(
        current=current,
        previous=previous,
        comparison=compare(current, previous),
        revenue=revenue,
        previous_revenue=previous_revenue,
        profit=profit,
        previous_profit=previous_profit,
        revenue_trend=trend(revenue, previous_revenue),
        profit_trend=trend(profit, previous_profit),
        currency=target,
        rate=Decimal(str(rate)),
    )

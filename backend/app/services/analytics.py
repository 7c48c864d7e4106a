"""Business analytics engine — KPIs derived from the order ledger.

``compute`` is a pure fold over an already-materialised sequence of orders:
it never touches the order store, never mutates its inputs and never raises on
malformed data. Bad dates drop an order, missing numbers count as zero and
zero denominators yield zero.

Orders are read by duck typing so that pydantic ``Order`` models, ORM rows and
raw JSON mappings (camelCase or snake_case keys) can all be passed in.
"""
import logging
import math
from collections import Counter
from collections.abc import Mapping, Sequence
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from pydantic.alias_generators import to_camel

from app.schemas.kpi import (
    BusinessMetrics,
    CompletedSplit,
    NamedValue,
    PartnerPerformance,
    SegmentSplit,
    TurnaroundTimes,
)
from app.services.periods import DateRange

logger = logging.getLogger(__name__)

COMPLETED = "completed"
CANCELLED = "cancelled"

BUSINESS_CATEGORIES = ("Industrial", "Corporate")
BUSINESS_DESCRIPTION_KEYWORD = "office"

UNASSIGNED_PARTNER = "Unassigned"
DEFAULT_AGENT = "System"
DEFAULT_SOURCE = "Other"


# ─── Field access ───

def _get(record: Any, name: str) -> Any:
    """Read ``name`` from a model/row attribute or a snake_case/camelCase key."""
    if record is None:
        return None
    if isinstance(record, Mapping):
        value = record.get(name)
        if value is None:
            value = record.get(to_camel(name))
        return value
    return getattr(record, name, None)


def _to_utc(value: Any) -> datetime | None:
    """Parse a timestamp; ``None`` when missing or unparsable. Naive means UTC."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        # epoch milliseconds
        try:
            moment = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        try:
            moment = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None

    if moment.tzinfo is None or moment.utcoffset() is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def _amount(value: Any) -> float:
    """Numeric field as float; missing, non-numeric or non-finite → 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if not isinstance(value, (int, float, Decimal, str)):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _label(value: Any, default: str) -> str:
    return str(value) if value else default


def _status(order: Any) -> Any:
    status = _get(order, "status")
    return getattr(status, "value", status)


def is_business(order: Any) -> bool:
    """B2B when the description mentions an office or the category is industrial/corporate."""
    description = _get(order, "description")
    category = _get(order, "scrap_category")
    if isinstance(description, str) and BUSINESS_DESCRIPTION_KEYWORD in description.lower():
        return True
    return category in BUSINESS_CATEGORIES


def _in_range(order: Any, window: DateRange) -> bool:
    created = _to_utc(_get(order, "created_at"))
    return created is not None and window.contains(created)


def _whole_hours(later: datetime, earlier: datetime) -> int:
    """Elapsed hours truncated toward zero."""
    return int((later - earlier).total_seconds() / 3600)


def _average(total: float, count: int) -> float:
    return round(total / count, 1) if count > 0 else 0


def _ratio(numerator: float, denominator: int) -> float:
    return numerator / denominator if denominator > 0 else 0


def _named(counts: Mapping[str, int]) -> list[NamedValue]:
    return [NamedValue(name=name, value=value) for name, value in counts.items()]


def empty_metrics() -> BusinessMetrics:
    return BusinessMetrics()


# ─── Aggregation ───

def _segment_totals(completed: list[Any]) -> dict[str, dict[str, float]]:
    """Revenue, GMV, weight and order count per segment for completed orders."""
    buckets = {
        segment: {"revenue": 0.0, "gmv": 0.0, "weight": 0.0, "count": 0}
        for segment in ("b2b", "b2c")
    }
    for order in completed:
        bucket = buckets["b2b" if is_business(order) else "b2c"]
        # Revenue is commission and must never be negative.
        bucket["revenue"] += max(0.0, _amount(_get(order, "commission")))
        bucket["gmv"] += _amount(_get(_get(order, "partner_invoice"), "total"))
        bucket["weight"] += _amount(_get(order, "total_scrap_weight"))
        bucket["count"] += 1
    return buckets


def _split(buckets: dict[str, dict[str, float]], key: str) -> SegmentSplit:
    b2b = buckets["b2b"][key]
    b2c = buckets["b2c"][key]
    return SegmentSplit(total=b2b + b2c, b2b=b2b, b2c=b2c)


def _per_order(buckets: dict[str, dict[str, float]], key: str) -> SegmentSplit:
    b2b, b2c = buckets["b2b"], buckets["b2c"]
    return SegmentSplit(
        total=_ratio(b2b[key] + b2c[key], b2b["count"] + b2c["count"]),
        b2b=_ratio(b2b[key], b2b["count"]),
        b2c=_ratio(b2c[key], b2c["count"]),
    )


def _repeat_stats(orders: list[Any]) -> tuple[int, float]:
    """(orders placed by repeat customers, percent of customers who repeated)."""
    per_customer = Counter(
        str(customer_id)
        for customer_id in (_get(order, "customer_id") for order in orders)
        if customer_id
    )
    repeat_counts = [count for count in per_customer.values() if count > 1]
    repeat_rate = len(repeat_counts) / len(per_customer) * 100 if per_customer else 0
    return sum(repeat_counts), repeat_rate


def _turnaround(orders: list[Any]) -> TurnaroundTimes:
    """Average hours between lifecycle checkpoints.

    Each stage keeps its own sum and count; an order only contributes to a
    stage when both checkpoints exist and the elapsed time is not negative.
    """
    sums = {"lead_to_rate": 0, "rate_to_confirmed": 0, "confirmed_to_close": 0, "total": 0}
    counts = dict.fromkeys(sums, 0)

    def add(stage: str, later: datetime | None, earlier: datetime | None) -> None:
        if later is None or earlier is None:
            return
        hours = _whole_hours(later, earlier)
        if hours >= 0:
            sums[stage] += hours
            counts[stage] += 1

    for order in orders:
        created = _to_utc(_get(order, "created_at"))
        if created is None:
            continue
        priced = _to_utc(_get(order, "priced_at")) or _to_utc(_get(order, "assigned_at"))
        confirmed = (
            _to_utc(_get(order, "confirmed_at"))
            or _to_utc(_get(order, "otw_timestamp"))
            or _to_utc(_get(order, "scheduled_at"))
        )
        completed = _to_utc(_get(order, "completed_at"))

        add("lead_to_rate", priced, created)
        add("rate_to_confirmed", confirmed, priced)
        add("confirmed_to_close", completed, confirmed)
        add("total", completed, created)

    return TurnaroundTimes(**{stage: _average(sums[stage], counts[stage]) for stage in sums})


# ─── Entry point ───

def compute(orders: Any, date_range: DateRange) -> BusinessMetrics:
    """Derive the KPI report for orders created within ``date_range`` (inclusive).

    Args:
        orders: Sequence of orders (models, ORM rows or mappings). Anything that
            is not a sequence yields the empty report.
        date_range: Inclusive window applied to each order's ``createdAt``.

    Returns:
        A freshly built BusinessMetrics snapshot.
    """
    if not isinstance(orders, Sequence) or isinstance(orders, (str, bytes, bytearray)):
        logger.debug("compute: orders is %s, not a sequence; returning empty metrics", type(orders).__name__)
        return empty_metrics()

    start = _to_utc(_get(date_range, "start"))
    end = _to_utc(_get(date_range, "end"))
    if start is None or end is None:
        logger.debug("compute: unusable date range %r; returning empty metrics", date_range)
        return empty_metrics()

    window = DateRange(start, end)
    filtered = [order for order in orders if _in_range(order, window)]
    completed = [order for order in filtered if _status(order) == COMPLETED]
    cancelled = [order for order in filtered if _status(order) == CANCELLED]
    logger.debug(
        "compute: %d of %d orders in range (%d completed, %d cancelled)",
        len(filtered), len(orders), len(completed), len(cancelled),
    )

    buckets = _segment_totals(completed)
    repeat_orders, repeat_rate = _repeat_stats(filtered)

    partner_completed: Counter[str] = Counter()
    partner_cancelled: Counter[str] = Counter()
    agents: Counter[str] = Counter()
    for order in filtered:
        status = _status(order)
        partner = _label(_get(order, "partner_name"), UNASSIGNED_PARTNER)
        if status == COMPLETED:
            partner_completed[partner] += 1
        elif status == CANCELLED:
            partner_cancelled[partner] += 1
        agents[_label(_get(order, "created_by"), DEFAULT_AGENT)] += 1

    sources: Counter[str] = Counter()
    for order in completed:
        source = _label(_get(order, "order_source"), DEFAULT_SOURCE)
        sources[source[:1].upper() + source[1:]] += 1

    customer_types = {
        "Home": int(buckets["b2c"]["count"]),
        "Business": int(buckets["b2b"]["count"]),
    }

    return BusinessMetrics(
        total_leads=len(filtered),
        completed_orders=len(completed),
        cancelled_orders=len(cancelled),
        repeat_orders=repeat_orders,
        repeat_rate=repeat_rate,
        revenue=_split(buckets, "revenue"),
        gmv=_split(buckets, "gmv"),
        weight=_split(buckets, "weight"),
        aov=_per_order(buckets, "gmv"),
        arpo=_per_order(buckets, "revenue"),
        completed_split=CompletedSplit(
            b2b=int(buckets["b2b"]["count"]),
            b2c=int(buckets["b2c"]["count"]),
        ),
        avg_business_invoice_value=_ratio(buckets["b2b"]["gmv"], buckets["b2b"]["count"]),
        partner_performance=PartnerPerformance(
            completed=_named(partner_completed),
            cancelled=_named(partner_cancelled),
        ),
        sales_agent_performance=_named(agents),
        lead_source_performance=_named(sources),
        customer_type_distribution=_named(
            {name: count for name, count in customer_types.items() if count > 0}
        ),
        tat=_turnaround(filtered),
    )

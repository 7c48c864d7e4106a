"""KPI drilldown — one metric's overall/B2B/B2C figures, formatted for charts."""
from collections.abc import Callable
from dataclasses import dataclass

from app.core.config import settings
from app.schemas.kpi import BusinessMetrics, ChartPoint, KPIDrilldown


def _grouped(value: float) -> str:
    """Thousands-grouped number with up to three decimals (``1,234.5``)."""
    text = f"{value:,.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def format_currency(value: float) -> str:
    return f"{settings.CURRENCY_SYMBOL}{_grouped(value)}"


def format_currency_whole(value: float) -> str:
    return f"{settings.CURRENCY_SYMBOL}{value:.0f}"


def format_count(value: float) -> str:
    return str(int(value))


def format_weight(value: float) -> str:
    return f"{_grouped(value)} {settings.WEIGHT_UNIT}"


@dataclass(frozen=True)
class MetricConfig:
    title: str
    color: str
    formatter: Callable[[float], str]


METRICS: dict[str, MetricConfig] = {
    "revenue": MetricConfig("Total Revenue", "#10b981", format_currency),
    "gmv": MetricConfig("Gross Merchandise Value (GMV)", "#3b82f6", format_currency),
    "orders": MetricConfig("Completed Orders", "#f59e0b", format_count),
    "aov": MetricConfig("Average Order Value (AOV)", "#8b5cf6", format_currency_whole),
    "arpo": MetricConfig("Avg Revenue Per Order (ARPO)", "#ec4899", format_currency_whole),
    "weight": MetricConfig("Recycled Weight", "#06b6d4", format_weight),
}


def _triple(metric: str, metrics: BusinessMetrics) -> tuple[float, float, float]:
    if metric == "orders":
        split = metrics.completed_split
        return metrics.completed_orders, split.b2b, split.b2c
    split = getattr(metrics, metric)
    return split.total, split.b2b, split.b2c


def _share(part: float, total: float) -> float:
    return round(part / total * 100, 1) if total > 0 else 0


def build_drilldown(metric: str, metrics: BusinessMetrics) -> KPIDrilldown | None:
    """Select and format one metric; ``None`` when the metric key is unknown."""
    config = METRICS.get(metric)
    if config is None:
        return None

    total, b2b, b2c = _triple(metric, metrics)
    segments = [ChartPoint(name="B2B", value=b2b), ChartPoint(name="B2C", value=b2c)]
    return KPIDrilldown(
        metric=metric,
        title=config.title,
        color=config.color,
        total=total,
        b2b=b2b,
        b2c=b2c,
        formatted={
            "total": config.formatter(total),
            "b2b": config.formatter(b2b),
            "b2c": config.formatter(b2c),
        },
        share_of_total={"b2b": _share(b2b, total), "b2c": _share(b2c, total)},
        bar_data=[ChartPoint(name="Overall", value=total), *segments],
        pie_data=[point for point in segments if point.value > 0],
    )

"""KPI Dashboard API endpoints."""
import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from app.core.config import settings
from app.core.deps import get_order_repository
from app.core.limiter import limiter
from app.schemas.kpi import DateRangeOut, KPIDrilldown, KPIMetricsResponse, PeriodOut
from app.services import analytics
from app.services.drilldown import METRICS, build_drilldown
from app.services.order_store import OrderRepository
from app.services.periods import PERIOD_LABELS, Period, parse_period, resolve, resolve_range

logger = logging.getLogger(__name__)
router = APIRouter()

Repo = Annotated[OrderRepository, Depends(get_order_repository)]
RangeStart = Annotated[datetime | None, Query(alias="from", description="Range start (inclusive)")]
RangeEnd = Annotated[datetime | None, Query(alias="to", description="Range end (inclusive)")]


def _check_bounds(start: datetime | None, end: datetime | None) -> None:
    if start is None or end is None:
        return
    try:
        inverted = start > end
    except TypeError:
        # one naive, one aware
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="'from' and 'to' must both carry a UTC offset or both omit it.",
        ) from None
    if inverted:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="'from' must not be after 'to'.",
        )


@router.get("/periods", response_model=list[PeriodOut], summary="Named reporting periods and their ranges")
def list_periods():
    now = datetime.now(timezone.utc)
    result = []
    for period in Period:
        date_range = resolve(period, now)
        result.append(PeriodOut(
            period=period.value,
            label=PERIOD_LABELS[period],
            range=DateRangeOut(start=date_range.start, end=date_range.end),
        ))
    return result


@router.get("/metrics", response_model=KPIMetricsResponse, summary="Business metrics for a period or range")
@limiter.limit(settings.KPI_RATE_LIMIT)
def get_metrics(
    request: Request,
    repo: Repo,
    start: RangeStart = None,
    end: RangeEnd = None,
    period: str | None = Query(default=None, description="thisMonth | lastMonth | thisYear | all"),
):
    """Compute the KPI report.

    Explicit ``from``/``to`` bounds take precedence over ``period``; unknown
    period tokens fall back to this month.
    """
    _check_bounds(start, end)
    date_range = resolve_range(period, start, end)
    metrics = analytics.compute(repo.list(), date_range)
    logger.info(
        "KPI metrics: period=%s range=%s..%s leads=%d completed=%d",
        period, date_range.start, date_range.end, metrics.total_leads, metrics.completed_orders,
    )
    explicit = start is not None and end is not None
    return KPIMetricsResponse(
        period=None if explicit else parse_period(period).value,
        range=DateRangeOut(start=date_range.start, end=date_range.end),
        metrics=metrics,
    )


@router.get("/drilldown/{metric}", response_model=KPIDrilldown, summary="Overall/B2B/B2C breakdown of one metric")
@limiter.limit(settings.KPI_RATE_LIMIT)
def get_drilldown(
    request: Request,
    metric: str,
    repo: Repo,
    start: RangeStart = None,
    end: RangeEnd = None,
):
    """Drill into revenue, gmv, orders, aov, arpo or weight. Defaults to this month."""
    if metric not in METRICS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown metric '{metric}'. Expected one of: {', '.join(METRICS)}.",
        )
    _check_bounds(start, end)
    date_range = resolve_range(Period.this_month, start, end)
    metrics = analytics.compute(repo.list(), date_range)
    return build_drilldown(metric, metrics)

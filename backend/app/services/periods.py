"""Reporting periods — named period tokens resolved to concrete date ranges.

All functions are pure in their arguments; callers inject ``now`` so ranges
are deterministic under test.
"""
import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

_ONE_MS = timedelta(milliseconds=1)


class Period(str, enum.Enum):
    this_month = "thisMonth"
    last_month = "lastMonth"
    this_year = "thisYear"
    all = "all"


PERIOD_LABELS = {
    Period.this_month: "This Month",
    Period.last_month: "Last Month",
    Period.this_year: "This Year",
    Period.all: "All Time",
}


@dataclass(frozen=True)
class DateRange:
    """Inclusive ``[start, end]`` window."""

    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


# ─── Calendar helpers ───

def _start_of_month(moment: datetime) -> datetime:
    return moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _next_month(month_start: datetime) -> datetime:
    if month_start.month == 12:
        return month_start.replace(year=month_start.year + 1, month=1)
    return month_start.replace(month=month_start.month + 1)


def _previous_month(month_start: datetime) -> datetime:
    if month_start.month == 1:
        return month_start.replace(year=month_start.year - 1, month=12)
    return month_start.replace(month=month_start.month - 1)


def _month_range(month_start: datetime) -> DateRange:
    return DateRange(start=month_start, end=_next_month(month_start) - _ONE_MS)


# ─── Resolution ───

def parse_period(token: Period | str | None) -> Period:
    """Period for ``token``; unknown or missing tokens mean this month."""
    try:
        return Period(token)
    except (ValueError, TypeError):
        return Period.this_month


def resolve(period: Period | str | None, now: datetime) -> DateRange:
    """Map a period token to its date range relative to ``now``.

    Unknown tokens fall back to the current month. The returned bounds carry
    ``now``'s tzinfo, except ``all`` which spans the full representable range.
    """
    period = parse_period(period)

    if period is Period.last_month:
        return _month_range(_previous_month(_start_of_month(now)))
    if period is Period.this_year:
        year_start = _start_of_month(now).replace(month=1)
        return DateRange(
            start=year_start,
            end=year_start.replace(year=year_start.year + 1) - _ONE_MS,
        )
    if period is Period.all:
        return DateRange(
            start=datetime.min.replace(tzinfo=timezone.utc),
            end=datetime.max.replace(tzinfo=timezone.utc),
        )
    return _month_range(_start_of_month(now))


def resolve_range(
    period: Period | str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    now: datetime | None = None,
) -> DateRange:
    """Resolve an API query into a range.

    Explicit ``start``/``end`` bounds win; a missing bound is taken from the
    resolved period (this month when no period is given).
    """
    if now is None:
        now = datetime.now(timezone.utc)
    fallback = resolve(period, now)
    return DateRange(
        start=start if start is not None else fallback.start,
        end=end if end is not None else fallback.end,
    )

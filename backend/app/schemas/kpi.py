"""KPI dashboard Pydantic schemas.

Serialised with camelCase keys; this is the JSON shape of the metrics report.
"""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _KPIModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SegmentSplit(_KPIModel):
    total: float = 0
    b2b: float = 0
    b2c: float = 0


class CompletedSplit(_KPIModel):
    b2b: int = 0
    b2c: int = 0


class NamedValue(_KPIModel):
    name: str
    value: int


class PartnerPerformance(_KPIModel):
    completed: list[NamedValue] = Field(default_factory=list)
    cancelled: list[NamedValue] = Field(default_factory=list)


class TurnaroundTimes(_KPIModel):
    lead_to_rate: float = 0        # hours, created -> priced
    rate_to_confirmed: float = 0   # hours, priced -> confirmed
    confirmed_to_close: float = 0  # hours, confirmed -> completed
    total: float = 0               # hours, created -> completed


class BusinessMetrics(_KPIModel):
    total_leads: int = 0
    completed_orders: int = 0
    cancelled_orders: int = 0
    repeat_orders: int = 0
    repeat_rate: float = 0  # percent, 0-100

    revenue: SegmentSplit = Field(default_factory=SegmentSplit)
    gmv: SegmentSplit = Field(default_factory=SegmentSplit)
    weight: SegmentSplit = Field(default_factory=SegmentSplit)
    aov: SegmentSplit = Field(default_factory=SegmentSplit)
    arpo: SegmentSplit = Field(default_factory=SegmentSplit)
    completed_split: CompletedSplit = Field(default_factory=CompletedSplit)
    avg_business_invoice_value: float = 0

    partner_performance: PartnerPerformance = Field(default_factory=PartnerPerformance)
    sales_agent_performance: list[NamedValue] = Field(default_factory=list)
    lead_source_performance: list[NamedValue] = Field(default_factory=list)
    customer_type_distribution: list[NamedValue] = Field(default_factory=list)

    tat: TurnaroundTimes = Field(default_factory=TurnaroundTimes)


class DateRangeOut(_KPIModel):
    start: datetime
    end: datetime


class PeriodOut(_KPIModel):
    period: str
    label: str
    range: DateRangeOut


class KPIMetricsResponse(_KPIModel):
    period: str | None
    range: DateRangeOut
    metrics: BusinessMetrics


# ─── Drilldown ───

class ChartPoint(_KPIModel):
    name: str
    value: float


class KPIDrilldown(_KPIModel):
    metric: str
    title: str
    color: str
    total: float
    b2b: float
    b2c: float
    formatted: dict[str, str]       # keys: total, b2b, b2c
    share_of_total: dict[str, float]  # keys: b2b, b2c (percent, one decimal)
    bar_data: list[ChartPoint]
    pie_data: list[ChartPoint]

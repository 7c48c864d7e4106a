"""Unit tests for the business analytics engine.

Orders are built as camelCase mappings (the JSON shape the admin portal
stores) unless a test is specifically about other input shapes.
"""
import copy
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.schemas.kpi import BusinessMetrics
from app.schemas.order import Invoice, Order, OrderStatus
from app.services.analytics import compute, empty_metrics, is_business
from app.services.periods import DateRange

UTC = timezone.utc
MARCH = DateRange(
    start=datetime(2024, 3, 1, tzinfo=UTC),
    end=datetime(2024, 3, 31, 23, 59, 59, 999000, tzinfo=UTC),
)
T0 = datetime(2024, 3, 10, 8, 0, tzinfo=UTC)


# ─── Helpers ──────────────────────────────────────────────────────────────────

def _order(order_id: str = "KM250001", **fields) -> dict:
    order = {
        "id": order_id,
        "customerId": f"C-{order_id}",
        "createdAt": T0.isoformat(),
        "status": "completed",
    }
    order.update(fields)
    return order


def _names(pairs) -> dict[str, int]:
    return {pair.name: pair.value for pair in pairs}


# ─── Guards and empty input ──────────────────────────────────────────────────

def test_empty_input_returns_zeroed_metrics():
    """compute([]) → every count, triple, list and TAT field is zero/empty."""
    metrics = compute([], MARCH)

    assert metrics == empty_metrics()
    assert metrics.total_leads == 0
    assert metrics.revenue.model_dump() == {"total": 0, "b2b": 0, "b2c": 0}
    assert metrics.partner_performance.completed == []
    assert metrics.customer_type_distribution == []
    assert metrics.tat.model_dump() == {
        "lead_to_rate": 0, "rate_to_confirmed": 0, "confirmed_to_close": 0, "total": 0,
    }


@pytest.mark.parametrize("orders", [None, "KM250001", {"id": "KM250001"}, 42, b"orders"])
def test_non_sequence_input_returns_empty_metrics(orders):
    assert compute(orders, MARCH) == BusinessMetrics()


def test_junk_elements_are_ignored():
    """Elements that are not orders at all simply never match the date filter."""
    metrics = compute([None, 42, "order", _order()], MARCH)

    assert metrics.total_leads == 1
    assert metrics.completed_orders == 1


def test_unusable_range_returns_empty_metrics():
    assert compute([_order()], DateRange(start=None, end=None)) == BusinessMetrics()


# ─── Date filtering ──────────────────────────────────────────────────────────

def test_range_bounds_are_inclusive():
    """createdAt == start and createdAt == end are both counted."""
    orders = [
        _order("KM1", createdAt=MARCH.start.isoformat()),
        _order("KM2", createdAt=MARCH.end.isoformat()),
        _order("KM3", createdAt=(MARCH.end + timedelta(milliseconds=1)).isoformat()),
        _order("KM4", createdAt=(MARCH.start - timedelta(milliseconds=1)).isoformat()),
    ]

    metrics = compute(orders, MARCH)

    assert metrics.total_leads == 2


def test_naive_range_bounds_are_read_as_utc():
    naive_march = DateRange(start=datetime(2024, 3, 1), end=datetime(2024, 3, 31, 23, 59, 59, 999000))
    orders = [
        _order("KM1", createdAt=MARCH.start.isoformat()),
        _order("KM2", createdAt="2024-03-01T03:00:00+05:30"),
    ]

    assert compute(orders, naive_march).total_leads == 1


@pytest.mark.parametrize("created_at", ["not-a-date", "", None, [], {"year": 2024}, True, float("nan")])
def test_invalid_created_at_is_excluded(created_at):
    metrics = compute([_order(createdAt=created_at)], DateRange(
        start=datetime.min.replace(tzinfo=UTC), end=datetime.max.replace(tzinfo=UTC),
    ))

    assert metrics.total_leads == 0


def test_missing_created_at_is_excluded():
    order = _order()
    del order["createdAt"]

    assert compute([order], MARCH).total_leads == 0


def test_created_at_accepts_several_representations():
    """datetime, naive ISO string (UTC), 'Z' suffix and epoch milliseconds."""
    orders = [
        _order("KM1", createdAt=T0),
        _order("KM2", createdAt="2024-03-10T08:00:00"),
        _order("KM3", createdAt="2024-03-10T08:00:00.000Z"),
        _order("KM4", createdAt=int(T0.timestamp() * 1000)),
    ]

    assert compute(orders, MARCH).total_leads == 4


def test_offsets_are_compared_as_instants():
    """01 Mar 03:00 +05:30 is still 29 Feb in UTC and falls outside March."""
    order = _order(createdAt="2024-03-01T03:00:00+05:30")

    assert compute([order], MARCH).total_leads == 0


# ─── Status partition ────────────────────────────────────────────────────────

def test_counts_by_status():
    orders = [
        _order("KM1", status="completed"),
        _order("KM2", status="completed"),
        _order("KM3", status="cancelled"),
        _order("KM4", status="new"),
        _order("KM5", status="on-the-way"),
    ]

    metrics = compute(orders, MARCH)

    assert metrics.total_leads == 5
    assert metrics.completed_orders == 2
    assert metrics.cancelled_orders == 1


# ─── Segment classification ──────────────────────────────────────────────────

def test_corporate_category_is_business_regardless_of_description():
    assert is_business({"scrapCategory": "Corporate", "description": "HOME CLEANUP"})
    assert is_business({"scrapCategory": "Industrial"})


def test_office_description_is_business():
    assert is_business({"description": "Office cleanout", "scrapCategory": "Paper"})
    assert is_business({"description": "old OFFICE chairs"})


def test_everything_else_is_home():
    assert not is_business({"description": "Newspapers", "scrapCategory": "Paper"})
    # category match is exact and case-sensitive
    assert not is_business({"scrapCategory": "industrial"})
    assert not is_business({})


# ─── Money and weight ────────────────────────────────────────────────────────

def test_negative_commission_is_clamped_to_zero():
    """commission=-50, partnerInvoice.total=500 → revenue 0, GMV 500."""
    order = _order(commission=-50, partnerInvoice={"total": 500, "items": []})

    metrics = compute([order], MARCH)

    assert metrics.revenue.total == 0
    assert metrics.gmv.total == 500


def test_only_completed_orders_feed_money_totals():
    orders = [
        _order("KM1", commission=60, partnerInvoice={"total": 300}, totalScrapWeight=20),
        _order("KM2", status="cancelled", commission=99, partnerInvoice={"total": 999}, totalScrapWeight=99),
    ]

    metrics = compute(orders, MARCH)

    assert metrics.revenue.total == 60
    assert metrics.gmv.total == 300
    assert metrics.weight.total == 20


def test_missing_or_malformed_numbers_count_as_zero():
    orders = [
        _order("KM1"),
        _order("KM2", commission="abc", partnerInvoice=None, totalScrapWeight=float("inf")),
        _order("KM3", commission=Decimal("12.50"), partnerInvoice={"total": Decimal("100")}),
    ]

    metrics = compute(orders, MARCH)

    assert metrics.revenue.total == 12.5
    assert metrics.gmv.total == 100
    assert metrics.weight.total == 0
    assert metrics.completed_orders == 3


def test_segment_split_sums_exactly_to_total():
    """b2b + b2c == total with zero tolerance, even for float-unfriendly amounts."""
    orders = [
        _order("KM1", scrapCategory="Industrial", commission=0.1, partnerInvoice={"total": 0.7}, totalScrapWeight=10.1),
        _order("KM2", commission=0.2, partnerInvoice={"total": 0.1}, totalScrapWeight=3.3),
        _order("KM3", description="Office", commission=0.7, partnerInvoice={"total": 0.2}, totalScrapWeight=0.3),
        _order("KM4", commission=0.3, partnerInvoice={"total": 1.1}, totalScrapWeight=2.2),
    ]

    metrics = compute(orders, MARCH)

    for split in (metrics.revenue, metrics.gmv, metrics.weight):
        assert split.b2b + split.b2c == split.total
    assert metrics.completed_split.b2b == 2
    assert metrics.completed_split.b2c == 2


def test_aov_and_arpo_per_segment():
    """Two B2C orders at 300 and 500 → AOV b2c 400; no B2B orders → AOV b2b 0."""
    orders = [
        _order("KM1", partnerInvoice={"total": 300}, commission=30),
        _order("KM2", partnerInvoice={"total": 500}, commission=70),
    ]

    metrics = compute(orders, MARCH)

    assert metrics.aov.b2c == 400
    assert metrics.aov.b2b == 0
    assert metrics.aov.total == 400
    assert metrics.arpo.b2c == 50
    assert metrics.arpo.b2b == 0
    assert metrics.avg_business_invoice_value == 0


def test_avg_business_invoice_value_matches_b2b_aov():
    orders = [
        _order("KM1", scrapCategory="Corporate", partnerInvoice={"total": 900}, commission=100),
        _order("KM2", scrapCategory="Industrial", partnerInvoice={"total": 600}, commission=50),
        _order("KM3", partnerInvoice={"total": 300}, commission=30),
    ]

    metrics = compute(orders, MARCH)

    assert metrics.avg_business_invoice_value == 750
    assert metrics.aov.b2b == metrics.avg_business_invoice_value
    assert metrics.aov.total == 600
    assert metrics.arpo.b2b == 75
    assert metrics.arpo.total == 60


# ─── Repeat customers ────────────────────────────────────────────────────────

def test_repeat_rate():
    """3 customers, one with 2 orders → repeatOrders 2, repeatRate ≈ 33.3."""
    orders = [
        _order("KM1", customerId="A"),
        _order("KM2", customerId="A", status="new"),
        _order("KM3", customerId="B"),
        _order("KM4", customerId="C", status="cancelled"),
    ]

    metrics = compute(orders, MARCH)

    assert metrics.repeat_orders == 2
    assert metrics.repeat_rate == pytest.approx(100 / 3)


def test_repeat_rate_zero_without_customers():
    metrics = compute([_order(customerId=None)], MARCH)

    assert metrics.repeat_orders == 0
    assert metrics.repeat_rate == 0


# ─── Breakdowns ──────────────────────────────────────────────────────────────

def test_partner_performance_lists_are_independent():
    orders = [
        _order("KM1", partnerName="Suresh Yadav"),
        _order("KM2", partnerName="Suresh Yadav"),
        _order("KM3", partnerName="Ramesh Gupta", status="cancelled"),
        _order("KM4", status="cancelled"),
        _order("KM5", partnerName="Ramesh Gupta", status="scheduled"),
    ]

    metrics = compute(orders, MARCH)

    assert _names(metrics.partner_performance.completed) == {"Suresh Yadav": 2}
    assert _names(metrics.partner_performance.cancelled) == {"Ramesh Gupta": 1, "Unassigned": 1}


def test_sales_agent_performance_counts_all_orders():
    orders = [
        _order("KM1", createdBy="Sales - Anita"),
        _order("KM2", createdBy="Sales - Anita", status="new"),
        _order("KM3", status="cancelled"),
    ]

    metrics = compute(orders, MARCH)

    assert _names(metrics.sales_agent_performance) == {"Sales - Anita": 2, "System": 1}


def test_lead_source_is_capitalised_and_completed_only():
    orders = [
        _order("KM1", orderSource="app"),
        _order("KM2", orderSource="app"),
        _order("KM3", orderSource="walkIn"),
        _order("KM4"),
        _order("KM5", orderSource="web", status="cancelled"),
    ]

    metrics = compute(orders, MARCH)

    assert _names(metrics.lead_source_performance) == {"App": 2, "WalkIn": 1, "Other": 1}


def test_customer_type_distribution_omits_empty_bucket():
    home_only = compute([_order("KM1"), _order("KM2")], MARCH)
    mixed = compute([_order("KM1"), _order("KM2", scrapCategory="Corporate")], MARCH)

    assert _names(home_only.customer_type_distribution) == {"Home": 2}
    assert _names(mixed.customer_type_distribution) == {"Home": 1, "Business": 1}


def test_breakdowns_keep_first_seen_order():
    orders = [
        _order("KM1", createdBy="Zara"),
        _order("KM2", createdBy="Amit"),
        _order("KM3", createdBy="Zara"),
    ]

    metrics = compute(orders, MARCH)

    assert [pair.name for pair in metrics.sales_agent_performance] == ["Zara", "Amit"]


# ─── Turnaround times ────────────────────────────────────────────────────────

def _at(hours: float) -> str:
    return (T0 + timedelta(hours=hours)).isoformat()


def test_tat_stages_count_independently():
    """An order missing 'priced' feeds tat.total but not tat.leadToRate."""
    orders = [
        _order("KM1", completedAt=_at(5)),
        _order("KM2", pricedAt=_at(2), confirmedAt=_at(4), completedAt=_at(7)),
    ]

    tat = compute(orders, MARCH).tat

    assert tat.lead_to_rate == 2
    assert tat.rate_to_confirmed == 2
    assert tat.confirmed_to_close == 3
    assert tat.total == 6


def test_tat_checkpoint_fallbacks():
    """priced ← assignedAt; confirmed ← otwTimestamp, then scheduledAt."""
    orders = [
        _order("KM1", assignedAt=_at(1), otwTimestamp=_at(3), scheduledAt=_at(10)),
        _order("KM2", assignedAt=_at(1), scheduledAt=_at(5)),
    ]

    tat = compute(orders, MARCH).tat

    assert tat.lead_to_rate == 1
    assert tat.rate_to_confirmed == 3  # (2 + 4) / 2


def test_tat_negative_durations_are_excluded_not_clamped():
    orders = [
        _order("KM1", pricedAt=_at(-3), completedAt=_at(4)),
        _order("KM2", pricedAt=_at(6), completedAt=_at(8)),
    ]

    tat = compute(orders, MARCH).tat

    assert tat.lead_to_rate == 6
    assert tat.total == 6


def test_tat_uses_whole_hours_and_one_decimal():
    """Durations truncate to whole hours; averages round to one decimal."""
    orders = [
        _order("KM1", completedAt=_at(1.98)),
        _order("KM2", completedAt=_at(1.5)),
        _order("KM3", completedAt=_at(2)),
    ]

    assert compute(orders, MARCH).tat.total == 1.3


def test_tat_ignores_invalid_checkpoints():
    orders = [_order(pricedAt="garbage", completedAt=_at(3))]

    tat = compute(orders, MARCH).tat

    assert tat.lead_to_rate == 0
    assert tat.total == 3


# ─── Input shapes and purity ─────────────────────────────────────────────────

def test_accepts_models_and_snake_case_mappings():
    orders = [
        Order(
            id="KM1",
            customer_id="A",
            created_at=T0,
            status=OrderStatus.completed,
            scrap_category="Industrial",
            partner_invoice=Invoice(total=400),
            commission=40,
        ),
        {
            "id": "KM2",
            "customer_id": "A",
            "created_at": T0,
            "status": "completed",
            "partner_invoice": {"total": 100},
            "commission": 10,
        },
        _order("KM3", customerId="B", partnerInvoice={"total": 200}, commission=20),
    ]

    metrics = compute(orders, MARCH)

    assert metrics.completed_orders == 3
    assert metrics.gmv.b2b == 400
    assert metrics.gmv.b2c == 300
    assert metrics.revenue.total == 70
    assert metrics.repeat_orders == 2


def test_compute_is_idempotent_and_does_not_mutate_input():
    orders = [
        _order("KM1", partnerName="Suresh Yadav", commission=-10, pricedAt=_at(1), completedAt=_at(3)),
        _order("KM2", status="cancelled", customerId="C-KM1"),
    ]
    snapshot = copy.deepcopy(orders)

    first = compute(orders, MARCH)
    second = compute(orders, MARCH)

    assert first == second
    assert first is not second
    assert orders == snapshot

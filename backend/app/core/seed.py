"""Seed a demo order ledger into the order store."""
import logging
import random
from datetime import datetime, timedelta, timezone

from app.core.config import settings
from app.schemas.order import Invoice, InvoiceItem, Order, OrderStatus
from app.services.order_store import FIRST_ORDER_NUMBER, ORDER_ID_PREFIX, OrderRepository

logger = logging.getLogger(__name__)

# (id, name, phone, area)
DEMO_CUSTOMERS = [
    ("KM250101", "Rajesh Kumar", "+91 98765 43210", "Koramangala"),
    ("KM250102", "Priya Sharma", "+91 87654 32109", "HSR Layout"),
    ("KM250103", "TechSolutions Pvt Ltd", "+91 76543 21098", "Indiranagar"),
    ("KM250104", "Sneha Reddy", "+91 65432 10987", "Whitefield"),
    ("KM250105", "Arjun Nair", "+91 54321 09876", "BTM Layout"),
]

# (id, name, phone)
DEMO_PARTNERS = [
    ("KM250201", "Suresh Yadav", "+91 99887 76655"),
    ("KM250202", "Ramesh Gupta", "+91 88776 65544"),
    ("KM250203", "Mohan Das", "+91 77665 54433"),
]


def _scrap_invoice(weight: float, rate: float) -> Invoice:
    total = weight * rate
    return Invoice(
        items=[InvoiceItem(material_id="1", material_name="Scrap", quantity=weight, unit="kg", rate=rate, total=total)],
        total=total,
    )


def generate_demo_orders(now: datetime | None = None, seed: int | None = None) -> list[Order]:
    """Build a deterministic demo ledger relative to ``now``.

    Mix: today's new leads, completed pickups awaiting invoice approval, one
    scheduled corporate pickup, one pickup on the way, 25 historical
    completions over the last 60 days (every third one industrial/B2B) and
    5 cancellations.
    """
    now = now or datetime.now(timezone.utc)
    rng = random.Random(settings.DEMO_SEED if seed is None else seed)
    numbers = iter(range(FIRST_ORDER_NUMBER, FIRST_ORDER_NUMBER + 1000))

    def next_id() -> str:
        return f"{ORDER_ID_PREFIX}{next(numbers):06d}"

    def at(days_ago: int, hour: float = 10) -> datetime:
        day = (now - timedelta(days=days_ago)).replace(hour=0, minute=0, second=0, microsecond=0)
        return day + timedelta(hours=hour)

    def customer_fields(index: int) -> dict:
        cust_id, name, phone, area = DEMO_CUSTOMERS[index % len(DEMO_CUSTOMERS)]
        return {
            "customer_id": cust_id,
            "customer_name": name,
            "customer_phone": phone,
            "city": "Bangalore",
            "area": area,
        }

    def partner_fields(index: int) -> dict:
        partner_id, name, _phone = DEMO_PARTNERS[index % len(DEMO_PARTNERS)]
        return {"partner_id": partner_id, "partner_name": name}

    orders: list[Order] = []

    # New leads from today
    for i in range(10):
        orders.append(Order(
            id=next_id(),
            created_at=now - timedelta(hours=i % 3),
            **customer_fields(i),
            pickup_date=now,
            pickup_slot="10:00 AM - 12:00 PM",
            scrap_category="Mixed Household" if i % 2 == 0 else "Paper",
            description="Bulk household scrap",
            status=OrderStatus.new,
            order_source="app" if i % 4 else "web",
            created_by="Customer",
        ))

    # Completed yesterday, partner invoice awaiting approval
    for i in range(5):
        orders.append(Order(
            id=next_id(),
            created_at=at(1),
            **customer_fields(i + 2),
            **partner_fields(i),
            pickup_date=at(1),
            scrap_category="Metal",
            description="Pending approval",
            status=OrderStatus.completed,
            invoice_status="pending",
            priced_at=at(1, 10.5),
            assigned_at=at(1, 10.5),
            scheduled_at=at(1, 11),
            otw_timestamp=at(1, 11),
            arrived_at=at(1, 12),
            completed_at=at(1, 13),
            total_scrap_weight=25,
            customer_invoice=_scrap_invoice(25, 10),
            partner_invoice=_scrap_invoice(25, 12),
            commission=50,
            order_source="app",
            created_by="Customer",
        ))

    # Scheduled corporate pickup
    orders.append(Order(
        id=next_id(),
        created_at=at(1),
        **customer_fields(2),
        **partner_fields(0),
        pickup_date=at(0, 11),
        pickup_slot="11:00 AM - 1:00 PM",
        scrap_category="Corporate",
        description="Office cleanout - bulk paper",
        status=OrderStatus.scheduled,
        assigned_at=at(1, 12),
        scheduled_at=at(1, 12),
        order_source="web",
        created_by="Sales - Anita",
    ))

    # On the way
    orders.append(Order(
        id=next_id(),
        created_at=at(0, 8),
        **customer_fields(3),
        **partner_fields(1),
        pickup_date=at(0, 9),
        pickup_slot="9:00 AM - 11:00 AM",
        scrap_category="Paper",
        description="Newspapers",
        status=OrderStatus.on_the_way,
        assigned_at=at(0, 8),
        scheduled_at=at(0, 8),
        otw_timestamp=at(0, 9),
        order_source="phone",
        created_by="Sales - Anita",
    ))

    # Historical completions
    for i in range(1, 26):
        days_ago = rng.randrange(60)
        is_b2b = i % 3 == 2
        weight = rng.randrange(10, 60)
        customer_rate, partner_rate = (10, 12) if is_b2b else (12, 15)
        customer_invoice = _scrap_invoice(weight, customer_rate)
        partner_invoice = _scrap_invoice(weight, partner_rate)
        orders.append(Order(
            id=next_id(),
            created_at=at(days_ago, 8),
            **customer_fields(i % 3),
            **partner_fields(i),
            pickup_date=at(days_ago),
            scrap_category="Industrial" if is_b2b else "Mixed Household",
            description="Factory waste metal" if is_b2b else "Household items",
            status=OrderStatus.completed,
            invoice_status="approved",
            priced_at=at(days_ago, 8.5),
            assigned_at=at(days_ago, 9),
            scheduled_at=at(days_ago, 9),
            otw_timestamp=at(days_ago, 10),
            arrived_at=at(days_ago, 10.5),
            completed_at=at(days_ago, 11),
            total_scrap_weight=weight,
            customer_invoice=customer_invoice,
            partner_invoice=partner_invoice,
            commission=partner_invoice.total - customer_invoice.total,
            order_source="web" if is_b2b else "app",
            created_by="Sales - Vikram" if is_b2b else "Customer",
        ))

    # Cancellations
    for i in range(5):
        days_ago = rng.randrange(30)
        orders.append(Order(
            id=next_id(),
            created_at=at(days_ago),
            **customer_fields(0),
            **partner_fields(i),
            pickup_date=at(days_ago),
            scrap_category="Plastic",
            description="Bottles",
            status=OrderStatus.cancelled,
            cancel_reason="Customer unavailable",
            cancelled_at=at(days_ago, 12),
            order_source="app",
            created_by="Customer",
        ))

    return orders


def seed_repository(repo: OrderRepository, now: datetime | None = None) -> int:
    """Append the demo ledger when the store is empty. Returns orders added."""
    if repo.list():
        logger.info("Order store already populated, skipping demo seed")
        return 0
    orders = generate_demo_orders(now)
    # append() prepends; reverse to keep the generated order.
    for order in reversed(orders):
        repo.append(order)
    logger.info("Seeded %d demo orders", len(orders))
    return len(orders)

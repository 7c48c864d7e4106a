"""Order store — repository interface with in-memory and SQL backends.

The analytics engine never reads storage itself; API handlers call
``repo.list()`` and hand the materialised list to ``analytics.compute``.
"""
import logging
import re
import threading
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from app.models.order import OrderRecord
from app.schemas.order import Order

logger = logging.getLogger(__name__)

ORDER_ID_PREFIX = "KM"
FIRST_ORDER_NUMBER = 250001

_ORDER_ID_RE = re.compile(rf"^{ORDER_ID_PREFIX}(\d+)$")

# Allocation retries when another process takes the same id first.
_ID_ATTEMPTS = 5


class DuplicateOrderError(Exception):
    """An order with this id is already stored."""

    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} already exists")
        self.order_id = order_id


def next_order_id(existing_ids: Iterable[str]) -> str:
    """Allocate ``KM`` + the next number after the highest existing one."""
    numbers = [
        int(match.group(1))
        for match in (_ORDER_ID_RE.match(order_id or "") for order_id in existing_ids)
        if match
    ]
    number = max(numbers) + 1 if numbers else FIRST_ORDER_NUMBER
    return f"{ORDER_ID_PREFIX}{number:06d}"


def _merge(order: Order, patch: Mapping[str, Any]) -> Order:
    return Order.model_validate({**order.model_dump(), **patch})


class OrderRepository(Protocol):
    def list(self) -> list[Order]: ...

    def get(self, order_id: str) -> Order | None: ...

    def append(self, order: Order) -> Order: ...

    def create(self, fields: Mapping[str, Any], order_id: str | None = None) -> Order: ...

    def update(self, order_id: str, patch: Mapping[str, Any]) -> Order | None: ...


# ─── In-memory backend ───

class InMemoryOrderRepository:
    """Process-local store, newest order first."""

    def __init__(self, orders: Iterable[Order] = ()):
        self._orders: list[Order] = list(orders)
        self._lock = threading.Lock()

    def list(self) -> list[Order]:
        with self._lock:
            return list(self._orders)

    def get(self, order_id: str) -> Order | None:
        with self._lock:
            return next((o for o in self._orders if o.id == order_id), None)

    def append(self, order: Order) -> Order:
        with self._lock:
            self._orders.insert(0, order)
        logger.info("Order %s added (status=%s)", order.id, order.status.value)
        return order

    def create(self, fields: Mapping[str, Any], order_id: str | None = None) -> Order:
        """Store a new order, allocating the next ``KM`` id when none is given.

        Raises:
            DuplicateOrderError: ``order_id`` is already stored.
        """
        with self._lock:
            if order_id is None:
                order_id = next_order_id(o.id for o in self._orders)
            elif any(o.id == order_id for o in self._orders):
                raise DuplicateOrderError(order_id)
            order = Order.model_validate({**fields, "id": order_id})
            self._orders.insert(0, order)
        logger.info("Order %s created (status=%s)", order.id, order.status.value)
        return order

    def update(self, order_id: str, patch: Mapping[str, Any]) -> Order | None:
        with self._lock:
            for index, existing in enumerate(self._orders):
                if existing.id == order_id:
                    updated = _merge(existing, patch)
                    self._orders[index] = updated
                    break
            else:
                logger.warning("update: order %s not found", order_id)
                return None
        logger.info("Order %s updated: %s", order_id, ", ".join(sorted(patch)))
        return updated


# ─── SQL backend ───

def _row_values(order: Order) -> dict[str, Any]:
    values = order.model_dump()
    values["status"] = order.status.value
    # SQLite drops offsets; store every instant as UTC wall time.
    for key, value in values.items():
        if isinstance(value, datetime) and value.utcoffset() is not None:
            values[key] = value.astimezone(timezone.utc)
    return values


class SqlOrderRepository:
    """SQLAlchemy-backed store; one session per call."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def list(self) -> list[Order]:
        with self._session_factory() as db:
            rows = db.execute(
                select(OrderRecord).order_by(OrderRecord.created_at.desc(), OrderRecord.id.desc())
            ).scalars().all()
            return [Order.model_validate(row) for row in rows]

    def get(self, order_id: str) -> Order | None:
        with self._session_factory() as db:
            row = db.get(OrderRecord, order_id)
            return Order.model_validate(row) if row is not None else None

    def append(self, order: Order) -> Order:
        with self._session_factory() as db:
            db.add(OrderRecord(**_row_values(order)))
            db.commit()
        logger.info("Order %s added (status=%s)", order.id, order.status.value)
        return order

    def create(self, fields: Mapping[str, Any], order_id: str | None = None) -> Order:
        """Insert a new order; allocated ids are retried if another writer wins the race.

        Raises:
            DuplicateOrderError: ``order_id`` is already stored, or no free id
                could be allocated.
        """
        candidate = order_id
        for _ in range(_ID_ATTEMPTS):
            with self._session_factory() as db:
                if order_id is None:
                    candidate = next_order_id(db.execute(select(OrderRecord.id)).scalars().all())
                order = Order.model_validate({**fields, "id": candidate})
                db.add(OrderRecord(**_row_values(order)))
                try:
                    db.commit()
                except IntegrityError:
                    db.rollback()
                    if order_id is not None:
                        raise DuplicateOrderError(order_id) from None
                    logger.warning("create: id %s taken concurrently, retrying", candidate)
                    continue
            logger.info("Order %s created (status=%s)", order.id, order.status.value)
            return order
        raise DuplicateOrderError(candidate)

    def update(self, order_id: str, patch: Mapping[str, Any]) -> Order | None:
        with self._session_factory() as db:
            row = db.get(OrderRecord, order_id)
            if row is None:
                logger.warning("update: order %s not found", order_id)
                return None
            updated = _merge(Order.model_validate(row), patch)
            for key, value in _row_values(updated).items():
                setattr(row, key, value)
            db.commit()
        logger.info("Order %s updated: %s", order_id, ", ".join(sorted(patch)))
        return updated

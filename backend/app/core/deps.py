from functools import lru_cache

from app.core.config import settings
from app.services.order_store import InMemoryOrderRepository, OrderRepository, SqlOrderRepository


@lru_cache
def get_order_repository() -> OrderRepository:
    """Process-wide order store selected by ORDER_STORE (memory | sql)."""
    if settings.ORDER_STORE == "sql":
        from app.db.session import SessionLocal

        return SqlOrderRepository(SessionLocal)
    return InMemoryOrderRepository()

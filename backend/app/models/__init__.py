from app.models.order import OrderRecord

__all__ = [
    "OrderRecord",
]

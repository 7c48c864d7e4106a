from fastapi import APIRouter

from app.api.v1 import kpi, orders

api_router = APIRouter()

api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(kpi.router, prefix="/kpi", tags=["kpi"])

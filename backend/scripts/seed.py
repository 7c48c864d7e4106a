"""Seed script — creates the orders table and loads the demo ledger into the SQL store."""
import logging
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from app.core.seed import seed_repository
from app.db.session import SessionLocal, init_db
from app.services.order_store import SqlOrderRepository


def seed() -> None:
    init_db()
    added = seed_repository(SqlOrderRepository(SessionLocal))
    print(f"Seeded {added} orders.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    seed()

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.config import settings


def _connect_args(url: str) -> dict:
    # SQLite connections are shared across the threadpool FastAPI runs sync code in.
    return {"check_same_thread": False} if url.startswith("sqlite") else {}


engine = create_engine(
    settings.DATABASE_URL,
    echo=False,
    pool_pre_ping=True,
    connect_args=_connect_args(settings.DATABASE_URL),
)

SessionLocal = sessionmaker(
    engine,
    expire_on_commit=False,
    autoflush=False,
)


def init_db() -> None:
    """Create the order tables if they do not exist."""
    from app.db.base import Base
    from app.models import order  # noqa: F401

    Base.metadata.create_all(engine)

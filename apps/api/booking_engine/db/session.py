from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker

from booking_engine.core.config import settings


def build_engine(database_url: str, lock_timeout_seconds: float | None = None):
    """Create an engine whose writers wait at most ``lock_timeout_seconds`` for a lock."""
    timeout = lock_timeout_seconds if lock_timeout_seconds is not None else settings.DB_LOCK_TIMEOUT_SECONDS
    backend = make_url(database_url).get_backend_name()
    connect_args: dict = {}
    if backend == "sqlite":
        connect_args["timeout"] = timeout
        connect_args["check_same_thread"] = False
    elif backend.startswith("postgresql"):
        connect_args["options"] = f"-c timezone=utc -c lock_timeout={int(timeout * 1000)}"
    return create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

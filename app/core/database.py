import importlib.util
import logging
from urllib.parse import urlparse

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import get_settings


class Base(DeclarativeBase):
    pass


settings = get_settings()
logger = logging.getLogger(__name__)

_LOCAL_DB_HOSTS = {"localhost", "127.0.0.1", "db"}


def _driver_url(database_url: str) -> str:
    # Plain postgresql:// means psycopg2; fall back to psycopg 3 when only it is installed.
    if not database_url.startswith("postgresql://"):
        return database_url
    if importlib.util.find_spec("psycopg2") is None and importlib.util.find_spec("psycopg") is not None:
        return database_url.replace("postgresql://", "postgresql+psycopg://", 1)
    return database_url


def _sqlite_kwargs(database_url: str) -> dict:
    # Sync handlers run in the threadpool, so a connection may cross threads.
    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if urlparse(database_url).path in ("", "/", "/:memory:"):
        # One shared connection, otherwise every checkout sees an empty database.
        kwargs["poolclass"] = StaticPool
    return kwargs


def _postgres_kwargs(database_url: str) -> dict:
    connect_args = {
        "keepalives": 1,
        "keepalives_idle": 30,
        "keepalives_interval": 10,
        "keepalives_count": 5,
    }
    if urlparse(database_url).hostname not in _LOCAL_DB_HOSTS:
        connect_args["sslmode"] = "require"

    pool_size = max(5, int(settings.db_pool_size))
    max_overflow = max(5, int(settings.db_max_overflow))
    pool_timeout = max(8, int(settings.db_pool_timeout))
    if (pool_size, max_overflow, pool_timeout) != (
        settings.db_pool_size,
        settings.db_max_overflow,
        settings.db_pool_timeout,
    ):
        logger.warning(
            "Raised DB pool settings to minimums: pool_size=%s max_overflow=%s pool_timeout=%s",
            pool_size,
            max_overflow,
            pool_timeout,
        )

    return {
        "connect_args": connect_args,
        "pool_pre_ping": settings.db_pool_pre_ping,
        "pool_recycle": settings.db_pool_recycle,
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_timeout": pool_timeout,
        "pool_use_lifo": True,
    }


def build_engine(database_url: str) -> Engine:
    url = _driver_url(str(database_url))
    scheme = urlparse(url).scheme
    if scheme.startswith("sqlite"):
        return create_engine(url, **_sqlite_kwargs(url))
    if scheme.startswith("postgresql"):
        return create_engine(url, **_postgres_kwargs(url))
    return create_engine(url)


def database_reachable(db: Session) -> bool:
    try:
        db.execute(text("SELECT 1"))
    except Exception as exc:
        logger.warning("Database check failed: %s", exc)
        return False
    return True


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# taskboard/database.py
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from sqlalchemy.orm import declarative_base
from taskboard.config import Settings, settings


def create_engine_from_settings(cfg: Settings) -> AsyncEngine:
    kwargs = {"echo": cfg.SQL_ECHO}
    # SQLite picks its own pool class; sizing only applies to server databases
    if not cfg.is_sqlite:
        kwargs.update(
            pool_size=cfg.DB_POOL_SIZE,
            max_overflow=cfg.DB_MAX_OVERFLOW,
            pool_timeout=cfg.DB_POOL_TIMEOUT,
            pool_recycle=cfg.DB_POOL_RECYCLE,
            pool_pre_ping=cfg.DB_POOL_PRE_PING,
        )
    return create_async_engine(cfg.effective_database_url, **kwargs)


engine = create_engine_from_settings(settings)

Base = declarative_base()


async def get_engine() -> AsyncEngine:
    """Pool shared by request handlers; overridden in tests."""
    return engine

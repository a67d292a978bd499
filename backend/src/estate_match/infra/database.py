"""Engine and session factory for the requirement/inventory/deal store.

Services never touch these module globals directly: the app hands
``async_session`` to a ``Repository`` (see ``get_session_factory``), and
tests build their own factory over a throwaway database.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from estate_match.app.config import get_settings


class Base(DeclarativeBase):
    """Declarative base shared by users, requirements, inventory and deals."""
    pass


settings = get_settings()

# SQLite (aiosqlite) in development, a pooled server database otherwise
_is_sqlite = "sqlite" in settings.database_url
_connect_args = {}
if _is_sqlite:
    _connect_args["check_same_thread"] = False
    # create_deal and assign_final_inventory hold the write lock for several statements
    _connect_args["timeout"] = 30

_engine_kwargs = {
    "echo": False,
    "connect_args": _connect_args,
}
if not _is_sqlite:
    # Sized for the concurrent reads in the staleness sweep and dashboard counts
    _engine_kwargs["pool_size"] = 5
    _engine_kwargs["max_overflow"] = 10

engine = create_async_engine(settings.database_url, **_engine_kwargs)

# Rows outlive their session: repositories return them after commit
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def get_session_factory() -> async_sessionmaker:
    """FastAPI dependency: the session factory repositories are built on."""
    return async_session


async def init_db():
    """Create the matching and deal tables if they are missing."""
    import estate_match.domain.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # WAL lets the staleness reads run next to a writer without "database is locked"
    if _is_sqlite:
        async with engine.begin() as conn:
            await conn.execute(text("PRAGMA journal_mode=WAL"))
            await conn.execute(text("PRAGMA busy_timeout=30000"))

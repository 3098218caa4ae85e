"""
Engine and session factory used by the SQL entity service.

``build_engine`` and ``build_session_factory`` are shared by the
module-level defaults and by tests that bind the entity service to a
different database.
"""
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from core_api.config import settings
from core_api.instrumentation import install_query_counter


class Base(DeclarativeBase):
    pass


def build_engine(url: str | None = None, **kwargs) -> AsyncEngine:
    """Create an async engine with the statement counter installed."""
    kwargs.setdefault("echo", settings.DEBUG)
    engine = create_async_engine(url or settings.DATABASE_URL, **kwargs)
    install_query_counter(engine)
    return engine


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Entities are serialised after commit, so loaded rows must stay usable.
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(pool_pre_ping=True)
async_session = build_session_factory(engine)


async def init_models(bind: AsyncEngine | None = None) -> None:
    """Create the ``entries`` table (and indexes) when missing."""
    import core_api.models  # noqa: F401  registers Entry on Base.metadata

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from blogapi.config import Settings
from blogapi.middleware import install_query_counter


class Base(DeclarativeBase):
    pass


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """
    Turn on ``PRAGMA foreign_keys`` for every new SQLite connection so
    ``ON DELETE CASCADE`` behaves the same as on PostgreSQL.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(settings: Settings, **kwargs) -> AsyncEngine:
    """
    Create the async engine for *settings* and register the per-request
    SQL query counter on it.

    Extra keyword arguments are forwarded to ``create_async_engine``
    (tests pass ``poolclass=StaticPool`` for in-memory SQLite).
    """
    if settings.DATABASE_URL.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_pre_ping", True)

    engine = create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG, **kwargs)
    install_query_counter(engine)
    if engine.dialect.name == "sqlite":
        enable_sqlite_foreign_keys(engine)
    return engine


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_db(request: Request):
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

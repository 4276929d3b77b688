"""
Async SQLAlchemy setup for the Bank Cards API.

  - engine / AsyncSessionLocal: one engine per process, one session per request
  - Base: declarative base for User, UserRole and Card
  - get_db(): request-scoped session dependency

Transaction policy:
  A request's session is one transaction. It is committed when the route
  returns and rolled back when anything raises, including domain errors,
  so a transfer's debit and credit are persisted together or not at all.

SQLite write locking:
  SQLite ignores SELECT ... FOR UPDATE. For file databases every transaction
  is opened with BEGIN IMMEDIATE instead, which takes the database write lock
  up front. A second transaction waits (sqlite3's busy timeout) until the
  first commits and then reads the committed balances, so overlapping
  transfers run one after the other.
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from app.config import settings


def enable_sqlite_write_locking(async_engine: AsyncEngine) -> AsyncEngine:
    """Open every transaction on a file-backed SQLite engine with BEGIN IMMEDIATE."""
    url = async_engine.url
    if url.get_backend_name() != "sqlite" or url.database in (None, "", ":memory:"):
        return async_engine

    @event.listens_for(async_engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        # the driver must not emit its own deferred BEGIN
        dbapi_connection.isolation_level = None

    @event.listens_for(async_engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return async_engine


# echo=True in debug mode logs SQL; card numbers only reach SQL as ciphertext
engine = enable_sqlite_write_locking(
    create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG)
)

# Objects stay readable after commit without a lazy refresh
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db():
    """Yield the request's session; commit on success, roll back on any exception."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

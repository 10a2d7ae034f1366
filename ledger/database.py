"""
Database engine, session factory, and base model class.

This module sets up SQLAlchemy 2.0 with async support:

  - build_engine(): the async engine (aiosqlite for SQLite, asyncpg for PostgreSQL)
  - build_sessionmaker(): factory for AsyncSession instances
  - Base: declarative base that all ORM models inherit from

Unlike a typical app there is no module-level engine: DATABASE_URL is
optional, and the ledger service decides at startup whether a durable store
exists at all.

SQLite note:
  pysqlite's default transaction handling defers BEGIN until the first write,
  so two sessions can both read a balance before either locks the file. For
  SQLite URLs we take over transaction control and issue BEGIN IMMEDIATE,
  which makes every unit of work hold the write lock from its first
  statement. PostgreSQL gets the same guarantee from SELECT ... FOR UPDATE.
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all ledger ORM models."""
    pass


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """
    Create the async engine for the durable store.

    echo=True logs all SQL statements, handy in development.
    """
    engine = create_async_engine(url, echo=echo)

    if engine.dialect.name == "sqlite":
        _install_immediate_transactions(engine)

    return engine


def _install_immediate_transactions(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to the given engine.

    expire_on_commit=False keeps attributes readable after commit; otherwise
    touching a committed object triggers a lazy load, which fails in async code.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

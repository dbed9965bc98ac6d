from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool

from jeebank.core.config import Settings


class Base(DeclarativeBase):
    pass


def is_memory_database(url: str) -> bool:
    parsed = make_url(url)
    database = parsed.database or ""
    return database in ("", ":memory:") or parsed.query.get("mode") == "memory"


def _begin_immediate(engine: Engine) -> None:
    """Take SQLite's write lock when a transaction starts instead of at its first write."""

    @event.listens_for(engine, "connect")
    def disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(settings: Settings) -> Engine:
    if settings.is_sqlite():
        if is_memory_database(settings.DATABASE_URL):
            # One shared connection so in-memory databases survive across sessions.
            engine = create_engine(
                settings.DATABASE_URL,
                future=True,
                echo=settings.DATABASE_ECHO,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            engine = create_engine(
                settings.DATABASE_URL,
                future=True,
                echo=settings.DATABASE_ECHO,
                connect_args={"check_same_thread": False, "timeout": 30},
            )
        _begin_immediate(engine)
        return engine
    return create_engine(
        settings.DATABASE_URL,
        future=True,
        echo=settings.DATABASE_ECHO,
        pool_pre_ping=True,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False, future=True)

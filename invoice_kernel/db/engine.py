"""
Module: invoice_kernel.db.engine
Responsibility: SQLAlchemy engine construction, session factories and
    the transactional scope used by the SQL persistence adapter.
Architecture position: Kernel > DB.  May import from db/base.py; imports
    models/ only inside create_tables so metadata is complete.

Invariants enforced:
    - In-memory SQLite URLs share one connection (StaticPool) so every
      session sees the same database.
    - session_scope() commits on success and rolls back on any exception.

Failure modes:
    - SQLAlchemyError subclasses propagate from session_scope() after
      rollback.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from invoice_kernel.logging_config import get_logger

logger = get_logger("db.engine")


def init_engine_from_url(database_url: str, echo: bool = False) -> Engine:
    """
    Build an engine for ``database_url``.

    Args:
        database_url: Any SQLAlchemy URL, e.g. ``sqlite:///invoices.db``,
            ``sqlite://`` (in-memory) or a PostgreSQL URL.
        echo: If True, log all SQL statements.
    """
    url = make_url(database_url)
    kwargs: dict = {"echo": echo}
    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True

    engine = create_engine(url, **kwargs)
    logger.info(
        "engine_initialized",
        extra={"dialect": url.get_backend_name(), "echo": echo},
    )
    return engine


def get_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """
    Provide a transactional scope around a series of operations.

    Usage:
        with session_scope(factory) as session:
            session.add(row)
            # Commits on successful exit, rolls back on exception
    """
    session = factory()
    logger.debug("transaction_started")
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables(engine: Engine) -> None:
    """Create every kernel table that does not exist yet."""
    from invoice_kernel.db.base import Base
    import invoice_kernel.models  # noqa: F401

    Base.metadata.create_all(engine)
    logger.info("tables_created", extra={"tables": sorted(Base.metadata.tables)})


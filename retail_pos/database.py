"""SQLAlchemy engine, session factory and schema bootstrap."""

from functools import lru_cache

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type
)

from .utils.config import get_config
from .utils.logger import get_api_logger

Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an engine for ``url``.

    SQLite URLs get foreign key enforcement, and in-memory SQLite shares
    a single connection so every session sees the same tables.
    """
    kwargs = {"echo": echo}
    is_sqlite = url.startswith("sqlite")

    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool

    engine = create_engine(url, **kwargs)

    if is_sqlite:
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    """Sessions keep loaded attributes after commit so results can leave the transaction."""
    return sessionmaker(bind=engine, expire_on_commit=False)


@lru_cache()
def get_engine() -> Engine:
    """Get the process-wide engine."""
    config = get_config()
    return create_db_engine(config.env.database_url, echo=config.database.echo)


@lru_cache()
def get_session_factory() -> sessionmaker:
    """Get the process-wide session factory."""
    return create_session_factory(get_engine())


def init_db(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    # Register the mappers on Base.metadata before create_all.
    from .models import tables  # noqa: F401

    Base.metadata.create_all(engine)


def wait_for_database(engine: Engine) -> None:
    """
    Block until the database accepts connections.

    Raises:
        OperationalError: If every attempt fails
    """
    config = get_config()
    logger = get_api_logger()

    @retry(
        stop=stop_after_attempt(config.database.connect_retries),
        wait=wait_exponential(multiplier=config.database.retry_delay),
        retry=retry_if_exception_type(OperationalError),
        reraise=True
    )
    def _ping():
        logger.debug("Pinging database")
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))

    _ping()

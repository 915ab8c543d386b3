import logging
from contextlib import contextmanager
from typing import Any
from typing import Iterator

from sqlalchemy import Engine
from sqlalchemy import create_engine
from sqlalchemy import event
from sqlalchemy.orm import Session
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker

from tabsync.config import get_settings

logger = logging.getLogger(__name__)

_settings = get_settings()

# Create Base class
Base = declarative_base()


def _install_sqlite_transaction_hooks(engine: Engine) -> None:
    """Make pysqlite honour SAVEPOINT and foreign keys.

    The stdlib driver issues its own implicit BEGIN and defers it until the
    first DML statement, which breaks ``Session.begin_nested()``.  We switch
    the driver to autocommit and emit BEGIN ourselves whenever SQLAlchemy
    starts a transaction.  Foreign keys are off by default in SQLite, so the
    ``ON DELETE CASCADE`` clauses need the pragma on every new connection.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _connection_record):  # noqa: ANN001
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):  # noqa: ANN001
        conn.exec_driver_sql("BEGIN")


def make_engine(db_url: str, **kwargs) -> Engine:
    """Create a SQLAlchemy engine with the given URL and options.

    Args:
        db_url: Database connection URL
        **kwargs: Additional arguments for create_engine

    Returns:
        A SQLAlchemy Engine instance
    """
    connect_args = kwargs.pop("connect_args", {})
    is_sqlite = db_url.startswith("sqlite")
    if is_sqlite:
        if "check_same_thread" not in connect_args:
            connect_args["check_same_thread"] = False
        connect_args.setdefault("timeout", 30)
    else:
        kwargs.setdefault("pool_pre_ping", True)

    engine = create_engine(db_url, connect_args=connect_args, **kwargs)
    if is_sqlite:
        _install_sqlite_transaction_hooks(engine)
    return engine


def make_sessionmaker(engine: Engine) -> sessionmaker:
    """Create a sessionmaker bound to the given engine.

    Args:
        engine: SQLAlchemy Engine instance

    Returns:
        A sessionmaker class
    """
    # ``expire_on_commit=False`` keeps attributes of freshly created rows
    # readable after the service commits, so response models can be built
    # from them without another round-trip.
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


# Default engine and sessionmaker instances for app usage.  Tests overwrite
# these via ``tabsync.database.default_engine = …``.

default_engine = make_engine(_settings.resolved_database_url)
default_session_factory = make_sessionmaker(default_engine)


def get_session_factory() -> sessionmaker:
    """Return the process-wide session factory."""

    return default_session_factory


def get_db() -> Iterator[Session]:
    """Dependency provider for request-scoped database sessions.

    The session is closed after the response; services own commit and
    rollback.
    """
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def db_session(session_factory: Any = None) -> Iterator[Session]:
    """Database session context manager for scripts and maintenance jobs.

    Key principles:
    1. Auto-commit on success
    2. Auto-rollback on error
    3. Always close session

    Usage:
        with db_session() as db:
            EventService.delete_old_events(db, user_id=1, older_than=cutoff)
            # Automatic commit + close

        # On error: automatic rollback + close

    Args:
        session_factory: Optional custom session factory

    Yields:
        SQLAlchemy Session object with automatic lifecycle management
    """
    factory = session_factory or get_session_factory()
    session = factory()

    try:
        yield session
        session.commit()
        logger.debug("Database session committed successfully")

    except Exception as e:
        session.rollback()
        logger.error(f"Database session rolled back due to error: {e}")
        raise

    finally:
        session.close()


def initialize_database(engine: Engine = None) -> None:
    """Initialize database tables using the given engine.

    If no engine is provided, uses the default engine.

    Args:
        engine: Optional engine to use, defaults to default_engine
    """
    # Import all models so they are registered with Base
    from tabsync.models.models import SessionSnapshot  # noqa: F401
    from tabsync.models.models import SessionTab  # noqa: F401
    from tabsync.models.models import SessionWindow  # noqa: F401
    from tabsync.models.models import User  # noqa: F401
    from tabsync.models.sync import Event  # noqa: F401
    from tabsync.models.sync import SessionRestoration  # noqa: F401
    from tabsync.models.sync import SyncMarker  # noqa: F401

    target_engine = engine or default_engine
    Base.metadata.create_all(bind=target_engine)
    logger.debug("Tables ensured: %s", sorted(Base.metadata.tables))

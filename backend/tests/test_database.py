import pytest
from sqlalchemy import inspect
from sqlalchemy.orm import Session

from tabsync.database import db_session as managed_session
from tabsync.database import initialize_database
from tabsync.database import make_engine
from tabsync.database import make_sessionmaker
from tabsync.models.models import User


def test_initialize_database_creates_all_tables(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'bootstrap.db'}")

    initialize_database(engine)

    assert set(inspect(engine).get_table_names()) == {
        "users",
        "sync_markers",
        "events",
        "sessions",
        "session_windows",
        "session_tabs",
        "session_restorations",
    }
    engine.dispose()


def test_sqlite_connections_enforce_foreign_keys(db_session: Session):
    enabled = db_session.connection().exec_driver_sql("PRAGMA foreign_keys").scalar()
    assert enabled == 1


def test_managed_session_commits(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'managed.db'}")
    initialize_database(engine)
    factory = make_sessionmaker(engine)

    with managed_session(factory) as db:
        db.add(User(email="a@example.com"))

    with factory() as db:
        assert db.query(User).count() == 1
    engine.dispose()


def test_managed_session_rolls_back_on_error(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'managed.db'}")
    initialize_database(engine)
    factory = make_sessionmaker(engine)

    with pytest.raises(RuntimeError):
        with managed_session(factory) as db:
            db.add(User(email="b@example.com"))
            db.flush()
            raise RuntimeError("boom")

    with factory() as db:
        assert db.query(User).count() == 0
    engine.dispose()

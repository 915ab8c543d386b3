import logging

import pytest
from helpers.payloads import INSTANCE_A
from helpers.payloads import INSTANCE_B
from helpers.payloads import make_window
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tabsync.models.models import SessionSnapshot
from tabsync.models.models import SessionTab
from tabsync.models.models import SessionWindow
from tabsync.models.models import User
from tabsync.schemas.sessions import SessionCreate
from tabsync.schemas.sessions import SessionUpdate
from tabsync.services import session_service
from tabsync.services.session_service import SessionService
from tabsync.services.session_service import generate_session_id


def _two_by_three():
    return SessionCreate(
        name="Work",
        description="Morning tabs",
        tags=["work", "daily"],
        windows=[
            make_window(11, ["https://a.example", "https://b.example", "https://c.example"], focused=True),
            make_window(22, ["https://d.example", "https://e.example", "https://f.example"]),
        ],
    )


def test_generate_session_id_format():
    session_id = generate_session_id()
    prefix, millis, suffix = session_id.split("-")

    assert prefix == "session"
    assert millis.isdigit()
    assert len(suffix) == 9
    assert suffix.isalnum() and suffix == suffix.lower()
    assert generate_session_id() != session_id


def test_session_round_trip(db_session: Session, dev_user: User):
    data = _two_by_three()

    created = SessionService.create_session(db_session, dev_user.id, INSTANCE_A, data)
    detail = SessionService.get_session(db_session, dev_user.id, created.session_id)

    assert detail.name == "Work"
    assert detail.description == "Morning tabs"
    assert detail.tags == ["work", "daily"]
    assert detail.instance_id == INSTANCE_A
    assert detail.tab_count == 6
    assert detail.window_count == 2

    assert [w.window_id for w in detail.windows] == [11, 22]
    assert detail.windows[0].focused is True
    for window_in, window_out in zip(data.windows, detail.windows):
        assert [t.url for t in window_out.tabs] == [t.url for t in window_in.tabs]
        assert [t.tab_id for t in window_out.tabs] == [t.id for t in window_in.tabs]
        assert [t.index for t in window_out.tabs] == [0, 1, 2]
        assert [t.title for t in window_out.tabs] == ["Tab 0", "Tab 1", "Tab 2"]


def test_tab_order_follows_supplied_index(db_session: Session, dev_user: User):
    data = SessionCreate(
        name="Reordered",
        windows=[
            {
                "id": 1,
                "tabs": [
                    {"id": 3, "url": "https://third", "index": 2},
                    {"id": 1, "url": "https://first", "index": 0},
                    {"id": 2, "url": "https://second", "index": 1},
                ],
            }
        ],
    )

    created = SessionService.create_session(db_session, dev_user.id, INSTANCE_A, data)
    detail = SessionService.get_session(db_session, dev_user.id, created.session_id)

    assert [t.url for t in detail.windows[0].tabs] == ["https://first", "https://second", "https://third"]


def test_counts_recomputed_from_tree(db_session: Session, dev_user: User, caplog):
    data = SessionCreate(name="Lying client", windows=[make_window(1, ["https://a"])], totalTabs=10, totalWindows=4)

    with caplog.at_level(logging.WARNING, logger="tabsync.services.session_service"):
        created = SessionService.create_session(db_session, dev_user.id, INSTANCE_A, data)

    assert created.tab_count == 1
    assert created.window_count == 1
    assert "Client reported 10 tabs" in caplog.text


def test_empty_session(db_session: Session, dev_user: User):
    created = SessionService.create_session(db_session, dev_user.id, INSTANCE_A, SessionCreate(name="Empty"))
    detail = SessionService.get_session(db_session, dev_user.id, created.session_id)

    assert detail.windows == []
    assert detail.tab_count == 0
    assert detail.tags == []


def test_get_session_is_scoped_to_owner(db_session: Session, dev_user: User, other_user: User):
    created = SessionService.create_session(db_session, dev_user.id, INSTANCE_A, _two_by_three())

    assert SessionService.get_session(db_session, other_user.id, created.session_id) is None
    assert SessionService.get_session(db_session, dev_user.id, "session-0-missing00") is None


def test_list_sessions_orders_and_filters(db_session: Session, dev_user: User, monkeypatch):
    clock = iter([1_000, 1_000, 2_000, 2_000, 3_000, 3_000])
    monkeypatch.setattr(session_service, "epoch_millis", lambda: next(clock))

    first = SessionService.create_session(db_session, dev_user.id, INSTANCE_A, SessionCreate(name="one"))
    second = SessionService.create_session(db_session, dev_user.id, INSTANCE_B, SessionCreate(name="two"))
    third = SessionService.create_session(db_session, dev_user.id, INSTANCE_A, SessionCreate(name="three"))

    listed = SessionService.list_sessions(db_session, dev_user.id)
    assert [s.session_id for s in listed] == [third.session_id, second.session_id, first.session_id]

    only_a = SessionService.list_sessions(db_session, dev_user.id, instance_id=INSTANCE_A)
    assert [s.name for s in only_a] == ["three", "one"]

    page = SessionService.list_sessions(db_session, dev_user.id, limit=1, offset=1)
    assert [s.name for s in page] == ["two"]


def test_list_sessions_clamps_limit(db_session: Session, dev_user: User, monkeypatch):
    monkeypatch.setattr(session_service._settings, "session_list_max_limit", 2)
    for i in range(3):
        SessionService.create_session(db_session, dev_user.id, INSTANCE_A, SessionCreate(name=f"s{i}"))

    assert len(SessionService.list_sessions(db_session, dev_user.id, limit=500)) == 2
    assert len(SessionService.list_sessions(db_session, dev_user.id, limit=0)) == 1


def test_update_session_only_touches_sent_fields(db_session: Session, dev_user: User):
    created = SessionService.create_session(db_session, dev_user.id, INSTANCE_A, _two_by_three())

    assert SessionService.update_session(db_session, dev_user.id, created.session_id, SessionUpdate(name="Renamed"))

    detail = SessionService.get_session(db_session, dev_user.id, created.session_id)
    assert detail.name == "Renamed"
    assert detail.description == "Morning tabs"
    assert detail.tags == ["work", "daily"]

    SessionService.update_session(db_session, dev_user.id, created.session_id, SessionUpdate(tags=["archived"]))
    assert SessionService.get_session(db_session, dev_user.id, created.session_id).tags == ["archived"]


def test_update_missing_session(db_session: Session, dev_user: User):
    assert SessionService.update_session(db_session, dev_user.id, "nope", SessionUpdate(name="x")) is False


def test_delete_session_cascades(db_session: Session, dev_user: User):
    created = SessionService.create_session(db_session, dev_user.id, INSTANCE_A, _two_by_three())
    assert db_session.query(SessionTab).count() == 6

    assert SessionService.delete_session(db_session, dev_user.id, created.session_id) is True

    assert db_session.query(SessionSnapshot).count() == 0
    assert db_session.query(SessionWindow).count() == 0
    assert db_session.query(SessionTab).count() == 0
    assert SessionService.delete_session(db_session, dev_user.id, created.session_id) is False


def test_delete_user_cascades_in_store(db_session: Session, dev_user: User):
    SessionService.create_session(db_session, dev_user.id, INSTANCE_A, _two_by_three())

    db_session.delete(dev_user)
    db_session.commit()

    assert db_session.query(SessionSnapshot).count() == 0
    assert db_session.query(SessionTab).count() == 0


def test_batch_create_isolates_failures(db_session: Session, dev_user: User):
    items = [
        {"name": "good one", "windows": [make_window(1, ["https://a"])]},
        {"name": ""},
        {"name": "bad tab", "windows": [{"id": 2, "tabs": [{"id": 1}]}]},
        _two_by_three(),
    ]

    result = SessionService.batch_create_sessions(db_session, dev_user.id, INSTANCE_A, items)

    assert result.created == 2
    assert result.failed == 2
    assert len(result.session_ids) == 2
    assert result.errors[0].startswith("Session 2:")
    assert result.errors[1].startswith("Session 3:")
    assert db_session.query(SessionSnapshot).count() == 2


def test_create_failure_rolls_back_tree(db_session: Session, dev_user: User, monkeypatch):
    data = _two_by_three()
    monkeypatch.setattr(session_service, "generate_session_id", lambda: "session-fixed")

    SessionService.create_session(db_session, dev_user.id, INSTANCE_A, data)
    with pytest.raises(IntegrityError):
        SessionService.create_session(db_session, dev_user.id, INSTANCE_A, data)

    assert db_session.query(SessionSnapshot).count() == 1
    assert db_session.query(SessionWindow).count() == 2
    assert db_session.query(SessionTab).count() == 6

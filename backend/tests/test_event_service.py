from helpers.payloads import INSTANCE_A
from helpers.payloads import INSTANCE_B
from helpers.payloads import make_event
from sqlalchemy.orm import Session

from tabsync.models.enums import EventType
from tabsync.models.models import User
from tabsync.schemas.events import EventFilters
from tabsync.schemas.sync import EventIn
from tabsync.services import event_service
from tabsync.services.event_service import EventService
from tabsync.services.sync_service import SyncService

DAY = 86_400_000


def _ingest(db, user_id, instance_id, *payloads):
    SyncService.process_events(db, user_id, instance_id, [EventIn.model_validate(p) for p in payloads])


def _seed(db_session, user_id):
    _ingest(
        db_session,
        user_id,
        INSTANCE_A,
        make_event("a1", DAY + 10, url="https://a.com"),
        make_event("a2", DAY + 20, "tab-created", tabId=1),
        make_event("a3", 3 * DAY + 5, "tab-created", tabId=2, metadata={"source": "test"}),
    )
    _ingest(db_session, user_id, INSTANCE_B, make_event("b1", 5 * DAY, "window-focused", windowId=9))


def test_query_events_filters_and_orders(db_session: Session, dev_user: User):
    _seed(db_session, dev_user.id)

    page = EventService.query_events(db_session, dev_user.id, EventFilters())
    assert page.total == 4
    assert [e.document_id for e in page.events] == ["b1", "a3", "a2", "a1"]

    by_instance = EventService.query_events(db_session, dev_user.id, EventFilters(instance_id=INSTANCE_A))
    assert by_instance.total == 3

    by_type = EventService.query_events(
        db_session, dev_user.id, EventFilters(event_types=[EventType.TAB_CREATED, EventType.WINDOW_FOCUSED])
    )
    assert {e.document_id for e in by_type.events} == {"a2", "a3", "b1"}

    ranged = EventService.query_events(
        db_session, dev_user.id, EventFilters(from_timestamp=DAY + 20, to_timestamp=3 * DAY + 5)
    )
    assert [e.document_id for e in ranged.events] == ["a3", "a2"]


def test_query_events_paginates_with_total(db_session: Session, dev_user: User):
    _seed(db_session, dev_user.id)

    page = EventService.query_events(db_session, dev_user.id, EventFilters(limit=2, offset=1))

    assert page.total == 4
    assert page.count == 2
    assert [e.document_id for e in page.events] == ["a3", "a2"]


def test_query_events_clamps_limit(db_session: Session, dev_user: User, monkeypatch):
    monkeypatch.setattr(event_service._settings, "event_query_max_limit", 3)
    _seed(db_session, dev_user.id)

    assert EventService.query_events(db_session, dev_user.id, EventFilters(limit=50)).limit == 3
    assert EventService.query_events(db_session, dev_user.id, EventFilters(limit=0)).count == 1


def test_query_events_returns_metadata(db_session: Session, dev_user: User):
    _seed(db_session, dev_user.id)

    page = EventService.query_events(db_session, dev_user.id, EventFilters(event_types=[EventType.TAB_CREATED]))
    newest = page.events[0]

    assert newest.metadata == {"source": "test"}
    assert newest.model_dump(by_alias=True)["tabId"] == 2


def test_query_events_scoped_to_user(db_session: Session, dev_user: User, other_user: User):
    _seed(db_session, dev_user.id)

    assert EventService.query_events(db_session, other_user.id, EventFilters()).total == 0


def test_stats(db_session: Session, dev_user: User):
    _seed(db_session, dev_user.id)

    stats = EventService.get_stats(db_session, dev_user.id)
    assert stats.total_events == 4
    assert stats.unique_event_types == 3
    assert stats.active_days == 3
    assert stats.first_event_timestamp == DAY + 10
    assert stats.last_event_timestamp == 5 * DAY
    assert stats.events_by_type == {"navigation": 1, "tab-created": 2, "window-focused": 1}

    only_a = EventService.get_stats(db_session, dev_user.id, INSTANCE_A)
    assert only_a.total_events == 3
    assert only_a.active_days == 2


def test_stats_without_events(db_session: Session, dev_user: User):
    stats = EventService.get_stats(db_session, dev_user.id)

    assert stats.total_events == 0
    assert stats.first_event_timestamp is None
    assert stats.events_by_type == {}


def test_list_instances(db_session: Session, dev_user: User):
    _seed(db_session, dev_user.id)

    instances = EventService.list_instances(db_session, dev_user.id)

    assert [i.instance_id for i in instances] == [INSTANCE_B, INSTANCE_A]
    assert instances[1].event_count == 3
    assert instances[1].first_event_at == DAY + 10
    assert instances[1].last_event_at == 3 * DAY + 5


def test_delete_old_events_keeps_markers(db_session: Session, dev_user: User, other_user: User):
    _seed(db_session, dev_user.id)
    _ingest(db_session, other_user.id, INSTANCE_A, make_event("o1", 10))

    deleted = EventService.delete_old_events(db_session, dev_user.id, 3 * DAY)

    assert deleted == 2
    assert EventService.get_stats(db_session, dev_user.id).total_events == 2
    assert EventService.get_stats(db_session, other_user.id).total_events == 1
    assert SyncService.get_marker(db_session, dev_user.id, INSTANCE_A).last_event_timestamp == 3 * DAY + 5

import pytest
from helpers.payloads import INSTANCE_A
from helpers.payloads import INSTANCE_B
from helpers.payloads import make_event
from jose import jwt
from sqlalchemy.orm import Session

from tabsync import manage
from tabsync.config import get_settings
from tabsync.database import make_engine
from tabsync.database import make_sessionmaker
from tabsync.models.models import User
from tabsync.schemas.sync import EventIn
from tabsync.services.sync_service import SyncService


def _claims(token):
    return jwt.decode(token, get_settings().jwt_secret, algorithms=["HS256"])


def test_create_user_then_reuse(db_session: Session):
    user, created = manage.create_user(db_session, "Alice@Example.com", "Alice")
    assert created is True
    assert user.email == "alice@example.com"

    again, created = manage.create_user(db_session, "alice@example.com", "Alice B")
    assert created is False
    assert again.id == user.id
    assert again.display_name == "Alice B"
    assert db_session.query(User).count() == 1


@pytest.mark.parametrize("email", ["", "not-an-email"])
def test_create_user_rejects_bad_email(db_session: Session, email):
    with pytest.raises(ValueError):
        manage.create_user(db_session, email)


def test_list_users_reports_activity(db_session: Session, dev_user: User, other_user: User):
    events = [EventIn.model_validate(make_event(f"d{i}", 100 + i)) for i in range(3)]
    SyncService.process_events(db_session, dev_user.id, INSTANCE_A, events[:2])
    SyncService.process_events(db_session, dev_user.id, INSTANCE_B, events[2:])

    rows = {row.email: row for row in manage.list_users(db_session)}

    assert rows["dev@local"].instance_count == 2
    assert rows["dev@local"].event_count == 3
    assert rows["dev@local"].last_event_at == 102
    assert rows["other@example.com"].event_count == 0
    assert rows["other@example.com"].last_event_at is None
    assert [row.id for row in manage.list_users(db_session)] == [other_user.id, dev_user.id]


def test_resolve_user_by_id_or_email(db_session: Session, other_user: User):
    assert manage.resolve_user(db_session, str(other_user.id)).id == other_user.id
    assert manage.resolve_user(db_session, "OTHER@example.com").id == other_user.id
    with pytest.raises(LookupError):
        manage.resolve_user(db_session, "999")


def test_token_for_carries_sub_and_id(other_user: User):
    claims = _claims(manage.token_for(other_user))

    assert claims["sub"] == str(other_user.id)
    assert claims["id"] == other_user.id
    assert claims["email"] == "other@example.com"


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'admin.db'}")
    yield engine
    engine.dispose()


def test_cli_create_list_and_token(cli_engine, capsys):
    assert manage.main(["create-user", "bob@example.com", "--name", "Bob"], engine=cli_engine) == 0
    out = capsys.readouterr().out
    assert "Created user" in out
    token = next(line.split()[-1] for line in out.splitlines() if line.startswith("Authorization: Bearer"))

    with make_sessionmaker(cli_engine)() as db:
        user = db.query(User).filter(User.email == "bob@example.com").one()
    assert _claims(token)["sub"] == str(user.id)

    assert manage.main(["list-users"], engine=cli_engine) == 0
    out = capsys.readouterr().out
    assert "bob@example.com" in out
    assert "Total users: 1" in out

    assert manage.main(["token", "bob@example.com", "--days", "1"], engine=cli_engine) == 0
    assert "Authorization: Bearer" in capsys.readouterr().out


def test_cli_reports_unknown_user(cli_engine, capsys):
    assert manage.main(["token", "ghost@example.com"], engine=cli_engine) == 1
    assert "No user matches" in capsys.readouterr().err


def test_cli_reports_bad_email(cli_engine, capsys):
    assert manage.main(["create-user", "nope"], engine=cli_engine) == 1
    assert "Invalid email address" in capsys.readouterr().err

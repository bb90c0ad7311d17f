import pytest

from conftest import auth_headers
from neorelis.models.notification import Notification, NotificationType
from neorelis.services import notifications as notification_service

API = "/api/v1/notifications"


@pytest.fixture
def user(make_user):
    return make_user("reader")


@pytest.fixture
def notes(db, user):
    return [
        notification_service.create_notification(
            db, user.id, NotificationType.GENERAL, title=f"Note {i}", message="hello"
        )
        for i in range(3)
    ]


def test_list_returns_items_and_unread_count(client, user, notes):
    res = client.get(API, headers=auth_headers(user))
    assert res.status_code == 200
    body = res.json()
    assert len(body["notifications"]) == 3
    assert body["unread_count"] == 3


def test_limit(client, user, notes):
    res = client.get(API, params={"limit": 2}, headers=auth_headers(user))
    assert len(res.json()["notifications"]) == 2
    assert res.json()["unread_count"] == 3


def test_mark_one_read(client, user, notes):
    res = client.put(f"{API}/{notes[0].id}/read", headers=auth_headers(user))
    assert res.status_code == 200

    res = client.get(f"{API}/unread-count", headers=auth_headers(user))
    assert res.json()["unread_count"] == 2

    res = client.get(API, params={"unread_only": "true"}, headers=auth_headers(user))
    ids = {n["id"] for n in res.json()["notifications"]}
    assert ids == {notes[1].id, notes[2].id}


def test_mark_all_read(client, user, notes):
    client.put(f"{API}/read-all", headers=auth_headers(user))
    res = client.get(f"{API}/unread-count", headers=auth_headers(user))
    assert res.json()["unread_count"] == 0


def test_delete(client, user, notes, db):
    client.delete(f"{API}/{notes[0].id}", headers=auth_headers(user))
    db.expire_all()
    assert db.query(Notification).count() == 2


def test_other_users_cannot_touch_notifications(client, make_user, user, notes, db):
    stranger = make_user("stranger")

    assert client.get(API, headers=auth_headers(stranger)).json()["notifications"] == []
    client.put(f"{API}/{notes[0].id}/read", headers=auth_headers(stranger))
    client.put(f"{API}/read-all", headers=auth_headers(stranger))
    client.delete(f"{API}/{notes[1].id}", headers=auth_headers(stranger))

    db.expire_all()
    assert notification_service.unread_count(db, user.id) == 3


def test_best_effort_notification_swallows_db_errors(db, user, monkeypatch):
    from sqlalchemy.exc import OperationalError

    def broken_commit():
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "commit", broken_commit)

    result = notification_service.notify_best_effort(
        db, user.id, NotificationType.GENERAL, title="t", message="m"
    )
    assert result is None

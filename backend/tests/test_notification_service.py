# Overview: Pytest coverage for the notification sink and inbox.

import pytest
from sqlalchemy.exc import SQLAlchemyError

from storecheer.extensions import db
from storecheer.services import notification_service
from storecheer.services.errors import NotFound


class TestCreateNotification:

    def test_create_and_list(self, db_session, alice):
        assert notification_service.create_notification(
            alice.id, "announcement", "Store meeting", "Friday 9am", {"store_id": 1},
        ) is True

        notifications = notification_service.list_notifications(alice.id)
        assert len(notifications) == 1
        assert notifications[0].to_dict()["data"] == {"store_id": 1}

    def test_failure_returns_false(self, db_session, monkeypatch, alice):
        def failing_commit():
            raise SQLAlchemyError("database is locked")

        monkeypatch.setattr(db.session, "commit", failing_commit)

        assert notification_service.create_notification(alice.id, "announcement", "Hello") is False

        monkeypatch.undo()
        assert notification_service.get_unread_count(alice.id) == 0


class TestReadState:

    def test_mark_as_read(self, db_session, alice):
        notification_service.create_notification(alice.id, "announcement", "One")
        notification_service.create_notification(alice.id, "announcement", "Two")
        first = notification_service.list_notifications(alice.id)[-1]

        notification_service.mark_as_read(first.id, user_id=alice.id)
        assert notification_service.get_unread_count(alice.id) == 1

    def test_cannot_read_someone_elses(self, db_session, alice, bob):
        notification_service.create_notification(alice.id, "announcement", "Private")
        note = notification_service.list_notifications(alice.id)[0]

        with pytest.raises(NotFound):
            notification_service.mark_as_read(note.id, user_id=bob.id)

    def test_mark_all_as_read(self, db_session, alice, bob):
        for title in ("a", "b", "c"):
            notification_service.create_notification(alice.id, "announcement", title)
        notification_service.create_notification(bob.id, "announcement", "bob's")

        assert notification_service.mark_all_as_read(alice.id) == 3
        assert notification_service.get_unread_count(alice.id) == 0
        assert notification_service.get_unread_count(bob.id) == 1

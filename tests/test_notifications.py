"""Unit tests for in-app notifications."""

import json
import logging

import pytest

from loople import notifications
from loople.notifications import (
    create_notification,
    get_notifications,
    get_unread_count,
    mark_all_as_read,
    mark_as_read,
)


@pytest.fixture
def notif_db(fake_db, monkeypatch):
    monkeypatch.setattr(notifications, "query_df", fake_db.query_df)
    monkeypatch.setattr(notifications, "run_query", fake_db.run_query)
    return fake_db


class TestCreateNotification:
    def test_inserts_in_app_row(self, notif_db):
        create_notification(
            recipient_user_id="u-2",
            notification_type="mention",
            subject="mentioned you in a post",
            actor_user_id="u-1",
            link="/post/4",
            metadata={"club_id": 9},
        )

        (params,) = notif_db.writes_to("notifications")
        user_id, ntype, channel, subject, body, link, actor, member, metadata, sent_at = params
        assert (user_id, ntype, channel, subject, body, link, actor, member) == (
            "u-2", "mention", "in_app", "mentioned you in a post", None, "/post/4", "u-1", None,
        )
        assert json.loads(metadata) == {"club_id": 9}
        assert sent_at

    def test_unknown_type(self, notif_db):
        with pytest.raises(ValueError, match="poke"):
            create_notification("u-2", "poke", "poked you")
        assert notif_db.writes == []


class TestReads:
    def test_unread_count(self, notif_db):
        notif_db.respond("COUNT(*)", [{"n": 3}])
        assert get_unread_count("u-1") == 3

    def test_unread_count_error(self, monkeypatch, caplog):
        def boom(sql, params=()):
            raise RuntimeError("timeout")

        monkeypatch.setattr(notifications, "query_df", boom)
        with caplog.at_level(logging.ERROR, logger="loople.notifications"):
            assert get_unread_count("u-1") == 0
        assert "timeout" in caplog.text

    def test_get_notifications_paging(self, notif_db):
        notif_db.respond("LEFT JOIN users", [{"id": 1, "subject": "hi"}])
        df = get_notifications("u-1", limit=10, offset=20)
        assert len(df) == 1
        assert notif_db.reads[0][1] == ("u-1", "in_app", 10, 20)


class TestMarkRead:
    def test_mark_one(self, notif_db):
        mark_as_read(5)
        sql, params = notif_db.writes[0]
        assert "WHERE id = %s" in sql
        assert params[1] == 5

    def test_mark_all(self, notif_db):
        mark_all_as_read("u-1")
        sql, params = notif_db.writes[0]
        assert "read_at IS NULL" in sql
        assert params[1:] == ("u-1", "in_app")

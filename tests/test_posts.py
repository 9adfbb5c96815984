"""Unit tests for post creation and the post/user display helpers."""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from loople import posts
from loople.posts import MAX_POST_LENGTH, create_post, get_relative_time, user_from_record

NOW = datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc)


class TestGetRelativeTime:
    @pytest.mark.parametrize(
        "delta, expected",
        [
            (timedelta(seconds=5), "Just now"),
            (timedelta(minutes=3), "3m ago"),
            (timedelta(hours=2, minutes=59), "2h ago"),
            (timedelta(days=6, hours=23), "6d ago"),
            (timedelta(days=8), "2026-03-06"),
        ],
    )
    def test_labels(self, delta, expected):
        assert get_relative_time(NOW - delta, now=NOW) == expected

    def test_naive_timestamp_is_utc(self):
        naive = datetime(2026, 3, 14, 11, 30)
        assert get_relative_time(naive, now=NOW) == "30m ago"


class TestUserFromRecord:
    def test_profile_row(self):
        user = user_from_record({"id": "u-1", "first_name": "Ann", "last_name": "Lee", "username": "ann"})
        assert user == {"id": "u-1", "name": "Ann Lee", "username": "ann", "avatar": "A"}

    def test_auth_metadata(self):
        user = user_from_record({"id": "u-2", "user_metadata": {"firstName": "bo"}})
        assert user["name"] == "bo"
        assert user["avatar"] == "B"

    def test_full_name_then_email(self):
        assert user_from_record({"raw_user_meta_data": {"full_name": "Cy Twombly"}})["name"] == "Cy Twombly"
        assert user_from_record({"email": "dee@example.com"})["name"] == "dee@example.com"

    def test_username_falls_back_to_email(self):
        assert user_from_record({"email": "Dee.Smith@example.com"})["username"] == "dee.smith"

    def test_unknown(self):
        user = user_from_record({"user_id": "u-9"})
        assert user["id"] == "u-9"
        assert user["name"] == "Unknown User"
        assert user["avatar"] == "U"


@pytest.fixture
def post_db(fake_db, monkeypatch):
    calls = []
    fake_db.returning_value = 101
    monkeypatch.setattr(posts, "run_returning", fake_db.run_returning)
    monkeypatch.setattr(posts, "process_mentions", lambda text, **kw: calls.append((text, kw)))
    fake_db.mention_calls = calls
    return fake_db


class TestCreatePost:
    def test_inserts_and_processes_mentions(self, post_db):
        post_id = create_post(7, "u-me", "  hi @alice  ")

        assert post_id == 101
        assert post_db.writes_to("posts") == [(7, "u-me", "hi @alice")]
        assert post_db.mention_calls == [
            ("hi @alice", {"actor_user_id": "u-me", "club_id": 7, "post_id": 101})
        ]

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_rejects_empty(self, post_db, text):
        with pytest.raises(ValueError, match="empty"):
            create_post(7, "u-me", text)
        assert post_db.writes == []

    def test_rejects_too_long(self, post_db):
        with pytest.raises(ValueError, match="exceed"):
            create_post(7, "u-me", "x" * (MAX_POST_LENGTH + 1))

    def test_mention_failure_keeps_post(self, post_db, monkeypatch, caplog):
        def boom(text, **kw):
            raise RuntimeError("notifications table missing")

        monkeypatch.setattr(posts, "process_mentions", boom)
        with caplog.at_level(logging.ERROR, logger="loople.posts"):
            assert create_post(7, "u-me", "@a") == 101
        assert "notifications table missing" in caplog.text

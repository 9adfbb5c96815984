"""Unit tests for the transactional write helpers in loople.db."""

import pytest

from loople import db
from loople.db import run_many


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def executemany(self, sql, rows):
        for params in rows:
            if params in self.conn.failing_rows:
                raise RuntimeError(f"constraint violated for {params}")
            self.conn.pending.append(params)


class FakeConnection:
    """Buffers rows until commit, drops them on rollback."""

    def __init__(self, failing_rows=()):
        self.failing_rows = list(failing_rows)
        self.pending = []
        self.committed = []
        self.rolled_back = False
        self.closed = False

    def cursor(self):
        return FakeCursor(self)

    def commit(self):
        self.committed.extend(self.pending)
        self.pending = []

    def rollback(self):
        self.pending = []
        self.rolled_back = True

    def close(self):
        self.closed = True


class TestRunMany:
    def test_commits_all_rows_together(self, monkeypatch):
        conn = FakeConnection()
        monkeypatch.setattr(db, "get_pg_connection", lambda: conn)

        run_many("INSERT INTO mentions VALUES (%s, %s)", [("u-me", "u-a"), ("u-me", "u-b")])

        assert conn.committed == [("u-me", "u-a"), ("u-me", "u-b")]
        assert conn.closed

    def test_failure_midway_rolls_back_earlier_rows(self, monkeypatch):
        conn = FakeConnection(failing_rows=[("u-me", "u-b")])
        monkeypatch.setattr(db, "get_pg_connection", lambda: conn)

        with pytest.raises(RuntimeError, match="constraint"):
            run_many("INSERT INTO mentions VALUES (%s, %s)", [("u-me", "u-a"), ("u-me", "u-b")])

        assert conn.committed == []
        assert conn.rolled_back
        assert conn.closed

    def test_no_rows_skips_connection(self, monkeypatch):
        def no_connection():
            raise AssertionError("connection opened")

        monkeypatch.setattr(db, "get_pg_connection", no_connection)
        run_many("INSERT INTO mentions VALUES (%s)", [])

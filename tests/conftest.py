"""Shared fixtures for the Loople test suite.

Database helpers are replaced per module with a FakeDB that answers
query_df() calls from canned DataFrames (matched on a SQL fragment) and
records every write.
"""

from typing import Dict, List, Tuple

import pandas as pd
import pytest


class FakeDB:
    """Stand-in for loople.db.query_df / run_query / run_many / run_returning."""

    def __init__(self):
        self.responses: List[Tuple[str, pd.DataFrame]] = []
        self.reads: List[Tuple[str, tuple]] = []
        self.writes: List[Tuple[str, tuple]] = []
        self.returning_value = 1
        self.fail_writes_to: str | None = None

    def respond(self, fragment: str, rows: List[Dict]) -> None:
        """Answer any read whose SQL contains fragment with rows."""
        self.responses.append((fragment, pd.DataFrame(rows)))

    def query_df(self, sql: str, params: tuple = ()) -> pd.DataFrame:
        self.reads.append((sql, params))
        for fragment, df in self.responses:
            if fragment in sql:
                return df.copy()
        return pd.DataFrame()

    def run_query(self, sql: str, params: tuple = ()) -> None:
        self.writes.append((sql, params))

    def run_many(self, sql: str, rows: List[tuple]) -> None:
        """All-or-nothing, like the real helper: a failure records no rows."""
        if self.fail_writes_to and f"INTO {self.fail_writes_to}" in sql:
            raise RuntimeError(f"insert into {self.fail_writes_to} failed")
        self.writes.extend((sql, params) for params in rows)

    def run_returning(self, sql: str, params: tuple = ()):
        self.writes.append((sql, params))
        return self.returning_value

    def writes_to(self, table: str) -> List[tuple]:
        return [params for sql, params in self.writes if f"INTO {table}" in sql]


@pytest.fixture
def fake_db():
    return FakeDB()

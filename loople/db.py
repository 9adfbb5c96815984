"""
loople/db.py
Supabase connection helpers for Loople.
All database access goes through this module.
"""

import os

import pandas as pd
import psycopg2
import streamlit as st
from psycopg2.extras import RealDictCursor
from supabase import create_client, Client
from dotenv import load_dotenv

load_dotenv()


# ─── Private helpers ─────────────────────────────────────────────────────────

def _get_secret(key: str, default: str | None = None) -> str | None:
    """
    Resolve a secret by name.

    Tries st.secrets first (Streamlit Cloud), then falls back to os.environ
    (local development via .env loaded above).  Returns default if the key is
    absent in both sources.
    """
    try:
        return st.secrets[key]
    except Exception:
        return os.environ.get(key, default)


# ─── Supabase client (used for Auth) ─────────────────────────────────────────

def get_supabase_client() -> Client:
    """
    Return a Supabase client authenticated with the anon key.

    Not cached: Auth state is per-session and must not bleed between
    Streamlit reruns or users.
    """
    url = _get_secret("SUPABASE_URL")
    key = _get_secret("SUPABASE_ANON_KEY")
    return create_client(url, key)


# ─── Direct psycopg2 connection ──────────────────────────────────────────────

def get_pg_connection():
    """
    Return a raw psycopg2 connection to Supabase PostgreSQL.

    sslmode is set to 'require' and connect_timeout to 15 seconds.
    The caller is responsible for closing the connection when finished.
    """
    return psycopg2.connect(
        host=_get_secret("DB_HOST"),
        port=_get_secret("DB_PORT"),
        dbname=_get_secret("DB_NAME"),
        user=_get_secret("DB_USER"),
        password=_get_secret("DB_PASSWORD"),
        sslmode="require",
        connect_timeout=15,
    )


# ─── Cached query helper ─────────────────────────────────────────────────────

@st.cache_data(ttl=60, show_spinner=False)
def query_df(sql: str, params: tuple = ()) -> pd.DataFrame:
    """
    Execute a parameterised SELECT query and return results as a DataFrame.

    Opens and closes its own psycopg2 connection.  Results are cached for 60
    seconds to reduce round-trips on repeated Streamlit reruns.  Returns an
    empty DataFrame (never None) when the query produces no rows.
    """
    conn = get_pg_connection()
    try:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(sql, params)
            rows = cur.fetchall()
            if not rows:
                return pd.DataFrame()
            return pd.DataFrame(rows)
    finally:
        conn.close()


# ─── Write query helpers ─────────────────────────────────────────────────────

def run_query(sql: str, params: tuple = ()) -> None:
    """
    Execute a parameterised write query (INSERT, UPDATE, or DELETE) and commit.

    Opens and closes its own psycopg2 connection.  Not cached.  Raises any
    database exception to the caller after rolling back.
    """
    conn = get_pg_connection()
    try:
        with conn.cursor() as cur:
            cur.execute(sql, params)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def run_many(sql: str, rows: list[tuple]) -> None:
    """
    Execute one write statement for every params tuple in rows, in a single
    transaction.

    Either every row is written or, on any error, none are: the transaction
    is rolled back and the exception raised to the caller.
    """
    if not rows:
        return
    conn = get_pg_connection()
    try:
        with conn.cursor() as cur:
            cur.executemany(sql, rows)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def run_returning(sql: str, params: tuple = ()):
    """
    Execute a write query with a RETURNING clause, commit, and return the
    first column of the first returned row (None when no row comes back).
    """
    conn = get_pg_connection()
    try:
        with conn.cursor() as cur:
            cur.execute(sql, params)
            row = cur.fetchone()
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
    return row[0] if row else None

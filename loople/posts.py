"""
loople/posts.py
Newsfeed posts and the user shapes shown next to them.
"""

import logging
from datetime import datetime, timezone

import pandas as pd

from loople.db import query_df, run_returning
from loople.mentions import process_mentions
from loople.usernames import username_from_email

logger = logging.getLogger(__name__)

MAX_POST_LENGTH = 5000


def get_relative_time(timestamp: datetime, now: datetime | None = None) -> str:
    """
    Return a short relative label for a timestamp.

    'Just now' under a minute, then '{n}m ago', '{n}h ago', '{n}d ago' up to a
    week, after which the plain date (YYYY-MM-DD) is shown.  Naive datetimes
    are taken as UTC.
    """
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    seconds = int((now - timestamp).total_seconds())
    if seconds < 60:
        return "Just now"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    if seconds < 604800:
        return f"{seconds // 86400}d ago"
    return timestamp.date().isoformat()


def user_from_record(record: dict) -> dict:
    """
    Build the author dict shown on a post from a users row or an auth user.

    Accepts profile rows (first_name/last_name) as well as auth payloads that
    keep names in user_metadata or raw_user_meta_data.  Returns a dict with
    id, name, username (falling back to the email local part) and avatar
    (a single uppercase initial).
    """
    meta = record.get("raw_user_meta_data") or record.get("user_metadata") or {}

    first = record.get("first_name") or meta.get("first_name") or meta.get("firstName") or ""
    last = record.get("last_name") or meta.get("last_name") or meta.get("lastName") or ""
    full_name = meta.get("full_name") or record.get("full_name") or ""
    email = record.get("email") or meta.get("email") or record.get("user_email") or ""

    if first or last:
        name = f"{first} {last}".strip()
    else:
        name = full_name or email or "Unknown User"

    initial_source = first or full_name or email or "U"
    return {
        "id": str(record.get("id") or record.get("user_id") or ""),
        "name": name,
        "username": record.get("username") or (username_from_email(email) if email else None),
        "avatar": initial_source[0].upper(),
    }


def list_posts(club_id: int, limit: int = 50) -> pd.DataFrame:
    """
    Return the club's most recent posts joined with their authors.

    Returns an empty DataFrame when the club has no posts.
    """
    return query_df(
        """
        SELECT p.id, p.content_text, p.created_at, p.user_id,
               u.first_name, u.last_name, u.username, u.email
        FROM   posts p
        LEFT JOIN users u ON u.id = p.user_id
        WHERE  p.club_id = %s
        ORDER BY p.created_at DESC
        LIMIT %s
        """,
        (club_id, limit),
    )


def create_post(club_id: int, author_id: str, text: str) -> int:
    """
    Insert a text post and record its mentions.

    Raises ValueError for empty or over-long text.  A failure while recording
    mentions is logged and does not undo the post.  Returns the new post id.
    """
    text = (text or "").strip()
    if not text:
        raise ValueError("Post text cannot be empty.")
    if len(text) > MAX_POST_LENGTH:
        raise ValueError(f"Post text cannot exceed {MAX_POST_LENGTH} characters.")

    post_id = run_returning(
        """
        INSERT INTO posts (club_id, user_id, content_type, content_text)
        VALUES (%s, %s, 'text', %s)
        RETURNING id
        """,
        (club_id, author_id, text),
    )

    try:
        process_mentions(text, actor_user_id=author_id, club_id=club_id, post_id=post_id)
    except Exception as exc:
        logger.error(
            "Recording mentions failed for post %s: %s", post_id, exc, exc_info=True
        )

    return post_id

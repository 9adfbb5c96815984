"""
loople/notifications.py
In-app notifications for Loople.

Rows live in the notifications table with channel = 'in_app'.  Writes go
through the direct Postgres connection, so a user can notify another user
without an RLS policy on the recipient's rows.
"""

import json
import logging
from datetime import datetime, timezone

import pandas as pd

from loople.db import query_df, run_query

logger = logging.getLogger(__name__)

NOTIFICATION_TYPES = ("mention", "comment", "reaction", "message", "follow", "system")

IN_APP = "in_app"


def create_notification(
    recipient_user_id: str,
    notification_type: str,
    subject: str,
    body: str | None = None,
    link: str | None = None,
    actor_user_id: str | None = None,
    member_id: int | None = None,
    metadata: dict | None = None,
) -> None:
    """
    Insert an in-app notification for recipient_user_id.

    Raises ValueError for an unknown notification_type.  Database errors are
    raised to the caller.
    """
    if notification_type not in NOTIFICATION_TYPES:
        raise ValueError(f"Unknown notification type: {notification_type!r}")

    run_query(
        """
        INSERT INTO notifications
            (user_id, type, channel, subject, body, link,
             actor_user_id, member_id, metadata, sent_at)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s::jsonb, %s)
        """,
        (
            recipient_user_id,
            notification_type,
            IN_APP,
            subject,
            body,
            link,
            actor_user_id,
            member_id,
            json.dumps(metadata or {}),
            datetime.now(timezone.utc).isoformat(),
        ),
    )


def get_notifications(user_id: str, limit: int = 30, offset: int = 0) -> pd.DataFrame:
    """
    Return the user's in-app notifications, most recent first.

    Each row carries the actor's name, username and avatar.  Returns an empty
    DataFrame on error.
    """
    try:
        return query_df(
            """
            SELECT n.*,
                   a.first_name AS actor_first_name,
                   a.last_name  AS actor_last_name,
                   a.username   AS actor_username,
                   a.avatar_url AS actor_avatar_url
            FROM   notifications n
            LEFT JOIN users     a ON a.id = n.actor_user_id
            WHERE  n.user_id = %s
              AND  n.channel = %s
            ORDER BY n.created_at DESC
            LIMIT %s OFFSET %s
            """,
            (user_id, IN_APP, limit, offset),
        )
    except Exception as exc:
        logger.error("Failed to fetch notifications for %s: %s", user_id, exc, exc_info=True)
        return pd.DataFrame()


def get_unread_count(user_id: str) -> int:
    """Return the number of unread in-app notifications, 0 on error."""
    try:
        df = query_df(
            """
            SELECT COUNT(*) AS n
            FROM   notifications
            WHERE  user_id = %s AND channel = %s AND read_at IS NULL
            """,
            (user_id, IN_APP),
        )
    except Exception as exc:
        logger.error("Failed to count unread for %s: %s", user_id, exc, exc_info=True)
        return 0
    if df.empty:
        return 0
    return int(df.iloc[0]["n"])


def mark_as_read(notification_id: int) -> None:
    run_query(
        "UPDATE notifications SET read_at = %s WHERE id = %s",
        (datetime.now(timezone.utc).isoformat(), notification_id),
    )


def mark_all_as_read(user_id: str) -> None:
    run_query(
        """
        UPDATE notifications
        SET    read_at = %s
        WHERE  user_id = %s AND channel = %s AND read_at IS NULL
        """,
        (datetime.now(timezone.utc).isoformat(), user_id, IN_APP),
    )

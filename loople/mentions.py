"""
loople/mentions.py
@mention handling for Loople.

Segmentation (core logic):
  segment_mentions(text) -> Iterator[Segment]
    Splits free text into TextSegment / MentionSegment values in one forward
    pass.  Total over every string; a marker that is not followed by a
    handle character stays literal text.

Handle grammar:
  '@' followed by one or more of [A-Za-z0-9_], matched greedily.  There is
  no left-boundary rule, so 'a@b.com' contains the mention 'b'.  Non-ASCII
  letters end a handle.

Mention records:
  search_mentionable_users()  — autocomplete lookup inside a club
  process_mentions()          — writes mention rows and notifications
"""

import html
import logging
import re
from dataclasses import dataclass
from typing import ClassVar, Iterable, Iterator

from loople.db import query_df, run_many
from loople.notifications import create_notification

logger = logging.getLogger(__name__)

MENTION_MARKER = "@"
HANDLE_CHARS = "A-Za-z0-9_"

_MENTION_RE = re.compile(rf"{MENTION_MARKER}([{HANDLE_CHARS}]+)")
_PARTIAL_RE = re.compile(rf"{MENTION_MARKER}([{HANDLE_CHARS}]*)\Z")

PROFILE_HREF = "/profile/{handle}"


# ─── Segment types ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TextSegment:
    """Literal text, rendered as-is."""

    value: str
    type: ClassVar[str] = "text"

    def as_dict(self) -> dict:
        return {"type": self.type, "value": self.value}


@dataclass(frozen=True)
class MentionSegment:
    """A mention handle, without the leading marker."""

    value: str
    type: ClassVar[str] = "mention"

    def as_dict(self) -> dict:
        return {"type": self.type, "value": self.value}


Segment = TextSegment | MentionSegment


# ─── Segmentation ────────────────────────────────────────────────────────────

def segment_mentions(text: str) -> Iterator[Segment]:
    """
    Yield the segments of text in order.

    Literal runs between mentions are emitted as a single TextSegment, so two
    TextSegments are never adjacent.  Mentions may be adjacent to each other
    ('@ab@cd' yields two mentions).  The empty string yields nothing.
    """
    last = 0
    for match in _MENTION_RE.finditer(text):
        start = match.start()
        if start > last:
            yield TextSegment(text[last:start])
        yield MentionSegment(match.group(1))
        last = match.end()

    if last < len(text):
        yield TextSegment(text[last:])


def segment_source(segment: Segment) -> str:
    """Return the literal source text a segment was read from."""
    if isinstance(segment, MentionSegment):
        return MENTION_MARKER + segment.value
    return segment.value


def join_segments(segments: Iterable[Segment]) -> str:
    """Rebuild the original text from its segments."""
    return "".join(segment_source(s) for s in segments)


def parse_mentions(text: str) -> list[str]:
    """
    Return the distinct handles mentioned in text.

    Handles are compared case-sensitively and listed in first-seen order.
    """
    seen: dict[str, None] = {}
    for segment in segment_mentions(text):
        if isinstance(segment, MentionSegment):
            seen.setdefault(segment.value, None)
    return list(seen)


def active_mention_query(text: str, cursor: int | None = None) -> str | None:
    """
    Return the partially typed handle ending at cursor, or None.

    Used to decide when to open the autocomplete list: '@' alone returns an
    empty string, 'hi @al' returns 'al', and 'hi @al ' returns None.
    """
    if cursor is None:
        cursor = len(text)
    match = _PARTIAL_RE.search(text[:cursor])
    if match is None:
        return None
    return match.group(1)


def render_mentions_html(text: str, href_template: str | None = PROFILE_HREF) -> str:
    """
    Render text as HTML with each mention linked to its profile.

    Text segments become escaped <span> elements and mentions become <a>
    elements whose href is href_template formatted with the handle.  With
    href_template=None mentions are highlighted <span class="mention">
    elements instead, for hosts that navigate in-session (Streamlit pages
    pair them with buttons, see loople/widgets.py).
    """
    parts = []
    for segment in segment_mentions(text):
        if isinstance(segment, MentionSegment) and href_template is None:
            parts.append(
                f'<span class="mention" style="color:#2E6BE6;font-weight:600">'
                f"{MENTION_MARKER}{html.escape(segment.value)}</span>"
            )
        elif isinstance(segment, MentionSegment):
            href = href_template.format(handle=segment.value)
            parts.append(
                f'<a class="mention" href="{html.escape(href)}" target="_self">'
                f"{MENTION_MARKER}{html.escape(segment.value)}</a>"
            )
        else:
            parts.append(f"<span>{html.escape(segment.value)}</span>")
    return "".join(parts)


# ─── Mentionable users ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class MentionableUser:
    user_id: str
    first_name: str
    last_name: str
    username: str | None
    avatar_url: str | None

    @property
    def display_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


def search_mentionable_users(
    club_id: int,
    query: str,
    current_user_id: str | None,
    limit: int = 8,
) -> list[MentionableUser]:
    """
    Return users the current user can mention in a club.

    Matches club members by first or last name and any user by username
    (case-insensitive substring), excluding the current user.  Returns an
    empty list when there is no user or no query, and on database errors.
    """
    if not current_user_id or not query:
        return []

    term = f"%{query}%"
    try:
        members = query_df(
            """
            SELECT user_id
            FROM   members
            WHERE  club_id = %s
              AND  user_id IS NOT NULL
              AND  user_id <> %s
              AND  (first_name ILIKE %s OR last_name ILIKE %s)
            LIMIT  %s
            """,
            (club_id, current_user_id, term, term, limit),
        )
        by_username = query_df(
            """
            SELECT id
            FROM   users
            WHERE  username ILIKE %s
              AND  id <> %s
            LIMIT  %s
            """,
            (term, current_user_id, limit),
        )

        user_ids: dict[str, None] = {}
        if not members.empty:
            for uid in members["user_id"].tolist():
                user_ids.setdefault(str(uid), None)
        if not by_username.empty:
            for uid in by_username["id"].tolist():
                user_ids.setdefault(str(uid), None)
        if not user_ids:
            return []

        placeholders = ",".join(["%s"] * len(user_ids))
        profiles = query_df(
            f"""
            SELECT id, first_name, last_name, username, avatar_url
            FROM   users
            WHERE  id::text IN ({placeholders})
            ORDER BY first_name, last_name
            """,
            tuple(user_ids),
        )
    except Exception as exc:
        logger.error(
            "search_mentionable_users failed for club %s: %s",
            club_id,
            exc,
            exc_info=True,
        )
        return []

    if profiles.empty:
        return []

    return [
        MentionableUser(
            user_id=str(row["id"]),
            first_name=row.get("first_name") or "",
            last_name=row.get("last_name") or "",
            username=row.get("username"),
            avatar_url=row.get("avatar_url"),
        )
        for row in profiles.to_dict("records")
    ]


# ─── Mention records ─────────────────────────────────────────────────────────

def _notification_target(
    post_id: int | None,
    comment_id: int | None,
) -> tuple[str, str | None]:
    """Return (subject, link) for a mention notification."""
    if comment_id is not None:
        link = f"/post/{post_id}#comment-{comment_id}" if post_id is not None else None
        return "mentioned you in a comment", link
    if post_id is not None:
        return "mentioned you in a post", f"/post/{post_id}"
    return "mentioned you in a message", None


def process_mentions(
    text: str,
    actor_user_id: str,
    club_id: int,
    post_id: int | None = None,
    comment_id: int | None = None,
    message_id: int | None = None,
) -> int:
    """
    Record the mentions in a freshly written post, comment, or message.

    Resolves each handle to a user and inserts one mentions row per resolved
    user in a single transaction.  Only after that commit succeeds is an
    in-app 'mention' notification sent to every mentioned user except the
    actor.  Unknown handles are ignored.  Returns the number of mention rows
    written.

    Write errors are raised to the caller; the content itself has already
    been saved at this point, so callers usually log and continue.
    """
    if not actor_user_id:
        return 0

    handles = parse_mentions(text)
    if not handles:
        return 0

    placeholders = ",".join(["%s"] * len(handles))
    users = query_df(
        f"SELECT id, username FROM users WHERE username IN ({placeholders})",
        tuple(handles),
    )
    if users.empty:
        logger.info("No users matched mentions %s in club %s", handles, club_id)
        return 0

    mentioned = users.to_dict("records")
    run_many(
        """
        INSERT INTO mentions
            (mentioner_user_id, mentioned_user_id, post_id, comment_id, message_id)
        VALUES (%s, %s, %s, %s, %s)
        """,
        [
            (actor_user_id, str(row["id"]), post_id, comment_id, message_id)
            for row in mentioned
        ],
    )

    subject, link = _notification_target(post_id, comment_id)
    for row in mentioned:
        mentioned_id = str(row["id"])
        if mentioned_id == str(actor_user_id):
            continue
        create_notification(
            recipient_user_id=mentioned_id,
            notification_type="mention",
            subject=subject,
            actor_user_id=actor_user_id,
            link=link,
            metadata={"club_id": club_id, "username": row.get("username")},
        )

    return len(mentioned)

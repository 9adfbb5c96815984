"""
loople/auth.py
Session management and club role helpers for Loople.
Wraps Supabase Auth so the rest of the app never calls it directly.
"""

import logging

import streamlit as st
from loople.db import get_supabase_client, query_df

logger = logging.getLogger(__name__)

# Role precedence — higher number = more privileged.
_ROLE_RANK = {"member": 0, "admin": 1, "owner": 2}


# ─── Session accessors ────────────────────────────────────────────────────────

def get_current_user():
    """
    Return the current authenticated Supabase user from session state.

    Returns None if no active session exists.
    """
    return st.session_state.get("user", None)


def get_current_user_id() -> str | None:
    """Return the current user's UUID string, or None if not authenticated."""
    user = get_current_user()
    return getattr(user, "id", None) if user is not None else None


def is_authenticated() -> bool:
    """Return True if a user session is currently active."""
    return get_current_user() is not None


def sign_in(email: str, password: str) -> bool:
    """
    Sign in with email and password and store the session.

    Returns True on success.  Failures are logged and reported as False so
    the login page can show a single generic message.
    """
    try:
        response = get_supabase_client().auth.sign_in_with_password(
            {"email": email, "password": password}
        )
    except Exception as exc:
        logger.warning("Sign-in failed for %s: %s", email, exc)
        return False
    if not (response and response.user and response.session):
        return False
    st.session_state["user"] = response.user
    st.session_state["session"] = response.session
    return True


# ─── Auth guards ──────────────────────────────────────────────────────────────

def require_auth() -> None:
    """
    Guard for pages that require authentication.

    Redirects to the login page immediately if no session is active.
    """
    if not is_authenticated():
        st.switch_page("pages/login.py")


def require_role(club_id: int, minimum_role: str) -> None:
    """
    Enforce a minimum club role for an action.

    minimum_role must be 'member', 'admin' or 'owner'.  If the current user's
    role rank is below the required rank (or they have no role at all),
    displays an error and calls st.stop().
    """
    role = get_club_role(club_id, get_current_user_id())
    if not has_role(role, minimum_role):
        st.error("You don't have permission to do that.")
        st.stop()


def has_role(role: str | None, minimum_role: str) -> bool:
    """Return True if role ranks at or above minimum_role."""
    user_rank = _ROLE_RANK.get(role, -1)
    required_rank = _ROLE_RANK.get(minimum_role, 99)
    return user_rank >= required_rank


# ─── Role queries ─────────────────────────────────────────────────────────────

@st.cache_data(ttl=30, show_spinner=False)
def get_club_role(club_id: int, user_id: str | None) -> str | None:
    """
    Return the user's role in a club, or None if they are not a member.

    'owner'  — user is clubs.owner_id, or the member row says owner
    'admin'  — member row role is admin (any case)
    'member' — any other member row

    Accepts user_id explicitly so st.cache_data can key correctly on it.
    """
    if user_id is None:
        return None

    club_df = query_df("SELECT owner_id FROM clubs WHERE id = %s", (club_id,))
    if not club_df.empty and str(club_df.iloc[0]["owner_id"]) == str(user_id):
        return "owner"

    member_df = query_df(
        "SELECT role FROM members WHERE club_id = %s AND user_id = %s LIMIT 1",
        (club_id, user_id),
    )
    if member_df.empty:
        return None

    role = str(member_df.iloc[0]["role"] or "").lower()
    if role in ("admin", "owner"):
        return role
    return "member"


def is_global_admin(user) -> bool:
    """Return True if the Supabase user carries app_metadata.isAdmin."""
    metadata = getattr(user, "app_metadata", None) or {}
    return metadata.get("isAdmin") is True


def role_badges(global_admin: bool, club_role: str | None, club_name: str | None) -> list[str]:
    """
    Return the role badge labels shown on the settings and profile pages.

    Owner takes precedence over admin; club badges need a club name.
    """
    badges = []
    if global_admin:
        badges.append("Global Admin")
    if club_name and club_role == "owner":
        badges.append(f"Owner • {club_name}")
    elif club_name and club_role == "admin":
        badges.append(f"Admin • {club_name}")
    return badges


# ─── Session teardown ─────────────────────────────────────────────────────────

def logout() -> None:
    """
    Sign the current user out and redirect to the login page.

    The local session is always cleared; a failed server-side sign_out is
    logged and otherwise ignored.
    """
    st.session_state.pop("user", None)
    st.session_state.pop("session", None)
    try:
        get_supabase_client().auth.sign_out()
    except Exception as exc:
        logger.warning("Supabase sign_out failed: %s", exc)
    st.switch_page("pages/login.py")

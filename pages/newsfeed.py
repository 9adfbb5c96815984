"""
pages/newsfeed.py
Club newsfeed — compose a post with @mention suggestions, read recent posts.
"""

import html

import pandas as pd
import streamlit as st

from loople.auth import (
    get_club_role,
    get_current_user,
    get_current_user_id,
    is_global_admin,
    logout,
    require_auth,
    role_badges,
)
from loople.mentions import active_mention_query, search_mentionable_users
from loople.notifications import get_unread_count
from loople.posts import create_post, get_relative_time, list_posts, user_from_record
from loople.tenant import current_tenant, get_club_for_tenant
from loople.widgets import post_body

st.set_page_config(layout="wide")

require_auth()

current_user = get_current_user()
current_user_id = get_current_user_id()

tenant = current_tenant()
try:
    club = get_club_for_tenant(tenant)
except Exception as error:
    st.error(f"Database error: {error}")
    st.stop()

if club is None:
    st.warning("This address does not belong to a Loople club.")
    st.stop()

club_id = int(club["id"])
club_role = get_club_role(club_id, current_user_id)

with st.sidebar:
    st.page_link("pages/newsfeed.py", label="Newsfeed")
    unread = get_unread_count(current_user_id)
    st.page_link(
        "pages/notifications.py",
        label=f"Notifications ({unread})" if unread else "Notifications",
    )
    st.divider()
    st.markdown(f"**{club['name']}**")
    for badge in role_badges(is_global_admin(current_user), club_role, club["name"]):
        st.caption(badge)
    st.caption(getattr(current_user, "email", ""))
    if st.button("Sign Out", key="sidebar_signout_newsfeed"):
        logout()

if club_role is None and not is_global_admin(current_user):
    st.info("You are not a member of this club yet.")
    st.stop()

st.title("Newsfeed")

# ─── Compose ──────────────────────────────────────────────────────────────────

draft = st.text_area("What's happening?", key="post_draft", height=100)

query = active_mention_query(draft)
if query:
    suggestions = search_mentionable_users(club_id, query, current_user_id)
    if suggestions:
        st.caption(
            "Mention: "
            + ", ".join(
                f"@{u.username} ({u.display_name})" for u in suggestions if u.username
            )
        )

if st.button("Post", type="primary"):
    try:
        create_post(club_id, current_user_id, draft)
    except ValueError as error:
        st.warning(str(error))
    except Exception as error:
        st.error(f"Could not publish post: {error}")
    else:
        st.cache_data.clear()
        st.rerun()

st.divider()

# ─── Feed ─────────────────────────────────────────────────────────────────────

try:
    posts_df = list_posts(club_id)
except Exception as error:
    st.error(f"Database error: {error}")
    st.stop()

if posts_df.empty:
    st.info("No posts yet. Be the first to say hello.")
    st.stop()

for post in posts_df.to_dict("records"):
    author = user_from_record({**post, "id": post.get("user_id")})
    created_at = pd.Timestamp(post["created_at"]).to_pydatetime()
    with st.container(border=True):
        st.markdown(
            f"**{html.escape(author['name'])}** · "
            f"<span style='color:#888'>{get_relative_time(created_at)}</span>",
            unsafe_allow_html=True,
        )
        post_body(post.get("content_text") or "", key=f"post_{post['id']}")

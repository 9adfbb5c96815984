"""
pages/profile.py
Member profile, the target of @mention links.
"""

import html

import pandas as pd
import streamlit as st

from loople.auth import require_auth
from loople.db import query_df
from loople.posts import get_relative_time, user_from_record
from loople.widgets import post_body, selected_profile_username

st.set_page_config(layout="centered")

require_auth()

username = selected_profile_username()
if not username:
    st.warning("No profile selected.")
    st.stop()

try:
    user_df = query_df(
        """
        SELECT id, first_name, last_name, username, avatar_url, email
        FROM   users
        WHERE  username = %s
        """,
        (username,),
    )
except Exception as error:
    st.error(f"Database error: {error}")
    st.stop()

if user_df.empty:
    st.warning(f"No member goes by @{username}.")
    st.stop()

profile = user_df.iloc[0].to_dict()
person = user_from_record(profile)

c_avatar, c_name = st.columns([1, 5])
with c_avatar:
    if profile.get("avatar_url"):
        st.image(profile["avatar_url"], width=72)
    else:
        st.markdown(f"## {person['avatar']}")
with c_name:
    st.markdown(f"## {html.escape(person['name'])}")
    st.caption(f"@{profile['username']}")

st.divider()
st.subheader("Recent posts")

posts_df = query_df(
    """
    SELECT id, content_text, created_at
    FROM   posts
    WHERE  user_id = %s
    ORDER BY created_at DESC
    LIMIT 20
    """,
    (str(profile["id"]),),
)

if posts_df.empty:
    st.info("No posts yet.")
    st.stop()

for post in posts_df.to_dict("records"):
    created_at = pd.Timestamp(post["created_at"]).to_pydatetime()
    with st.container(border=True):
        st.caption(get_relative_time(created_at))
        post_body(post.get("content_text") or "", key=f"profile_post_{post['id']}")

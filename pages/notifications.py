"""
pages/notifications.py
In-app notification inbox.
"""

import html

import pandas as pd
import streamlit as st

from loople.auth import get_current_user_id, require_auth
from loople.notifications import get_notifications, mark_all_as_read, mark_as_read
from loople.posts import get_relative_time
from loople.widgets import open_profile

st.set_page_config(layout="centered")

require_auth()

user_id = get_current_user_id()

st.title("Notifications")

if st.button("Mark all as read"):
    try:
        mark_all_as_read(user_id)
    except Exception as error:
        st.error(f"Could not update notifications: {error}")
    else:
        st.cache_data.clear()
        st.rerun()

df = get_notifications(user_id)
if df.empty:
    st.info("You're all caught up.")
    st.stop()

for row in df.to_dict("records"):
    actor = " ".join(
        part for part in (row.get("actor_first_name"), row.get("actor_last_name")) if part
    ) or "Someone"
    created_at = pd.Timestamp(row["created_at"]).to_pydatetime()
    unread = pd.isna(row.get("read_at"))

    with st.container(border=True):
        c_text, c_action = st.columns([5, 1])
        with c_text:
            label = f"**{html.escape(actor)}** {html.escape(row.get('subject') or '')}"
            if unread:
                label = "🔵 " + label
            st.markdown(label)
            st.caption(get_relative_time(created_at))
            if row.get("actor_username"):
                if st.button(f"@{row['actor_username']}", key=f"actor_{row['id']}"):
                    open_profile(row["actor_username"])
        with c_action:
            if unread and st.button("Read", key=f"read_{row['id']}"):
                mark_as_read(int(row["id"]))
                st.cache_data.clear()
                st.rerun()

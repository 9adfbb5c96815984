"""
loople/widgets.py
Streamlit building blocks shared by pages that show post text.

Navigation stays inside the Streamlit session: a raw <a href> reloads the
browser, starts a new session and drops st.session_state["user"].  Profile
links are buttons that set the username query param and switch page.
"""

import streamlit as st

from loople.mentions import parse_mentions, render_mentions_html

PROFILE_PAGE = "pages/profile.py"


def open_profile(username: str) -> None:
    """Navigate to a member profile without leaving the session."""
    st.session_state["profile_username"] = username
    st.query_params["username"] = username
    st.switch_page(PROFILE_PAGE)


def selected_profile_username() -> str | None:
    """Return the username the profile page should show, or None."""
    return st.query_params.get("username", None) or st.session_state.get("profile_username")


def post_body(text: str, key: str) -> None:
    """
    Render post text with highlighted mentions and one profile button per
    distinct mentioned handle.
    """
    st.markdown(render_mentions_html(text or "", href_template=None), unsafe_allow_html=True)

    handles = parse_mentions(text or "")
    if not handles:
        return
    columns = st.columns(min(len(handles), 6))
    for i, handle in enumerate(handles):
        with columns[i % len(columns)]:
            if st.button(f"@{handle}", key=f"{key}_mention_{handle}"):
                open_profile(handle)

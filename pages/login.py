"""
pages/login.py
Login and registration page.
"""

import streamlit as st
from loople.auth import sign_in
from loople.db import get_supabase_client
from loople.tenant import current_tenant, get_club_for_tenant
from loople.usernames import generate_base_username, validate_username

st.set_page_config(page_title="Loople · Sign In", page_icon="🔵", layout="centered")

if "user" not in st.session_state:
    st.session_state["user"] = None
if "session" not in st.session_state:
    st.session_state["session"] = None

if st.session_state["user"] is not None:
    st.switch_page("pages/newsfeed.py")

tenant = current_tenant()
try:
    club = get_club_for_tenant(tenant)
except Exception:
    club = None

st.markdown(
    """
    <style>
        .stButton > button {
            background-color: #2E6BE6;
            color: #FFFFFF;
            border: 1px solid #2E6BE6;
            font-weight: 600;
        }
    </style>
    """,
    unsafe_allow_html=True,
)

st.title("Loople")
st.caption(club["name"] if club else "Your club community")

sign_in_tab, create_account_tab = st.tabs(["Sign In", "Create Account"])

with sign_in_tab:
    email = st.text_input("Email", key="sign_in_email")
    password = st.text_input("Password", type="password", key="sign_in_password")

    if st.button("Sign In", use_container_width=True):
        if sign_in(email, password):
            st.switch_page("pages/newsfeed.py")
        else:
            st.error("Invalid email or password. Please try again.")

with create_account_tab:
    first_name = st.text_input("First name", key="register_first_name")
    last_name = st.text_input("Last name", key="register_last_name")
    username = st.text_input(
        "Username",
        placeholder=generate_base_username(first_name, last_name) if first_name else "first_last",
        key="register_username",
        help="Other members mention you with @username.",
    )
    register_email = st.text_input("Email", key="register_email")
    register_password = st.text_input("Password", type="password", key="register_password")
    confirm_password = st.text_input("Confirm password", type="password", key="confirm_password")

    if st.button("Create Account", use_container_width=True):
        if not all([first_name, last_name, register_email, register_password, confirm_password]):
            st.warning("All fields are required.")
        elif register_password != confirm_password:
            st.warning("Passwords must match.")
        elif len(register_password) < 8:
            st.warning("Password must be at least 8 characters.")
        elif username and validate_username(username):
            st.warning(validate_username(username))
        else:
            try:
                get_supabase_client().auth.sign_up(
                    {
                        "email": register_email,
                        "password": register_password,
                        "options": {
                            "data": {
                                "first_name": first_name,
                                "last_name": last_name,
                                "username": username
                                or generate_base_username(first_name, last_name),
                            }
                        },
                    }
                )
                st.success(
                    "Account created. Please check your email to confirm your address before signing in."
                )
            except Exception:
                st.error("Could not create account. Please try again.")

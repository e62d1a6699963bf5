import streamlit as st

from use_cases.auth_flow import MODE_PARAM, SIGNUP_MODE
from use_cases.route_guard import AUTH_PAGE, PAGE_PARAM
from use_cases.session_models import SessionSnapshot
from views.guard_view import navigate


def render_home(snapshot: SessionSnapshot):
    st.title("🛍️ DTU Multimart")
    st.caption("Buy, sell and rent within the DTU community.")

    if not snapshot.is_authenticated:
        c1, c2 = st.columns(2)
        if c1.button("Sign in", type="primary", use_container_width=True):
            navigate({PAGE_PARAM: AUTH_PAGE})
        if c2.button("Join now", use_container_width=True):
            navigate({PAGE_PARAM: AUTH_PAGE, MODE_PARAM: SIGNUP_MODE})
        return

    name = snapshot.profile.full_name if snapshot.profile is not None else None
    st.subheader(f"Welcome back, {name or snapshot.identity.email}!")
    if not snapshot.is_profile_complete:
        st.warning("Your profile is incomplete. Complete it to start trading.")
        if st.button("Complete profile", type="primary"):
            navigate({PAGE_PARAM: "profile"})

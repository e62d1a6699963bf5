import streamlit as st

from infrastructure.observability import setup_observability
setup_observability()

from use_cases import bootstrap
from use_cases.route_guard import AUTH_PAGE, PAGE_PARAM
from utils import session_manager
from views import guard_view, home_view, login_view, profile_view

# --- PAGE SETUP ---
st.set_page_config(page_title="DTU Multimart", page_icon="🛍️", layout="centered")

# Health Check (Basic load-balancer heartbeat)
if st.query_params.get("health") == "1":
    st.write({"status": "ok"})
    st.stop()

# --- STARTUP ORCHESTRATION ---
startup_result = bootstrap.run_startup()
if startup_result.status == "STOP":
    st.error(f"🚨 The app is not configured: {startup_result.reason}")
    st.stop()

store = session_manager.get_session_store()
page = guard_view.current_page()

# --- SIDEBAR ---
with st.sidebar:
    snapshot = store.current_session()
    if snapshot.is_authenticated:
        st.caption(f"Signed in as {snapshot.identity.email}")
        if st.button("🏠 Home", use_container_width=True):
            guard_view.navigate({PAGE_PARAM: "home"})
        if st.button("👤 Profile", use_container_width=True):
            guard_view.navigate({PAGE_PARAM: "profile"})
        if st.button("Sign out", key="logout_btn", type="secondary", use_container_width=True):
            session_manager.logout()
    elif page != AUTH_PAGE:
        if st.button("Sign in", use_container_width=True):
            guard_view.navigate({PAGE_PARAM: AUTH_PAGE})

# --- ROUTING ---
if page == AUTH_PAGE:
    login_view.render_auth_screen()
elif page == "profile":
    profile_view.render_profile(guard_view.protect_page("profile", require_complete_profile=True))
else:
    home_view.render_home(store.current_session())

# Only reached by runs that were not cut short by a rerun.
session_manager.sync_auth_cookie()

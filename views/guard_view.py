import time

import streamlit as st

from use_cases.route_guard import PAGE_PARAM, evaluate_access
from use_cases.session_models import SessionSnapshot
from utils import session_manager

LOADING_POLL_SECONDS = 0.3


def navigate(params):
    """Replace the URL query string and rerun into the new page."""
    st.query_params.from_dict(params)
    st.rerun()


def protect_page(page: str, require_complete_profile: bool = False) -> SessionSnapshot:
    """Render the page only for a signed-in (and optionally complete) user.

    Polls while the session is still resuming, and redirects otherwise.
    """
    store = session_manager.get_session_store()
    snapshot = store.current_session()
    decision = evaluate_access(snapshot, require_complete_profile=require_complete_profile, requested=page)

    if decision.status == "LOADING":
        with st.spinner("Loading your session..."):
            time.sleep(LOADING_POLL_SECONDS)
        st.rerun()

    if decision.status == "REDIRECT_PROFILE" and snapshot.profile is None:
        # No row loaded yet; look again before sending the user to the form.
        store.refresh_profile()
        snapshot = store.current_session()
        decision = evaluate_access(snapshot, require_complete_profile=require_complete_profile, requested=page)

    if decision.is_redirect:
        navigate(decision.redirect_params)

    return snapshot


def current_page(default: str = "home") -> str:
    return st.query_params.get(PAGE_PARAM, default)

import json
import logging
from typing import Optional
from urllib.parse import unquote

import streamlit as st
import streamlit.components.v1 as components

import auth
from infrastructure.observability import set_user_context
from use_cases.auth_flow import AuthFlowController
from use_cases.session_store import SessionStore

log = logging.getLogger(__name__)

AUTH_COOKIE = "multimart_refresh_token"
AUTH_COOKIE_MAX_AGE = 2592000  # 30 days

"""
SESSION STATE CONTRACT

This module owns the per-browser-session keys in st.session_state.

auth_settings: AuthSettings | None
    domain / allow-list / timing configuration
    default: None
    owner: session_manager

session_store: SessionStore | None
    reactive identity + profile projection, one per browser session
    default: None
    owner: session_manager (written by bootstrap)

auth_token: str | None
    Supabase refresh token last written to the browser cookie
    default: None
    owner: session_manager

auth_flow: AuthFlowController | None
    state of the sign-in / sign-up / profile-completion flow
    default: None
    owner: login_view

profile_editing: bool
    whether the profile page form is unlocked
    default: False
    owner: profile_view
"""


def init_session_state():
    if "auth_settings" not in st.session_state:
        st.session_state.auth_settings = None
    if "session_store" not in st.session_state:
        st.session_state.session_store = None
    if "auth_token" not in st.session_state:
        st.session_state.auth_token = None
    if "auth_flow" not in st.session_state:
        st.session_state.auth_flow = None
    if "profile_editing" not in st.session_state:
        st.session_state.profile_editing = False

def get_auth_settings():
    if st.session_state.get("auth_settings") is None:
        st.session_state.auth_settings = auth.load_auth_settings()
    return st.session_state.auth_settings


def get_session_store() -> SessionStore:
    store = st.session_state.get("session_store")
    if store is None:
        settings = get_auth_settings()
        store = SessionStore(auth.create_backend(settings), settings)
        st.session_state.session_store = store
    return store


def get_auth_flow() -> AuthFlowController:
    flow = st.session_state.get("auth_flow")
    if flow is None:
        flow = AuthFlowController(get_session_store())
        st.session_state.auth_flow = flow
    return flow


def reset_auth_flow():
    st.session_state.auth_flow = None


def sync_user_context():
    store = st.session_state.get("session_store")
    identity = store.current_session().identity if store is not None else None
    set_user_context(identity.id if identity else None)


def read_auth_cookie() -> Optional[str]:
    try:
        token = st.context.cookies.get(AUTH_COOKIE)
    except Exception:
        # No browser context (bare mode, tests)
        token = None
    return unquote(token) if token else None


def persist_browser_auth_token(token: str):
    # Cookie for the server on reload, localStorage as backup if the cookie is lost.
    components.html(
        f"""
        <script>
            var token = {json.dumps(token)};
            var cookieStr = "{AUTH_COOKIE}=" + encodeURIComponent(token) + "; path=/; max-age={AUTH_COOKIE_MAX_AGE}; SameSite=Lax";

            document.cookie = cookieStr;
            localStorage.setItem("{AUTH_COOKIE}", token);
            sessionStorage.removeItem("multimart_auto_login_attempted");

            try {{
                window.parent.document.cookie = cookieStr;
            }} catch (e) {{
                console.log("Cross-origin frame block, normal behavior if different origin");
            }}
        </script>
        """,
        height=0,
    )


def clear_browser_auth_token():
    components.html(
        f"""
        <script>
          document.cookie = "{AUTH_COOKIE}=; path=/; max-age=0; SameSite=Lax";
          try {{ window.parent.document.cookie = "{AUTH_COOKIE}=; path=/; max-age=0; SameSite=Lax"; }} catch (e) {{}}
          localStorage.removeItem("{AUTH_COOKIE}");
          sessionStorage.removeItem("multimart_auto_login_attempted");
        </script>
        """,
        height=0,
    )


def restore_cookie_from_storage():
    """Put the cookie back from localStorage if the browser dropped it, then reload once."""
    components.html(
        f"""
        <script>
        (function () {{
          try {{
              const token = localStorage.getItem("{AUTH_COOKIE}");
              const attempted = sessionStorage.getItem("multimart_auto_login_attempted");
              const hasCookie = window.parent.document.cookie.split("; ").some((x) => x.trim().startsWith("{AUTH_COOKIE}="));

              if (token && !hasCookie && !attempted) {{
                sessionStorage.setItem("multimart_auto_login_attempted", "1");
                const cookieStr = "{AUTH_COOKIE}=" + encodeURIComponent(token) + "; path=/; max-age={AUTH_COOKIE_MAX_AGE}; SameSite=Lax";
                document.cookie = cookieStr;
                try {{ window.parent.document.cookie = cookieStr; }} catch(e) {{}}
                window.parent.location.reload();
              }}
          }} catch (e) {{
              console.error("Session restore error", e);
          }}
        }})();
        </script>
        """,
        height=0,
    )


def restore_session(store: SessionStore):
    """Start the store on the first run of a browser session, resuming from the cookie."""
    if store.started:
        return
    token = read_auth_cookie()
    st.session_state.auth_token = token
    store.start(refresh_token=token)


def sync_auth_cookie():
    """Keep the browser cookie equal to the live refresh token.

    Runs at the end of a full script run, so a rerun cannot drop the write.
    """
    store = st.session_state.get("session_store")
    token = store.session_token() if store is not None else None
    if token == st.session_state.get("auth_token"):
        return
    if token:
        persist_browser_auth_token(token)
    else:
        clear_browser_auth_token()
    st.session_state.auth_token = token


def logout():
    store = st.session_state.get("session_store")
    if store is not None:
        result = store.sign_out()
        if not result.ok:
            log.warning(f"Provider sign-out failed ({result.error.kind.value}); local session cleared")
    clear_browser_auth_token()
    st.session_state.auth_token = None
    reset_auth_flow()
    set_user_context(None)
    st.query_params.clear()
    st.rerun()

import streamlit as st

from use_cases.auth_flow import MODE_PARAM, SIGNUP_MODE, AuthFlowController
from use_cases.route_guard import AUTH_PAGE, PAGE_PARAM
from use_cases.session_models import BRANCHES, HOSTELS, YEARS, Profile
from utils import session_manager
from views.guard_view import navigate


def _set_mode_param(flow: AuthFlowController):
    params = {PAGE_PARAM: AUTH_PAGE}
    if flow.is_signup:
        params[MODE_PARAM] = SIGNUP_MODE
    st.query_params.from_dict(params)


def _render_error(flow: AuthFlowController):
    if flow.error is not None:
        st.error(flow.error.message)


def _render_credentials_step(flow: AuthFlowController):
    settings = flow.store.settings
    st.subheader("Create Account" if flow.is_signup else "Sign In")
    st.caption(f"Use your @{settings.institution_domain} email to continue")

    with st.form("credentials_form", clear_on_submit=False):
        email = st.text_input("DTU Email", placeholder=f"yourname@{settings.institution_domain}")
        password = st.text_input("Password", type="password")
        confirm_password = None
        if flow.is_signup:
            confirm_password = st.text_input("Confirm Password", type="password")
        submitted = st.form_submit_button(
            "Create Account" if flow.is_signup else "Sign In",
            type="primary",
            disabled=flow.pending,
            use_container_width=True,
        )

    if submitted:
        with st.spinner("Creating account..." if flow.is_signup else "Signing in..."):
            result = flow.submit_credentials(email, password, confirm_password)
            if result.ok and not flow.is_signup:
                # Let the pushed auth event land before the next render.
                flow.store.wait_for_identity(timeout=settings.session_wait_seconds)
        if result.ok:
            st.rerun()

    _render_error(flow)

    prompt = "Already have an account?" if flow.is_signup else "Don't have an account?"
    st.caption(prompt)
    if st.button("Sign in" if flow.is_signup else "Sign up", key="toggle_auth_mode"):
        flow.toggle_mode()
        _set_mode_param(flow)
        st.rerun()


def _render_verify_step(flow: AuthFlowController):
    st.subheader("Check your inbox")
    st.info(
        f"We've sent a verification link to **{flow.pending_email or 'your email'}**. "
        "Open it, then come back and sign in."
    )
    if st.button("Back to sign in", key="verify_back", type="primary"):
        flow.return_to_auth()
        _set_mode_param(flow)
        st.rerun()


def _select(label, options, current):
    index = options.index(current) if current in options else None
    return st.selectbox(label, options, index=index, placeholder="Select")


def _render_profile_step(flow: AuthFlowController):
    st.subheader("Complete Your Profile")
    st.caption("Tell us a bit about yourself")

    existing = flow.store.current_session().profile
    values = existing.editable_fields() if isinstance(existing, Profile) else {}

    with st.form("profile_form"):
        col1, col2 = st.columns(2)
        full_name = col1.text_input("Full Name", value=values.get("full_name", ""), placeholder="John Doe")
        roll_number = col2.text_input("Roll Number", value=values.get("roll_number", ""), placeholder="2K21/XX/123")
        branch = _select("Branch", list(BRANCHES), values.get("branch"))
        col3, col4 = st.columns(2)
        with col3:
            year = _select("Year", list(YEARS), values.get("year"))
        with col4:
            hostel = _select("Hostel", list(HOSTELS), values.get("hostel"))
        submitted = st.form_submit_button(
            "Complete Profile",
            type="primary",
            disabled=flow.pending,
            use_container_width=True,
        )

    if submitted:
        with st.spinner("Saving profile..."):
            result = flow.submit_profile({
                "full_name": full_name,
                "roll_number": roll_number,
                "branch": branch or "",
                "year": year or "",
                "hostel": hostel or "",
            })
        if result.ok:
            st.rerun()

    _render_error(flow)


def render_auth_screen():
    session_manager.restore_cookie_from_storage()
    store = session_manager.get_session_store()
    flow = session_manager.get_auth_flow()
    flow.apply_query_params(st.query_params)

    snapshot = store.current_session()
    flow.sync(snapshot)

    # Checked on every run so an already complete user never sees the form.
    flow_exit = flow.exit_target(snapshot)
    if flow_exit is not None:
        session_manager.reset_auth_flow()
        navigate({PAGE_PARAM: flow_exit.route})

    st.title("DTU Multimart")
    if flow.step == "profile":
        _render_profile_step(flow)
    elif flow.step == "verify":
        _render_verify_step(flow)
    else:
        _render_credentials_step(flow)

import streamlit as st

from use_cases.session_models import BRANCHES, HOSTELS, YEARS, SessionSnapshot
from utils import session_manager


def _initials(name):
    parts = [p for p in (name or "").split() if p]
    return "".join(p[0].upper() for p in parts[:2]) or "?"


def _select(label, options, current, disabled):
    index = options.index(current) if current in options else None
    return st.selectbox(label, options, index=index, placeholder="Select", disabled=disabled)


def render_profile(snapshot: SessionSnapshot):
    store = session_manager.get_session_store()
    profile = snapshot.profile
    identity = snapshot.identity
    values = profile.editable_fields() if profile is not None else {}

    st.header(f"👤 {values.get('full_name') or identity.email}")
    c1, c2 = st.columns([1, 4])
    c1.markdown(f"### {_initials(values.get('full_name'))}")
    c2.caption(identity.email)
    if profile is not None and profile.seller_verified:
        c2.success("Verified seller")

    editing = st.session_state.profile_editing
    if not editing and st.button("✏️ Edit profile"):
        st.session_state.profile_editing = True
        st.rerun()

    with st.form("profile_edit_form"):
        col1, col2 = st.columns(2)
        full_name = col1.text_input("Full Name", value=values.get("full_name", ""), disabled=not editing)
        roll_number = col2.text_input("Roll Number", value=values.get("roll_number", ""), disabled=not editing)
        branch = _select("Branch", list(BRANCHES), values.get("branch"), not editing)
        col3, col4 = st.columns(2)
        with col3:
            year = _select("Year", list(YEARS), values.get("year"), not editing)
        with col4:
            hostel = _select("Hostel", list(HOSTELS), values.get("hostel"), not editing)
        phone = st.text_input("Phone", value=values.get("phone", ""), disabled=not editing)
        bio = st.text_area("Bio", value=values.get("bio", ""), disabled=not editing)
        saved = st.form_submit_button("💾 Save", type="primary", disabled=not editing)

    if saved:
        with st.spinner("Saving profile..."):
            result = store.update_profile({
                "full_name": full_name,
                "roll_number": roll_number,
                "branch": branch or "",
                "year": year or "",
                "hostel": hostel or "",
                "phone": phone,
                "bio": bio,
            })
        if result.ok:
            st.session_state.profile_editing = False
            st.toast("Your profile has been updated successfully.")
            st.rerun()
        else:
            st.error(result.error.message)

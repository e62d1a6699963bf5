import os

import streamlit as st

from infrastructure.supabase_backend import SupabaseBackend
from use_cases.credential_policy import (
    DEFAULT_INSTITUTION_DOMAIN,
    DEFAULT_OVERRIDE_EMAILS,
    MIN_PASSWORD_LENGTH,
    AuthSettings,
)

SESSION_WAIT_SECONDS = 5.0


def get_secret(key):
    try:
        value = st.secrets.get(key)
    except FileNotFoundError:
        value = None
    if value is None:
        value = os.getenv(key)
    return value


def _parse_email_list(raw):
    if raw is None:
        return DEFAULT_OVERRIDE_EMAILS
    if isinstance(raw, (list, tuple, set, frozenset)):
        items = raw
    else:
        items = str(raw).split(",")
    return frozenset(e.strip().lower() for e in items if e and e.strip())


def load_auth_settings() -> AuthSettings:
    wait_raw = get_secret("SESSION_WAIT_SECONDS")
    try:
        wait_seconds = float(wait_raw) if wait_raw is not None else SESSION_WAIT_SECONDS
    except ValueError:
        wait_seconds = SESSION_WAIT_SECONDS

    return AuthSettings(
        institution_domain=get_secret("INSTITUTION_DOMAIN") or DEFAULT_INSTITUTION_DOMAIN,
        override_emails=_parse_email_list(get_secret("AUTH_OVERRIDE_EMAILS")),
        min_password_length=MIN_PASSWORD_LENGTH,
        site_url=get_secret("SITE_URL"),
        session_wait_seconds=wait_seconds,
    )


def create_backend(settings: AuthSettings) -> SupabaseBackend:
    """New Supabase-backed gateway. One per browser session, never cached globally."""
    return SupabaseBackend.from_credentials(
        get_secret("SUPABASE_URL"),
        get_secret("SUPABASE_KEY"),
        email_redirect_to=settings.site_url,
    )

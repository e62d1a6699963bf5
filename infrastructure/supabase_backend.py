import logging
from typing import Any, Callable, Dict, Mapping, Optional

from supabase import Client, create_client

from use_cases.auth_errors import BackendConfigurationError, ProviderError
from use_cases.session_models import Identity

log = logging.getLogger(__name__)

PROFILES_TABLE = "profiles"


def _provider_error(e: Exception) -> ProviderError:
    message = getattr(e, "message", None) or str(e) or e.__class__.__name__
    code = getattr(e, "code", None)
    return ProviderError(str(message), code=str(code) if code else None)


def identity_from_user(user: Any) -> Optional[Identity]:
    if user is None:
        return None
    return Identity(
        id=str(user.id),
        email=user.email or "",
        email_verified=getattr(user, "email_confirmed_at", None) is not None,
    )


class SupabaseBackend:
    """Identity provider and `profiles` table access for one browser session.

    The Supabase client keeps the auth session in memory, so an instance must
    never be shared between users.
    """

    def __init__(self, client: Client, email_redirect_to: Optional[str] = None):
        self.client = client
        self.email_redirect_to = email_redirect_to

    @classmethod
    def from_credentials(cls, url: Optional[str], key: Optional[str], email_redirect_to: Optional[str] = None) -> "SupabaseBackend":
        if not url or not key:
            raise BackendConfigurationError("SUPABASE_URL and SUPABASE_KEY must be configured")
        return cls(create_client(url, key), email_redirect_to=email_redirect_to)

    # --- identity ---

    def create_account(self, email: str, password: str) -> None:
        credentials: Dict[str, Any] = {"email": email, "password": password}
        if self.email_redirect_to:
            credentials["options"] = {"email_redirect_to": self.email_redirect_to}
        try:
            self.client.auth.sign_up(credentials)
        except Exception as e:
            raise _provider_error(e) from e

    def authenticate(self, email: str, password: str) -> None:
        try:
            self.client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            raise _provider_error(e) from e

    def terminate_session(self) -> None:
        try:
            self.client.auth.sign_out()
        except Exception as e:
            raise _provider_error(e) from e

    def resume_identity(self, refresh_token: Optional[str] = None) -> Optional[Identity]:
        """Identity of the live client session, else one restored from `refresh_token`.

        A browser reload starts with a fresh client, so the token saved in the
        browser is the only way back into the previous session.
        """
        try:
            session = self.client.auth.get_session()
            if session is not None:
                return identity_from_user(session.user)
            if not refresh_token:
                return None
            response = self.client.auth.refresh_session(refresh_token)
        except Exception as e:
            raise _provider_error(e) from e
        return identity_from_user(response.user)

    def session_token(self) -> Optional[str]:
        """Current refresh token. Supabase rotates it on every refresh."""
        try:
            session = self.client.auth.get_session()
        except Exception as e:
            raise _provider_error(e) from e
        return session.refresh_token if session is not None else None

    def subscribe_auth_changes(self, callback: Callable[[Optional[Identity]], None]) -> Callable[[], None]:
        def _on_change(event: str, session: Any) -> None:
            log.debug(f"Supabase auth event: {event}")
            if event == "SIGNED_OUT" or session is None:
                callback(None)
            else:
                callback(identity_from_user(session.user))

        subscription = self.client.auth.on_auth_state_change(_on_change)
        return subscription.unsubscribe

    # --- profiles ---

    def fetch_profile(self, identity_id: str) -> Optional[Dict[str, Any]]:
        try:
            response = (
                self.client.table(PROFILES_TABLE)
                .select("*")
                .eq("user_id", identity_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise _provider_error(e) from e
        rows = response.data or []
        return rows[0] if rows else None

    def upsert_profile(self, identity_id: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        row = dict(fields)
        row["user_id"] = identity_id
        try:
            response = (
                self.client.table(PROFILES_TABLE)
                .upsert(row, on_conflict="user_id")
                .execute()
            )
        except Exception as e:
            raise _provider_error(e) from e
        rows = response.data or []
        if not rows:
            # Row-level security can swallow the returned representation.
            raise ProviderError("Profile was not saved", code="empty_upsert")
        return rows[0]

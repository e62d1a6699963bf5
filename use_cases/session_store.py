"""Reactive session store: who is signed in and whether their profile is usable.

One store exists per browser session. Identity is written only from the
provider's auth-change feed (`handle_auth_change`); the profile is also
patched locally after a successful `update_profile`. Readers get immutable
`SessionSnapshot` objects.

Consistency contract: the store is eventually consistent with the provider.
`sign_in` resolving does not mean `current_session()` already carries the
new identity; use `wait_for_identity` when a caller needs that guarantee.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Mapping, Optional, Protocol

from infrastructure.observability import mask_email
from use_cases.auth_errors import (
    NOT_AUTHENTICATED_MESSAGE,
    AuthErrorKind,
    AuthResult,
    ProviderError,
    translate_provider_error,
)
from use_cases.credential_policy import AuthSettings, email_domain_error, is_allowed_email, normalize_email
from use_cases.session_models import EDITABLE_PROFILE_FIELDS, Identity, Profile, SessionSnapshot

log = logging.getLogger(__name__)

Unsubscribe = Callable[[], None]
AuthChangeCallback = Callable[[Optional[Identity]], None]


class AuthBackend(Protocol):
    """Data-access collaborator. Every method raises ProviderError on failure."""

    def create_account(self, email: str, password: str) -> None: ...

    def authenticate(self, email: str, password: str) -> None: ...

    def terminate_session(self) -> None: ...

    def upsert_profile(self, identity_id: str, fields: Mapping[str, Any]) -> Dict[str, Any]: ...

    def fetch_profile(self, identity_id: str) -> Optional[Dict[str, Any]]: ...

    def subscribe_auth_changes(self, callback: AuthChangeCallback) -> Unsubscribe: ...

    def resume_identity(self, refresh_token: Optional[str] = None) -> Optional[Identity]: ...

    def session_token(self) -> Optional[str]: ...


class SessionStore:
    def __init__(self, backend: AuthBackend, settings: Optional[AuthSettings] = None):
        self.backend = backend
        self.settings = settings or AuthSettings()
        self._cond = threading.Condition(threading.RLock())
        self._identity: Optional[Identity] = None
        self._profile: Optional[Profile] = None
        self._is_loading = True
        self._unsubscribe: Optional[Unsubscribe] = None
        self._started = False

    # --- lifecycle ---

    @property
    def started(self) -> bool:
        with self._cond:
            return self._started

    def start(self, refresh_token: Optional[str] = None) -> None:
        """Subscribe to provider auth events and try to resume a prior session.

        `refresh_token` is the token the browser kept from an earlier visit.
        """
        with self._cond:
            if self._started:
                return
            self._started = True

        self._unsubscribe = self.backend.subscribe_auth_changes(self.handle_auth_change)

        try:
            identity = self.backend.resume_identity(refresh_token)
        except ProviderError as e:
            log.warning(f"Session resume failed: {e.message}")
            identity = None

        if identity is None:
            self._publish(identity=None, profile=None)
            return
        self.handle_auth_change(identity)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        with self._cond:
            self._started = False

    # --- reads ---

    def current_session(self) -> SessionSnapshot:
        with self._cond:
            return SessionSnapshot(
                identity=self._identity,
                profile=self._profile,
                is_loading=self._is_loading,
            )

    def is_profile_complete(self) -> bool:
        return self.current_session().is_profile_complete

    def session_token(self) -> Optional[str]:
        """Refresh token to keep in the browser, None when signed out."""
        with self._cond:
            if self._identity is None:
                return None
        try:
            return self.backend.session_token()
        except ProviderError as e:
            log.warning(f"Could not read session token: {e.message}")
            return None

    def wait_for_identity(self, identity_id: Optional[str] = None, timeout: Optional[float] = None) -> bool:
        """Block until the session reflects an identity (or the given one).

        Returns False when the timeout elapses first.
        """
        if timeout is None:
            timeout = self.settings.session_wait_seconds
        deadline = time.monotonic() + timeout

        def _reflected() -> bool:
            if self._identity is None:
                return False
            return identity_id is None or self._identity.id == identity_id

        with self._cond:
            while not _reflected():
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._cond.wait(remaining)
            return True

    # --- writer entry point ---

    def handle_auth_change(self, identity: Optional[Identity]) -> None:
        """Apply an auth-state event pushed by the provider."""
        if identity is None:
            log.info("Auth change: signed out")
            self._publish(identity=None, profile=None)
            return

        with self._cond:
            same_identity = self._identity is not None and self._identity.id == identity.id
            profile = self._profile if same_identity else None

        if not same_identity:
            log.info(f"Auth change: signed in as {mask_email(identity.email)}")
        if profile is None:
            # Also retried for the same identity: an earlier fetch may have failed.
            profile = self._load_profile(identity.id)

        self._publish(identity=identity, profile=profile)

    # --- operations ---

    def sign_up(self, email: str, password: str) -> AuthResult:
        if not is_allowed_email(email, self.settings):
            error = email_domain_error(self.settings)
            return AuthResult(error=error)

        try:
            self.backend.create_account(normalize_email(email), password)
        except ProviderError as e:
            log.warning(f"Sign-up failed for {mask_email(email)}: {e.message}")
            return AuthResult(error=translate_provider_error(e))

        log.info(f"Account created for {mask_email(email)}, awaiting email verification")
        return AuthResult.success()

    def sign_in(self, email: str, password: str) -> AuthResult:
        if not is_allowed_email(email, self.settings):
            return AuthResult(error=email_domain_error(self.settings))

        try:
            self.backend.authenticate(normalize_email(email), password)
        except ProviderError as e:
            log.warning(f"Sign-in failed for {mask_email(email)}: {e.message}")
            return AuthResult(error=translate_provider_error(e))

        # Identity arrives through handle_auth_change, not here.
        return AuthResult.success()

    def sign_out(self) -> AuthResult:
        result = AuthResult.success()
        try:
            self.backend.terminate_session()
        except ProviderError as e:
            log.warning(f"Sign-out failed at provider, clearing local session anyway: {e.message}")
            result = AuthResult(error=translate_provider_error(e))

        self._publish(identity=None, profile=None)
        return result

    def update_profile(self, fields: Mapping[str, Any]) -> AuthResult:
        with self._cond:
            identity = self._identity
        if identity is None:
            return AuthResult.failure(AuthErrorKind.NOT_AUTHENTICATED, NOT_AUTHENTICATED_MESSAGE)

        payload = {
            k: (v.strip() if isinstance(v, str) else v)
            for k, v in fields.items()
            if k in EDITABLE_PROFILE_FIELDS
        }
        payload["email"] = identity.email

        try:
            record = self.backend.upsert_profile(identity.id, payload)
        except ProviderError as e:
            log.warning(f"Profile update failed for {mask_email(identity.email)}: {e.message}")
            return AuthResult(error=translate_provider_error(e))

        if not self._publish_if_current(identity, Profile.from_record(record)):
            # Signed out or switched account while the call was in flight.
            return AuthResult.failure(AuthErrorKind.NOT_AUTHENTICATED, NOT_AUTHENTICATED_MESSAGE)
        return AuthResult.success()

    def refresh_profile(self) -> Optional[Profile]:
        """Re-read the signed-in user's profile from the provider."""
        with self._cond:
            identity = self._identity
        if identity is None:
            return None
        profile = self._load_profile(identity.id)
        self._publish_if_current(identity, profile)
        return profile

    # --- internals ---

    def _load_profile(self, identity_id: str) -> Optional[Profile]:
        try:
            record = self.backend.fetch_profile(identity_id)
        except ProviderError as e:
            log.error(f"Profile fetch failed: {e.message}")
            return None
        return Profile.from_record(record) if record else None

    def _publish(self, identity: Optional[Identity], profile: Optional[Profile]) -> None:
        with self._cond:
            self._identity = identity
            self._profile = profile
            self._is_loading = False
            self._cond.notify_all()

    def _publish_if_current(self, identity: Identity, profile: Optional[Profile]) -> bool:
        """Publish only while `identity` is still the signed-in one (checked under the same lock)."""
        with self._cond:
            if self._identity is None or self._identity.id != identity.id:
                return False
            self._publish(identity, profile)
            return True

"""Authentication flow orchestration (application layer).

Steps: `auth` (credential entry) -> `verify` (waiting on the emailed link)
-> `profile` (profile completion). The flow has no terminal step; it is left
by navigation once the session reports a complete profile.
"""

import logging
from dataclasses import dataclass
from typing import Any, Literal, Mapping, Optional

from use_cases.auth_errors import (
    PROFILE_INCOMPLETE_MESSAGE,
    REQUEST_IN_FLIGHT_MESSAGE,
    AuthError,
    AuthErrorKind,
    AuthResult,
)
from use_cases.credential_policy import validate_credentials
from use_cases.session_models import SessionSnapshot, missing_profile_fields
from use_cases.session_store import SessionStore

log = logging.getLogger(__name__)

FlowStep = Literal["auth", "verify", "profile"]
FlowMode = Literal["signin", "signup"]

MODE_PARAM = "mode"
SIGNUP_MODE = "signup"
COMPLETE_PROFILE_MODE = "complete-profile"
HOME_ROUTE = "home"


@dataclass(frozen=True)
class FlowExit:
    """Where to send the user when the flow is finished."""

    route: str
    reason: str


class AuthFlowController:
    def __init__(self, store: SessionStore, mode: FlowMode = "signin"):
        self.store = store
        self.mode: FlowMode = mode
        self.step: FlowStep = "auth"
        self.error: Optional[AuthError] = None
        self.pending = False
        self.pending_email: Optional[str] = None
        self._awaiting_session = False

    @property
    def is_signup(self) -> bool:
        return self.mode == "signup"

    def apply_query_params(self, params: Mapping[str, Any]) -> None:
        requested = params.get(MODE_PARAM)
        if requested == SIGNUP_MODE and self.step == "auth":
            self.mode = "signup"
        elif requested == COMPLETE_PROFILE_MODE:
            snapshot = self.store.current_session()
            if snapshot.is_authenticated and not snapshot.is_profile_complete:
                self.step = "profile"

    def toggle_mode(self) -> None:
        self.mode = "signin" if self.is_signup else "signup"
        self.step = "auth"
        self.error = None

    def return_to_auth(self) -> None:
        """Leave the verification wait; the user signs in after clicking the link."""
        self.step = "auth"
        self.mode = "signin"
        self.error = None

    def submit_credentials(self, email: str, password: str, confirm_password: Optional[str] = None) -> AuthResult:
        if self.pending:
            return AuthResult.failure(AuthErrorKind.REQUEST_IN_FLIGHT, REQUEST_IN_FLIGHT_MESSAGE)

        self.error = validate_credentials(
            email,
            password,
            self.store.settings,
            is_signup=self.is_signup,
            confirm_password=confirm_password,
        )
        if self.error is not None:
            return AuthResult(error=self.error)

        self.pending = True
        try:
            if self.is_signup:
                result = self.store.sign_up(email, password)
            else:
                result = self.store.sign_in(email, password)
        finally:
            self.pending = False

        self.error = result.error
        if not result.ok:
            return result

        if self.is_signup:
            self.pending_email = email.strip()
            self.step = "verify"
            log.info("Sign-up accepted, waiting for email verification")
        else:
            self._awaiting_session = True
        return result

    def submit_profile(self, fields: Mapping[str, Any]) -> AuthResult:
        if self.pending:
            return AuthResult.failure(AuthErrorKind.REQUEST_IN_FLIGHT, REQUEST_IN_FLIGHT_MESSAGE)

        if missing_profile_fields(fields):
            self.error = AuthError(kind=AuthErrorKind.PROFILE_INCOMPLETE, message=PROFILE_INCOMPLETE_MESSAGE)
            return AuthResult(error=self.error)

        self.pending = True
        try:
            result = self.store.update_profile(dict(fields))
        finally:
            self.pending = False

        self.error = result.error
        return result

    def sync(self, snapshot: SessionSnapshot) -> None:
        """Move a freshly signed-in user with an incomplete profile to the profile step."""
        if not self._awaiting_session or not snapshot.is_authenticated:
            return
        self._awaiting_session = False
        if not snapshot.is_profile_complete:
            self.step = "profile"

    def exit_target(self, snapshot: SessionSnapshot) -> Optional[FlowExit]:
        """Reactive exit rule, checked on every session change regardless of step."""
        if snapshot.is_authenticated and snapshot.is_profile_complete:
            return FlowExit(route=HOME_ROUTE, reason="profile_complete")
        return None

"""Auth error taxonomy and the provider-error translation shim."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class AuthErrorKind(str, Enum):
    INVALID_EMAIL_DOMAIN = "INVALID_EMAIL_DOMAIN"
    PASSWORD_TOO_SHORT = "PASSWORD_TOO_SHORT"
    PASSWORD_MISMATCH = "PASSWORD_MISMATCH"
    PROFILE_INCOMPLETE = "PROFILE_INCOMPLETE"
    REQUEST_IN_FLIGHT = "REQUEST_IN_FLIGHT"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    EMAIL_NOT_VERIFIED = "EMAIL_NOT_VERIFIED"
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    UNKNOWN = "UNKNOWN"


INVALID_CREDENTIALS_MESSAGE = "Invalid email or password. Please try again."
EMAIL_NOT_VERIFIED_MESSAGE = "Please verify your email before signing in."
NOT_AUTHENTICATED_MESSAGE = "You must be signed in to update your profile."
PROFILE_INCOMPLETE_MESSAGE = "Please fill in all profile fields."
REQUEST_IN_FLIGHT_MESSAGE = "Please wait for the current request to finish."

# Structured codes reported by the identity provider.
_CODE_MAP = {
    "invalid_credentials": AuthErrorKind.INVALID_CREDENTIALS,
    "invalid_grant": AuthErrorKind.INVALID_CREDENTIALS,
    "email_not_confirmed": AuthErrorKind.EMAIL_NOT_VERIFIED,
}

# Compatibility fallback for providers that only send a message.
_SUBSTRING_MAP = (
    ("Invalid login credentials", AuthErrorKind.INVALID_CREDENTIALS),
    ("Email not confirmed", AuthErrorKind.EMAIL_NOT_VERIFIED),
)

_MESSAGES = {
    AuthErrorKind.INVALID_CREDENTIALS: INVALID_CREDENTIALS_MESSAGE,
    AuthErrorKind.EMAIL_NOT_VERIFIED: EMAIL_NOT_VERIFIED_MESSAGE,
}


class ProviderError(Exception):
    """Raised by the backend when the hosted provider rejects a call."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class BackendConfigurationError(RuntimeError):
    pass


@dataclass(frozen=True)
class AuthError:
    kind: AuthErrorKind
    message: str


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a session operation. `error` is None on success."""

    error: Optional[AuthError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls) -> "AuthResult":
        return cls()

    @classmethod
    def failure(cls, kind: AuthErrorKind, message: str) -> "AuthResult":
        return cls(error=AuthError(kind=kind, message=message))


def translate_provider_error(error: ProviderError) -> AuthError:
    """Map a provider failure onto the auth taxonomy."""
    message = error.message or str(error) or "Unknown error"
    kind = _CODE_MAP.get((error.code or "").lower())
    if kind is None:
        for needle, candidate in _SUBSTRING_MAP:
            if needle.lower() in message.lower():
                kind = candidate
                break
    if kind is None:
        return AuthError(kind=AuthErrorKind.UNKNOWN, message=message)
    return AuthError(kind=kind, message=_MESSAGES[kind])

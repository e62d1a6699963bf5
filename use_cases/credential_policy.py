"""Client-side credential checks run before anything reaches the provider.

The authoritative domain restriction lives in the backend's policies; these
checks only keep obviously invalid submissions off the wire.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from use_cases.auth_errors import AuthError, AuthErrorKind

DEFAULT_INSTITUTION_DOMAIN = "dtu.ac.in"
DEFAULT_OVERRIDE_EMAILS = frozenset({"akshat.jain0411@gmail.com"})
MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class AuthSettings:
    institution_domain: str = DEFAULT_INSTITUTION_DOMAIN
    override_emails: FrozenSet[str] = field(default_factory=lambda: DEFAULT_OVERRIDE_EMAILS)
    min_password_length: int = MIN_PASSWORD_LENGTH
    site_url: Optional[str] = None
    session_wait_seconds: float = 5.0

    @property
    def domain_suffix(self) -> str:
        return "@" + self.institution_domain.lstrip("@").lower()


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def is_allowed_email(email: str, settings: AuthSettings) -> bool:
    normalized = normalize_email(email)
    if normalized in {normalize_email(e) for e in settings.override_emails}:
        return True
    return normalized.endswith(settings.domain_suffix) and len(normalized) > len(settings.domain_suffix)


def email_domain_error(settings: AuthSettings) -> AuthError:
    return AuthError(
        kind=AuthErrorKind.INVALID_EMAIL_DOMAIN,
        message=f"Please use your {settings.domain_suffix} email",
    )


def validate_credentials(
    email: str,
    password: str,
    settings: AuthSettings,
    *,
    is_signup: bool = False,
    confirm_password: Optional[str] = None,
) -> Optional[AuthError]:
    """Return the first failing check, or None when the form may be submitted."""
    if not is_allowed_email(email, settings):
        return email_domain_error(settings)

    if len(password or "") < settings.min_password_length:
        return AuthError(
            kind=AuthErrorKind.PASSWORD_TOO_SHORT,
            message=f"Password must be at least {settings.min_password_length} characters",
        )

    if is_signup and password != confirm_password:
        return AuthError(kind=AuthErrorKind.PASSWORD_MISMATCH, message="Passwords do not match")

    return None

"""Application layer contracts for orchestrating high-level flows."""

from .auth_errors import AuthError, AuthErrorKind, AuthResult, ProviderError, translate_provider_error
from .auth_flow import AuthFlowController, FlowExit, FlowMode, FlowStep
from .bootstrap import StartupResult, StartupStatus, run_startup
from .credential_policy import AuthSettings, is_allowed_email, validate_credentials
from .route_guard import GuardResult, GuardStatus, evaluate_access
from .session_models import Identity, Profile, SessionSnapshot, is_profile_complete
from .session_store import AuthBackend, SessionStore

__all__ = [
    "AuthBackend",
    "AuthError",
    "AuthErrorKind",
    "AuthFlowController",
    "AuthResult",
    "AuthSettings",
    "FlowExit",
    "FlowMode",
    "FlowStep",
    "GuardResult",
    "GuardStatus",
    "Identity",
    "Profile",
    "ProviderError",
    "SessionSnapshot",
    "SessionStore",
    "StartupResult",
    "StartupStatus",
    "evaluate_access",
    "is_allowed_email",
    "is_profile_complete",
    "run_startup",
    "translate_provider_error",
    "validate_credentials",
]

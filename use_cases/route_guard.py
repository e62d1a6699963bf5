"""Access decision for protected pages."""

from dataclasses import dataclass, field
from typing import Dict, Literal, Optional

from use_cases.auth_flow import COMPLETE_PROFILE_MODE, MODE_PARAM
from use_cases.session_models import SessionSnapshot

GuardStatus = Literal["LOADING", "REDIRECT_AUTH", "REDIRECT_PROFILE", "ALLOW"]

AUTH_PAGE = "auth"
PAGE_PARAM = "page"
FROM_PARAM = "from"


@dataclass(frozen=True)
class GuardResult:
    status: GuardStatus
    redirect_params: Dict[str, str] = field(default_factory=dict)

    @property
    def is_redirect(self) -> bool:
        return self.status in ("REDIRECT_AUTH", "REDIRECT_PROFILE")


def evaluate_access(
    snapshot: SessionSnapshot,
    require_complete_profile: bool = False,
    requested: Optional[str] = None,
) -> GuardResult:
    # Order matters: never redirect while the resume attempt is in flight.
    if snapshot.is_loading:
        return GuardResult(status="LOADING")

    if not snapshot.is_authenticated:
        params = {PAGE_PARAM: AUTH_PAGE}
        if requested:
            params[FROM_PARAM] = requested
        return GuardResult(status="REDIRECT_AUTH", redirect_params=params)

    if require_complete_profile and not snapshot.is_profile_complete:
        return GuardResult(
            status="REDIRECT_PROFILE",
            redirect_params={PAGE_PARAM: AUTH_PAGE, MODE_PARAM: COMPLETE_PROFILE_MODE},
        )

    return GuardResult(status="ALLOW")

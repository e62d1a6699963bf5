"""Startup orchestration: session-state contract, backend and session resume."""

import logging
from dataclasses import dataclass
from typing import Literal, Optional, Tuple

from use_cases.auth_errors import BackendConfigurationError
from utils import session_manager

log = logging.getLogger(__name__)

StartupStatus = Literal["CONTINUE", "STOP"]


@dataclass(frozen=True)
class StartupResult:
    """Result contract for startup/bootstrap orchestration."""

    status: StartupStatus
    planned_steps: Tuple[str, ...]
    reason: Optional[str] = None


def run_startup() -> StartupResult:
    """Prepare the per-session store and resume a prior session once."""
    executed_steps = []

    session_manager.init_session_state()
    executed_steps.append("init_session_state")

    try:
        store = session_manager.get_session_store()
    except BackendConfigurationError as e:
        log.error(f"Backend not configured: {e}")
        return StartupResult(status="STOP", planned_steps=tuple(executed_steps), reason=str(e))
    executed_steps.append("get_session_store")

    # Only the first run of a browser session resumes.
    session_manager.restore_session(store)
    executed_steps.append("start_session_store")

    session_manager.sync_user_context()
    executed_steps.append("sync_user_context")

    return StartupResult(status="CONTINUE", planned_steps=tuple(executed_steps))

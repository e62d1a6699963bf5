"""
Centralized Observability Infrastructure.
Provides structured logging setup and Sentry SDK initialization
governed entirely by environment variables.
"""

import os
import logging
import re
from typing import Any, Dict, Optional

import sentry_sdk

# Standard python logger initialization for the top-level app
log = logging.getLogger(__name__)

# Patterns to scrub in logs and Sentry events
SENSITIVE_PATTERNS = [
    re.compile(r"eyJ[a-zA-Z0-9_\-]+\.[a-zA-Z0-9_\-]+\.[a-zA-Z0-9_\-]+"),  # JWTs (access/refresh tokens, anon key)
    re.compile(r"([a-zA-Z0-9_\-]{30,})"),  # Catch tokens/dsn looking strings
]

SENSITIVE_VAR_NAMES = ("password", "confirm_password", "token", "access_token", "refresh_token", "key", "secret")

NOISY_LOGGERS = ("httpx", "httpcore", "hpack", "urllib3")


def mask_email(email: Optional[str]) -> str:
    """Keep logs useful without writing full addresses: `st***@dtu.ac.in`."""
    if not email or "@" not in email:
        return "<unknown>"
    local, _, domain = email.strip().partition("@")
    return f"{local[:2]}***@{domain}"


def _mask_string(val: str) -> str:
    for pattern in SENSITIVE_PATTERNS:
        val = pattern.sub("[REDACTED]", val)
    return val


def _recursive_scrub(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {
            k: "[REDACTED]" if str(k).lower() in SENSITIVE_VAR_NAMES else _recursive_scrub(v)
            for k, v in obj.items()
        }
    elif isinstance(obj, list):
        return [_recursive_scrub(i) for i in obj]
    elif isinstance(obj, str):
        return _mask_string(obj)
    return obj


def _scrub_sensitive_data(event: Dict[str, Any], hint: Dict[str, Any]) -> Dict[str, Any]:
    """
    Sentry before_send hook. Recursively scrubs passwords and session tokens
    from event traces before they leave the server.
    """
    exception = event.get("exception") or {}
    for exc in exception.get("values") or []:
        frames = (exc.get("stacktrace") or {}).get("frames") or []
        for frame in frames:
            if "vars" in frame:
                frame["vars"] = _recursive_scrub(frame["vars"])
    if "breadcrumbs" in event:
        event["breadcrumbs"] = _recursive_scrub(event["breadcrumbs"])
    return event


def set_user_context(user_id: Optional[str]) -> None:
    """Attach the signed-in identity to Sentry events (id only, no PII)."""
    if not sentry_sdk.get_client().is_active():
        return
    sentry_sdk.set_user({"id": user_id} if user_id else None)


def setup_observability() -> None:
    """
    Initializes global system logging and Sentry (if DSN is present).
    Should be called once at application startup.
    """

    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    # Complete format: [2026-02-27 15:00:00] INFO - module.name: The message
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    sentry_dsn = os.getenv("SENTRY_DSN")
    if sentry_dsn:
        sentry_env = os.getenv("SENTRY_ENV", "development")
        sentry_sdk.init(
            dsn=sentry_dsn,
            environment=sentry_env,
            traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "1.0")),
            send_default_pii=False,
            before_send=_scrub_sensitive_data
        )
        log.info(f"Sentry SDK initialized (env: {sentry_env})")
    else:
        log.info("SENTRY_DSN not provided. Running without Sentry.")

    # The Supabase client logs every HTTP request at INFO.
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

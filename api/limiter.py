"""
api/limiter.py -- Shared slowapi rate limiter for the credential endpoints.

Import this in api/main.py (to mount as middleware) and in
api/routes/v1/auth.py (to apply per-route limits with @limiter.limit()).

Limits are keyed by client IP. The limit strings come from Settings
(LOGIN_RATE_LIMIT, REGISTER_RATE_LIMIT) and are passed to slowapi as
callables, so they are read when a request is checked rather than when the
route module is imported.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")


def login_limit() -> str:
    """Per-IP budget for POST /auth/login. Brute-force mitigation."""
    return get_settings().login_rate_limit


def register_limit() -> str:
    """Per-IP budget for POST /auth/register. Slows bulk account creation."""
    return get_settings().register_rate_limit

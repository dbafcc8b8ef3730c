"""Shared slowapi limiter.

There is one ``Limiter`` per process. ``configure_limiter`` applies the
``rate_limit_enabled`` and ``login_rate_limit`` settings to it, so the last
app built with ``create_app`` decides rate limiting for every app in the
process.

Authentication routes: 10 requests/minute per client by default.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

DEFAULT_LOGIN_RATE_LIMIT = "10/minute"

limiter = Limiter(key_func=get_remote_address)

_login_rate_limit = DEFAULT_LOGIN_RATE_LIMIT


def configure_limiter(enabled: bool, login_rate_limit: str = DEFAULT_LOGIN_RATE_LIMIT) -> None:
    """Apply rate limit settings to the process-wide limiter."""
    global _login_rate_limit
    limiter.enabled = enabled
    _login_rate_limit = login_rate_limit


def login_rate_limit() -> str:
    """Current limit for login endpoints; slowapi evaluates it per request."""
    return _login_rate_limit

"""FastAPI dependency that turns a bearer token into a CallerIdentity."""

from __future__ import annotations

from fastapi import Header, Request

from ..db import queries
from ..errors import AuthenticationError, AuthorizationError
from .identity import CallerIdentity

BEARER_PREFIX = "Bearer "


def require_caller(
    request: Request,
    authorization: str | None = Header(default=None),
) -> CallerIdentity:
    """Authenticate the request and return the caller.

    - Missing header or non-bearer scheme: 401 "Missing token"
    - Bad signature, expired or malformed token: 401 "Invalid token"
    - User unknown, soft-deleted or not activated: 403 "Not authorized"
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise AuthenticationError("Missing token")

    caller = request.app.state.token_signer.verify(authorization[len(BEARER_PREFIX):])

    with request.app.state.store.connect() as conn:
        user = queries.get_user_by_id(conn, caller.user_id)

    if user is None or user.deleted or not user.activated:
        raise AuthorizationError("Not authorized")
    return caller

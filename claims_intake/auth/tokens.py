"""Bearer token issuance and verification (JWT via PyJWT)."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from ..errors import AuthenticationError
from .identity import CallerIdentity

logger = logging.getLogger(__name__)


class TokenSigner:
    """Signs and verifies access tokens carrying ``user_id`` and ``jti``."""

    def __init__(self, secret: str, algorithm: str = "HS256", ttl_seconds: int = 3600) -> None:
        if not secret:
            raise ValueError("JWT signing key is not configured. Set JWT_SIGN_PRIVATE_KEY.")
        self._secret = secret
        self.algorithm = algorithm
        self.ttl_seconds = ttl_seconds

    def issue(self, user_id: int) -> str:
        now = datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "user_id": user_id,
            "jti": str(uuid.uuid4()),
            "iat": now,
            "exp": now + timedelta(seconds=self.ttl_seconds),
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> CallerIdentity:
        """Decode a token and return the caller it identifies.

        Raises:
            AuthenticationError: Signature, expiry or payload is invalid
        """
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Invalid token")
        except jwt.InvalidTokenError as e:
            logger.warning(f"Rejected bearer token: {e}")
            raise AuthenticationError("Invalid token")

        user_id = payload.get("user_id")
        if not isinstance(user_id, int):
            raise AuthenticationError("Invalid token")
        return CallerIdentity(user_id=user_id, jti=payload.get("jti"))

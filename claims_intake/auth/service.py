"""Registration, verification, login and federated login.

``AuthService`` is constructed once by the application factory with the
store, token signer and federation client it needs.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable

from sqlalchemy.exc import IntegrityError

from ..audit import AuditAction, log_audit_event
from ..db import queries
from ..db.store import ClaimStore
from ..errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    FederationError,
    InvalidRequestError,
)
from .federation import FederatedIdentityClient
from .passwords import generate_verification_code, hash_password, verify_password
from .tokens import TokenSigner

logger = logging.getLogger(__name__)

CodeSender = Callable[[str, str], None]


def log_verification_code(email: str, code: str) -> None:
    """Default code sender: delivery is handled outside this service."""
    logger.info(f"Verification code issued for {email} (ending {code[-2:]})")


class AuthService:
    def __init__(
        self,
        store: ClaimStore,
        signer: TokenSigner,
        federation: FederatedIdentityClient,
        code_sender: CodeSender = log_verification_code,
    ) -> None:
        self.store = store
        self.signer = signer
        self.federation = federation
        self.code_sender = code_sender
        self._dummy_hash = hash_password(secrets.token_urlsafe(16))

    def register(
        self,
        name: str,
        email: str,
        password: str,
        phone_number: str | None = None,
        ip_address: str | None = None,
    ) -> int:
        """Create an inactive user and send a verification code.

        Raises:
            ConflictError: Email or phone number already registered
        """
        code = generate_verification_code()
        try:
            with self.store.transaction() as conn:
                if queries.get_active_user_by_email(conn, email) is not None:
                    raise ConflictError("Email is already registered")
                user_id = queries.insert_user(
                    conn,
                    name=name,
                    email=email,
                    phone_number=phone_number,
                    activated=False,
                    password_hash=hash_password(password),
                    hashed_verification_code=hash_password(code),
                )
                log_audit_event(
                    conn,
                    action=AuditAction.AUTH_REGISTER.value,
                    user_id=user_id,
                    resource_type="user",
                    resource_id=str(user_id),
                    ip_address=ip_address,
                )
        except IntegrityError:
            raise ConflictError("Email or phone number is already registered")

        self.code_sender(email.lower(), code)
        logger.info(f"Registered user {user_id}")
        return user_id

    def verify(self, email: str, code: str, ip_address: str | None = None) -> int:
        """Activate a user whose verification code matches.

        Raises:
            InvalidRequestError: Unknown email or wrong code
        """
        with self.store.transaction() as conn:
            user = queries.get_active_user_by_email(conn, email)
            if user is None or not verify_password(code, user.hashed_verification_code):
                raise InvalidRequestError("Invalid verification code")
            queries.update_user(conn, user.id, activated=True, hashed_verification_code=None)
            log_audit_event(
                conn,
                action=AuditAction.AUTH_VERIFY.value,
                user_id=user.id,
                resource_type="user",
                resource_id=str(user.id),
                ip_address=ip_address,
            )
        return user.id

    def login(self, email: str, password: str, ip_address: str | None = None) -> str:
        """Check credentials and issue an access token.

        Raises:
            AuthenticationError: Unknown email or wrong password
            AuthorizationError: Account not activated
        """
        failure: Exception | None = None
        with self.store.transaction() as conn:
            user = queries.get_active_user_by_email(conn, email)
            stored_hash = user.password_hash if user is not None else None
            # Unknown emails pay the same scrypt cost as wrong passwords
            password_ok = verify_password(password, stored_hash or self._dummy_hash)
            if user is None or stored_hash is None or not password_ok:
                failure = AuthenticationError("Invalid email or password")
            elif not user.activated:
                failure = AuthorizationError("Account is not activated")

            # Failed attempts are audited too, so the row must commit before raising
            log_audit_event(
                conn,
                action=AuditAction.AUTH_LOGIN.value,
                user_id=user.id if user else None,
                resource_type="user",
                resource_id=str(user.id) if user else None,
                ip_address=ip_address,
                status="error" if failure else "success",
                error_message=failure.message if failure else None,
            )

        if failure is not None:
            logger.warning(f"Login failed: {failure.message}")
            raise failure
        return self.signer.issue(user.id)

    def federated_login(
        self, provider: str, access_token: str, ip_address: str | None = None
    ) -> str:
        """Exchange a provider token for an access token, creating or linking the user.

        Raises:
            InvalidRequestError: Provider is not configured
            FederationError: Provider rejected the token or the email is unverified
        """
        profile = self.federation.fetch_profile(provider, access_token)
        if not profile.email_verified:
            raise FederationError(f"{provider} has not verified {profile.email}", provider)

        with self.store.transaction() as conn:
            user = queries.get_user_by_federated_identity(conn, provider, profile.subject)
            if user is None:
                user = queries.get_active_user_by_email(conn, profile.email)
                if user is None:
                    user_id = queries.insert_user(
                        conn,
                        name=profile.name,
                        email=profile.email,
                        activated=True,
                        federated_provider=provider,
                        federated_subject=profile.subject,
                    )
                    logger.info(f"Created user {user_id} from {provider} identity")
                else:
                    user_id = user.id
                    queries.update_user(
                        conn,
                        user_id,
                        activated=True,
                        federated_provider=provider,
                        federated_subject=profile.subject,
                    )
                    logger.info(f"Linked user {user_id} to {provider} identity")
            else:
                user_id = user.id

            log_audit_event(
                conn,
                action=AuditAction.AUTH_FEDERATED_LOGIN.value,
                user_id=user_id,
                resource_type="user",
                resource_id=str(user_id),
                details={"provider": provider},
                ip_address=ip_address,
            )

        return self.signer.issue(user_id)

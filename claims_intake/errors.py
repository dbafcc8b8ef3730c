"""Exception taxonomy for the claims intake backend.

Route handlers never build error responses for these directly; the app
registers one exception handler per class (see ``app.register_error_handlers``).
"""

from __future__ import annotations


class ClaimsError(Exception):
    """Base class for all domain errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ClaimsError):
    """Member absent or inactive, procedure unmatched, or claim unknown."""

    status_code = 404


class DataIntegrityError(ClaimsError):
    """A value the data model guarantees to be present is missing."""

    status_code = 500


class TransientStoreError(ClaimsError):
    """Connectivity or lock-timeout failure in the relational store."""

    status_code = 500


class AuthenticationError(ClaimsError):
    """Missing, malformed or invalid credentials."""

    status_code = 401


class AuthorizationError(ClaimsError):
    """Authenticated user is not allowed to use the API."""

    status_code = 403


class ConflictError(ClaimsError):
    """Unique resource (email, phone number) already exists."""

    status_code = 409


class InvalidRequestError(ClaimsError):
    """Request is well-formed but cannot be honored."""

    status_code = 400


class FederationError(ClaimsError):
    """Third-party identity provider rejected or failed the exchange."""

    status_code = 401

    def __init__(self, message: str, provider: str | None = None):
        super().__init__(message)
        self.provider = provider

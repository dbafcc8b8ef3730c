"""Authentication glue: password hashing, bearer tokens, federation."""

from .dependencies import require_caller
from .federation import FederatedIdentityClient, FederatedProfile
from .identity import CallerIdentity
from .passwords import hash_password, verify_password
from .service import AuthService
from .tokens import TokenSigner

__all__ = [
    "AuthService",
    "CallerIdentity",
    "FederatedIdentityClient",
    "FederatedProfile",
    "TokenSigner",
    "hash_password",
    "require_caller",
    "verify_password",
]

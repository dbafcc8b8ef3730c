"""API route modules for the Claims Intake API.

Routers:
- claims: Claim submission (adjudication) and lookup
- auth: Registration, verification, login and federated login
- audit: Audit log listing
"""

from .audit import router as audit_router
from .auth import router as auth_router
from .claims import router as claims_router

__all__ = ["audit_router", "auth_router", "claims_router"]

"""FastAPI application factory for the Claims Intake API.

The store, adjudicator, lookup and auth collaborators are constructed here
and attached to ``app.state``; nothing is created at import time. Run with:

    uvicorn claims_intake.app:create_app --factory --port 8080
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from . import __version__
from .adjudication import ClaimAdjudicator, ClaimLookup
from .auth import AuthService, FederatedIdentityClient, TokenSigner
from .auth.service import CodeSender, log_verification_code
from .config import Settings, load_settings
from .db import ClaimStore, create_store
from .errors import ClaimsError
from .rate_limit import configure_limiter, limiter
from .routes import audit_router, auth_router, claims_router

logger = logging.getLogger(__name__)


async def handle_claims_error(request: Request, exc: ClaimsError) -> JSONResponse:
    """Map domain errors to their HTTP status with a ``detail`` message."""
    if exc.status_code >= 500:
        logger.error(
            f"{request.method} {request.url.path} failed: {exc.message}",
            exc_info=exc,
        )
    else:
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ClaimsError, handle_claims_error)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


def create_app(
    settings: Settings | None = None,
    store: ClaimStore | None = None,
    federation: FederatedIdentityClient | None = None,
    code_sender: CodeSender = log_verification_code,
) -> FastAPI:
    """Build the API with explicitly constructed collaborators.

    Rate limiting uses the process-wide slowapi limiter, so
    ``rate_limit_enabled`` and ``login_rate_limit`` from the most recently
    built app apply to every app in the process.

    Args:
        settings: Runtime settings (defaults to ``load_settings()``)
        store: Claim store (defaults to one built from ``settings.database_url``)
        federation: Identity federation client (defaults to configured providers)
        code_sender: Delivers registration verification codes

    Returns:
        Configured FastAPI application
    """
    settings = settings or load_settings()
    store = store or create_store(settings.database_url, settings.lock_timeout_ms)
    federation = federation or FederatedIdentityClient(settings.federated_providers)
    signer = TokenSigner(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        ttl_seconds=settings.access_token_ttl_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create the schema on startup (development only) and release the pool on shutdown."""
        if settings.auto_create_schema:
            store.init_schema()
        logger.info(f"Claims Intake API started on {store.dialect} store")
        yield
        store.dispose()
        logger.info("Claim store disposed")

    app = FastAPI(
        title="Claims Intake API",
        description="Health-insurance claims intake and adjudication",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.store = store
    app.state.token_signer = signer
    app.state.adjudicator = ClaimAdjudicator(store, settings.fraud_cost_multiplier)
    app.state.claim_lookup = ClaimLookup(store)
    app.state.auth_service = AuthService(store, signer, federation, code_sender=code_sender)

    configure_limiter(settings.rate_limit_enabled, settings.login_rate_limit)
    app.state.limiter = limiter

    register_error_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router)
    app.include_router(claims_router)
    app.include_router(audit_router)

    @app.get("/health")
    def health_check() -> dict[str, str]:
        """Health check endpoint."""
        database_ok = store.ping()
        return {
            "status": "healthy" if database_ok else "degraded",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": "ok" if database_ok else "unavailable",
        }

    return app

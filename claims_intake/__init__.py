"""Claims Intake API package.

This package provides the FastAPI backend for health-insurance claims intake,
including:

- Claims adjudication (eligibility, benefit coverage, fraud heuristic)
- Claim lookup by public identifier
- User registration, login and federated login
- Audit logging of claim and authentication actions

Usage:
    # Development:
    uvicorn claims_intake.app:create_app --factory --reload --port 8080

    # Or:
    python -m claims_intake

Modules:
    app: FastAPI application factory
    adjudication: Coverage resolver, fraud heuristic, adjudicator, lookup
    auth: Password hashing, bearer tokens, identity federation
    db: SQLAlchemy schema and the explicitly constructed claim store
    routes: HTTP routers
    config: Environment-driven settings
"""

__version__ = "0.1.0"

"""Pytest configuration and fixtures."""

from __future__ import annotations

import sys
from decimal import Decimal
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest
from sqlalchemy import insert

# Add project root to path for imports when the package is not installed
project_root = str(Path(__file__).parent.parent)
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from fastapi.testclient import TestClient  # noqa: E402

from claims_intake.app import create_app  # noqa: E402
from claims_intake.auth import CallerIdentity, hash_password  # noqa: E402
from claims_intake.config import Settings  # noqa: E402
from claims_intake.db import create_store  # noqa: E402
from claims_intake.db.schema import (  # noqa: E402
    benefits,
    members,
    plans,
    plans_benefits,
    procedures,
    users,
)

TEST_JWT_SECRET = "test-signing-key-not-for-production"
TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a per-test SQLite database."""
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'claims.db'}",
        lock_timeout_ms=10000,
        jwt_secret=TEST_JWT_SECRET,
        rate_limit_enabled=False,
        cors_origins=("http://localhost:3000",),
        federated_providers={"acme": "https://id.acme.test/userinfo"},
    )


@pytest.fixture
def store(settings: Settings):
    """Claim store with the schema created."""
    store = create_store(settings.database_url, settings.lock_timeout_ms)
    store.init_schema()
    yield store
    store.dispose()


@pytest.fixture
def reference_data(store) -> SimpleNamespace:
    """One plan with a covered, an excluded, a limitless and an unlinked benefit.

    The covered benefit has a plan annual limit of 1000 and its procedure
    ``CONSULT`` has an average cost of 500.
    """
    with store.transaction() as conn:

        def add(table, **values: Any) -> int:
            return conn.execute(insert(table).values(**values)).inserted_primary_key[0]

        plan_id = add(plans, name="Essential Cover")

        covered = add(benefits, name="Outpatient", annual_limit=Decimal("50000"))
        excluded = add(benefits, name="Maternity", annual_limit=Decimal("80000"))
        limitless = add(benefits, name="Optical")
        unlinked = add(benefits, name="Dental", annual_limit=Decimal("15000"))

        add(plans_benefits, plan_id=plan_id, benefit_id=covered,
            annual_limit=Decimal("1000"), is_excluded=False)
        add(plans_benefits, plan_id=plan_id, benefit_id=excluded,
            annual_limit=Decimal("80000"), is_excluded=True)
        add(plans_benefits, plan_id=plan_id, benefit_id=limitless,
            annual_limit=None, is_excluded=False)

        add(procedures, code="CONSULT", benefit_id=covered, average_cost=Decimal("500"))
        add(procedures, code="ANC-VISIT", benefit_id=excluded, average_cost=Decimal("2500"))
        add(procedures, code="EYE-EXAM", benefit_id=limitless, average_cost=Decimal("250"))
        add(procedures, code="FILLING", benefit_id=unlinked, average_cost=Decimal("300"))

        active_member = add(members, member_number="MBR-0001", plan_id=plan_id, active=True)
        inactive_member = add(members, member_number="MBR-0002", plan_id=plan_id, active=False)
        other_member = add(members, member_number="MBR-0003", plan_id=plan_id, active=True)

    return SimpleNamespace(
        plan_id=plan_id,
        covered_benefit_id=covered,
        excluded_benefit_id=excluded,
        limitless_benefit_id=limitless,
        unlinked_benefit_id=unlinked,
        active_member_id=active_member,
        inactive_member_id=inactive_member,
        other_member_id=other_member,
    )


@pytest.fixture
def caller_user_id(store) -> int:
    """An activated user allowed to call the API."""
    with store.transaction() as conn:
        return conn.execute(
            insert(users).values(
                name="Claims Clerk",
                email="clerk@example.com",
                activated=True,
                password_hash=hash_password(TEST_PASSWORD),
            )
        ).inserted_primary_key[0]


@pytest.fixture
def caller(caller_user_id: int) -> CallerIdentity:
    return CallerIdentity(user_id=caller_user_id, jti="test-jti")


@pytest.fixture
def sent_codes() -> list[tuple[str, str]]:
    """Verification codes captured instead of being delivered."""
    return []


@pytest.fixture
def app(settings: Settings, store, sent_codes: list[tuple[str, str]]):
    return create_app(
        settings,
        store=store,
        code_sender=lambda email, code: sent_codes.append((email, code)),
    )


@pytest.fixture
def client(app):
    """Create test client with initialized database."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def auth_headers(app, caller_user_id: int) -> dict[str, str]:
    token = app.state.token_signer.issue(caller_user_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def caller_password() -> str:
    return TEST_PASSWORD

"""Row-level queries used by adjudication, lookup and auth.

Every function takes an open SQLAlchemy ``Connection`` so the caller decides
the transaction boundary. Rows are returned as small frozen dataclasses.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy import and_, func, insert, select, update
from sqlalchemy.engine import Connection

from ..enums import ClaimStatus
from .schema import claims, members, plans_benefits, procedures, users


@dataclass(frozen=True)
class MemberRecord:
    id: int
    member_number: str
    active: bool
    plan_id: int


@dataclass(frozen=True)
class ProcedureRecord:
    id: int
    code: str
    benefit_id: int
    average_cost: Decimal | None


@dataclass(frozen=True)
class PlanBenefitLink:
    plan_id: int
    benefit_id: int
    annual_limit: Decimal | None
    is_excluded: bool


@dataclass(frozen=True)
class ClaimRecord:
    id: int
    claim_id: uuid.UUID
    member_id: int
    procedure_id: int
    claim_amount: Decimal
    status: ClaimStatus
    approved_amount: Decimal
    fraud_flag: bool
    diagnosis_code: str | None = None
    idempotency_key: str | None = None


@dataclass(frozen=True)
class UserRecord:
    id: int
    name: str
    email: str
    phone_number: str | None
    activated: bool
    password_hash: str | None
    hashed_verification_code: str | None
    federated_provider: str | None
    federated_subject: str | None
    deleted: bool


# ============================================================
# Members, procedures, plan benefits
# ============================================================


def lock_member(conn: Connection, member_id: int) -> MemberRecord | None:
    """Fetch a member and hold an exclusive row lock until the transaction ends."""
    row = conn.execute(
        select(members.c.id, members.c.member_number, members.c.active, members.c.plan_id)
        .where(members.c.id == member_id, members.c.deleted_at.is_(None))
        .with_for_update()
    ).first()
    if row is None:
        return None
    return MemberRecord(
        id=row.id, member_number=row.member_number, active=bool(row.active), plan_id=row.plan_id
    )


def get_procedure_by_code(conn: Connection, code: str) -> ProcedureRecord | None:
    row = conn.execute(
        select(
            procedures.c.id,
            procedures.c.code,
            procedures.c.benefit_id,
            procedures.c.average_cost,
        ).where(procedures.c.code == code, procedures.c.deleted_at.is_(None))
    ).first()
    if row is None:
        return None
    return ProcedureRecord(
        id=row.id, code=row.code, benefit_id=row.benefit_id, average_cost=row.average_cost
    )


def get_plan_benefit(conn: Connection, plan_id: int, benefit_id: int) -> PlanBenefitLink | None:
    row = conn.execute(
        select(plans_benefits.c.annual_limit, plans_benefits.c.is_excluded).where(
            and_(
                plans_benefits.c.plan_id == plan_id,
                plans_benefits.c.benefit_id == benefit_id,
                plans_benefits.c.deleted_at.is_(None),
            )
        )
    ).first()
    if row is None:
        return None
    return PlanBenefitLink(
        plan_id=plan_id,
        benefit_id=benefit_id,
        annual_limit=row.annual_limit,
        is_excluded=bool(row.is_excluded),
    )


# ============================================================
# Claims
# ============================================================

_CLAIM_COLUMNS = (
    claims.c.id,
    claims.c.claim_id,
    claims.c.member_id,
    claims.c.procedure_id,
    claims.c.claim_amount,
    claims.c.status,
    claims.c.approved_amount,
    claims.c.fraud_flag,
    claims.c.diagnosis_code,
    claims.c.idempotency_key,
)


def _claim_from_row(row: Any) -> ClaimRecord:
    return ClaimRecord(
        id=row.id,
        claim_id=row.claim_id,
        member_id=row.member_id,
        procedure_id=row.procedure_id,
        claim_amount=row.claim_amount,
        status=ClaimStatus(row.status),
        approved_amount=row.approved_amount,
        fraud_flag=bool(row.fraud_flag),
        diagnosis_code=row.diagnosis_code,
        idempotency_key=row.idempotency_key,
    )


def insert_claim(
    conn: Connection,
    *,
    member_id: int,
    procedure_id: int,
    claim_amount: Decimal,
    status: ClaimStatus,
    approved_amount: Decimal,
    fraud_flag: bool,
    submitted_by: int | None = None,
    diagnosis_code: str | None = None,
    idempotency_key: str | None = None,
) -> ClaimRecord:
    """Insert a claim row and return it with its generated identifiers."""
    public_id = uuid.uuid4()
    result = conn.execute(
        insert(claims).values(
            claim_id=public_id,
            member_id=member_id,
            procedure_id=procedure_id,
            claim_amount=claim_amount,
            status=status,
            approved_amount=approved_amount,
            fraud_flag=fraud_flag,
            submitted_by=submitted_by,
            diagnosis_code=diagnosis_code,
            idempotency_key=idempotency_key,
        )
    )
    return ClaimRecord(
        id=result.inserted_primary_key[0],
        claim_id=public_id,
        member_id=member_id,
        procedure_id=procedure_id,
        claim_amount=claim_amount,
        status=status,
        approved_amount=approved_amount,
        fraud_flag=fraud_flag,
        diagnosis_code=diagnosis_code,
        idempotency_key=idempotency_key,
    )


def get_claim_by_public_id(conn: Connection, public_id: uuid.UUID) -> ClaimRecord | None:
    row = conn.execute(select(*_CLAIM_COLUMNS).where(claims.c.claim_id == public_id)).first()
    return _claim_from_row(row) if row is not None else None


def find_claim_by_idempotency_key(
    conn: Connection, member_id: int, idempotency_key: str
) -> ClaimRecord | None:
    row = conn.execute(
        select(*_CLAIM_COLUMNS).where(
            claims.c.member_id == member_id,
            claims.c.idempotency_key == idempotency_key,
        )
    ).first()
    return _claim_from_row(row) if row is not None else None


def count_claims(conn: Connection, member_id: int | None = None) -> int:
    query = select(func.count()).select_from(claims)
    if member_id is not None:
        query = query.where(claims.c.member_id == member_id)
    return conn.execute(query).scalar_one()


# ============================================================
# Users
# ============================================================

_USER_COLUMNS = (
    users.c.id,
    users.c.name,
    users.c.email,
    users.c.phone_number,
    users.c.activated,
    users.c.password_hash,
    users.c.hashed_verification_code,
    users.c.federated_provider,
    users.c.federated_subject,
    users.c.deleted_at,
)


def _user_from_row(row: Any) -> UserRecord:
    return UserRecord(
        id=row.id,
        name=row.name,
        email=row.email,
        phone_number=row.phone_number,
        activated=bool(row.activated),
        password_hash=row.password_hash,
        hashed_verification_code=row.hashed_verification_code,
        federated_provider=row.federated_provider,
        federated_subject=row.federated_subject,
        deleted=row.deleted_at is not None,
    )


def get_user_by_id(conn: Connection, user_id: int) -> UserRecord | None:
    row = conn.execute(select(*_USER_COLUMNS).where(users.c.id == user_id)).first()
    return _user_from_row(row) if row is not None else None


def get_active_user_by_email(conn: Connection, email: str) -> UserRecord | None:
    """Look up a user that has not been soft-deleted."""
    row = conn.execute(
        select(*_USER_COLUMNS).where(
            users.c.email == email.lower(), users.c.deleted_at.is_(None)
        )
    ).first()
    return _user_from_row(row) if row is not None else None


def get_user_by_federated_identity(
    conn: Connection, provider: str, subject: str
) -> UserRecord | None:
    row = conn.execute(
        select(*_USER_COLUMNS).where(
            users.c.federated_provider == provider,
            users.c.federated_subject == subject,
            users.c.deleted_at.is_(None),
        )
    ).first()
    return _user_from_row(row) if row is not None else None


def insert_user(conn: Connection, **values: Any) -> int:
    if "email" in values:
        values["email"] = values["email"].lower()
    result = conn.execute(insert(users).values(**values))
    return result.inserted_primary_key[0]


def update_user(conn: Connection, user_id: int, **values: Any) -> None:
    conn.execute(update(users).where(users.c.id == user_id).values(**values))

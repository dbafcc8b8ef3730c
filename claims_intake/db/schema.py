"""Relational schema for plans, members, procedures, claims and users.

Tables are declared with SQLAlchemy Core so the same definitions serve
PostgreSQL (production) and SQLite (development and tests). Migrations are
managed outside this package; ``metadata.create_all`` is only used when
``AUTO_CREATE_SCHEMA`` is enabled.
"""

from __future__ import annotations

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)

from ..enums import ClaimStatus

metadata = MetaData()

# Amount columns keep two decimal places
AMOUNT = Numeric(14, 2)


def _timestamps() -> list[Column]:
    return [
        Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
        Column(
            "updated_at",
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now(),
            onupdate=func.now(),
        ),
    ]


users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("phone_number", String(255), unique=True),
    Column("activated", Boolean, nullable=False, default=False),
    Column("password_hash", Text),
    Column("hashed_verification_code", Text),
    Column("federated_provider", String(64)),
    Column("federated_subject", String(255)),
    *_timestamps(),
    Column("deleted_at", DateTime(timezone=True)),
    UniqueConstraint("federated_provider", "federated_subject", name="uq_users_federated"),
)

plans = Table(
    "plans",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    *_timestamps(),
    Column("deleted_at", DateTime(timezone=True)),
)

benefits = Table(
    "benefits",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("annual_limit", AMOUNT),
    *_timestamps(),
    Column("deleted_at", DateTime(timezone=True)),
)

plans_benefits = Table(
    "plans_benefits",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("plan_id", Integer, ForeignKey("plans.id"), nullable=False),
    Column("benefit_id", Integer, ForeignKey("benefits.id"), nullable=False),
    Column("annual_limit", AMOUNT),
    Column("is_excluded", Boolean, nullable=False, default=True),
    *_timestamps(),
    Column("deleted_at", DateTime(timezone=True)),
    Index("idx_plans_benefits_pair", "plan_id", "benefit_id"),
)

members = Table(
    "members",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("member_number", String(255), nullable=False),
    Column("active", Boolean, nullable=False, default=False),
    Column("plan_id", Integer, ForeignKey("plans.id"), nullable=False),
    *_timestamps(),
    Column("deleted_at", DateTime(timezone=True)),
)

procedures = Table(
    "procedures",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("code", String(255), nullable=False, unique=True),
    Column("benefit_id", Integer, ForeignKey("benefits.id"), nullable=False),
    Column("average_cost", AMOUNT, nullable=False),
    *_timestamps(),
    Column("deleted_at", DateTime(timezone=True)),
)

claims = Table(
    "claims",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("claim_id", Uuid, nullable=False, unique=True, default=uuid.uuid4),
    Column("member_id", Integer, ForeignKey("members.id"), nullable=False),
    Column("procedure_id", Integer, ForeignKey("procedures.id"), nullable=False),
    Column("claim_amount", AMOUNT, nullable=False),
    Column("diagnosis_code", String(255)),
    Column("fraud_flag", Boolean, nullable=False, default=False),
    Column("approved_amount", AMOUNT, nullable=False),
    Column(
        "status",
        Enum(ClaimStatus, name="claims_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    ),
    Column("submitted_by", Integer, ForeignKey("users.id")),
    Column("idempotency_key", String(255)),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    UniqueConstraint("member_id", "idempotency_key", name="uq_claims_member_idempotency"),
    Index("idx_claims_member", "member_id"),
)

audit_logs = Table(
    "audit_logs",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("timestamp", String(64), nullable=False),
    Column("action", String(64), nullable=False),
    Column("user_id", String(64)),
    Column("resource_type", String(64)),
    Column("resource_id", String(255)),
    Column("details", Text),
    Column("ip_address", String(64)),
    Column("status", String(16), nullable=False, default="success"),
    Column("error_message", Text),
    Index("idx_audit_timestamp", "timestamp"),
    Index("idx_audit_action_time", "action", "timestamp"),
    Index("idx_audit_resource", "resource_type", "resource_id"),
)

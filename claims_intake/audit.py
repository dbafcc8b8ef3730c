"""Audit logging of claim and authentication actions.

Audit rows are written on the caller's connection so they commit or roll
back together with the action they describe.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from sqlalchemy import func, insert, select
from sqlalchemy.engine import Connection

from .db.schema import audit_logs


class AuditAction(str, Enum):
    """Types of auditable actions."""

    # Claims
    CLAIM_SUBMIT = "claim.submit"
    CLAIM_VIEW = "claim.view"

    # Authentication
    AUTH_REGISTER = "auth.register"
    AUTH_VERIFY = "auth.verify"
    AUTH_LOGIN = "auth.login"
    AUTH_FEDERATED_LOGIN = "auth.federated_login"


def log_audit_event(
    conn: Connection,
    action: str,
    user_id: int | str | None = None,
    resource_type: str | None = None,
    resource_id: str | None = None,
    details: dict[str, Any] | None = None,
    ip_address: str | None = None,
    status: str = "success",
    error_message: str | None = None,
) -> str:
    """Log an audit event on the given connection.

    Returns the audit log entry ID.
    """
    audit_id = str(uuid.uuid4())
    conn.execute(
        insert(audit_logs).values(
            id=audit_id,
            timestamp=datetime.now(timezone.utc).isoformat(),
            action=action,
            user_id=str(user_id) if user_id is not None else None,
            resource_type=resource_type,
            resource_id=resource_id,
            details=json.dumps(details, default=str) if details else None,
            ip_address=ip_address,
            status=status,
            error_message=error_message,
        )
    )
    return audit_id


def list_audit_events(
    conn: Connection,
    limit: int = 50,
    offset: int = 0,
    filters: dict[str, Any] | None = None,
) -> tuple[list[dict[str, Any]], int]:
    """Return (entries, total) newest first, filtered by exact column matches."""
    conditions = [
        audit_logs.c[column] == value
        for column, value in (filters or {}).items()
        if value is not None
    ]

    total = conn.execute(
        select(func.count()).select_from(audit_logs).where(*conditions)
    ).scalar_one()

    rows = conn.execute(
        select(audit_logs)
        .where(*conditions)
        .order_by(audit_logs.c.timestamp.desc())
        .limit(limit)
        .offset(offset)
    ).mappings()

    entries = []
    for row in rows:
        entry = dict(row)
        if entry.get("details"):
            try:
                entry["details"] = json.loads(entry["details"])
            except json.JSONDecodeError:
                entry["details"] = {"raw": entry["details"]}
        entries.append(entry)

    return entries, total

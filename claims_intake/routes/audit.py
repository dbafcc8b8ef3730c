"""Audit log routes.

Provides a paginated, filterable listing of audit entries for compliance
review. Restricted to authenticated callers.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from ..audit import AuditAction, list_audit_events
from ..auth import CallerIdentity, require_caller

router = APIRouter(prefix="/api/audit", tags=["audit"])


class AuditLogEntry(BaseModel):
    """Single audit log entry."""

    id: str
    timestamp: str
    action: str
    user_id: str | None = None
    resource_type: str | None = None
    resource_id: str | None = None
    details: dict[str, Any] | None = None
    ip_address: str | None = None
    status: str = "success"
    error_message: str | None = None


class AuditLogListResponse(BaseModel):
    """Response for audit log listing."""

    entries: list[AuditLogEntry]
    total: int
    limit: int
    offset: int
    filters_applied: dict[str, Any]


@router.get("", response_model=AuditLogListResponse)
def list_audit_logs(
    request: Request,
    limit: int = Query(default=50, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    action: str | None = Query(default=None, description="Filter by action type"),
    user_id: str | None = Query(default=None, description="Filter by user ID"),
    resource_type: str | None = Query(default=None, description="Filter by resource type"),
    resource_id: str | None = Query(default=None, description="Filter by resource ID"),
    caller: CallerIdentity = Depends(require_caller),
) -> AuditLogListResponse:
    """List audit log entries with filtering and pagination."""
    filters = {
        "action": action,
        "user_id": user_id,
        "resource_type": resource_type,
        "resource_id": resource_id,
    }

    with request.app.state.store.connect() as conn:
        entries, total = list_audit_events(conn, limit=limit, offset=offset, filters=filters)

    return AuditLogListResponse(
        entries=[AuditLogEntry(**entry) for entry in entries],
        total=total,
        limit=limit,
        offset=offset,
        filters_applied=filters,
    )


@router.get("/actions")
def list_audit_actions() -> dict[str, Any]:
    """List all available audit action types."""
    return {
        "actions": [action.value for action in AuditAction],
        "categories": {
            "claim": [a.value for a in AuditAction if a.value.startswith("claim.")],
            "auth": [a.value for a in AuditAction if a.value.startswith("auth.")],
        },
    }

"""Claim submission and lookup routes."""

from __future__ import annotations

import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, Header, Request
from pydantic import BaseModel, Field

from ..adjudication import ClaimAdjudicator, ClaimLookup
from ..audit import AuditAction, log_audit_event
from ..auth import CallerIdentity, require_caller
from ..enums import ClaimStatus
from ..errors import TransientStoreError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/claims", tags=["claims"])


class ClaimSubmission(BaseModel):
    member_id: int
    claim_amount: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    procedure_code: str = Field(min_length=1, max_length=255)
    diagnosis_code: str | None = Field(default=None, max_length=255)


class ClaimDecisionResponse(BaseModel):
    claim_id: str
    status: ClaimStatus
    fraud_flag: bool
    approved_amount: float


class ClaimStatusResponse(BaseModel):
    id: str
    status: ClaimStatus


def get_adjudicator(request: Request) -> ClaimAdjudicator:
    return request.app.state.adjudicator


def get_lookup(request: Request) -> ClaimLookup:
    return request.app.state.claim_lookup


def _client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


@router.post("", response_model=ClaimDecisionResponse)
def submit_claim(
    submission: ClaimSubmission,
    request: Request,
    caller: CallerIdentity = Depends(require_caller),
    adjudicator: ClaimAdjudicator = Depends(get_adjudicator),
    idempotency_key: str | None = Header(default=None, max_length=255),
) -> ClaimDecisionResponse:
    """Adjudicate a claim for a member and persist the decision."""
    result = adjudicator.submit_claim(
        member_id=submission.member_id,
        claim_amount=submission.claim_amount,
        procedure_code=submission.procedure_code,
        caller=caller,
        diagnosis_code=submission.diagnosis_code,
        idempotency_key=idempotency_key,
        ip_address=_client_ip(request),
    )
    return ClaimDecisionResponse(
        claim_id=str(result.claim_id),
        status=result.status,
        fraud_flag=result.fraud_flag,
        approved_amount=float(result.approved_amount),
    )


@router.get("/{claim_id}", response_model=ClaimStatusResponse)
def get_claim(
    claim_id: str,
    request: Request,
    caller: CallerIdentity = Depends(require_caller),
    lookup: ClaimLookup = Depends(get_lookup),
) -> ClaimStatusResponse:
    """Get the status of a previously adjudicated claim by its public id."""
    summary = lookup.get_claim(claim_id)

    # A busy writer lock must not fail a lookup that already succeeded
    try:
        with request.app.state.store.transaction() as conn:
            log_audit_event(
                conn,
                action=AuditAction.CLAIM_VIEW.value,
                user_id=caller.user_id,
                resource_type="claim",
                resource_id=str(summary.id),
                ip_address=_client_ip(request),
            )
    except TransientStoreError as e:
        logger.warning(f"claim.view audit for {summary.id} not recorded: {e.message}")

    return ClaimStatusResponse(id=str(summary.id), status=summary.status)

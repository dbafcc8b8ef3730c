"""Claim adjudication: eligibility, coverage, fraud scoring and persistence.

``ClaimAdjudicator.submit_claim`` runs as one store transaction:

1. Lock the member row (``SELECT ... FOR UPDATE``)
2. Reject unknown or inactive members
3. Resolve the procedure by code
4. Replay an earlier result when the idempotency key was already used;
   a reused key with a different claim is a conflict
5. Decide coverage for the member's plan and the procedure's benefit
6. Score the claim against the procedure's average cost
7. Insert the claim and its audit entry

Any exception rolls the whole transaction back, so a failed submission
leaves no claim row behind.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from ..audit import AuditAction, log_audit_event
from ..auth.identity import CallerIdentity
from ..db import queries
from ..db.store import ClaimStore
from ..errors import ConflictError, NotFoundError
from .coverage import resolve_coverage
from .fraud import DEFAULT_COST_MULTIPLIER, is_fraudulent
from .models import ClaimResult

logger = logging.getLogger(__name__)


class ClaimAdjudicator:
    """Adjudicates and persists claims against an explicitly supplied store."""

    def __init__(
        self,
        store: ClaimStore,
        fraud_multiplier: Decimal | float = DEFAULT_COST_MULTIPLIER,
    ) -> None:
        self.store = store
        self.fraud_multiplier = Decimal(str(fraud_multiplier))

    def submit_claim(
        self,
        member_id: int,
        claim_amount: Decimal,
        procedure_code: str,
        caller: CallerIdentity,
        diagnosis_code: str | None = None,
        idempotency_key: str | None = None,
        ip_address: str | None = None,
    ) -> ClaimResult:
        """Adjudicate a claim and persist the decision.

        Args:
            member_id: Internal member identifier
            claim_amount: Requested amount
            procedure_code: Billable procedure code
            caller: Authenticated identity submitting the claim
            diagnosis_code: Optional diagnosis recorded with the claim
            idempotency_key: Optional caller token; a repeat of the same claim returns
                the first result, an empty key counts as none
            ip_address: Client address for the audit entry

        Returns:
            ClaimResult with the public claim id and the decision

        Raises:
            NotFoundError: Member unknown or inactive, or procedure unknown
            ConflictError: Idempotency key reused for a different claim
            DataIntegrityError: Procedure has no average cost
            TransientStoreError: Store unavailable or lock wait timed out
        """
        claim_amount = Decimal(str(claim_amount))
        # An empty header is the same as no key
        idempotency_key = idempotency_key or None
        diagnosis_code = diagnosis_code or None

        with self.store.transaction() as conn:
            member = queries.lock_member(conn, member_id)
            if member is None:
                raise NotFoundError(f"Member {member_id} not found")
            if not member.active:
                raise NotFoundError(f"Member {member_id} is not active")

            procedure = queries.get_procedure_by_code(conn, procedure_code)
            if procedure is None:
                raise NotFoundError(f"Procedure {procedure_code} not found")

            if idempotency_key is not None:
                existing = queries.find_claim_by_idempotency_key(conn, member.id, idempotency_key)
                if existing is not None:
                    if (
                        existing.procedure_id != procedure.id
                        or existing.claim_amount != claim_amount
                        or existing.diagnosis_code != diagnosis_code
                    ):
                        raise ConflictError(
                            f"Idempotency key already used for claim {existing.claim_id} "
                            "with a different procedure, amount or diagnosis"
                        )
                    logger.info(
                        f"Replaying claim {existing.claim_id} for idempotency key on member {member.id}"
                    )
                    return ClaimResult(
                        claim_id=existing.claim_id,
                        status=existing.status,
                        fraud_flag=existing.fraud_flag,
                        approved_amount=existing.approved_amount,
                    )

            decision = resolve_coverage(conn, member.plan_id, procedure.benefit_id, claim_amount)
            fraud_flag = is_fraudulent(
                claim_amount, procedure.average_cost, multiplier=self.fraud_multiplier
            )

            claim = queries.insert_claim(
                conn,
                member_id=member.id,
                procedure_id=procedure.id,
                claim_amount=claim_amount,
                status=decision.status,
                approved_amount=decision.approved_amount,
                fraud_flag=fraud_flag,
                submitted_by=caller.user_id,
                diagnosis_code=diagnosis_code,
                idempotency_key=idempotency_key,
            )

            log_audit_event(
                conn,
                action=AuditAction.CLAIM_SUBMIT.value,
                user_id=caller.user_id,
                resource_type="claim",
                resource_id=str(claim.claim_id),
                details={
                    "member_id": member.id,
                    "procedure_code": procedure.code,
                    "status": decision.status.value,
                    "fraud_flag": fraud_flag,
                },
                ip_address=ip_address,
            )

        logger.info(
            f"Claim {claim.claim_id} adjudicated for member {member.id}: "
            f"{decision.status.value} (fraud_flag={fraud_flag})"
        )
        return ClaimResult(
            claim_id=claim.claim_id,
            status=decision.status,
            fraud_flag=fraud_flag,
            approved_amount=decision.approved_amount,
        )

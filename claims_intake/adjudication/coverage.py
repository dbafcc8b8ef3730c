"""Benefit coverage resolution for a plan/benefit pair."""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy.engine import Connection

from ..db.queries import PlanBenefitLink, get_plan_benefit
from ..enums import ClaimStatus
from .models import CoverageDecision

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def decide_coverage(link: PlanBenefitLink | None, claim_amount: Decimal) -> CoverageDecision:
    """Decide status and approved amount for a claim against a benefit link.

    - No link, no annual limit, or an excluded benefit: REJECTED, nothing approved.
    - Limit below the claimed amount: PARTIAL, approved amount is the excess
      over the limit (``claim_amount - limit``).
    - Limit at or above the claimed amount: APPROVED for the full amount.

    The PARTIAL amount is the overage, not the capped payout. This is the
    established behavior of the intake API and is pinned by tests; changing
    it needs sign-off from the claims product owner.
    """
    if link is None or link.annual_limit is None or link.is_excluded:
        return CoverageDecision(status=ClaimStatus.REJECTED, approved_amount=ZERO)

    limit = Decimal(link.annual_limit)
    if limit < claim_amount:
        return CoverageDecision(status=ClaimStatus.PARTIAL, approved_amount=claim_amount - limit)

    # limit == claim_amount is treated like limit > claim_amount
    return CoverageDecision(status=ClaimStatus.APPROVED, approved_amount=claim_amount)


def resolve_coverage(
    conn: Connection, plan_id: int, benefit_id: int, claim_amount: Decimal
) -> CoverageDecision:
    """Look up the plan's benefit link and decide coverage for ``claim_amount``."""
    link = get_plan_benefit(conn, plan_id, benefit_id)
    decision = decide_coverage(link, claim_amount)
    if link is None:
        logger.info(f"No benefit {benefit_id} on plan {plan_id}; claim rejected")
    return decision

"""Data models for the adjudication workflow."""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import Decimal

from ..enums import ClaimStatus


@dataclass(frozen=True)
class CoverageDecision:
    """Outcome of checking a claim amount against a plan's benefit link."""

    status: ClaimStatus
    approved_amount: Decimal


@dataclass(frozen=True)
class ClaimResult:
    """What the adjudicator returns for a persisted claim."""

    claim_id: uuid.UUID
    status: ClaimStatus
    fraud_flag: bool
    approved_amount: Decimal


@dataclass(frozen=True)
class ClaimSummary:
    id: uuid.UUID
    status: ClaimStatus

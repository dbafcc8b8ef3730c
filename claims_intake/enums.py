"""Enumerations shared by the schema and the adjudication workflow."""

from __future__ import annotations

from enum import Enum


class ClaimStatus(str, Enum):
    """Decision status of an adjudicated claim."""

    APPROVED = "APPROVED"
    PARTIAL = "PARTIAL"
    REJECTED = "REJECTED"

"""Read-only retrieval of adjudicated claims."""

from __future__ import annotations

import uuid

from ..db import queries
from ..db.store import ClaimStore
from ..errors import NotFoundError
from .models import ClaimSummary


class ClaimLookup:
    def __init__(self, store: ClaimStore) -> None:
        self.store = store

    def get_claim(self, public_id: str | uuid.UUID) -> ClaimSummary:
        """Return the claim's public id and status.

        A malformed identifier can never have been issued, so it is reported
        the same way as an unknown one.
        """
        try:
            claim_uuid = public_id if isinstance(public_id, uuid.UUID) else uuid.UUID(str(public_id))
        except ValueError:
            raise NotFoundError(f"Claim {public_id} not found")

        with self.store.connect() as conn:
            claim = queries.get_claim_by_public_id(conn, claim_uuid)

        if claim is None:
            raise NotFoundError(f"Claim {public_id} not found")
        return ClaimSummary(id=claim.claim_id, status=claim.status)

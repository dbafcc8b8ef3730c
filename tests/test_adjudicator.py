"""Tests for claim adjudication and persistence."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from claims_intake.adjudication import ClaimAdjudicator
from claims_intake.audit import list_audit_events
from claims_intake.db import queries
from claims_intake.db.schema import claims
from claims_intake.enums import ClaimStatus
from claims_intake.errors import (
    ConflictError,
    DataIntegrityError,
    NotFoundError,
    TransientStoreError,
)


@pytest.fixture
def adjudicator(store) -> ClaimAdjudicator:
    return ClaimAdjudicator(store)


def _claim_count(store) -> int:
    with store.connect() as conn:
        return queries.count_claims(conn)


class TestSubmitClaim:
    """Test the adjudication outcome for eligible members."""

    def test_claim_within_limit_is_approved(self, store, adjudicator, reference_data, caller):
        """Test an 800 claim against a 1000 limit is approved in full."""
        result = adjudicator.submit_claim(
            member_id=reference_data.active_member_id,
            claim_amount=Decimal("800"),
            procedure_code="CONSULT",
            caller=caller,
        )

        assert result.status == ClaimStatus.APPROVED
        assert result.approved_amount == Decimal("800")
        assert result.fraud_flag is False

    def test_claim_over_limit_is_partial_and_flagged(
        self, store, adjudicator, reference_data, caller
    ):
        """Test a 1200 claim against a 1000 limit and 500 average cost."""
        result = adjudicator.submit_claim(
            member_id=reference_data.active_member_id,
            claim_amount=Decimal("1200"),
            procedure_code="CONSULT",
            caller=caller,
        )

        assert result.status == ClaimStatus.PARTIAL
        assert result.approved_amount == Decimal("200")
        assert result.fraud_flag is True

    def test_claim_is_persisted(self, store, adjudicator, reference_data, caller):
        """Test the stored row matches the returned decision."""
        result = adjudicator.submit_claim(
            member_id=reference_data.active_member_id,
            claim_amount=Decimal("800"),
            procedure_code="CONSULT",
            caller=caller,
            diagnosis_code="J06.9",
        )

        with store.connect() as conn:
            row = conn.execute(select(claims).where(claims.c.claim_id == result.claim_id)).one()

        assert row.member_id == reference_data.active_member_id
        assert row.claim_amount == Decimal("800")
        assert row.approved_amount == Decimal("800")
        assert row.status == ClaimStatus.APPROVED
        assert row.fraud_flag is False
        assert row.diagnosis_code == "J06.9"
        assert row.submitted_by == caller.user_id

    def test_each_claim_gets_a_distinct_public_id(self, adjudicator, reference_data, caller):
        """Test public claim ids are unique per submission."""
        first = adjudicator.submit_claim(
            reference_data.active_member_id, Decimal("100"), "CONSULT", caller
        )
        second = adjudicator.submit_claim(
            reference_data.active_member_id, Decimal("100"), "CONSULT", caller
        )

        assert first.claim_id != second.claim_id

    @pytest.mark.parametrize("procedure_code", ["ANC-VISIT", "EYE-EXAM", "FILLING"])
    def test_uncovered_procedure_is_rejected_and_persisted(
        self, store, adjudicator, reference_data, caller, procedure_code
    ):
        """Test excluded, limitless and unlinked benefits are rejected but still stored."""
        result = adjudicator.submit_claim(
            reference_data.active_member_id, Decimal("100"), procedure_code, caller
        )

        assert result.status == ClaimStatus.REJECTED
        assert result.approved_amount == Decimal("0")
        assert _claim_count(store) == 1

    def test_fraud_flag_does_not_change_status(self, store, reference_data, caller):
        """Test a flagged claim within the limit is still approved in full."""
        strict = ClaimAdjudicator(store, fraud_multiplier=1)

        result = strict.submit_claim(
            reference_data.active_member_id, Decimal("800"), "CONSULT", caller
        )

        assert result.fraud_flag is True
        assert result.status == ClaimStatus.APPROVED
        assert result.approved_amount == Decimal("800")

    def test_fraud_multiplier_is_configurable(self, store, reference_data, caller):
        """Test the adjudicator applies its configured multiplier."""
        lenient = ClaimAdjudicator(store, fraud_multiplier=3)

        result = lenient.submit_claim(
            reference_data.active_member_id, Decimal("1200"), "CONSULT", caller
        )

        assert result.fraud_flag is False

    def test_submission_is_audited(self, store, adjudicator, reference_data, caller):
        """Test an audit entry is written with the claim."""
        result = adjudicator.submit_claim(
            reference_data.active_member_id, Decimal("800"), "CONSULT", caller,
            ip_address="10.0.0.7",
        )

        with store.connect() as conn:
            entries, total = list_audit_events(conn, filters={"action": "claim.submit"})

        assert total == 1
        assert entries[0]["resource_id"] == str(result.claim_id)
        assert entries[0]["user_id"] == str(caller.user_id)
        assert entries[0]["ip_address"] == "10.0.0.7"
        assert entries[0]["details"]["status"] == "APPROVED"


class TestSubmitClaimRejections:
    """Test submissions that fail before anything is persisted."""

    def test_unknown_member(self, store, adjudicator, reference_data, caller):
        """Test an unknown member is not found and nothing is stored."""
        with pytest.raises(NotFoundError):
            adjudicator.submit_claim(999999, Decimal("800"), "CONSULT", caller)

        assert _claim_count(store) == 0

    def test_inactive_member(self, store, adjudicator, reference_data, caller):
        """Test an inactive member is reported as not found."""
        with pytest.raises(NotFoundError):
            adjudicator.submit_claim(
                reference_data.inactive_member_id, Decimal("800"), "CONSULT", caller
            )

        assert _claim_count(store) == 0

    def test_unknown_procedure(self, store, adjudicator, reference_data, caller):
        """Test an unknown procedure code is not found and nothing is stored."""
        with pytest.raises(NotFoundError):
            adjudicator.submit_claim(
                reference_data.active_member_id, Decimal("800"), "NO-SUCH-CODE", caller
            )

        assert _claim_count(store) == 0

    def test_missing_average_cost(self, store, adjudicator, reference_data, caller):
        """Test a procedure without an average cost fails with nothing stored."""
        procedure = queries.ProcedureRecord(
            id=1, code="CONSULT", benefit_id=reference_data.covered_benefit_id, average_cost=None
        )
        with patch.object(queries, "get_procedure_by_code", return_value=procedure):
            with pytest.raises(DataIntegrityError):
                adjudicator.submit_claim(
                    reference_data.active_member_id, Decimal("800"), "CONSULT", caller
                )

        assert _claim_count(store) == 0

    def test_failure_after_insert_rolls_back(self, store, adjudicator, reference_data, caller):
        """Test an error after the claim insert leaves no claim row."""
        with patch(
            "claims_intake.adjudication.adjudicator.log_audit_event",
            side_effect=RuntimeError("audit sink down"),
        ):
            with pytest.raises(RuntimeError):
                adjudicator.submit_claim(
                    reference_data.active_member_id, Decimal("800"), "CONSULT", caller
                )

        assert _claim_count(store) == 0

    def test_store_failure_is_transient(self, store, adjudicator, reference_data, caller):
        """Test driver errors surface as transient store errors."""
        with patch.object(
            queries,
            "lock_member",
            side_effect=OperationalError("SELECT", {}, Exception("database is locked")),
        ):
            with pytest.raises(TransientStoreError):
                adjudicator.submit_claim(
                    reference_data.active_member_id, Decimal("800"), "CONSULT", caller
                )

        assert _claim_count(store) == 0


class TestIdempotency:
    """Test replaying submissions that carry an idempotency key."""

    def test_repeat_key_returns_first_result(self, store, adjudicator, reference_data, caller):
        """Test a repeated key returns the original claim without a new row."""
        first = adjudicator.submit_claim(
            reference_data.active_member_id, Decimal("1200"), "CONSULT", caller,
            idempotency_key="req-1",
        )
        second = adjudicator.submit_claim(
            reference_data.active_member_id, Decimal("1200"), "CONSULT", caller,
            idempotency_key="req-1",
        )

        assert second == first
        assert _claim_count(store) == 1

    def test_key_is_scoped_per_member(self, store, adjudicator, reference_data, caller):
        """Test the same key on another member creates a separate claim."""
        first = adjudicator.submit_claim(
            reference_data.active_member_id, Decimal("800"), "CONSULT", caller,
            idempotency_key="req-1",
        )
        second = adjudicator.submit_claim(
            reference_data.other_member_id, Decimal("800"), "CONSULT", caller,
            idempotency_key="req-1",
        )

        assert first.claim_id != second.claim_id
        assert _claim_count(store) == 2

    def test_without_key_every_submission_is_new(self, store, adjudicator, reference_data, caller):
        """Test submissions without a key are never deduplicated."""
        adjudicator.submit_claim(reference_data.active_member_id, Decimal("800"), "CONSULT", caller)
        adjudicator.submit_claim(reference_data.active_member_id, Decimal("800"), "CONSULT", caller)

        assert _claim_count(store) == 2

    def test_empty_key_counts_as_no_key(self, store, adjudicator, reference_data, caller):
        """Test empty keys neither replay nor collide with each other."""
        first = adjudicator.submit_claim(
            reference_data.active_member_id, Decimal("800"), "CONSULT", caller,
            idempotency_key="",
        )
        second = adjudicator.submit_claim(
            reference_data.active_member_id, Decimal("800"), "CONSULT", caller,
            idempotency_key="",
        )

        assert first.claim_id != second.claim_id
        with store.connect() as conn:
            keys = conn.execute(select(claims.c.idempotency_key)).scalars().all()
        assert keys == [None, None]

    def test_reused_key_with_other_procedure_conflicts(
        self, store, adjudicator, reference_data, caller
    ):
        """Test a key reused for a different procedure and amount is refused."""
        adjudicator.submit_claim(
            reference_data.active_member_id, Decimal("800"), "CONSULT", caller,
            idempotency_key="k",
        )

        with pytest.raises(ConflictError):
            adjudicator.submit_claim(
                reference_data.active_member_id, Decimal("100"), "EYE-EXAM", caller,
                idempotency_key="k",
            )

        assert _claim_count(store) == 1

    def test_reused_key_with_other_amount_conflicts(
        self, store, adjudicator, reference_data, caller
    ):
        """Test a key reused with only the amount changed is refused."""
        adjudicator.submit_claim(
            reference_data.active_member_id, Decimal("800"), "CONSULT", caller,
            idempotency_key="k",
        )

        with pytest.raises(ConflictError):
            adjudicator.submit_claim(
                reference_data.active_member_id, Decimal("900"), "CONSULT", caller,
                idempotency_key="k",
            )

    def test_reused_key_with_other_diagnosis_conflicts(
        self, store, adjudicator, reference_data, caller
    ):
        """Test a key reused with a different diagnosis is refused."""
        adjudicator.submit_claim(
            reference_data.active_member_id, Decimal("800"), "CONSULT", caller,
            diagnosis_code="J06.9", idempotency_key="k",
        )

        with pytest.raises(ConflictError):
            adjudicator.submit_claim(
                reference_data.active_member_id, Decimal("800"), "CONSULT", caller,
                diagnosis_code="R50.9", idempotency_key="k",
            )

    def test_replay_matches_equal_amounts(self, store, adjudicator, reference_data, caller):
        """Test an amount written with different precision still replays."""
        first = adjudicator.submit_claim(
            reference_data.active_member_id, Decimal("800"), "CONSULT", caller,
            diagnosis_code="J06.9", idempotency_key="k",
        )
        second = adjudicator.submit_claim(
            reference_data.active_member_id, Decimal("800.00"), "CONSULT", caller,
            diagnosis_code="J06.9", idempotency_key="k",
        )

        assert second.claim_id == first.claim_id
        assert _claim_count(store) == 1

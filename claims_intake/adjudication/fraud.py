"""Advisory fraud heuristic based on a procedure's historical average cost."""

from __future__ import annotations

from decimal import Decimal

from ..errors import DataIntegrityError

DEFAULT_COST_MULTIPLIER = Decimal("2")


def is_fraudulent(
    claim_amount: Decimal,
    procedure_average_cost: Decimal | None,
    multiplier: Decimal = DEFAULT_COST_MULTIPLIER,
) -> bool:
    """Flag claims above ``multiplier`` times the procedure's average cost.

    Raises:
        DataIntegrityError: If the procedure has no average cost on record
    """
    if procedure_average_cost is None:
        raise DataIntegrityError("Procedure average cost is missing")
    return claim_amount > Decimal(multiplier) * Decimal(procedure_average_cost)

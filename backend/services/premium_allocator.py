"""Splits an option trade's premium and fees across the lots backing it."""

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from config import settings
from schemas.option import AllocationInput
from services.exceptions import AccountingValidationError

ONE = Decimal("1")


@dataclass(frozen=True)
class AllocationLine:
    """One lot's computed share of a trade."""

    lot_id: str
    premium: Decimal
    fees: Decimal
    proportion: Decimal


def open_premium(contracts: int, price_per_contract: Decimal, fees: Decimal) -> Decimal:
    """Premium received for writing contracts, net of fees."""
    return contracts * price_per_contract - fees


def close_premium(contracts: int, price_per_contract: Decimal, fees: Decimal) -> Decimal:
    """Premium paid to buy contracts back, fees included. Always <= 0 for a debit."""
    return -(contracts * price_per_contract + fees)


def validate_proportions(
    allocations: Sequence[AllocationInput],
    tolerance: Decimal | None = None,
) -> Decimal:
    """Check that allocation proportions sum to 1 within ``tolerance``.

    Returns the total. The comparison is exact decimal arithmetic, so with
    the default 0.01 tolerance a sum of 0.99 is accepted and 0.985 is not.
    """
    if tolerance is None:
        tolerance = settings.ALLOCATION_TOLERANCE
    total = sum((Decimal(a.proportion) for a in allocations), Decimal("0"))
    if abs(total - ONE) > tolerance:
        raise AccountingValidationError(
            f"Allocations must sum to 1.0 (got {total})",
            reason="allocation_sum_mismatch",
        )
    return total


def allocate_premium(
    total_premium: Decimal,
    total_fees: Decimal,
    allocations: Sequence[AllocationInput],
    tolerance: Decimal | None = None,
) -> list[AllocationLine]:
    """Produce one AllocationLine per input allocation.

    Raises AccountingValidationError, before anything is produced, when the
    proportions do not sum to 1.
    """
    validate_proportions(allocations, tolerance)
    return [
        AllocationLine(
            lot_id=a.lot_id,
            premium=total_premium * a.proportion,
            fees=total_fees * a.proportion,
            proportion=a.proportion,
        )
        for a in allocations
    ]

"""Pure replay of a lot's history into a point-in-time snapshot.

A lot's quantity, cost and premium position are never read from a stored
aggregate; they are recomputed from the opening terms, the ordered event
log and the premium allocations every time. Nothing here touches the
database, so the same function backs single-lot and batch reporting.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from schemas.lot import LotEventType

ZERO = Decimal("0")
ONE = Decimal("1")
CENT = Decimal("0.01")
PRICE_QUANTUM = Decimal("0.0001")

_OUTFLOW_TYPES = (LotEventType.SELL, LotEventType.ASSIGNED_AWAY)
_INFLOW_TYPES = (LotEventType.BUY, LotEventType.ASSIGNMENT_IN)


@dataclass(frozen=True)
class LotSnapshot:
    """Replayed state of a lot."""

    current_qty: int
    gross_cost: Decimal
    net_premium: Decimal
    effective_basis: Decimal
    effective_price_per_share: Decimal


def to_decimal(value: Any) -> Decimal:
    """Coerce a stored number (or None) to Decimal, treating None as zero."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def round_price(value: Decimal) -> Decimal:
    return value.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)


def replay_quantity(initial_qty: int, events: Iterable[Any]) -> int:
    """Apply events, in the order given, to a lot's opening quantity.

    Events are any objects with ``type``, ``quantity`` and ``amount``
    attributes (ORM rows work directly). Events flagged ``is_opening``
    restate the opening quantity and are skipped. Outflows clamp at zero.
    """
    qty = int(initial_qty)
    for event in events:
        if getattr(event, "is_opening", False):
            continue
        event_type = event.type
        if event_type == LotEventType.SPLIT:
            ratio = to_decimal(event.amount) or ONE
            if ratio > 0 and ratio != ONE:
                qty = int((qty * ratio).quantize(ONE, rounding=ROUND_HALF_UP))
        elif event_type in _OUTFLOW_TYPES:
            out = max(0, event.quantity or 0)
            qty = max(0, qty - out)
        elif event_type in _INFLOW_TYPES:
            qty += max(0, event.quantity or 0)
        # DIVIDEND / ADJUSTMENT carry cash only
    return qty


def net_premium(allocations: Iterable[Any]) -> Decimal:
    """Sum of allocated premium less allocated fees."""
    total = ZERO
    for allocation in allocations:
        total += to_decimal(allocation.premium) - to_decimal(allocation.fees)
    return total


def snapshot_lot(
    initial_qty: int,
    price_per_share: Any,
    fees_at_open: Any,
    events: Iterable[Any],
    allocations: Iterable[Any],
) -> LotSnapshot:
    """Compute a lot's snapshot from its opening terms and history.

    Gross cost is fixed at open: sales and assignments change quantity only,
    and a split changes quantity while leaving cost alone, so the effective
    price per share scales inversely with the split ratio.
    """
    gross_cost = initial_qty * to_decimal(price_per_share) + to_decimal(fees_at_open)
    qty = replay_quantity(initial_qty, events)
    premium = net_premium(allocations)
    effective_basis = gross_cost - premium
    effective_pps = effective_basis / qty if qty > 0 else ZERO

    return LotSnapshot(
        current_qty=qty,
        gross_cost=round_money(gross_cost),
        net_premium=round_money(premium),
        effective_basis=round_money(effective_basis),
        effective_price_per_share=round_price(effective_pps),
    )

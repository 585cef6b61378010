"""Service for the lot ledger.

Creates lots, appends events to them, and builds replayed snapshots.
Events are append-only; the only stored aggregate, ``Lot.current_qty``,
is rewritten from a full replay after every append. Services ``flush()``
and leave the commit to the caller.
"""

import logging
from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

from models import Lot, LotEvent, PremiumAllocation
from schemas.lot import (
    LotCashEventCreate,
    LotCreate,
    LotEventType,
    LotSaleCreate,
    LotSplitCreate,
)
from services.exceptions import AccountingValidationError, NotFoundError
from services.lot_math import LotSnapshot, replay_quantity, snapshot_lot

logger = logging.getLogger(__name__)


class LotLedgerService:
    """Manages lots, their event log and their snapshots."""

    # --- Lots ---

    @staticmethod
    def create_lot(db: Session, lot_data: LotCreate) -> Lot:
        """Open a lot from a share purchase.

        The lot row holds the opening terms; no BUY event is written, so
        replay starts from ``initial_qty`` alone.
        """
        lot = Lot(
            account_id=lot_data.account_id,
            symbol=lot_data.symbol,
            opened_at=lot_data.opened_at,
            initial_qty=lot_data.quantity,
            current_qty=lot_data.quantity,
            price_per_share=lot_data.price_per_share,
            fees_at_open=lot_data.fees,
            notes=lot_data.notes,
        )
        db.add(lot)
        db.flush()
        logger.info(
            "Created lot %s: %s shares of %s @ %s in account %s",
            lot.id,
            lot_data.quantity,
            lot_data.symbol,
            lot_data.price_per_share,
            lot_data.account_id,
        )
        return lot

    @staticmethod
    def get_lot(db: Session, lot_id: str) -> Lot:
        """Load a lot or raise NotFoundError."""
        lot = db.query(Lot).filter_by(id=lot_id).first()
        if not lot:
            raise NotFoundError(f"Lot {lot_id} not found")
        return lot

    @staticmethod
    def list_lots(db: Session, account_id: str) -> list[Lot]:
        """Get all lots for an account, ordered by open date."""
        return (
            db.query(Lot)
            .filter_by(account_id=account_id)
            .order_by(Lot.opened_at.asc(), Lot.created_at.asc())
            .all()
        )

    # --- Events ---

    @staticmethod
    def get_events(db: Session, lot_id: str) -> list[LotEvent]:
        """Get a lot's events in replay order."""
        return (
            db.query(LotEvent)
            .filter_by(lot_id=lot_id)
            .order_by(LotEvent.occurred_at.asc(), LotEvent.created_at.asc())
            .all()
        )

    @staticmethod
    def append_event(
        db: Session,
        lot: Lot,
        event_type: LotEventType,
        occurred_at: datetime,
        quantity: int | None = None,
        amount: Decimal | None = None,
        fees: Decimal | None = None,
        memo: str | None = None,
        is_opening: bool = False,
    ) -> LotEvent:
        """Append an event and refresh the lot's cached quantity.

        Refreshing always writes the lot row, which bumps its version, so
        two requests appending to the same lot concurrently cannot both
        commit.
        """
        event = LotEvent(
            lot_id=lot.id,
            occurred_at=occurred_at,
            type=event_type.value,
            quantity=quantity,
            amount=amount,
            fees=fees,
            memo=memo,
            is_opening=is_opening,
        )
        db.add(event)
        db.flush()
        LotLedgerService.refresh_cached_quantity(db, lot)
        logger.info(
            "Appended %s event to lot %s (quantity=%s, amount=%s)",
            event_type.value,
            lot.id,
            quantity,
            amount,
        )
        return event

    @staticmethod
    def refresh_cached_quantity(db: Session, lot: Lot) -> int:
        """Rewrite ``lot.current_qty`` from a replay of its events."""
        qty = replay_quantity(lot.initial_qty, LotLedgerService.get_events(db, lot.id))
        lot.current_qty = qty
        lot.updated_at = datetime.now(timezone.utc)
        db.flush()
        return qty

    @staticmethod
    def current_quantity(db: Session, lot: Lot) -> int:
        """Replayed share count, independent of the cached column."""
        return replay_quantity(lot.initial_qty, LotLedgerService.get_events(db, lot.id))

    @staticmethod
    def record_sale(db: Session, lot_id: str, sale: LotSaleCreate) -> LotEvent:
        """Sell shares out of a lot.

        Rejects a sale larger than the replayed quantity; replay itself
        would clamp at zero, but accepting an oversell hides a data error.
        """
        lot = LotLedgerService.get_lot(db, lot_id)
        available = LotLedgerService.current_quantity(db, lot)
        if sale.quantity > available:
            raise AccountingValidationError(
                f"Insufficient shares in lot {lot.symbol}: "
                f"need {sale.quantity}, have {available}",
                reason="insufficient_shares",
            )
        return LotLedgerService.append_event(
            db,
            lot,
            LotEventType.SELL,
            sale.occurred_at,
            quantity=sale.quantity,
            amount=sale.price_per_share,
            fees=sale.fees,
            memo=sale.memo or _sale_memo(sale),
        )

    @staticmethod
    def record_split(db: Session, lot_id: str, split: LotSplitCreate) -> LotEvent:
        """Record a stock split. Quantity scales by ``ratio``; cost does not."""
        lot = LotLedgerService.get_lot(db, lot_id)
        if split.ratio == 1:
            raise AccountingValidationError(
                "Split ratio of 1 has no effect", reason="invalid_split_ratio"
            )
        return LotLedgerService.append_event(
            db,
            lot,
            LotEventType.SPLIT,
            split.occurred_at,
            amount=split.ratio,
            memo=split.memo or f"Split {split.ratio}:1",
        )

    @staticmethod
    def record_cash_event(
        db: Session,
        lot_id: str,
        event_type: LotEventType,
        data: LotCashEventCreate,
    ) -> LotEvent:
        """Record a DIVIDEND or an ADJUSTMENT against a lot."""
        if event_type not in (LotEventType.DIVIDEND, LotEventType.ADJUSTMENT):
            raise AccountingValidationError(
                f"{event_type.value} is not a cash event", reason="invalid_event_type"
            )
        if event_type == LotEventType.ADJUSTMENT and not data.memo:
            raise AccountingValidationError(
                "Adjustments require a memo explaining the correction",
                reason="memo_required",
            )
        lot = LotLedgerService.get_lot(db, lot_id)
        return LotLedgerService.append_event(
            db,
            lot,
            event_type,
            data.occurred_at,
            amount=data.amount,
            memo=data.memo,
        )

    # --- Snapshots ---

    @staticmethod
    def snapshot(db: Session, lot: Lot) -> LotSnapshot:
        """Replay one lot's events and allocations."""
        events = LotLedgerService.get_events(db, lot.id)
        allocations = db.query(PremiumAllocation).filter_by(lot_id=lot.id).all()
        return snapshot_lot(
            lot.initial_qty, lot.price_per_share, lot.fees_at_open, events, allocations
        )

    @staticmethod
    def get_lot_snapshot(db: Session, lot_id: str) -> tuple[Lot, LotSnapshot]:
        """Load a lot and build its snapshot."""
        lot = LotLedgerService.get_lot(db, lot_id)
        return lot, LotLedgerService.snapshot(db, lot)

    @staticmethod
    def list_lot_snapshots(
        db: Session, account_id: str
    ) -> list[tuple[Lot, LotSnapshot]]:
        """Snapshot every lot in an account.

        Issues three queries regardless of lot count (lots, then all their
        events, then all their allocations) and groups in memory.
        """
        lots = LotLedgerService.list_lots(db, account_id)
        if not lots:
            return []
        lot_ids = [lot.id for lot in lots]

        events = (
            db.query(LotEvent)
            .filter(LotEvent.lot_id.in_(lot_ids))
            .order_by(LotEvent.occurred_at.asc(), LotEvent.created_at.asc())
            .all()
        )
        allocations = (
            db.query(PremiumAllocation)
            .filter(PremiumAllocation.lot_id.in_(lot_ids))
            .all()
        )

        events_by_lot: dict[str, list[LotEvent]] = defaultdict(list)
        for event in events:
            events_by_lot[event.lot_id].append(event)
        allocations_by_lot: dict[str, list[PremiumAllocation]] = defaultdict(list)
        for allocation in allocations:
            allocations_by_lot[allocation.lot_id].append(allocation)

        return [
            (
                lot,
                snapshot_lot(
                    lot.initial_qty,
                    lot.price_per_share,
                    lot.fees_at_open,
                    events_by_lot[lot.id],
                    allocations_by_lot[lot.id],
                ),
            )
            for lot in lots
        ]


def _sale_memo(sale: LotSaleCreate) -> str:
    if sale.price_per_share is None:
        return "Sale"
    return f"Sold @ {sale.price_per_share}"

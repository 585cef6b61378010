"""Service for the short option position lifecycle.

Each public method is one workflow transition: it validates everything it
can before the first write, then records exactly one OptionTrade plus any
lot events and premium allocations the transition implies. Methods only
``flush()``; the caller commits (or rolls back) the whole transition as one
unit of work.
"""

import logging
import math
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.orm import Session, selectinload

from config import settings
from models import Lot, OptionPosition, OptionTrade, PremiumAllocation
from schemas.lot import LotEventType
from schemas.option import (
    AllocationInput,
    AssignCallRequest,
    AssignPutRequest,
    ExpireRequest,
    OptionCloseRequest,
    OptionOpenRequest,
    OptionStatus,
    OptionType,
    TradeAction,
)
from services.exceptions import AccountingValidationError, NotFoundError
from services.lot_ledger_service import LotLedgerService
from services.premium_allocator import (
    allocate_premium,
    close_premium,
    open_premium,
    validate_proportions,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass
class OpenOptionResult:
    """Records written by an open transition."""

    position: OptionPosition
    trade: OptionTrade
    total_premium: Decimal


@dataclass
class PutAssignmentResult:
    """Records written when a short put is assigned."""

    trade: OptionTrade
    lot: Lot


class OptionPositionService:
    """Drives option positions through OPEN -> ASSIGNED | EXPIRED | CLOSED."""

    # --- Queries ---

    @staticmethod
    def get_position(db: Session, position_id: str) -> OptionPosition:
        """Load an option position or raise NotFoundError."""
        position = db.query(OptionPosition).filter_by(id=position_id).first()
        if not position:
            raise NotFoundError(f"Option position {position_id} not found")
        return position

    @staticmethod
    def get_position_detail(db: Session, position_id: str) -> OptionPosition:
        """Load a position with its trades and their allocations."""
        position = (
            db.query(OptionPosition)
            .options(
                selectinload(OptionPosition.trades).selectinload(OptionTrade.allocations)
            )
            .filter_by(id=position_id)
            .first()
        )
        if not position:
            raise NotFoundError(f"Option position {position_id} not found")
        return position

    @staticmethod
    def list_positions(
        db: Session, account_id: str, status: OptionStatus | None = None
    ) -> list[OptionPosition]:
        """Get an account's option positions, newest first."""
        query = db.query(OptionPosition).filter_by(account_id=account_id)
        if status is not None:
            query = query.filter_by(status=status.value)
        return query.order_by(OptionPosition.opened_at.desc()).all()

    # --- Transitions ---

    @staticmethod
    def open_option(db: Session, data: OptionOpenRequest) -> OpenOptionResult:
        """Write a short option and book its premium against the given lots.

        Covered calls must be backed: each allocated lot needs at least
        ``ceil(contracts * multiplier * proportion)`` shares by replay.
        Cash-secured puts skip the share check.
        """
        validate_proportions(data.allocations)
        multiplier = settings.OPTION_CONTRACT_MULTIPLIER
        lots = OptionPositionService._load_allocation_lots(
            db, data.account_id, data.allocations
        )

        if data.type == OptionType.CALL:
            for alloc in data.allocations:
                lot = lots[alloc.lot_id]
                if lot.symbol != data.symbol:
                    raise AccountingValidationError(
                        f"Lot {lot.id} holds {lot.symbol}, not {data.symbol}",
                        reason="symbol_mismatch",
                    )
                required = math.ceil(data.contracts * multiplier * alloc.proportion)
                available = LotLedgerService.current_quantity(db, lot)
                if available < required:
                    raise AccountingValidationError(
                        f"Insufficient shares in lot {lot.symbol}: "
                        f"need {required}, have {available}",
                        reason="insufficient_shares",
                    )

        position = OptionPosition(
            account_id=data.account_id,
            symbol=data.symbol,
            type=data.type.value,
            side="SHORT",
            strike=data.strike,
            expiry=data.expiry,
            multiplier=multiplier,
            status=OptionStatus.OPEN.value,
            opened_at=data.opened_at,
        )
        db.add(position)
        db.flush()

        trade = OptionPositionService._record_trade(
            db,
            position,
            TradeAction.OPEN,
            data.opened_at,
            contracts=data.contracts,
            price_per_contract=data.price_per_contract,
            fees=data.fees,
        )
        total_premium = open_premium(data.contracts, data.price_per_contract, data.fees)
        OptionPositionService._write_allocations(
            db, trade, total_premium, data.fees, data.allocations
        )

        logger.info(
            "Opened short %s %s x%s strike %s exp %s (position %s, premium %s)",
            data.symbol,
            data.type.value,
            data.contracts,
            data.strike,
            data.expiry,
            position.id,
            total_premium,
        )
        return OpenOptionResult(position=position, trade=trade, total_premium=total_premium)

    @staticmethod
    def close_option(
        db: Session, position_id: str, data: OptionCloseRequest
    ) -> OptionTrade:
        """Buy contracts back, booking the debit as negative premium.

        The position's status is left as-is; call ``recompute_status`` to
        mark it CLOSED once all contracts are bought back.
        """
        position = OptionPositionService.get_position(db, position_id)
        OptionPositionService._require_open(position, "close")
        validate_proportions(data.allocations)
        OptionPositionService._load_allocation_lots(
            db, position.account_id, data.allocations
        )

        trade = OptionPositionService._record_trade(
            db,
            position,
            TradeAction.CLOSE,
            data.occurred_at,
            contracts=data.contracts,
            price_per_contract=data.price_per_contract,
            fees=data.fees,
        )
        total_premium = close_premium(data.contracts, data.price_per_contract, data.fees)
        OptionPositionService._write_allocations(
            db, trade, total_premium, data.fees, data.allocations
        )

        position.updated_at = datetime.now(timezone.utc)
        db.flush()
        logger.info(
            "Closed %s contracts of position %s (premium %s)",
            data.contracts,
            position.id,
            total_premium,
        )
        return trade

    @staticmethod
    def assign_call(
        db: Session, position_id: str, data: AssignCallRequest
    ) -> OptionTrade:
        """A covered call is exercised: shares leave the backing lot."""
        position = OptionPositionService.get_position(db, position_id)
        OptionPositionService._require_open(position, "assign")
        OptionPositionService._require_type(position, OptionType.CALL)
        OptionPositionService._require_open_contracts(db, position, data.contracts)
        lot = LotLedgerService.get_lot(db, data.lot_id)
        if lot.account_id != position.account_id:
            raise AccountingValidationError(
                f"Lot {lot.id} does not belong to account {position.account_id}",
                reason="account_mismatch",
            )
        if lot.symbol != position.symbol:
            raise AccountingValidationError(
                f"Lot {lot.id} holds {lot.symbol}, not {position.symbol}",
                reason="symbol_mismatch",
            )

        assigned_shares = data.contracts * position.multiplier
        available = LotLedgerService.current_quantity(db, lot)
        if available < assigned_shares:
            raise AccountingValidationError(
                f"Insufficient shares in lot {lot.symbol}: "
                f"need {assigned_shares}, have {available}",
                reason="insufficient_shares",
            )

        LotLedgerService.append_event(
            db,
            lot,
            LotEventType.ASSIGNED_AWAY,
            data.occurred_at,
            quantity=assigned_shares,
            memo="Covered call assignment",
        )
        trade = OptionPositionService._record_trade(
            db, position, TradeAction.ASSIGN, data.occurred_at, contracts=data.contracts
        )
        OptionPositionService._set_status(db, position, OptionStatus.ASSIGNED)
        logger.info(
            "Assigned call position %s: %s shares called away from lot %s",
            position.id,
            assigned_shares,
            lot.id,
        )
        return trade

    @staticmethod
    def assign_put(
        db: Session, position_id: str, data: AssignPutRequest
    ) -> PutAssignmentResult:
        """A cash-secured put is exercised: a new lot is bought at strike.

        The premium booked when the put was opened stays with the lots it
        was allocated to; it is not moved onto the new lot.
        """
        position = OptionPositionService.get_position(db, position_id)
        OptionPositionService._require_open(position, "assign")
        OptionPositionService._require_type(position, OptionType.PUT)
        OptionPositionService._require_open_contracts(db, position, data.contracts)
        if data.account_id != position.account_id:
            raise AccountingValidationError(
                f"Option position {position.id} does not belong to "
                f"account {data.account_id}",
                reason="account_mismatch",
            )

        shares = data.contracts * position.multiplier
        lot = Lot(
            account_id=data.account_id,
            symbol=position.symbol,
            opened_at=data.occurred_at,
            initial_qty=shares,
            current_qty=shares,
            price_per_share=position.strike,
            fees_at_open=ZERO,
            notes="Assignment from short put",
        )
        db.add(lot)
        db.flush()

        LotLedgerService.append_event(
            db,
            lot,
            LotEventType.ASSIGNMENT_IN,
            data.occurred_at,
            quantity=shares,
            memo="Received shares from cash-secured put assignment",
            is_opening=True,
        )
        trade = OptionPositionService._record_trade(
            db, position, TradeAction.ASSIGN, data.occurred_at, contracts=data.contracts
        )
        OptionPositionService._set_status(db, position, OptionStatus.ASSIGNED)
        logger.info(
            "Assigned put position %s: new lot %s with %s shares of %s @ %s",
            position.id,
            lot.id,
            shares,
            position.symbol,
            position.strike,
        )
        return PutAssignmentResult(trade=trade, lot=lot)

    @staticmethod
    def expire_option(
        db: Session, position_id: str, data: ExpireRequest
    ) -> OptionTrade:
        """The option expires worthless; premium booked at open is kept."""
        position = OptionPositionService.get_position(db, position_id)
        OptionPositionService._require_open(position, "expire")

        trade = OptionPositionService._record_trade(
            db,
            position,
            TradeAction.EXPIRE,
            data.occurred_at,
            contracts=data.contracts or 0,
        )
        OptionPositionService._set_status(db, position, OptionStatus.EXPIRED)
        logger.info("Expired option position %s", position.id)
        return trade

    @staticmethod
    def recompute_status(db: Session, position_id: str) -> OptionPosition:
        """Mark an OPEN position CLOSED once its CLOSE contracts cover its OPEN ones.

        Close trades never change status on their own; this is the explicit
        aggregation step. Terminal positions are returned unchanged.
        """
        position = OptionPositionService.get_position(db, position_id)
        if position.status != OptionStatus.OPEN.value:
            return position

        opened, closed = OptionPositionService._contract_totals(db, position)
        if opened - closed <= 0:
            OptionPositionService._set_status(db, position, OptionStatus.CLOSED)
            logger.info(
                "Position %s fully closed (%s opened, %s closed)",
                position.id,
                opened,
                closed,
            )
        return position

    # --- Helpers ---

    @staticmethod
    def _require_open(position: OptionPosition, action: str) -> None:
        if position.status != OptionStatus.OPEN.value:
            raise AccountingValidationError(
                f"Cannot {action} option position {position.id}: "
                f"status is {position.status}",
                reason="position_not_open",
            )

    @staticmethod
    def _require_type(position: OptionPosition, option_type: OptionType) -> None:
        if position.type != option_type.value:
            raise AccountingValidationError(
                f"Option position {position.id} is a {position.type}, "
                f"not a {option_type.value}",
                reason="option_type_mismatch",
            )

    @staticmethod
    def _contract_totals(db: Session, position: OptionPosition) -> tuple[int, int]:
        """Contracts opened and contracts bought back on a position."""
        trades = db.query(OptionTrade).filter_by(option_position_id=position.id).all()
        opened = sum(t.contracts for t in trades if t.action == TradeAction.OPEN.value)
        closed = sum(t.contracts for t in trades if t.action == TradeAction.CLOSE.value)
        return opened, closed

    @staticmethod
    def _require_open_contracts(
        db: Session, position: OptionPosition, contracts: int
    ) -> None:
        opened, closed = OptionPositionService._contract_totals(db, position)
        outstanding = opened - closed
        if contracts > outstanding:
            raise AccountingValidationError(
                f"Cannot assign {contracts} contracts on option position "
                f"{position.id}: only {outstanding} open",
                reason="contracts_exceed_open",
            )

    @staticmethod
    def _load_allocation_lots(
        db: Session, account_id: str, allocations: list[AllocationInput]
    ) -> dict[str, Lot]:
        """Load every allocated lot, checking it exists and is the account's.

        Each lot may appear only once per trade.
        """
        lot_ids = {a.lot_id for a in allocations}
        if len(lot_ids) != len(allocations):
            counts = Counter(a.lot_id for a in allocations)
            duplicate = next(lot_id for lot_id, n in counts.items() if n > 1)
            raise AccountingValidationError(
                f"Lot {duplicate} appears more than once in allocations",
                reason="duplicate_allocation",
            )
        lots = {lot.id: lot for lot in db.query(Lot).filter(Lot.id.in_(lot_ids)).all()}
        for lot_id in sorted(lot_ids):
            lot = lots.get(lot_id)
            if lot is None:
                raise NotFoundError(f"Lot {lot_id} not found")
            if lot.account_id != account_id:
                raise AccountingValidationError(
                    f"Lot {lot_id} does not belong to account {account_id}",
                    reason="account_mismatch",
                )
        return lots

    @staticmethod
    def _record_trade(
        db: Session,
        position: OptionPosition,
        action: TradeAction,
        occurred_at: datetime,
        contracts: int,
        price_per_contract: Decimal = ZERO,
        fees: Decimal = ZERO,
    ) -> OptionTrade:
        trade = OptionTrade(
            option_position_id=position.id,
            action=action.value,
            occurred_at=occurred_at,
            contracts=contracts,
            price_per_contract=price_per_contract,
            fees=fees,
        )
        db.add(trade)
        db.flush()
        return trade

    @staticmethod
    def _write_allocations(
        db: Session,
        trade: OptionTrade,
        total_premium: Decimal,
        total_fees: Decimal,
        allocations: list[AllocationInput],
    ) -> list[PremiumAllocation]:
        records = [
            PremiumAllocation(
                option_trade_id=trade.id,
                lot_id=line.lot_id,
                premium=line.premium,
                fees=line.fees,
                proportion=line.proportion,
            )
            for line in allocate_premium(total_premium, total_fees, allocations)
        ]
        db.add_all(records)
        db.flush()
        return records

    @staticmethod
    def _set_status(db: Session, position: OptionPosition, status: OptionStatus) -> None:
        position.status = status.value
        position.updated_at = datetime.now(timezone.utc)
        db.flush()

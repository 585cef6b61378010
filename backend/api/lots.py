"""Lot ledger API endpoints."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.helpers import unit_of_work
from database import get_db
from models import Lot
from schemas.lot import (
    LotCashEventCreate,
    LotCreate,
    LotEventResponse,
    LotEventType,
    LotResponse,
    LotSaleCreate,
    LotSnapshotBody,
    LotSnapshotResponse,
    LotSplitCreate,
)
from services.lot_ledger_service import LotLedgerService
from services.lot_math import LotSnapshot

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/lots", tags=["lots"])


def _snapshot_response_dict(lot: Lot, snapshot: LotSnapshot) -> dict:
    return {
        "lot": LotResponse.model_validate(lot),
        "snapshot": LotSnapshotBody.model_validate(snapshot),
    }


@router.post("", response_model=LotResponse, status_code=201)
def create_lot(lot_data: LotCreate, db: Session = Depends(get_db)):
    """Open a new lot."""
    with unit_of_work(db):
        lot = LotLedgerService.create_lot(db, lot_data)
    db.refresh(lot)
    return lot


@router.get("", response_model=list[LotResponse])
def list_lots(account_id: str = Query(min_length=1), db: Session = Depends(get_db)):
    """Get all lots for an account."""
    return LotLedgerService.list_lots(db, account_id)


@router.get("/snapshots", response_model=list[LotSnapshotResponse])
def list_lot_snapshots(
    account_id: str = Query(min_length=1), db: Session = Depends(get_db)
):
    """Get every lot in an account with its replayed snapshot."""
    return [
        _snapshot_response_dict(lot, snapshot)
        for lot, snapshot in LotLedgerService.list_lot_snapshots(db, account_id)
    ]


@router.get("/{lot_id}/snapshot", response_model=LotSnapshotResponse)
def get_lot_snapshot(lot_id: str, db: Session = Depends(get_db)):
    """Get one lot with its replayed snapshot."""
    lot, snapshot = LotLedgerService.get_lot_snapshot(db, lot_id)
    return _snapshot_response_dict(lot, snapshot)


@router.get("/{lot_id}/events", response_model=list[LotEventResponse])
def list_lot_events(lot_id: str, db: Session = Depends(get_db)):
    """Get a lot's event log in replay order."""
    LotLedgerService.get_lot(db, lot_id)
    return LotLedgerService.get_events(db, lot_id)


@router.post("/{lot_id}/sell", response_model=LotEventResponse, status_code=201)
def sell_from_lot(lot_id: str, sale: LotSaleCreate, db: Session = Depends(get_db)):
    """Sell shares out of a lot."""
    with unit_of_work(db):
        event = LotLedgerService.record_sale(db, lot_id, sale)
    return event


@router.post("/{lot_id}/split", response_model=LotEventResponse, status_code=201)
def split_lot(lot_id: str, split: LotSplitCreate, db: Session = Depends(get_db)):
    """Record a stock split against a lot."""
    with unit_of_work(db):
        event = LotLedgerService.record_split(db, lot_id, split)
    return event


@router.post("/{lot_id}/dividend", response_model=LotEventResponse, status_code=201)
def record_dividend(
    lot_id: str, data: LotCashEventCreate, db: Session = Depends(get_db)
):
    """Record a dividend received on a lot."""
    with unit_of_work(db):
        event = LotLedgerService.record_cash_event(
            db, lot_id, LotEventType.DIVIDEND, data
        )
    return event


@router.post("/{lot_id}/adjustment", response_model=LotEventResponse, status_code=201)
def record_adjustment(
    lot_id: str, data: LotCashEventCreate, db: Session = Depends(get_db)
):
    """Append a correcting adjustment to a lot."""
    with unit_of_work(db):
        event = LotLedgerService.record_cash_event(
            db, lot_id, LotEventType.ADJUSTMENT, data
        )
    return event

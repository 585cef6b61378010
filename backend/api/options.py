"""Short option position API endpoints."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.helpers import unit_of_work
from database import get_db
from schemas.option import (
    AssignCallRequest,
    AssignPutRequest,
    ExpireRequest,
    OpenOptionResponse,
    OptionCloseRequest,
    OptionOpenRequest,
    OptionPositionDetailResponse,
    OptionPositionResponse,
    OptionStatus,
    PutAssignmentResponse,
    TradeResultResponse,
)
from services.option_position_service import OptionPositionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/options", tags=["options"])


@router.get("", response_model=list[OptionPositionResponse])
def list_option_positions(
    account_id: str = Query(min_length=1),
    status: OptionStatus | None = Query(default=None),
    db: Session = Depends(get_db),
):
    """Get an account's option positions, optionally filtered by status."""
    return OptionPositionService.list_positions(db, account_id, status)


@router.post("/open", response_model=OpenOptionResponse, status_code=201)
def open_option(data: OptionOpenRequest, db: Session = Depends(get_db)):
    """Write a covered call or cash-secured put."""
    with unit_of_work(db):
        result = OptionPositionService.open_option(db, data)
    return {
        "position_id": result.position.id,
        "trade_id": result.trade.id,
        "total_premium": result.total_premium,
    }


@router.get("/{position_id}", response_model=OptionPositionDetailResponse)
def get_option_position(position_id: str, db: Session = Depends(get_db)):
    """Get one option position with its trades and allocations."""
    return OptionPositionService.get_position_detail(db, position_id)


@router.post("/{position_id}/close", response_model=TradeResultResponse, status_code=201)
def close_option(
    position_id: str, data: OptionCloseRequest, db: Session = Depends(get_db)
):
    """Buy back contracts of a short option."""
    with unit_of_work(db):
        trade = OptionPositionService.close_option(db, position_id, data)
    return {"trade_id": trade.id}


@router.post(
    "/{position_id}/assign-call", response_model=TradeResultResponse, status_code=201
)
def assign_call(
    position_id: str, data: AssignCallRequest, db: Session = Depends(get_db)
):
    """Record a covered call being exercised against a lot."""
    with unit_of_work(db):
        trade = OptionPositionService.assign_call(db, position_id, data)
    return {"trade_id": trade.id}


@router.post(
    "/{position_id}/assign-put", response_model=PutAssignmentResponse, status_code=201
)
def assign_put(
    position_id: str, data: AssignPutRequest, db: Session = Depends(get_db)
):
    """Record a cash-secured put being exercised; opens a lot at strike."""
    with unit_of_work(db):
        result = OptionPositionService.assign_put(db, position_id, data)
    return {"trade_id": result.trade.id, "lot_id": result.lot.id}


@router.post("/{position_id}/expire", response_model=TradeResultResponse, status_code=201)
def expire_option(
    position_id: str, data: ExpireRequest, db: Session = Depends(get_db)
):
    """Record a short option expiring worthless."""
    with unit_of_work(db):
        trade = OptionPositionService.expire_option(db, position_id, data)
    return {"trade_id": trade.id}


@router.post("/{position_id}/recompute-status", response_model=OptionPositionResponse)
def recompute_status(position_id: str, db: Session = Depends(get_db)):
    """Mark a fully bought-back position CLOSED."""
    with unit_of_work(db):
        position = OptionPositionService.recompute_status(db, position_id)
    db.refresh(position)
    return position

"""Test fixtures and sample data."""
from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from models import Lot, OptionPosition
from schemas.lot import LotCreate
from schemas.option import AllocationInput, OptionOpenRequest, OptionType
from services.lot_ledger_service import LotLedgerService
from services.option_position_service import OptionPositionService

ACCOUNT_ID = "acct-0001"
OTHER_ACCOUNT_ID = "acct-0002"


def create_lot(
    db: Session,
    account_id: str = ACCOUNT_ID,
    symbol: str = "AAPL",
    quantity: int = 100,
    price_per_share: Decimal = Decimal("150.00"),
    fees: Decimal = Decimal("0"),
    opened_at: datetime = datetime(2025, 1, 15, 14, 30),
) -> Lot:
    """Create a lot through the ledger service.

    This is a helper function (not a fixture) for tests that need several
    lots with different terms.
    """
    return LotLedgerService.create_lot(
        db,
        LotCreate(
            account_id=account_id,
            symbol=symbol,
            opened_at=opened_at,
            quantity=quantity,
            price_per_share=price_per_share,
            fees=fees,
        ),
    )


def open_request(
    lot_ids: list[str],
    proportions: list[Decimal] | None = None,
    option_type: OptionType = OptionType.CALL,
    contracts: int = 1,
    price_per_contract: Decimal = Decimal("250.00"),
    fees: Decimal = Decimal("1.00"),
    symbol: str = "AAPL",
    strike: Decimal = Decimal("160.00"),
    account_id: str = ACCOUNT_ID,
) -> OptionOpenRequest:
    """Build an OptionOpenRequest; proportions default to an even split."""
    if proportions is None:
        proportions = [Decimal("1") / len(lot_ids)] * len(lot_ids)
    return OptionOpenRequest(
        account_id=account_id,
        symbol=symbol,
        type=option_type,
        contracts=contracts,
        strike=strike,
        expiry=date(2025, 3, 21),
        price_per_contract=price_per_contract,
        fees=fees,
        opened_at=datetime(2025, 2, 1, 15, 0),
        allocations=[
            AllocationInput(lot_id=lot_id, proportion=p)
            for lot_id, p in zip(lot_ids, proportions)
        ],
    )


def open_position(db: Session, request: OptionOpenRequest) -> OptionPosition:
    """Open an option through the workflow service and return the position."""
    return OptionPositionService.open_option(db, request).position


@pytest.fixture
def account_id() -> str:
    return ACCOUNT_ID


@pytest.fixture
def other_account_id() -> str:
    return OTHER_ACCOUNT_ID


@pytest.fixture
def aapl_lot(db: Session) -> Lot:
    """100 shares of AAPL at $150, no fees."""
    lot = create_lot(db)
    db.commit()
    db.refresh(lot)
    return lot

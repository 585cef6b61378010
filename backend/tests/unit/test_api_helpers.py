"""Tests for shared API helpers."""

import pytest
from sqlalchemy import text
from sqlalchemy.orm import Session

from api.helpers import unit_of_work
from models import Lot, LotEvent
from schemas.lot import LotSaleCreate
from services.exceptions import ConcurrencyConflictError
from services.lot_ledger_service import LotLedgerService
from tests.fixtures import create_lot


class TestUnitOfWork:
    """Tests for unit_of_work."""

    def test_commits_on_success(self, db: Session):
        with unit_of_work(db):
            lot = create_lot(db)

        db.expire_all()
        assert db.query(Lot).filter_by(id=lot.id).count() == 1

    def test_rolls_back_on_error(self, db: Session):
        with pytest.raises(RuntimeError):
            with unit_of_work(db):
                create_lot(db)
                raise RuntimeError("boom")

        assert db.query(Lot).count() == 0

    def test_rolls_back_partial_workflow(self, db: Session, aapl_lot: Lot):
        """Events flushed before a failure are discarded with it."""
        with pytest.raises(RuntimeError):
            with unit_of_work(db):
                LotLedgerService.record_sale(
                    db, aapl_lot.id, LotSaleCreate(occurred_at="2025-04-01T10:00:00", quantity=10)
                )
                raise RuntimeError("later step failed")

        assert db.query(LotEvent).count() == 0
        db.refresh(aapl_lot)
        assert aapl_lot.current_qty == 100

    def test_stale_version_becomes_conflict(self, db: Session, aapl_lot: Lot):
        """A lot rewritten by another request since it was loaded is a conflict."""
        db.execute(
            text("UPDATE lots SET version = version + 1 WHERE id = :id"),
            {"id": aapl_lot.id},
        )

        with pytest.raises(ConcurrencyConflictError) as exc_info:
            with unit_of_work(db):
                LotLedgerService.record_sale(
                    db, aapl_lot.id, LotSaleCreate(occurred_at="2025-04-01T10:00:00", quantity=10)
                )
        assert exc_info.value.status_code == 409
        assert exc_info.value.reason == "concurrency_conflict"
        assert db.query(LotEvent).count() == 0

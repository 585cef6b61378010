"""LotEvent model - an immutable fact about a lot."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid


class LotEvent(Base):
    """Append-only record of something that changed a lot's quantity or cash.

    ``quantity`` is read per type (shares out for SELL/ASSIGNED_AWAY, shares
    in for BUY/ASSIGNMENT_IN). ``amount`` is the split ratio for SPLIT, the
    cash amount for DIVIDEND/ADJUSTMENT and the per-share price for SELL.
    ``fees`` is the commission paid on a SELL.
    Opening events restate quantity already held in the lot's
    ``initial_qty`` and are skipped on replay.
    """

    __tablename__ = "lot_events"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    lot_id = Column(String(36), ForeignKey("lots.id"), nullable=False, index=True)
    occurred_at = Column(DateTime, nullable=False, index=True)
    type = Column(String, nullable=False)  # see schemas.lot.LotEventType
    quantity = Column(Integer, nullable=True)
    amount = Column(Numeric(18, 6), nullable=True)
    fees = Column(Numeric(18, 6), nullable=True)
    memo = Column(String, nullable=True)
    is_opening = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    lot = relationship("Lot", back_populates="events")

"""Lot model - a block of shares with a single acquisition basis."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, Numeric, String
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid


class Lot(Base):
    """A block of shares bought (or assigned) at one price.

    Opening terms are immutable. ``current_qty`` is a cached projection
    rewritten from a replay of the lot's events after every append; the
    event log is the source of truth. A lot is never deleted and is
    economically closed once its quantity reaches zero.
    """

    __tablename__ = "lots"
    __table_args__ = (
        CheckConstraint("initial_qty > 0", name="ck_lot_initial_qty_positive"),
        CheckConstraint("current_qty >= 0", name="ck_lot_current_qty_non_negative"),
        CheckConstraint("price_per_share >= 0", name="ck_lot_price_non_negative"),
        CheckConstraint("fees_at_open >= 0", name="ck_lot_fees_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    account_id = Column(String(36), nullable=False, index=True)
    symbol = Column(String, nullable=False, index=True)
    opened_at = Column(DateTime, nullable=False)
    initial_qty = Column(Integer, nullable=False)
    current_qty = Column(Integer, nullable=False)
    price_per_share = Column(Numeric(18, 6), nullable=False)
    fees_at_open = Column(Numeric(18, 6), nullable=False, default=Decimal("0"))
    notes = Column(String, nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    events = relationship("LotEvent", back_populates="lot", order_by="LotEvent.occurred_at")
    allocations = relationship("PremiumAllocation", back_populates="lot")

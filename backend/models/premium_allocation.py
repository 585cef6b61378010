"""PremiumAllocation model - one lot's share of an option trade's premium."""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid


class PremiumAllocation(Base):
    """Apportions an option trade's premium and fees to a lot.

    Premium is signed: positive when received (OPEN), negative when paid
    (CLOSE). Written once and never mutated.
    """

    __tablename__ = "premium_allocations"
    __table_args__ = (
        CheckConstraint(
            "proportion >= 0 AND proportion <= 1",
            name="ck_premium_allocation_proportion_range",
        ),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    option_trade_id = Column(
        String(36), ForeignKey("option_trades.id"), nullable=False, index=True
    )
    lot_id = Column(String(36), ForeignKey("lots.id"), nullable=False, index=True)
    premium = Column(Numeric(18, 6), nullable=False)
    fees = Column(Numeric(18, 6), nullable=False)
    proportion = Column(Numeric(9, 6), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    option_trade = relationship("OptionTrade", back_populates="allocations")
    lot = relationship("Lot", back_populates="allocations")

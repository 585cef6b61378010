"""OptionTrade model - one action taken against an option position."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid


class OptionTrade(Base):
    """An OPEN, CLOSE, ASSIGN or EXPIRE action. Append-only."""

    __tablename__ = "option_trades"
    __table_args__ = (
        CheckConstraint("contracts >= 0", name="ck_option_trade_contracts_non_negative"),
        CheckConstraint("fees >= 0", name="ck_option_trade_fees_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    option_position_id = Column(
        String(36), ForeignKey("option_positions.id"), nullable=False, index=True
    )
    action = Column(String, nullable=False)  # "OPEN" / "CLOSE" / "ASSIGN" / "EXPIRE"
    occurred_at = Column(DateTime, nullable=False)
    contracts = Column(Integer, nullable=False)
    price_per_contract = Column(Numeric(18, 6), nullable=False, default=Decimal("0"))
    fees = Column(Numeric(18, 6), nullable=False, default=Decimal("0"))
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    option_position = relationship("OptionPosition", back_populates="trades")
    allocations = relationship("PremiumAllocation", back_populates="option_trade")

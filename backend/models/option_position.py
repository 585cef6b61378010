"""OptionPosition model - a short option contract."""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, Date, DateTime, Integer, Numeric, String
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid


class OptionPosition(Base):
    """A short CALL (covered by lots) or short PUT (cash-secured).

    Status moves OPEN -> ASSIGNED | EXPIRED | CLOSED and never leaves a
    terminal state.
    """

    __tablename__ = "option_positions"
    __table_args__ = (
        CheckConstraint("strike > 0", name="ck_option_position_strike_positive"),
        CheckConstraint("multiplier > 0", name="ck_option_position_multiplier_positive"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    account_id = Column(String(36), nullable=False, index=True)
    symbol = Column(String, nullable=False, index=True)
    type = Column(String, nullable=False)  # "CALL" / "PUT"
    side = Column(String, nullable=False, default="SHORT")
    strike = Column(Numeric(18, 6), nullable=False)
    expiry = Column(Date, nullable=False)
    multiplier = Column(Integer, nullable=False, default=100)
    status = Column(String, nullable=False, default="OPEN", index=True)
    opened_at = Column(DateTime, nullable=False)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    trades = relationship(
        "OptionTrade",
        back_populates="option_position",
        order_by="OptionTrade.occurred_at",
    )

"""SQLAlchemy ORM models."""

from .lot import Lot
from .lot_event import LotEvent
from .option_position import OptionPosition
from .option_trade import OptionTrade
from .premium_allocation import PremiumAllocation
from .utils import generate_uuid

__all__ = ["Lot", "LotEvent", "OptionPosition", "OptionTrade", "PremiumAllocation", "generate_uuid"]

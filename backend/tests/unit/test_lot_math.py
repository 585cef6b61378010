"""Tests for lot snapshot replay."""

from decimal import Decimal

from models import LotEvent, PremiumAllocation
from services.lot_math import (
    LotSnapshot,
    net_premium,
    replay_quantity,
    round_money,
    round_price,
    snapshot_lot,
    to_decimal,
)


def event(event_type: str, quantity: int | None = None, amount=None, is_opening=False) -> LotEvent:
    return LotEvent(type=event_type, quantity=quantity, amount=amount, is_opening=is_opening)


def allocation(premium, fees="0") -> PremiumAllocation:
    return PremiumAllocation(premium=Decimal(premium), fees=Decimal(fees))


class TestReplayQuantity:
    def test_no_events_returns_initial(self):
        assert replay_quantity(100, []) == 100

    def test_sell_reduces(self):
        assert replay_quantity(100, [event("SELL", 30)]) == 70

    def test_assigned_away_reduces(self):
        assert replay_quantity(100, [event("ASSIGNED_AWAY", 100)]) == 0

    def test_excess_sell_clamps_at_zero(self):
        events = [event("SELL", 60), event("SELL", 60), event("ASSIGNED_AWAY", 500)]
        assert replay_quantity(100, events) == 0

    def test_negative_outflow_is_ignored(self):
        assert replay_quantity(100, [event("SELL", -40)]) == 100

    def test_missing_quantity_defaults_to_zero(self):
        assert replay_quantity(100, [event("SELL"), event("BUY")]) == 100

    def test_buy_and_assignment_in_add(self):
        events = [event("BUY", 25), event("ASSIGNMENT_IN", 100)]
        assert replay_quantity(100, events) == 225

    def test_split_multiplies(self):
        assert replay_quantity(100, [event("SPLIT", amount=Decimal("2"))]) == 200

    def test_reverse_split_rounds_half_up(self):
        # 75 * 0.5 = 37.5 -> 38
        assert replay_quantity(75, [event("SPLIT", amount=Decimal("0.5"))]) == 38

    def test_split_with_missing_or_zero_ratio_is_noop(self):
        events = [event("SPLIT"), event("SPLIT", amount=Decimal("0"))]
        assert replay_quantity(100, events) == 100

    def test_split_with_negative_ratio_is_noop(self):
        assert replay_quantity(100, [event("SPLIT", amount=Decimal("-2"))]) == 100

    def test_cash_events_do_not_touch_quantity(self):
        events = [
            event("DIVIDEND", amount=Decimal("24.00")),
            event("ADJUSTMENT", quantity=50, amount=Decimal("-3.00")),
        ]
        assert replay_quantity(100, events) == 100

    def test_opening_events_are_skipped(self):
        assert replay_quantity(100, [event("ASSIGNMENT_IN", 100, is_opening=True)]) == 100

    def test_order_matters(self):
        """Sell-then-split differs from split-then-sell."""
        sell_first = [event("SELL", 50), event("SPLIT", amount=Decimal("2"))]
        split_first = [event("SPLIT", amount=Decimal("2")), event("SELL", 50)]
        assert replay_quantity(100, sell_first) == 100
        assert replay_quantity(100, split_first) == 150


class TestNetPremium:
    def test_premium_less_fees(self):
        allocs = [allocation("249", "1"), allocation("-51", "1")]
        assert net_premium(allocs) == Decimal("196")

    def test_empty(self):
        assert net_premium([]) == Decimal("0")


class TestSnapshotLot:
    def test_plain_lot(self):
        snap = snapshot_lot(100, Decimal("150"), Decimal("5"), [], [])
        assert snap == LotSnapshot(
            current_qty=100,
            gross_cost=Decimal("15005.00"),
            net_premium=Decimal("0.00"),
            effective_basis=Decimal("15005.00"),
            effective_price_per_share=Decimal("150.0500"),
        )

    def test_premium_reduces_effective_basis(self):
        snap = snapshot_lot(100, Decimal("150"), Decimal("0"), [], [allocation("249", "1")])
        assert snap.gross_cost == Decimal("15000.00")
        assert snap.net_premium == Decimal("248.00")
        assert snap.effective_basis == Decimal("14752.00")
        assert snap.effective_price_per_share == Decimal("147.5200")

    def test_gross_cost_ignores_sales(self):
        snap = snapshot_lot(100, Decimal("150"), Decimal("0"), [event("SELL", 40)], [])
        assert snap.current_qty == 60
        assert snap.gross_cost == Decimal("15000.00")
        assert snap.effective_price_per_share == Decimal("250.0000")

    def test_split_keeps_cost_and_halves_price(self):
        before = snapshot_lot(100, Decimal("150"), Decimal("0"), [], [])
        after = snapshot_lot(
            100, Decimal("150"), Decimal("0"), [event("SPLIT", amount=Decimal("2"))], []
        )
        assert after.current_qty == 200
        assert after.gross_cost == before.gross_cost
        assert after.effective_price_per_share == before.effective_price_per_share / 2

    def test_zero_quantity_has_zero_price(self):
        snap = snapshot_lot(
            100, Decimal("150"), Decimal("0"), [event("ASSIGNED_AWAY", 100)], [allocation("249", "1")]
        )
        assert snap.current_qty == 0
        assert snap.effective_price_per_share == Decimal("0.0000")
        assert snap.effective_basis == Decimal("14752.00")

    def test_price_rounds_to_four_places(self):
        # 10000 / 3 = 3333.33333...
        snap = snapshot_lot(3, Decimal("3333.333333"), Decimal("0.000001"), [], [])
        assert snap.effective_price_per_share == Decimal("3333.3333")

    def test_accepts_floats_and_none(self):
        snap = snapshot_lot(10, 12.5, None, [], [])
        assert snap.gross_cost == Decimal("125.00")

    def test_replay_is_deterministic(self):
        events = [event("SELL", 10), event("SPLIT", amount=Decimal("3")), event("DIVIDEND", amount=Decimal("4"))]
        allocs = [allocation("120.50", "0.65"), allocation("-30.25", "0.65")]
        first = snapshot_lot(50, Decimal("41.37"), Decimal("1.00"), events, allocs)
        second = snapshot_lot(50, Decimal("41.37"), Decimal("1.00"), events, allocs)
        assert first == second


class TestRounding:
    def test_round_money_half_up(self):
        assert round_money(Decimal("1.005")) == Decimal("1.01")
        assert round_money(Decimal("-1.004")) == Decimal("-1.00")

    def test_round_price(self):
        assert round_price(Decimal("147.52005")) == Decimal("147.5201")

    def test_to_decimal(self):
        assert to_decimal(None) == Decimal("0")
        assert to_decimal("2.5") == Decimal("2.5")
        assert to_decimal(0.1) == Decimal("0.1")

"""Tests for the position ledger."""

import pytest

from peakbot.config.defaults import TradingParams
from peakbot.errors import (
    InsufficientBalanceError,
    MaxPositionsReachedError,
    NoPositionError,
    PositionExistsError,
    ValidationRejection,
)
from peakbot.state.ledger import PositionLedger
from peakbot.state.models import PositionState, TradeKind


def open_cost(ledger):
    return sum(p.cost_basis for p in ledger.positions_snapshot())


class TestBuy:
    """Test opening positions."""

    def test_buy_scenario(self, ledger):
        quantity = 2500 / 102
        trade = ledger.buy("SOL", 102.0, quantity, "Price increased 2.00% from low")

        assert trade.kind == TradeKind.BUY
        assert trade.notional == pytest.approx(2500.0)
        assert ledger.balance == pytest.approx(7500.0)
        assert ledger.available_balance == ledger.balance
        position = ledger.get_position("SOL")
        assert position.entry_price == 102.0
        assert position.peak_price == 102.0
        assert position.quantity == pytest.approx(24.5098, abs=1e-4)
        assert ledger.position_state("SOL") == PositionState.HELD
        assert ledger.stats.total_trades == 1

    def test_buy_resets_tracker_extrema(self, ledger, tracker):
        tracker.start_monitoring("SOL", 100.0)
        tracker.observe_price("SOL", 102.0)

        ledger.buy("SOL", 102.0, 1.0, "test")

        inst = tracker.get("SOL")
        assert inst.lowest_price == inst.highest_price == 102.0

    def test_existing_position_rejected(self, ledger):
        ledger.buy("SOL", 100.0, 1.0, "first")
        with pytest.raises(PositionExistsError):
            ledger.buy("SOL", 100.0, 1.0, "second")
        assert ledger.balance == pytest.approx(9900.0)
        assert len(ledger.trade_history()) == 1

    def test_fifth_position_rejected(self, ledger):
        for symbol in ("A", "B", "C", "D"):
            ledger.buy(symbol, 10.0, 10.0, "fill")

        with pytest.raises(MaxPositionsReachedError) as exc_info:
            ledger.buy("E", 10.0, 10.0, "overflow")

        assert exc_info.value.max_positions == 4
        assert ledger.open_position_count() == 4
        assert not ledger.can_open_position()
        assert not ledger.has_position("E")

    def test_notional_above_balance_rejected(self, ledger):
        with pytest.raises(InsufficientBalanceError) as exc_info:
            ledger.buy("BTC", 50000.0, 1.0, "too big")
        assert exc_info.value.balance == 10000.0
        assert ledger.balance == 10000.0
        assert ledger.open_position_count() == 0

    def test_notional_below_minimum_rejected(self, ledger):
        with pytest.raises(InsufficientBalanceError):
            ledger.buy("PEPE", 0.5, 1.0, "dust")

    def test_rejections_are_validation_rejections(self, ledger):
        with pytest.raises(ValidationRejection):
            ledger.sell("NOPE", 1.0, "nothing held")

    @pytest.mark.parametrize("price,quantity", [(0.0, 1.0), (1.0, 0.0), (-1.0, 5.0)])
    def test_non_positive_inputs_raise(self, ledger, price, quantity):
        with pytest.raises(ValueError):
            ledger.buy("SOL", price, quantity, "bad")


class TestSell:
    """Test closing positions."""

    def test_sell_scenario(self, ledger):
        quantity = 2500 / 102
        ledger.buy("SOL", 102.0, quantity, "entry")
        ledger.update_peak("SOL", 110.0)

        trade = ledger.sell("SOL", 106.59, "Price dropped 3.10% from peak $110.00")

        assert trade.kind == TradeKind.SELL
        assert trade.profit == pytest.approx(quantity * 4.59)
        assert trade.profit_percent == pytest.approx(4.5, abs=1e-9)
        assert trade.entry_price == 102.0
        assert trade.peak_price == 110.0
        assert ledger.balance == pytest.approx(7500.0 + quantity * 106.59)
        assert ledger.stats.winning_trades == 1
        assert ledger.stats.losing_trades == 0
        assert ledger.position_state("SOL") == PositionState.FLAT

    def test_break_even_counts_as_loss(self, ledger):
        ledger.buy("SOL", 10.0, 10.0, "entry")
        trade = ledger.sell("SOL", 10.0, "flat exit")
        assert trade.profit == 0.0
        assert ledger.stats.losing_trades == 1
        assert ledger.stats.winning_trades == 0

    def test_sell_without_position_leaves_ledger_unchanged(self, ledger):
        ledger.buy("BTC", 100.0, 1.0, "entry")
        before = (ledger.balance, ledger.stats, len(ledger.trade_history()))

        with pytest.raises(NoPositionError):
            ledger.sell("SOL", 100.0, "ghost")

        assert (ledger.balance, ledger.stats, len(ledger.trade_history())) == before

    def test_sell_resets_tracker_extrema(self, ledger, tracker):
        tracker.start_monitoring("SOL", 10.0)
        ledger.buy("SOL", 10.0, 10.0, "entry")
        tracker.observe_price("SOL", 12.0)
        tracker.observe_price("SOL", 11.0)

        ledger.sell("SOL", 11.0, "exit")

        inst = tracker.get("SOL")
        assert inst.lowest_price == inst.highest_price == 11.0


class TestConservation:
    """Balance plus cost basis equals initial balance plus realized profit."""

    def test_conservation_across_trades(self, ledger):
        realized = 0.0
        ledger.buy("A", 10.0, 100.0, "a")
        ledger.buy("B", 20.0, 30.0, "b")
        assert ledger.balance + open_cost(ledger) == pytest.approx(10000.0)

        realized += ledger.sell("A", 12.5, "a out").profit
        assert ledger.balance + open_cost(ledger) == pytest.approx(10000.0 + realized)

        ledger.buy("C", 5.0, 40.0, "c")
        realized += ledger.sell("B", 18.0, "b out").profit
        assert ledger.balance + open_cost(ledger) == pytest.approx(10000.0 + realized)
        assert ledger.balance >= 0


class TestPeak:
    """Test peak tracking while held."""

    def test_peak_is_monotonic(self, ledger):
        ledger.buy("SOL", 100.0, 1.0, "entry")
        peaks = [ledger.update_peak("SOL", p) for p in (105.0, 103.0, 110.0, 90.0)]
        assert peaks == [105.0, 105.0, 110.0, 110.0]
        assert ledger.get_position("SOL").peak_price >= ledger.get_position("SOL").entry_price

    def test_update_peak_when_flat_returns_none(self, ledger):
        assert ledger.update_peak("SOL", 100.0) is None

    def test_get_position_returns_copy(self, ledger):
        ledger.buy("SOL", 100.0, 1.0, "entry")
        ledger.get_position("SOL").peak_price = 999.0
        assert ledger.get_position("SOL").peak_price == 100.0


class TestMetrics:
    """Test derived ledger metrics."""

    def test_total_value_skips_unpriced_positions(self, ledger):
        ledger.buy("A", 10.0, 100.0, "a")
        ledger.buy("B", 10.0, 100.0, "b")

        assert ledger.total_value({"A": 12.0}) == pytest.approx(8000.0 + 1200.0)
        assert len(ledger.positions_with_value({"A": 12.0})) == 1

    def test_roi_and_profit_loss(self, ledger):
        ledger.buy("A", 10.0, 100.0, "a")
        prices = {"A": 15.0}
        assert ledger.profit_loss(prices) == pytest.approx(500.0)
        assert ledger.roi(prices) == pytest.approx(5.0)

    def test_roi_zero_initial_balance(self):
        ledger = PositionLedger(TradingParams(initial_balance=0.0))
        assert ledger.roi({}) == 0.0

    def test_win_rate_without_trades(self, ledger):
        assert ledger.win_rate() == 0.0

    def test_win_rate_counts_buys_in_total(self, ledger):
        ledger.buy("A", 10.0, 10.0, "a")
        ledger.sell("A", 11.0, "a out")
        assert ledger.win_rate() == pytest.approx(50.0)

    def test_position_view_values(self, ledger):
        ledger.buy("A", 10.0, 100.0, "a")
        ledger.update_peak("A", 20.0)

        view = ledger.positions_with_value({"A": 15.0})[0]

        assert view.current_value == pytest.approx(1500.0)
        assert view.profit == pytest.approx(500.0)
        assert view.profit_percent == pytest.approx(50.0)
        assert view.drop_from_peak == pytest.approx(25.0)

    def test_summary_is_consistent(self, ledger):
        ledger.buy("A", 10.0, 100.0, "a")
        summary = ledger.summary({"A": 10.0})
        assert summary.balance == pytest.approx(9000.0)
        assert summary.total_value == pytest.approx(10000.0)
        assert summary.open_positions == 1
        assert summary.total_trades == 1

    def test_trade_history_newest_first(self, ledger):
        ledger.buy("A", 10.0, 10.0, "a")
        ledger.buy("B", 10.0, 10.0, "b")
        assert [t.symbol for t in ledger.trade_history()] == ["B", "A"]


class TestLifecycle:
    """Test reset and reseeding."""

    def test_reset_restores_initial_state(self, ledger):
        ledger.buy("A", 10.0, 10.0, "a")
        ledger.reset()
        assert ledger.balance == 10000.0
        assert ledger.open_position_count() == 0
        assert ledger.trade_history() == []
        assert ledger.stats.total_trades == 0

    def test_set_initial_balance(self, ledger):
        ledger.set_initial_balance(500.0)
        assert ledger.balance == 500.0
        assert ledger.initial_balance == 500.0

    def test_negative_initial_balance_rejected(self, ledger):
        with pytest.raises(ValueError):
            ledger.set_initial_balance(-1.0)

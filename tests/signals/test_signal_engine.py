"""Tests for peak-relative signal rules."""

from dataclasses import replace

import pytest

from peakbot.config.defaults import TradingParams
from peakbot.market.models import TrackedInstrument
from peakbot.signals.engine import (
    calc_drop_from_peak,
    calc_rise_from_low,
    evaluate_flat,
    evaluate_held,
    SignalEngine,
)
from peakbot.signals.models import SignalKind
from peakbot.utils.time import utc_now


def instrument(current, high, low, symbol="SOL"):
    return TrackedInstrument(
        symbol=symbol,
        current_price=current,
        highest_price=high,
        lowest_price=low,
        last_update_time=utc_now(),
    )


class TestCalculations:
    """Test percentage helpers."""

    def test_rise_from_low(self):
        assert calc_rise_from_low(102.0, 100.0) == pytest.approx(2.0)

    def test_rise_from_zero_low(self):
        assert calc_rise_from_low(5.0, 0.0) == 0.0

    def test_drop_from_peak(self):
        assert calc_drop_from_peak(110.0, 106.59) == pytest.approx(3.1)

    def test_drop_from_zero_peak(self):
        assert calc_drop_from_peak(0.0, 5.0) == 0.0


class TestBuyRule:
    """Test the FLAT rule."""

    def test_threshold_reached_emits_buy(self, params):
        signal = evaluate_flat(instrument(102.0, 102.0, 100.0), params, open_positions=0)
        assert signal.kind == SignalKind.BUY
        assert signal.price == 102.0
        assert signal.reason == "Price increased 2.00% from low"

    def test_just_below_threshold_is_silent(self, params):
        assert evaluate_flat(instrument(101.999, 101.999, 100.0), params, open_positions=0) is None

    @pytest.mark.parametrize("low,current", [(0.07, 0.0714), (1.15, 1.173), (0.33, 0.3366), (250.5, 255.51)])
    def test_exact_threshold_on_uneven_prices_emits_buy(self, params, low, current):
        signal = evaluate_flat(instrument(current, current, low), params, open_positions=0)
        assert signal is not None
        assert signal.kind == SignalKind.BUY

    def test_capacity_blocks_buy(self, params):
        assert evaluate_flat(instrument(110.0, 110.0, 100.0), params, open_positions=4) is None


class TestSellRule:
    """Test the HELD rule."""

    def test_drop_beyond_threshold_emits_sell(self, params):
        signal = evaluate_held(instrument(106.59, 110.0, 100.0), 110.0, params)
        assert signal.kind == SignalKind.SELL
        assert signal.reason == "Price dropped 3.10% from peak $110.00"

    @pytest.mark.parametrize("peak,current", [(110.0, 106.7), (0.7, 0.679), (3.3, 3.201)])
    def test_exact_threshold_on_uneven_prices_emits_sell(self, params, peak, current):
        signal = evaluate_held(instrument(current, peak, current), peak, params)
        assert signal is not None
        assert signal.kind == SignalKind.SELL

    def test_small_drop_is_silent(self, params):
        assert evaluate_held(instrument(107.0, 110.0, 100.0), 110.0, params) is None

    def test_sell_ignores_entry_price(self, params):
        # Still above entry but well below peak.
        signal = evaluate_held(instrument(150.0, 200.0, 100.0), 200.0, params)
        assert signal is not None


class TestSignalEngine:
    """Test per-tick evaluation against tracker and ledger."""

    def test_buy_on_rise_from_low(self, engine, tracker):
        tracker.start_monitoring("SOL", 100.0)
        tracker.observe_price("SOL", 102.0)

        signals = list(engine.evaluate())

        assert len(signals) == 1
        assert signals[0].kind == SignalKind.BUY
        assert signals[0].symbol == "SOL"

    def test_no_signal_below_threshold(self, engine, tracker):
        tracker.start_monitoring("SOL", 100.0)
        tracker.observe_price("SOL", 101.999)
        assert list(engine.evaluate()) == []

    def test_signal_repeats_until_consumed(self, engine, tracker):
        tracker.start_monitoring("SOL", 100.0)
        tracker.observe_price("SOL", 103.0)
        assert len(list(engine.evaluate())) == 1
        assert len(list(engine.evaluate())) == 1

    def test_held_symbol_raises_peak_then_sells(self, engine, tracker, ledger):
        tracker.start_monitoring("SOL", 102.0)
        ledger.buy("SOL", 102.0, 1.0, "entry")

        tracker.observe_price("SOL", 110.0)
        assert list(engine.evaluate()) == []
        assert ledger.get_position("SOL").peak_price == 110.0

        tracker.observe_price("SOL", 106.59)
        signals = list(engine.evaluate())
        assert [s.kind for s in signals] == [SignalKind.SELL]
        assert ledger.get_position("SOL").peak_price == 110.0

    def test_held_symbol_never_buys(self, engine, tracker, ledger):
        tracker.start_monitoring("SOL", 100.0)
        ledger.buy("SOL", 100.0, 1.0, "entry")
        tracker.observe_price("SOL", 120.0)
        assert all(s.kind != SignalKind.BUY for s in engine.evaluate())

    def test_max_positions_blocks_new_buys(self, engine, tracker, ledger):
        for symbol in ("A", "B", "C", "D"):
            ledger.buy(symbol, 10.0, 1.0, "fill")
        tracker.start_monitoring("SOL", 100.0)
        tracker.observe_price("SOL", 150.0)

        assert list(engine.evaluate()) == []

    def test_skips_unpriced_instruments(self, engine, tracker):
        tracker.start_monitoring("NEW", 0.0)
        assert list(engine.evaluate()) == []

    def test_update_config_changes_threshold(self, engine, tracker, params):
        tracker.start_monitoring("SOL", 100.0)
        tracker.observe_price("SOL", 101.0)
        assert list(engine.evaluate()) == []

        engine.update_config(replace(params, buy_threshold=1.0))

        assert len(list(engine.evaluate())) == 1

    def test_evaluation_sees_positions_opened_mid_pass(self, tracker, ledger):
        engine = SignalEngine(tracker, ledger, TradingParams(max_positions=1))
        for symbol in ("A", "B"):
            tracker.start_monitoring(symbol, 10.0)
            tracker.observe_price(symbol, 11.0)

        emitted = []
        for signal in engine.evaluate():
            emitted.append(signal)
            ledger.buy(signal.symbol, signal.price, 1.0, signal.reason)

        assert [s.symbol for s in emitted] == ["A"]

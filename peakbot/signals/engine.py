"""
Peak-relative momentum signal rules.

Per symbol there are two states. FLAT symbols are bought once the price has
risen ``buy_threshold`` percent above the low tracked since the symbol went
flat. HELD symbols are sold once the price has fallen ``sell_threshold``
percent below the running peak of the position (a trailing stop, independent
of the entry price).

The engine keeps no state between ticks. It never changes a symbol's state
itself; only a confirmed execution does, so the same signal may be emitted
on consecutive ticks until the execution guard consumes it.
"""

from collections.abc import Iterator
from typing import Optional

from ..config.defaults import TradingParams
from ..logging.config import get_signal_logger, log_signal_decision
from ..market.models import TrackedInstrument
from ..market.tracker import PriceTracker
from ..state.ledger import PositionLedger
from .models import Signal, SignalKind

signal_logger = get_signal_logger(__name__)

# Absorbs float error so a move of exactly the threshold still triggers.
THRESHOLD_EPSILON = 1e-9


def calc_rise_from_low(current_price: float, lowest_price: float) -> float:
    """Percentage rise of ``current_price`` over ``lowest_price``; 0 without a low."""
    if lowest_price <= 0:
        return 0.0
    return (current_price - lowest_price) / lowest_price * 100


def calc_drop_from_peak(peak_price: float, current_price: float) -> float:
    """Percentage drop of ``current_price`` below ``peak_price``; 0 without a peak."""
    if peak_price <= 0:
        return 0.0
    return (peak_price - current_price) / peak_price * 100


def evaluate_flat(
    instrument: TrackedInstrument,
    params: TradingParams,
    open_positions: int
) -> Optional[Signal]:
    """Buy rule for a symbol without a position."""
    rise = calc_rise_from_low(instrument.current_price, instrument.lowest_price)
    if rise < params.buy_threshold - THRESHOLD_EPSILON:
        return None
    if open_positions >= params.max_positions:
        return None

    return Signal(
        kind=SignalKind.BUY,
        symbol=instrument.symbol,
        price=instrument.current_price,
        reason=f"Price increased {rise:.2f}% from low",
        measured_pct=rise,
    )


def evaluate_held(
    instrument: TrackedInstrument,
    peak_price: float,
    params: TradingParams
) -> Optional[Signal]:
    """Sell rule for a held symbol; ``peak_price`` must already include the current price."""
    drop = calc_drop_from_peak(peak_price, instrument.current_price)
    if drop < params.sell_threshold - THRESHOLD_EPSILON:
        return None

    return Signal(
        kind=SignalKind.SELL,
        symbol=instrument.symbol,
        price=instrument.current_price,
        reason=f"Price dropped {drop:.2f}% from peak ${peak_price:.2f}",
        measured_pct=drop,
    )


class SignalEngine:
    """Evaluates every tracked instrument against the ledger once per tick."""

    def __init__(self, tracker: PriceTracker, ledger: PositionLedger, params: TradingParams):
        self.logger = signal_logger
        self.tracker = tracker
        self.ledger = ledger
        self.params = params

    def update_config(self, params: TradingParams) -> None:
        self.params = params

    def evaluate(self) -> Iterator[Signal]:
        """
        Yield this tick's signals.

        Each call starts a fresh pass over the tracker, so the sequence can be
        re-evaluated at any time.
        """
        params = self.params

        for instrument in self.tracker.instruments():
            if instrument.current_price <= 0:
                continue

            signal = self.evaluate_instrument(instrument, params)
            if signal is not None:
                yield signal

    def evaluate_instrument(
        self,
        instrument: TrackedInstrument,
        params: Optional[TradingParams] = None
    ) -> Optional[Signal]:
        """Apply the FLAT or HELD rule to one instrument."""
        params = params or self.params
        symbol = instrument.symbol

        if self.ledger.has_position(symbol):
            peak = self.ledger.update_peak(symbol, instrument.current_price)
            if peak is None:
                # Closed between the check and the update.
                return None
            signal = evaluate_held(instrument, peak, params)
            log_signal_decision(
                self.logger,
                symbol=symbol,
                kind=SignalKind.SELL.value,
                measured_pct=calc_drop_from_peak(peak, instrument.current_price),
                threshold_pct=params.sell_threshold,
                emitted=signal is not None,
                context={"price": instrument.current_price, "peak": peak}
            )
            return signal

        signal = evaluate_flat(instrument, params, self.ledger.open_position_count())
        log_signal_decision(
            self.logger,
            symbol=symbol,
            kind=SignalKind.BUY.value,
            measured_pct=instrument.rise_from_low_pct,
            threshold_pct=params.buy_threshold,
            emitted=signal is not None,
            context={"price": instrument.current_price, "low": instrument.lowest_price}
        )
        return signal

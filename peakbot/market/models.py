"""
Market data models.

This module defines immutable data structures for tracked instruments,
exchange ticker snapshots and ranked movers.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class TrackedInstrument:
    """Price extrema for one monitored base token."""
    symbol: str                 # Base token, e.g. "BTC"
    current_price: float
    highest_price: float
    lowest_price: float
    last_update_time: datetime

    def with_price(self, price: float, timestamp: datetime) -> 'TrackedInstrument':
        """Return a copy with the new price folded into the extrema."""
        if self.lowest_price <= 0:
            # No real price seen yet; the first one starts the range.
            return TrackedInstrument(
                symbol=self.symbol,
                current_price=price,
                highest_price=price,
                lowest_price=price,
                last_update_time=timestamp,
            )

        return TrackedInstrument(
            symbol=self.symbol,
            current_price=price,
            highest_price=max(self.highest_price, price),
            lowest_price=min(self.lowest_price, price),
            last_update_time=timestamp,
        )

    def with_reset_extrema(self) -> 'TrackedInstrument':
        """Return a copy with high and low collapsed onto the current price."""
        return TrackedInstrument(
            symbol=self.symbol,
            current_price=self.current_price,
            highest_price=self.current_price,
            lowest_price=self.current_price,
            last_update_time=self.last_update_time,
        )

    @property
    def rise_from_low_pct(self) -> float:
        """Percentage rise of the current price over the tracked low."""
        if self.lowest_price <= 0:
            return 0.0
        return (self.current_price - self.lowest_price) / self.lowest_price * 100


@dataclass(frozen=True)
class TickerSnapshot:
    """One row of the exchange ticker snapshot."""
    symbol: str         # Exchange pair symbol, e.g. "BTCUSDT"
    last_price: float
    volume: float


@dataclass(frozen=True)
class Mover:
    """A ticker ranked by its percentage change over a window."""
    symbol: str
    base_token: str
    last_price: float
    change_pct: float
    volume: float


@dataclass(frozen=True)
class InstrumentView:
    """Display row for a monitored instrument."""
    symbol: str
    price: float
    change_from_low_pct: float
    is_static: bool
    is_top_mover: bool

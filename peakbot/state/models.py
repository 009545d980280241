"""
Ledger data models.

Positions are the only mutable records (their peak rises while held); trades
are immutable once appended to history.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class TradeKind(str, Enum):
    """Direction of a recorded trade."""
    BUY = "buy"
    SELL = "sell"


class PositionState(str, Enum):
    """Per-symbol position lifecycle."""
    FLAT = "flat"
    HELD = "held"


@dataclass
class Position:
    """An open position. peak_price >= entry_price while it exists."""
    symbol: str
    quantity: float
    entry_price: float
    peak_price: float
    open_time: datetime

    @property
    def cost_basis(self) -> float:
        return self.quantity * self.entry_price

    def raise_peak(self, price: float) -> float:
        """Lift the peak to ``price`` if higher; returns the peak."""
        if price > self.peak_price:
            self.peak_price = price
        return self.peak_price


@dataclass(frozen=True)
class Trade:
    """Immutable record of one executed buy or sell."""
    id: int
    kind: TradeKind
    symbol: str
    price: float
    quantity: float
    notional: float
    time: datetime
    reason: str

    # Sell-only fields
    entry_price: Optional[float] = None
    peak_price: Optional[float] = None
    profit: Optional[float] = None
    profit_percent: Optional[float] = None


@dataclass(frozen=True)
class LedgerStats:
    """Trade counters."""
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0


@dataclass(frozen=True)
class PositionView:
    """Open position valued at a current market price."""
    symbol: str
    quantity: float
    entry_price: float
    peak_price: float
    open_time: datetime
    current_price: float
    current_value: float
    profit: float
    profit_percent: float
    drop_from_peak: float


@dataclass(frozen=True)
class LedgerSummary:
    """Read-only ledger metrics for presentation."""
    balance: float
    initial_balance: float
    total_value: float
    profit_loss: float
    roi: float
    win_rate: float
    total_trades: int
    winning_trades: int
    losing_trades: int
    open_positions: int

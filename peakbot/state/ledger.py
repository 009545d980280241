"""
Position ledger: balance, open positions and trade history.

The ledger is the final authority on whether a buy or sell may be applied.
It is mutated from the tick loop and read by presentation snapshots, so
every read-modify-write runs under a re-entrant lock.
"""

import itertools
import threading
from collections.abc import Mapping
from dataclasses import replace
from typing import Optional

import structlog

from ..config.defaults import TradingParams
from ..errors import (
    InsufficientBalanceError,
    MaxPositionsReachedError,
    NoPositionError,
    PositionExistsError,
)
from ..market.tracker import PriceTracker
from ..utils.time import utc_now
from .models import (
    LedgerStats,
    LedgerSummary,
    Position,
    PositionState,
    PositionView,
    Trade,
    TradeKind,
)

logger = structlog.get_logger(__name__)


class PositionLedger:
    """Owns Position and Trade records and the account balance."""

    def __init__(self, params: TradingParams, tracker: Optional[PriceTracker] = None):
        self.logger = logger
        self.params = params
        self.tracker = tracker
        self._lock = threading.RLock()
        self._ids = itertools.count(1)

        self._balance = params.initial_balance
        self._initial_balance = params.initial_balance
        self._positions: dict[str, Position] = {}
        self._history: list[Trade] = []
        self._stats = LedgerStats()

    # -- configuration -----------------------------------------------------

    def update_config(self, params: TradingParams) -> None:
        """Swap in new trading parameters; balances are not touched."""
        with self._lock:
            self.params = params

    def set_initial_balance(self, balance: float) -> None:
        """Re-seed balance and initial balance, e.g. from the exchange account."""
        if balance < 0:
            raise ValueError(f"Balance cannot be negative: {balance}")
        with self._lock:
            self._balance = balance
            self._initial_balance = balance
        self.logger.info("Ledger balance seeded", balance=balance)

    # -- state transitions -------------------------------------------------

    def buy(self, symbol: str, price: float, quantity: float, reason: str) -> Trade:
        """
        Open a position (FLAT -> HELD).

        Raises:
            PositionExistsError: symbol already held
            MaxPositionsReachedError: at capacity
            InsufficientBalanceError: notional exceeds balance or is below minimum
        """
        if price <= 0 or quantity <= 0:
            raise ValueError(f"Price and quantity must be positive (price={price}, quantity={quantity})")

        with self._lock:
            if symbol in self._positions:
                raise PositionExistsError(f"Position already open for {symbol}", symbol=symbol)

            if len(self._positions) >= self.params.max_positions:
                raise MaxPositionsReachedError(
                    "Maximum positions reached",
                    symbol=symbol,
                    open_positions=len(self._positions),
                    max_positions=self.params.max_positions
                )

            notional = price * quantity
            if notional > self._balance or notional < self.params.min_trade_amount:
                raise InsufficientBalanceError(
                    "Insufficient balance",
                    symbol=symbol,
                    notional=notional,
                    balance=self._balance,
                    context={"min_trade_amount": self.params.min_trade_amount}
                )

            now = utc_now()
            self._balance -= notional
            self._positions[symbol] = Position(
                symbol=symbol,
                quantity=quantity,
                entry_price=price,
                peak_price=price,
                open_time=now,
            )
            trade = Trade(
                id=next(self._ids),
                kind=TradeKind.BUY,
                symbol=symbol,
                price=price,
                quantity=quantity,
                notional=notional,
                time=now,
                reason=reason,
            )
            self._history.append(trade)
            self._stats = replace(self._stats, total_trades=self._stats.total_trades + 1)
            balance = self._balance

        if self.tracker is not None:
            self.tracker.reset_extrema(symbol)

        self.logger.info(
            "Position opened",
            symbol=symbol,
            from_state=PositionState.FLAT.value,
            to_state=PositionState.HELD.value,
            price=price,
            quantity=quantity,
            notional=notional,
            balance=balance,
            reason=reason
        )
        return trade

    def sell(self, symbol: str, price: float, reason: str) -> Trade:
        """
        Close the full position (HELD -> FLAT).

        Raises:
            NoPositionError: symbol not held
        """
        if price < 0:
            raise ValueError(f"Price cannot be negative: {price}")

        with self._lock:
            position = self._positions.get(symbol)
            if position is None:
                raise NoPositionError(f"No position found for {symbol}", symbol=symbol)

            proceeds = position.quantity * price
            cost_basis = position.cost_basis
            profit = proceeds - cost_basis
            profit_percent = profit / cost_basis * 100 if cost_basis else 0.0

            self._balance += proceeds
            del self._positions[symbol]

            trade = Trade(
                id=next(self._ids),
                kind=TradeKind.SELL,
                symbol=symbol,
                price=price,
                quantity=position.quantity,
                notional=proceeds,
                time=utc_now(),
                reason=reason,
                entry_price=position.entry_price,
                peak_price=position.peak_price,
                profit=profit,
                profit_percent=profit_percent,
            )
            self._history.append(trade)

            # Break-even counts as a loss.
            if profit > 0:
                self._stats = replace(
                    self._stats,
                    total_trades=self._stats.total_trades + 1,
                    winning_trades=self._stats.winning_trades + 1
                )
            else:
                self._stats = replace(
                    self._stats,
                    total_trades=self._stats.total_trades + 1,
                    losing_trades=self._stats.losing_trades + 1
                )
            balance = self._balance

        if self.tracker is not None:
            self.tracker.reset_extrema(symbol)

        self.logger.info(
            "Position closed",
            symbol=symbol,
            from_state=PositionState.HELD.value,
            to_state=PositionState.FLAT.value,
            price=price,
            quantity=trade.quantity,
            proceeds=proceeds,
            profit=round(profit, 8),
            profit_percent=round(profit_percent, 4),
            balance=balance,
            reason=reason
        )
        return trade

    def update_peak(self, symbol: str, price: float) -> Optional[float]:
        """Raise a held position's peak to ``price`` if higher; None when flat."""
        with self._lock:
            position = self._positions.get(symbol)
            if position is None:
                return None
            return position.raise_peak(price)

    def reset(self) -> None:
        """Restore the configured initial balance and drop all positions and history."""
        with self._lock:
            self._balance = self.params.initial_balance
            self._initial_balance = self.params.initial_balance
            self._positions.clear()
            self._history.clear()
            self._stats = LedgerStats()

        self.logger.info("Ledger reset", balance=self.params.initial_balance)

    # -- queries -----------------------------------------------------------

    @property
    def balance(self) -> float:
        with self._lock:
            return self._balance

    @property
    def available_balance(self) -> float:
        """Balance that sizes new buys; open positions are already debited."""
        return self.balance

    @property
    def initial_balance(self) -> float:
        with self._lock:
            return self._initial_balance

    @property
    def stats(self) -> LedgerStats:
        with self._lock:
            return self._stats

    def position_state(self, symbol: str) -> PositionState:
        return PositionState.HELD if self.has_position(symbol) else PositionState.FLAT

    def has_position(self, symbol: str) -> bool:
        with self._lock:
            return symbol in self._positions

    def get_position(self, symbol: str) -> Optional[Position]:
        """Copy of the open position, None when flat."""
        with self._lock:
            position = self._positions.get(symbol)
            return replace(position) if position else None

    def positions_snapshot(self) -> list[Position]:
        """Copies of all open positions."""
        with self._lock:
            return [replace(p) for p in self._positions.values()]

    def open_position_count(self) -> int:
        with self._lock:
            return len(self._positions)

    def can_open_position(self) -> bool:
        with self._lock:
            return len(self._positions) < self.params.max_positions

    def trade_history(self) -> list[Trade]:
        """Trades newest first."""
        with self._lock:
            return list(reversed(self._history))

    def total_value(self, prices: Mapping[str, float]) -> float:
        """Balance plus open positions marked at ``prices``; unpriced positions count 0."""
        with self._lock:
            positions_value = sum(
                p.quantity * prices[p.symbol]
                for p in self._positions.values()
                if prices.get(p.symbol) is not None
            )
            return self._balance + positions_value

    def profit_loss(self, prices: Mapping[str, float]) -> float:
        return self.total_value(prices) - self.initial_balance

    def roi(self, prices: Mapping[str, float]) -> float:
        initial = self.initial_balance
        if initial == 0:
            return 0.0
        return (self.total_value(prices) - initial) / initial * 100

    def win_rate(self) -> float:
        stats = self.stats
        if stats.total_trades == 0:
            return 0.0
        return stats.winning_trades / stats.total_trades * 100

    def positions_with_value(self, prices: Mapping[str, float]) -> list[PositionView]:
        """Open positions valued at ``prices``; positions without a price are omitted."""
        views = []
        for position in self.positions_snapshot():
            price = prices.get(position.symbol)
            if price is None:
                continue
            current_value = position.quantity * price
            profit = current_value - position.cost_basis
            views.append(PositionView(
                symbol=position.symbol,
                quantity=position.quantity,
                entry_price=position.entry_price,
                peak_price=position.peak_price,
                open_time=position.open_time,
                current_price=price,
                current_value=current_value,
                profit=profit,
                profit_percent=profit / position.cost_basis * 100,
                drop_from_peak=(position.peak_price - price) / position.peak_price * 100,
            ))
        return views

    def summary(self, prices: Mapping[str, float]) -> LedgerSummary:
        """All derived metrics in one consistent read."""
        with self._lock:
            stats = self._stats
            return LedgerSummary(
                balance=self._balance,
                initial_balance=self._initial_balance,
                total_value=self.total_value(prices),
                profit_loss=self.profit_loss(prices),
                roi=self.roi(prices),
                win_rate=self.win_rate(),
                total_trades=stats.total_trades,
                winning_trades=stats.winning_trades,
                losing_trades=stats.losing_trades,
                open_positions=len(self._positions),
            )

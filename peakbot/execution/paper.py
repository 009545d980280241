"""In-memory paper exchange for dry runs and tests."""

import itertools
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Optional

import structlog

from ..market.models import TickerSnapshot
from .base import ExchangeClient, OrderResponse, OrderSide

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PaperOrder:
    """A market order accepted by the paper exchange."""
    order_id: str
    symbol: str
    side: OrderSide
    quantity: float


class PaperExchange(ExchangeClient):
    """
    Exchange stand-in that fills every market order immediately.

    Failure switches let callers script one declined order (``fail_next``)
    or one faulted call (``raise_next``), optionally with the faulted order
    still taking effect.
    """

    def __init__(
        self,
        tickers: Optional[Iterable[TickerSnapshot]] = None,
        changes: Optional[dict[str, float]] = None,
        balance: Optional[float] = None,
        report_positions: bool = True
    ):
        self.logger = logger
        self.tickers: dict[str, TickerSnapshot] = {t.symbol: t for t in tickers or ()}
        self.changes: dict[str, float] = dict(changes or {})
        self.balance = balance
        self.report_positions = report_positions
        self.positions: dict[str, float] = {}
        self.orders: list[PaperOrder] = []
        self.order_calls = 0
        self.before_order: Optional[Callable[[str, OrderSide, float], None]] = None

        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._fail_reason: Optional[str] = None
        self._raise_exc: Optional[Exception] = None
        self._raise_after_fill = False

    def set_ticker(self, symbol: str, price: float, volume: float = 0.0, change_pct: Optional[float] = None) -> None:
        self.tickers[symbol] = TickerSnapshot(symbol=symbol, last_price=price, volume=volume)
        if change_pct is not None:
            self.changes[symbol] = change_pct

    def fail_next(self, reason: str) -> None:
        """Decline the next order with ``reason``."""
        self._fail_reason = reason

    def raise_next(self, exc: Exception, executed: bool = False) -> None:
        """Raise ``exc`` from the next order call, after filling it if ``executed``."""
        self._raise_exc = exc
        self._raise_after_fill = executed

    def place_order(self, symbol: str, side: OrderSide, quantity: float) -> OrderResponse:
        if self.before_order is not None:
            self.before_order(symbol, side, quantity)

        with self._lock:
            self.order_calls += 1

            exc, self._raise_exc = self._raise_exc, None
            if exc is not None:
                if self._raise_after_fill:
                    self._fill(symbol, side, quantity)
                raise exc

            reason, self._fail_reason = self._fail_reason, None
            if reason is not None:
                self.logger.info("Paper order declined", symbol=symbol, side=side.value, reason=reason)
                return OrderResponse.rejected(reason)

            order = self._fill(symbol, side, quantity)

        self.logger.info(
            "Paper order filled",
            order_id=order.order_id,
            symbol=symbol,
            side=side.value,
            quantity=quantity
        )
        return OrderResponse.accepted(order.order_id)

    def _fill(self, symbol: str, side: OrderSide, quantity: float) -> PaperOrder:
        order = PaperOrder(
            order_id=f"paper-{next(self._ids)}",
            symbol=symbol,
            side=side,
            quantity=quantity,
        )
        self.orders.append(order)
        held = self.positions.get(symbol, 0.0)
        held = held + quantity if side == OrderSide.BUY else max(held - quantity, 0.0)
        self.positions[symbol] = held
        return order

    def get_ticker_snapshot(self) -> list[TickerSnapshot]:
        return list(self.tickers.values())

    def get_percent_change(self, symbol: str, window: str) -> float:
        return self.changes.get(symbol, 0.0)

    def get_position_size(self, symbol: str) -> Optional[float]:
        if not self.report_positions:
            return None
        with self._lock:
            return self.positions.get(symbol, 0.0)

    def get_balance(self) -> Optional[float]:
        return self.balance

"""Base classes for the exchange collaborator."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..market.models import TickerSnapshot


class OrderSide(str, Enum):
    """Exchange order side."""
    BUY = "Buy"
    SELL = "Sell"


@dataclass(frozen=True)
class OrderResponse:
    """Answer from the exchange to a market order."""
    success: bool
    order_id: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def accepted(cls, order_id: str) -> "OrderResponse":
        return cls(success=True, order_id=order_id)

    @classmethod
    def rejected(cls, error: str) -> "OrderResponse":
        return cls(success=False, error=error)


class ExchangeClient(ABC):
    """
    Exchange operations the engine depends on.

    Signing, transport and streaming live in concrete implementations. Symbols
    passed here are exchange pair symbols ("BTCUSDT").
    """

    @abstractmethod
    def place_order(self, symbol: str, side: OrderSide, quantity: float) -> OrderResponse:
        """
        Place a market order.

        Non-idempotent: called at most once per guarded execution and never
        retried. Raising means the outcome is unknown.
        """
        pass

    @abstractmethod
    def get_ticker_snapshot(self) -> list[TickerSnapshot]:
        """Current ticker rows for every listed pair."""
        pass

    @abstractmethod
    def get_percent_change(self, symbol: str, window: str) -> float:
        """Percentage price change of ``symbol`` over ``window``."""
        pass

    def get_position_size(self, symbol: str) -> Optional[float]:
        """Held quantity for ``symbol``; None when the exchange cannot tell."""
        return None

    def get_balance(self) -> Optional[float]:
        """Available quote-currency balance; None when unsupported."""
        return None

"""
Execution result models.

Every guarded execution yields exactly one ExecutionResult: a success variant
carrying the recorded trade, or a failure variant carrying the typed error.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from ..errors import TradingError
from ..signals.models import Signal
from ..state.models import Trade
from .base import OrderSide


class ExecutionStatus(str, Enum):
    """Outcome of one guarded execution."""
    FILLED = "filled"                       # Exchange accepted, ledger updated
    REJECTED = "rejected"                   # Local rejection, exchange not contacted
    EXCHANGE_REJECTED = "exchange_rejected" # Exchange declined the order
    TRANSPORT_FAULT = "transport_fault"     # Outcome unknown, pending reconciliation
    LEDGER_REJECTED = "ledger_rejected"     # Exchange accepted, ledger refused


@dataclass(frozen=True)
class ExecutionResult:
    """Tagged result of ExecutionGuard.execute."""
    signal: Signal
    status: ExecutionStatus
    trade: Optional[Trade] = None
    order_id: Optional[str] = None
    error: Optional[TradingError] = None

    @property
    def success(self) -> bool:
        return self.status == ExecutionStatus.FILLED

    @property
    def error_kind(self) -> Optional[str]:
        return self.error.kind if self.error is not None else None

    @classmethod
    def filled(cls, signal: Signal, trade: Trade, order_id: Optional[str]) -> "ExecutionResult":
        return cls(signal=signal, status=ExecutionStatus.FILLED, trade=trade, order_id=order_id)

    @classmethod
    def failed(
        cls,
        signal: Signal,
        status: ExecutionStatus,
        error: TradingError,
        order_id: Optional[str] = None
    ) -> "ExecutionResult":
        return cls(signal=signal, status=status, error=error, order_id=order_id)


class ReconciliationOutcome(str, Enum):
    """Resolution of an order whose outcome was unknown."""
    FILLED = "filled"               # Exchange shows the order executed; ledger caught up
    NOT_FILLED = "not_filled"       # Exchange shows no effect; nothing to apply
    UNKNOWN = "unknown"             # Still undecidable; record kept
    LEDGER_REJECTED = "ledger_rejected"


@dataclass(frozen=True)
class PendingReconciliation:
    """An order that raised in transit and may or may not have executed."""
    symbol: str
    side: OrderSide
    order_quantity: float
    ledger_quantity: float
    price: float
    reason: str
    recorded_at: datetime

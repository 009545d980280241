"""
Idempotent order execution.

The guard converts one signal into at most one exchange call and at most one
ledger mutation. Executions for the same symbol are strictly sequential;
different symbols proceed independently. The ledger is only mutated after
the exchange has confirmed the order.
"""

import threading
from collections.abc import Iterable, Mapping
from decimal import ROUND_DOWN, Decimal
from typing import Optional

from ..config.defaults import TradingParams
from ..errors import (
    AlreadyExecutingError,
    BelowMinimumError,
    ExchangeRejectedError,
    MaxPositionsReachedError,
    NoPositionError,
    PositionExistsError,
    ReconciliationPendingError,
    TransportFaultError,
    ValidationRejection,
)
from ..logging.config import get_execution_logger, log_execution_outcome
from ..signals.models import Signal, SignalKind
from ..state.ledger import PositionLedger
from ..utils.symbols import to_pair_symbol
from ..utils.time import utc_now
from .base import ExchangeClient, OrderResponse, OrderSide
from .inflight import InFlightRegistry
from .models import (
    ExecutionResult,
    ExecutionStatus,
    PendingReconciliation,
    ReconciliationOutcome,
)

execution_logger = get_execution_logger(__name__)

EMERGENCY_CLOSE_REASON = "Emergency close"


def round_quantity(quantity: float, precision: int) -> float:
    """Round down to ``precision`` decimals so orders never exceed funded size."""
    step = Decimal(1).scaleb(-precision)
    return float(Decimal(str(quantity)).quantize(step, rounding=ROUND_DOWN))


class ExecutionGuard:
    """Serializes signal-to-order conversion per symbol."""

    def __init__(
        self,
        exchange: ExchangeClient,
        ledger: PositionLedger,
        params: TradingParams,
        quote_currency: str = "USDT"
    ):
        self.logger = execution_logger
        self.exchange = exchange
        self.ledger = ledger
        self.params = params
        self.quote_currency = quote_currency
        self.in_flight = InFlightRegistry()
        self._pending: dict[str, PendingReconciliation] = {}
        self._pending_lock = threading.Lock()

    def update_config(self, params: TradingParams) -> None:
        self.params = params

    # -- execution ---------------------------------------------------------

    def execute(self, signal: Signal) -> ExecutionResult:
        """Execute one signal; never raises for business outcomes."""
        with self.in_flight.claim(signal.symbol) as claimed:
            if not claimed:
                result = ExecutionResult.failed(
                    signal,
                    ExecutionStatus.REJECTED,
                    AlreadyExecutingError(
                        f"Order already executing for {signal.symbol}",
                        symbol=signal.symbol
                    )
                )
                self.logger.debug("Order already executing", symbol=signal.symbol)
                return result

            result = self._execute_claimed(signal)

        log_execution_outcome(
            self.logger,
            symbol=signal.symbol,
            kind=signal.kind.value,
            status=result.status.value,
            reason=str(result.error) if result.error else signal.reason,
            context={"order_id": result.order_id, "error_kind": result.error_kind}
        )
        return result

    def execute_all(self, signals: Iterable[Signal]) -> list[tuple[Signal, ExecutionResult]]:
        """Execute signals one after another, continuing past failures."""
        return [(signal, self.execute(signal)) for signal in signals]

    def close_all_positions(
        self,
        prices: Mapping[str, float]
    ) -> list[tuple[str, ExecutionResult]]:
        """
        Sell every open position at ``prices`` (base token to current price).

        Iterates over a snapshot of the positions. Positions without a
        current price are skipped.
        """
        results = []

        self.logger.warning("Emergency closing all positions")
        for position in self.ledger.positions_snapshot():
            price = prices.get(position.symbol)
            if price is None:
                self.logger.warning(
                    "No current price for open position, cannot close",
                    symbol=position.symbol
                )
                continue

            signal = Signal(
                kind=SignalKind.SELL,
                symbol=position.symbol,
                price=price,
                reason=EMERGENCY_CLOSE_REASON,
            )
            results.append((position.symbol, self.execute(signal)))

        return results

    def _execute_claimed(self, signal: Signal) -> ExecutionResult:
        with self._pending_lock:
            pending = signal.symbol in self._pending

        if pending:
            return ExecutionResult.failed(
                signal,
                ExecutionStatus.REJECTED,
                ReconciliationPendingError(
                    f"Earlier order on {signal.symbol} awaits reconciliation",
                    symbol=signal.symbol
                )
            )

        if signal.kind == SignalKind.BUY:
            return self._execute_buy(signal)
        return self._execute_sell(signal)

    def _execute_buy(self, signal: Signal) -> ExecutionResult:
        symbol = signal.symbol
        params = self.params

        if self.ledger.has_position(symbol):
            return ExecutionResult.failed(
                signal,
                ExecutionStatus.REJECTED,
                PositionExistsError(f"Position already open for {symbol}", symbol=symbol)
            )

        if not self.ledger.can_open_position():
            return ExecutionResult.failed(
                signal,
                ExecutionStatus.REJECTED,
                MaxPositionsReachedError(
                    "Maximum positions reached",
                    symbol=symbol,
                    open_positions=self.ledger.open_position_count(),
                    max_positions=params.max_positions
                )
            )

        notional = self.ledger.available_balance * (params.trade_amount_percent / 100)
        if notional < params.min_trade_amount or signal.price <= 0:
            return ExecutionResult.failed(
                signal,
                ExecutionStatus.REJECTED,
                BelowMinimumError(
                    "Trade amount below minimum",
                    symbol=symbol,
                    notional=notional,
                    minimum=params.min_trade_amount
                )
            )

        quantity = notional / signal.price
        order_quantity = round_quantity(quantity, params.quantity_precision)
        if order_quantity <= 0:
            return ExecutionResult.failed(
                signal,
                ExecutionStatus.REJECTED,
                BelowMinimumError(
                    "Order quantity rounds to zero",
                    symbol=symbol,
                    notional=notional,
                    minimum=params.min_trade_amount,
                    context={"quantity": quantity, "precision": params.quantity_precision}
                )
            )

        self.logger.info(
            "Executing buy order",
            symbol=symbol,
            quantity=order_quantity,
            price=signal.price,
            notional=notional
        )

        response = self._place_order(signal, OrderSide.BUY, order_quantity, quantity)
        if isinstance(response, ExecutionResult):
            return response

        try:
            trade = self.ledger.buy(symbol, signal.price, quantity, signal.reason)
        except ValidationRejection as e:
            self.logger.error(
                "Exchange accepted buy but ledger rejected it",
                symbol=symbol,
                order_id=response.order_id,
                error=str(e),
                error_type=type(e).__name__
            )
            return ExecutionResult.failed(signal, ExecutionStatus.LEDGER_REJECTED, e, response.order_id)

        return ExecutionResult.filled(signal, trade, response.order_id)

    def _execute_sell(self, signal: Signal) -> ExecutionResult:
        symbol = signal.symbol
        position = self.ledger.get_position(symbol)

        if position is None:
            return ExecutionResult.failed(
                signal,
                ExecutionStatus.REJECTED,
                NoPositionError(f"No position found for {symbol}", symbol=symbol)
            )

        order_quantity = round_quantity(position.quantity, self.params.quantity_precision)

        self.logger.info(
            "Executing sell order",
            symbol=symbol,
            quantity=order_quantity,
            price=signal.price,
            entry_price=position.entry_price,
            peak_price=position.peak_price
        )

        response = self._place_order(signal, OrderSide.SELL, order_quantity, position.quantity)
        if isinstance(response, ExecutionResult):
            return response

        try:
            trade = self.ledger.sell(symbol, signal.price, signal.reason)
        except ValidationRejection as e:
            self.logger.error(
                "Exchange accepted sell but ledger rejected it",
                symbol=symbol,
                order_id=response.order_id,
                error=str(e),
                error_type=type(e).__name__
            )
            return ExecutionResult.failed(signal, ExecutionStatus.LEDGER_REJECTED, e, response.order_id)

        return ExecutionResult.filled(signal, trade, response.order_id)

    def _place_order(
        self,
        signal: Signal,
        side: OrderSide,
        order_quantity: float,
        ledger_quantity: float
    ) -> "OrderResponse | ExecutionResult":
        """
        Call the exchange exactly once.

        Returns the accepted response, or the failure result for a declined
        or faulted call.
        """
        pair = to_pair_symbol(signal.symbol, self.quote_currency)

        try:
            response = self.exchange.place_order(pair, side, order_quantity)
        except Exception as e:
            self._record_pending(PendingReconciliation(
                symbol=signal.symbol,
                side=side,
                order_quantity=order_quantity,
                ledger_quantity=ledger_quantity,
                price=signal.price,
                reason=signal.reason,
                recorded_at=utc_now(),
            ))
            self.logger.error(
                "Order call faulted, outcome unknown",
                symbol=signal.symbol,
                side=side.value,
                quantity=order_quantity,
                error=str(e),
                error_type=type(e).__name__
            )
            return ExecutionResult.failed(
                signal,
                ExecutionStatus.TRANSPORT_FAULT,
                TransportFaultError(
                    f"Order call for {pair} faulted: {e}",
                    detail=str(e),
                    symbol=signal.symbol,
                    context={"side": side.value, "quantity": order_quantity}
                )
            )

        if not response.success:
            return ExecutionResult.failed(
                signal,
                ExecutionStatus.EXCHANGE_REJECTED,
                ExchangeRejectedError(
                    f"Exchange order failed: {response.error}",
                    detail=response.error,
                    symbol=signal.symbol
                )
            )

        return response

    # -- reconciliation ----------------------------------------------------

    def _record_pending(self, record: PendingReconciliation) -> None:
        with self._pending_lock:
            self._pending[record.symbol] = record

    def pending_reconciliations(self) -> list[PendingReconciliation]:
        with self._pending_lock:
            return list(self._pending.values())

    def clear_pending(self) -> list[PendingReconciliation]:
        """Drop every pending record and return what was dropped."""
        with self._pending_lock:
            dropped = list(self._pending.values())
            self._pending.clear()
        return dropped

    def reconcile_pending(self) -> list[tuple[str, ReconciliationOutcome]]:
        """
        Resolve faulted orders by asking the exchange what it holds.

        Records whose outcome is still unknown are kept and keep blocking
        their symbol.
        """
        outcomes = []
        for record in self.pending_reconciliations():
            with self.in_flight.claim(record.symbol) as claimed:
                if not claimed:
                    continue
                outcome = self._reconcile(record)

            if outcome != ReconciliationOutcome.UNKNOWN:
                with self._pending_lock:
                    self._pending.pop(record.symbol, None)

            self.logger.info(
                "Reconciliation attempted",
                symbol=record.symbol,
                side=record.side.value,
                outcome=outcome.value
            )
            outcomes.append((record.symbol, outcome))

        return outcomes

    def _reconcile(self, record: PendingReconciliation) -> ReconciliationOutcome:
        pair = to_pair_symbol(record.symbol, self.quote_currency)

        try:
            size: Optional[float] = self.exchange.get_position_size(pair)
        except Exception as e:
            self.logger.warning(
                "Position query failed during reconciliation",
                symbol=record.symbol,
                error=str(e),
                error_type=type(e).__name__
            )
            return ReconciliationOutcome.UNKNOWN

        if size is None:
            return ReconciliationOutcome.UNKNOWN

        reason = f"{record.reason} (reconciled)"
        try:
            if record.side == OrderSide.BUY:
                if size <= 0:
                    return ReconciliationOutcome.NOT_FILLED
                if not self.ledger.has_position(record.symbol):
                    self.ledger.buy(record.symbol, record.price, size, reason)
                return ReconciliationOutcome.FILLED

            if size > 0:
                return ReconciliationOutcome.NOT_FILLED
            if self.ledger.has_position(record.symbol):
                self.ledger.sell(record.symbol, record.price, reason)
            return ReconciliationOutcome.FILLED

        except ValidationRejection as e:
            self.logger.error(
                "Ledger rejected reconciled fill",
                symbol=record.symbol,
                side=record.side.value,
                error=str(e),
                error_type=type(e).__name__
            )
            return ReconciliationOutcome.LEDGER_REJECTED
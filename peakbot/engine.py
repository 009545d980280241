"""
Main trading controller.

Wires the price tracker, watchlist, ledger, signal engine and execution guard
together and drives the periodic tick:

    streamed prices -> PriceTracker -> SignalEngine -> ExecutionGuard -> PositionLedger
"""

import threading
from dataclasses import asdict, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

import structlog

from .config.defaults import DefaultConfig
from .config.loader import ConfigLoader
from .config.validation import ConfigValidator
from .errors import AlreadyExecutingError, ConfigurationError
from .execution.base import ExchangeClient
from .execution.guard import ExecutionGuard
from .execution.models import ExecutionResult, ReconciliationOutcome
from .market.tracker import PriceTracker
from .market.watchlist import Watchlist
from .signals.engine import SignalEngine
from .signals.models import Signal
from .state.ledger import PositionLedger
from .utils.symbols import to_base_token
from .utils.time import format_time

logger = structlog.get_logger(__name__)


class TradingController:
    """
    Composition root for the trading engine.

    Owns no trading state itself; every decision and mutation happens in the
    components it wires together.
    """

    def __init__(
        self,
        exchange: ExchangeClient,
        config: Optional[DefaultConfig] = None,
        config_dir: Optional[Union[str, Path]] = None
    ) -> None:
        self.logger = logger
        self.exchange = exchange
        self.config = config or ConfigLoader.create(config_dir).load_config()

        quote = self.config.market.quote_currency
        trading = self.config.trading

        self.tracker = PriceTracker(quote_currency=quote)
        self.watchlist = Watchlist(self.tracker, self.config.market, self.config.movers)
        self.ledger = PositionLedger(trading, tracker=self.tracker)
        self.signal_engine = SignalEngine(self.tracker, self.ledger, trading)
        self.guard = ExecutionGuard(exchange, self.ledger, trading, quote_currency=quote)

        self._running = False
        self._paused = False
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._tick_lock = threading.Lock()

        self.logger.info(
            "Trading controller initialized",
            quote_currency=quote,
            static_tokens=list(self.config.market.static_tokens),
            buy_threshold=trading.buy_threshold,
            sell_threshold=trading.sell_threshold,
            max_positions=trading.max_positions
        )

    # -- setup -------------------------------------------------------------

    def initialize(self, use_exchange_balance: bool = False) -> list[str]:
        """
        Fetch the mover list and start monitoring every watched token.

        Returns the monitored tokens.
        """
        if use_exchange_balance:
            balance = self.exchange.get_balance()
            if balance is None:
                raise ConfigurationError("Exchange did not report a balance")
            self.ledger.set_initial_balance(balance)

        self.watchlist.refresh(self.exchange)
        tokens = [t.symbol for t in self.tracker.instruments()]

        self.logger.info("Initialized monitoring", tokens=tokens, count=len(tokens))
        return tokens

    def on_price(self, symbol: str, price: float) -> None:
        """Streaming price callback; safe to call from a transport thread."""
        self.tracker.observe_price(to_base_token(symbol, self.config.market.quote_currency), price)

    # -- tick --------------------------------------------------------------

    def tick(self) -> list[tuple[Signal, ExecutionResult]]:
        """Run one reconcile -> evaluate -> execute pass."""
        with self._tick_lock:
            reconciled = self.guard.reconcile_pending()
            for symbol, outcome in reconciled:
                if outcome == ReconciliationOutcome.UNKNOWN:
                    self.logger.warning("Order outcome still unknown", symbol=symbol)

            results = []
            for signal in self.signal_engine.evaluate():
                self.logger.info(
                    "Signal detected",
                    signal_kind=signal.kind.value,
                    symbol=signal.symbol,
                    reason=signal.reason
                )
                results.append((signal, self.guard.execute(signal)))

        for signal, result in results:
            if isinstance(result.error, AlreadyExecutingError):
                continue
            if not result.success:
                self.logger.warning(
                    "Signal not executed",
                    symbol=signal.symbol,
                    signal_kind=signal.kind.value,
                    status=result.status.value,
                    error_kind=result.error_kind
                )

        return results

    def refresh_movers_if_due(self, now: Optional[datetime] = None) -> bool:
        """Refresh the mover list when the refresh interval has elapsed."""
        if not self.watchlist.should_refresh(now):
            return False
        self.watchlist.refresh(self.exchange, now)
        return True

    def _safe_tick(self) -> None:
        try:
            self.tick()
        except Exception as e:
            self.logger.error(
                "Unexpected error during tick",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True
            )

    def _safe_refresh(self) -> None:
        try:
            self.refresh_movers_if_due()
        except Exception as e:
            self.logger.error(
                "Unexpected error refreshing movers",
                error=str(e),
                error_type=type(e).__name__
            )

    # -- lifecycle ---------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_paused(self) -> bool:
        return self._paused

    def start(self) -> None:
        """Start the tick loop in a background thread."""
        if self._thread and self._thread.is_alive():
            self.logger.warning("Controller already running")
            return

        self._running = True
        self._paused = False
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            daemon=True,
            name="peakbot-tick-loop",
        )
        self._thread.start()
        self.logger.info("Controller started", tick_seconds=self.config.intervals.tick_seconds)

    def _run_loop(self) -> None:
        interval = self.config.intervals.tick_seconds
        while not self._stop_event.is_set():
            if not self._paused:
                self._safe_refresh()
                self._safe_tick()
            self._stop_event.wait(interval)

    def pause(self) -> None:
        self._paused = True
        self.logger.info("Controller paused")

    def resume(self) -> None:
        self._paused = False
        self.logger.info("Controller resumed")

    def stop(self) -> None:
        """Stop the tick loop and wait for the thread to exit."""
        self._running = False
        self._paused = False
        self._stop_event.set()

        thread, self._thread = self._thread, None
        if thread and thread is not threading.current_thread():
            thread.join(timeout=max(5.0, self.config.intervals.tick_seconds * 2))

        self.logger.info("Controller stopped")

    def emergency_stop(self) -> list[tuple[str, ExecutionResult]]:
        """Pause, close every open position, then stop."""
        self.logger.warning("Emergency stop initiated")
        self.pause()

        with self._tick_lock:
            results = self.guard.close_all_positions(self.tracker.current_prices())

        self.stop()
        self.logger.warning(
            "Emergency stop complete",
            closed=[symbol for symbol, result in results if result.success],
            failed=[symbol for symbol, result in results if not result.success]
        )
        return results

    def reset(self) -> None:
        """
        Stop and return the ledger to its initial state.

        Monitoring survives the reset; extrema restart from current prices.
        """
        self.stop()
        self.ledger.reset()
        dropped = self.guard.clear_pending()
        for instrument in self.tracker.instruments():
            self.tracker.reset_extrema(instrument.symbol)

        self.logger.info(
            "Controller reset",
            monitored=len(self.tracker.instruments()),
            dropped_reconciliations=[record.symbol for record in dropped]
        )

    # -- configuration -----------------------------------------------------

    def update_config(self, **changes: Any) -> DefaultConfig:
        """
        Apply a partial update to the trading parameters.

        Raises:
            ConfigurationError: If any changed field is invalid
        """
        trading = asdict(self.config.trading)
        unknown = sorted(set(changes) - set(trading))
        if unknown:
            raise ConfigurationError(f"Unknown trading parameters: {', '.join(unknown)}")

        errors = ConfigValidator.validate_trading_params(changes)
        if errors:
            raise ConfigurationError(
                "Invalid configuration: " + "; ".join(
                    f"{err.field}: {err.message} (got: {err.value})" for err in errors
                ),
                errors=errors
            )

        params = replace(self.config.trading, **changes)
        self.config = replace(self.config, trading=params)
        self.signal_engine.update_config(params)
        self.guard.update_config(params)
        self.ledger.update_config(params)

        self.logger.info("Configuration updated", changes=changes)
        return self.config

    # -- snapshots ---------------------------------------------------------

    def get_state(self) -> dict[str, Any]:
        stats = self.ledger.stats
        return {
            "is_running": self._running,
            "is_paused": self._paused,
            "balance": self.ledger.balance,
            "open_positions": self.ledger.open_position_count(),
            "total_trades": stats.total_trades,
        }

    def ledger_summary(self) -> dict[str, Any]:
        return asdict(self.ledger.summary(self.tracker.current_prices()))

    def positions_view(self) -> list[dict[str, Any]]:
        views = self.ledger.positions_with_value(self.tracker.current_prices())
        return [
            {**asdict(view), "open_time": format_time(view.open_time)}
            for view in views
        ]

    def instrument_list(self) -> list[dict[str, Any]]:
        views = self.tracker.formatted_instruments(
            static_tokens=self.config.market.static_tokens,
            mover_tokens=self.watchlist.mover_tokens()
        )
        return [asdict(view) for view in views]

    def trade_history(self) -> list[dict[str, Any]]:
        return [
            {**asdict(trade), "kind": trade.kind.value, "time": format_time(trade.time)}
            for trade in self.ledger.trade_history()
        ]

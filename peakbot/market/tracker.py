"""
Price tracking for monitored instruments.

The tracker owns every TrackedInstrument. It is written to by the streaming
price callback and read by the tick loop, so all read-modify-write sequences
run under a lock.
"""

import math
import threading
from collections.abc import Callable, Iterable
from typing import Optional

import structlog

from ..utils.symbols import is_quote_pair, to_base_token
from ..utils.time import utc_now
from .models import InstrumentView, Mover, TickerSnapshot, TrackedInstrument

logger = structlog.get_logger(__name__)

PercentChangeFn = Callable[[str, str], float]


class PriceTracker:
    """Maintains last price, running high and running low per base token."""

    def __init__(self, quote_currency: str = "USDT"):
        self.logger = logger
        self.quote_currency = quote_currency
        self._instruments: dict[str, TrackedInstrument] = {}
        self._lock = threading.Lock()

    def _key(self, symbol: str) -> str:
        return to_base_token(symbol, self.quote_currency)

    def start_monitoring(self, symbol: str, initial_price: float) -> bool:
        """
        Begin tracking a symbol at the given price.

        Idempotent: returns False and changes nothing when the symbol is
        already monitored.
        """
        if not math.isfinite(initial_price) or initial_price < 0:
            raise ValueError(f"Invalid initial price for {symbol}: {initial_price}")

        key = self._key(symbol)
        with self._lock:
            if key in self._instruments:
                return False
            self._instruments[key] = TrackedInstrument(
                symbol=key,
                current_price=initial_price,
                highest_price=initial_price,
                lowest_price=initial_price,
                last_update_time=utc_now(),
            )

        self.logger.info("Started monitoring", symbol=key, initial_price=initial_price)
        return True

    def observe_price(self, symbol: str, price: float) -> Optional[TrackedInstrument]:
        """
        Fold a streamed price into the symbol's extrema.

        Unmonitored symbols are ignored. Returns the updated instrument or None.
        """
        if not math.isfinite(price) or price < 0:
            self.logger.warning("Ignoring invalid price", symbol=symbol, price=price)
            return None

        key = self._key(symbol)
        with self._lock:
            instrument = self._instruments.get(key)
            if instrument is None:
                return None
            updated = instrument.with_price(price, utc_now())
            self._instruments[key] = updated

        return updated

    def reset_extrema(self, symbol: str) -> None:
        """Collapse high and low onto the current price."""
        key = self._key(symbol)
        with self._lock:
            instrument = self._instruments.get(key)
            if instrument is None:
                return
            self._instruments[key] = instrument.with_reset_extrema()

        self.logger.debug("Reset price extrema", symbol=key, price=instrument.current_price)

    def get(self, symbol: str) -> Optional[TrackedInstrument]:
        """Current tracked state of a symbol, None if not monitored."""
        with self._lock:
            return self._instruments.get(self._key(symbol))

    def is_monitored(self, symbol: str) -> bool:
        with self._lock:
            return self._key(symbol) in self._instruments

    def instruments(self) -> list[TrackedInstrument]:
        """Snapshot of all tracked instruments in insertion order."""
        with self._lock:
            return list(self._instruments.values())

    def current_prices(self) -> dict[str, float]:
        """Snapshot map of base token to current price."""
        with self._lock:
            return {key: inst.current_price for key, inst in self._instruments.items()}

    def ranked_movers(
        self,
        all_tickers: Iterable[TickerSnapshot],
        window: str,
        count: int,
        percent_change: PercentChangeFn
    ) -> list[Mover]:
        """
        Rank eligible tickers by percentage change over ``window``.

        Only quote-denominated pairs are eligible. Ties on change are broken
        by symbol so the ranking is reproducible. A ticker whose change
        lookup fails is skipped.
        """
        movers = []
        for ticker in all_tickers:
            if not is_quote_pair(ticker.symbol, self.quote_currency):
                continue

            try:
                change = float(percent_change(ticker.symbol, window))
            except Exception as e:
                self.logger.warning(
                    "Percent change lookup failed, skipping ticker",
                    symbol=ticker.symbol,
                    window=window,
                    error=str(e),
                    error_type=type(e).__name__
                )
                continue

            movers.append(Mover(
                symbol=ticker.symbol,
                base_token=self._key(ticker.symbol),
                last_price=ticker.last_price,
                change_pct=change,
                volume=ticker.volume,
            ))

        movers.sort(key=lambda m: (-m.change_pct, m.symbol))
        top = movers[:count]

        self.logger.info(
            "Ranked movers",
            window=window,
            eligible=len(movers),
            top=[f"{m.base_token} ({m.change_pct:.2f}%)" for m in top]
        )
        return top

    def formatted_instruments(
        self,
        static_tokens: Iterable[str] = (),
        mover_tokens: Iterable[str] = ()
    ) -> list[InstrumentView]:
        """Display rows for every tracked instrument."""
        static = set(static_tokens)
        movers = set(mover_tokens)
        return [
            InstrumentView(
                symbol=inst.symbol,
                price=inst.current_price,
                change_from_low_pct=round(inst.rise_from_low_pct, 2),
                is_static=inst.symbol in static,
                is_top_mover=inst.symbol in movers,
            )
            for inst in self.instruments()
        ]

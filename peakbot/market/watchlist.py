"""Monitored-instrument set: static tokens plus the current top movers."""

import threading
from datetime import datetime
from typing import TYPE_CHECKING, Optional

import structlog

from ..config.defaults import MarketParams, MoversParams
from ..utils.symbols import to_pair_symbol
from ..utils.time import elapsed_seconds, utc_now
from .models import Mover
from .tracker import PriceTracker

if TYPE_CHECKING:
    from ..execution.base import ExchangeClient

logger = structlog.get_logger(__name__)


class Watchlist:
    """Decides which base tokens the tracker monitors."""

    def __init__(self, tracker: PriceTracker, market: MarketParams, movers: MoversParams):
        self.logger = logger
        self.tracker = tracker
        self.market = market
        self.movers_params = movers
        self.top_movers: list[Mover] = []
        self.last_refresh: Optional[datetime] = None
        self._lock = threading.Lock()

    def monitored_tokens(self) -> list[str]:
        """Static tokens first, then movers, without duplicates."""
        with self._lock:
            tokens = list(self.market.static_tokens) + [m.base_token for m in self.top_movers]
        return list(dict.fromkeys(tokens))

    def monitored_symbols(self) -> list[str]:
        """Exchange pair symbols for every monitored token."""
        return [to_pair_symbol(t, self.market.quote_currency) for t in self.monitored_tokens()]

    def mover_tokens(self) -> list[str]:
        with self._lock:
            return [m.base_token for m in self.top_movers]

    def is_static(self, token: str) -> bool:
        return token.upper() in self.market.static_tokens

    def is_top_mover(self, token: str) -> bool:
        return token.upper() in self.mover_tokens()

    def should_refresh(self, now: Optional[datetime] = None) -> bool:
        """True when the mover list is missing or older than the refresh interval."""
        if self.last_refresh is None:
            return True
        return elapsed_seconds(self.last_refresh, now) >= self.movers_params.refresh_interval_seconds

    def refresh(self, exchange: "ExchangeClient", now: Optional[datetime] = None) -> list[Mover]:
        """
        Re-rank movers and start monitoring newly included tokens.

        Tokens that fall out of the ranking keep being monitored since they
        may carry open positions.
        """
        tickers = exchange.get_ticker_snapshot()
        movers = self.tracker.ranked_movers(
            tickers,
            window=self.movers_params.window,
            count=self.movers_params.count,
            percent_change=exchange.get_percent_change,
        )

        with self._lock:
            previous = {m.base_token for m in self.top_movers}
            self.top_movers = movers
            self.last_refresh = now or utc_now()

        prices = {t.symbol: t.last_price for t in tickers}
        added = []
        for token in self.monitored_tokens():
            price = prices.get(to_pair_symbol(token, self.market.quote_currency))
            if price is None:
                continue
            if self.tracker.start_monitoring(token, price):
                added.append(token)

        self.logger.info(
            "Refreshed top movers",
            movers=[m.base_token for m in movers],
            entered=sorted({m.base_token for m in movers} - previous),
            newly_monitored=added
        )
        return movers

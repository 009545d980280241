"""Pytest configuration and shared fixtures."""

import pytest

from peakbot.config.defaults import TradingParams
from peakbot.execution.guard import ExecutionGuard
from peakbot.execution.paper import PaperExchange
from peakbot.market.models import TickerSnapshot
from peakbot.market.tracker import PriceTracker
from peakbot.signals.engine import SignalEngine
from peakbot.signals.models import Signal, SignalKind
from peakbot.state.ledger import PositionLedger


@pytest.fixture
def params() -> TradingParams:
    """Default trading parameters: 10000 balance, 2% buy, 3% sell, 25% sizing."""
    return TradingParams()


@pytest.fixture
def tracker() -> PriceTracker:
    return PriceTracker(quote_currency="USDT")


@pytest.fixture
def ledger(params, tracker) -> PositionLedger:
    return PositionLedger(params, tracker=tracker)


@pytest.fixture
def sample_tickers() -> list[TickerSnapshot]:
    """Ticker snapshot mixing eligible and ineligible pairs."""
    return [
        TickerSnapshot(symbol="BTCUSDT", last_price=50000.0, volume=1200.0),
        TickerSnapshot(symbol="ETHUSDT", last_price=3000.0, volume=9000.0),
        TickerSnapshot(symbol="SOLUSDT", last_price=100.0, volume=50000.0),
        TickerSnapshot(symbol="DOGEUSDT", last_price=0.1, volume=1e7),
        TickerSnapshot(symbol="PEPEUSDT", last_price=0.00001, volume=1e9),
        TickerSnapshot(symbol="ETHBTC", last_price=0.06, volume=10.0),
        TickerSnapshot(symbol="USDTUSDC", last_price=1.0, volume=1e6),
    ]


@pytest.fixture
def exchange(sample_tickers) -> PaperExchange:
    return PaperExchange(
        tickers=sample_tickers,
        changes={"BTCUSDT": 1.0, "ETHUSDT": 0.5, "SOLUSDT": 4.0, "DOGEUSDT": 7.5, "PEPEUSDT": 2.5},
        balance=10000.0,
    )


@pytest.fixture
def guard(exchange, ledger, params) -> ExecutionGuard:
    return ExecutionGuard(exchange, ledger, params, quote_currency="USDT")


@pytest.fixture
def engine(tracker, ledger, params) -> SignalEngine:
    return SignalEngine(tracker, ledger, params)


def make_signal(kind: SignalKind, symbol: str, price: float, reason: str = "test") -> Signal:
    return Signal(kind=kind, symbol=symbol, price=price, reason=reason)


@pytest.fixture
def buy_signal():
    """Factory for buy signals."""
    def _make(symbol: str = "SOL", price: float = 102.0) -> Signal:
        return make_signal(SignalKind.BUY, symbol, price, "Price increased 2.00% from low")
    return _make


@pytest.fixture
def sell_signal():
    """Factory for sell signals."""
    def _make(symbol: str = "SOL", price: float = 106.59) -> Signal:
        return make_signal(SignalKind.SELL, symbol, price, "Price dropped 3.10% from peak $110.00")
    return _make

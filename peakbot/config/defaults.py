"""Default configuration parameters for the trading engine."""

from dataclasses import dataclass


@dataclass(frozen=True)
class TradingParams:
    """Signal thresholds and position sizing."""
    initial_balance: float = 10000.0
    buy_threshold: float = 2.0                       # % rise from low to trigger a buy
    sell_threshold: float = 3.0                      # % drop from peak to trigger a sell
    trade_amount_percent: float = 25.0               # % of balance committed per trade
    min_trade_amount: float = 1.0                    # Minimum notional per trade
    max_positions: int = 4                           # Maximum concurrent positions
    quantity_precision: int = 4                      # Decimals sent to the exchange


@dataclass(frozen=True)
class MarketParams:
    """Instrument universe parameters."""
    quote_currency: str = "USDT"
    static_tokens: tuple[str, ...] = ("BTC", "ETH", "SOL", "XRP", "ADA")


@dataclass(frozen=True)
class MoversParams:
    """Top-mover list parameters."""
    count: int = 10
    window: str = "30m"
    refresh_interval_seconds: float = 1800.0


@dataclass(frozen=True)
class IntervalParams:
    """Loop timing parameters."""
    tick_seconds: float = 1.0


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    trading: TradingParams
    market: MarketParams
    movers: MoversParams
    intervals: IntervalParams


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        trading=TradingParams(),
        market=MarketParams(),
        movers=MoversParams(),
        intervals=IntervalParams(),
    )

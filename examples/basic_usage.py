#!/usr/bin/env python3
"""
Basic Usage Example - PeakBot paper trading

This script runs the trading controller against the in-memory paper exchange
with a scripted price path. It shows how to:
- Initialize the controller and the monitored instruments
- Feed streamed ticker messages into the price tracker
- Run ticks and inspect signals, positions and the ledger summary
- Close everything with an emergency stop

Run: python examples/basic_usage.py
"""

import json
from dataclasses import replace

import orjson

from peakbot.config.defaults import IntervalParams, MarketParams, MoversParams, get_default_config
from peakbot.engine import TradingController
from peakbot.execution.paper import PaperExchange
from peakbot.logging.config import configure_logging
from peakbot.market.parsers import parse_ticker_message, parse_ticker_snapshot


def create_ticker_snapshot() -> dict:
    """Ticker list response in the exchange's envelope format."""
    return {
        "retCode": 0,
        "result": {
            "list": [
                {"symbol": "BTCUSDT", "lastPrice": "50000", "volume24h": "1500"},
                {"symbol": "SOLUSDT", "lastPrice": "100", "volume24h": "90000"},
                {"symbol": "DOGEUSDT", "lastPrice": "0.10", "volume24h": "8000000"},
                {"symbol": "ETHBTC", "lastPrice": "0.06", "volume24h": "100"},
            ]
        }
    }


def create_ticker_message(symbol: str, price: float) -> bytes:
    """Streamed ticker update."""
    return orjson.dumps({"topic": f"tickers.{symbol}", "data": {"lastPrice": str(price)}})


def main():
    configure_logging(level="WARNING")

    print("🚀 PeakBot - Basic Usage Example")
    print("=" * 50)

    exchange = PaperExchange(
        tickers=parse_ticker_snapshot(create_ticker_snapshot()),
        changes={"SOLUSDT": 3.2, "DOGEUSDT": 5.1, "BTCUSDT": 0.4},
        balance=10000.0,
    )
    config = replace(
        get_default_config(),
        market=MarketParams(static_tokens=("BTC",)),
        movers=MoversParams(count=2),
        intervals=IntervalParams(tick_seconds=1.0),
    )

    controller = TradingController(exchange, config=config)
    tokens = controller.initialize()
    print(f"\n📊 Monitoring: {', '.join(tokens)}")

    price_path = [
        ("SOLUSDT", 99.0),
        ("SOLUSDT", 101.5),      # +2.5% from low -> buy
        ("DOGEUSDT", 0.101),
        ("SOLUSDT", 108.0),
        ("SOLUSDT", 112.0),      # new peak
        ("SOLUSDT", 108.2),      # -3.4% from peak -> sell
        ("DOGEUSDT", 0.104),     # +4.0% from low -> buy
    ]

    for symbol, price in price_path:
        controller.on_price(*parse_ticker_message(create_ticker_message(symbol, price)))
        for signal, result in controller.tick():
            status = "✅" if result.success else "❌"
            print(f"{status} {signal.kind.value.upper():4} {signal.symbol:5} @ {signal.price:<10} {signal.reason}")

    print("\n💼 Open positions:")
    for position in controller.positions_view():
        print(f"  {position['symbol']}: qty={position['quantity']:.4f} "
              f"entry={position['entry_price']} pnl={position['profit']:.2f}")

    print("\n📈 Ledger summary:")
    print(json.dumps(controller.ledger_summary(), indent=2))

    print("\n🛑 Emergency stop")
    for symbol, result in controller.emergency_stop():
        print(f"  {symbol}: {result.status.value}")

    print("\n📜 Trade history:")
    for trade in controller.trade_history():
        print(f"  #{trade['id']} {trade['kind']:4} {trade['symbol']:5} @ {trade['price']} ({trade['reason']})")


if __name__ == "__main__":
    main()

"""
Parsers for raw exchange ticker payloads.

Exchanges report prices as strings inside JSON documents. These helpers turn
them into typed TickerSnapshot values and (symbol, price) pairs for the
streaming price callback.
"""

import math
from typing import Any, Union

import orjson

from .models import TickerSnapshot


class TickerParseError(Exception):
    """Raised when a ticker payload cannot be parsed."""


def _to_float(value: Any, field: str) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError) as e:
        raise TickerParseError(f"Invalid {field}: {value!r}") from e
    if not math.isfinite(result) or result < 0:
        raise TickerParseError(f"Invalid {field}: {value!r}")
    return result


def parse_json_payload(raw_data: Union[str, bytes]) -> dict[str, Any]:
    """
    Parse raw JSON text into a dictionary.

    Raises:
        TickerParseError: If the text is not a JSON object
    """
    try:
        payload = orjson.loads(raw_data)
    except orjson.JSONDecodeError as e:
        raise TickerParseError(f"Invalid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise TickerParseError(f"Expected JSON object, got {type(payload).__name__}")
    return payload


def parse_ticker(entry: dict[str, Any]) -> TickerSnapshot:
    """Parse one ticker row ({symbol, lastPrice, volume24h})."""
    symbol = entry.get("symbol")
    if not isinstance(symbol, str) or not symbol:
        raise TickerParseError(f"Ticker missing symbol: {entry!r}")

    return TickerSnapshot(
        symbol=symbol.upper(),
        last_price=_to_float(entry.get("lastPrice"), "lastPrice"),
        volume=_to_float(entry.get("volume24h", entry.get("volume", 0)), "volume"),
    )


def parse_ticker_snapshot(payload: Union[str, bytes, dict[str, Any]]) -> list[TickerSnapshot]:
    """
    Parse a ticker list response.

    Accepts the response envelope ({"result": {"list": [...]}}) as a dict or
    as raw JSON text.
    """
    if not isinstance(payload, dict):
        payload = parse_json_payload(payload)

    result = payload.get("result", payload)
    entries = result.get("list") if isinstance(result, dict) else None
    if not isinstance(entries, list):
        raise TickerParseError("Ticker snapshot missing result list")

    return [parse_ticker(entry) for entry in entries]


def parse_ticker_message(raw: Union[str, bytes, dict[str, Any]]) -> tuple[str, float]:
    """
    Parse one streamed ticker message into (symbol, last price).

    Expected shape: {"topic": "tickers.BTCUSDT", "data": {"lastPrice": "..."}}.
    The symbol falls back to data["symbol"] when the topic is absent.
    """
    message = raw if isinstance(raw, dict) else parse_json_payload(raw)

    data = message.get("data")
    if not isinstance(data, dict):
        raise TickerParseError("Ticker message missing data object")

    topic = message.get("topic", "")
    symbol = topic.split(".", 1)[1] if isinstance(topic, str) and topic.startswith("tickers.") else data.get("symbol")
    if not isinstance(symbol, str) or not symbol:
        raise TickerParseError(f"Ticker message missing symbol: {message!r}")

    return symbol.upper(), _to_float(data.get("lastPrice"), "lastPrice")

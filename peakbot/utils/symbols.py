"""
Instrument identity helpers.

A tradable instrument is a base token paired with a fixed quote currency.
Internally everything keys on the base token; the paired form is what the
exchange understands.
"""


def to_pair_symbol(base: str, quote: str) -> str:
    """Build the exchange symbol for a base token ("BTC" -> "BTCUSDT")."""
    base = base.upper()
    if base.endswith(quote) and base != quote:
        return base
    return f"{base}{quote}"


def to_base_token(symbol: str, quote: str) -> str:
    """
    Strip the quote currency from an exchange symbol ("BTCUSDT" -> "BTC").

    A bare base token passes through unchanged.
    """
    symbol = symbol.upper()
    if symbol.endswith(quote) and symbol != quote:
        return symbol[: -len(quote)]
    return symbol


def is_quote_pair(symbol: str, quote: str) -> bool:
    """True for pairs denominated in the quote currency, excluding the quote traded against itself."""
    symbol = symbol.upper()
    return symbol.endswith(quote) and not symbol.startswith(quote)

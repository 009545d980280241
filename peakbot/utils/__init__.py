"""
Utility functions module.

Shared helpers for clock handling and instrument identity.

Symbol Semantics:
- All internal maps key on the base token ("BTC")
- The quote-paired form ("BTCUSDT") is only used at the exchange boundary
"""

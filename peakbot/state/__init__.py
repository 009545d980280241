"""
Ledger state module.

Owns balance, open positions and trade history. Positions move through a
two-state lifecycle per symbol: FLAT -> HELD on a confirmed buy and
HELD -> FLAT on a confirmed sell.
"""

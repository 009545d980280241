"""
PeakBot - Peak-Relative Momentum Trading Engine

A trading decision-and-execution engine for cryptocurrency spot pairs.
Watches price-tracked instruments, derives buy/sell signals from a
rise-from-low / drop-from-peak rule and converts them into exchange orders
while keeping an in-memory ledger of balance, positions and trade history.
"""

__version__ = "0.1.0"
__author__ = "PeakBot Team"

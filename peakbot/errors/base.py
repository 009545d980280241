"""
Base error type for the trading engine.

Every error raised or reported by the core carries a context dictionary and a
``recoverable`` flag so callers can log and route it uniformly.
"""

from typing import Any, Optional


class TradingError(Exception):
    """Base class for all trading engine errors."""

    def __init__(self, message: str, symbol: Optional[str] = None,
                 context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.symbol = symbol
        self.context = context or {}
        self.recoverable = False

    @property
    def kind(self) -> str:
        """Error kind name used in logs and snapshots."""
        return type(self).__name__


class ConfigurationError(TradingError):
    """Configuration values failed validation."""

    def __init__(self, message: str, errors: Optional[list] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.errors = errors or []

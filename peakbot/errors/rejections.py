"""
Business-rule and concurrency rejections.

Rejections are expected outcomes: they are reported to the caller and logged,
never retried, and leave the ledger untouched.
"""

from typing import Optional

from .base import TradingError


class ValidationRejection(TradingError):
    """Local business-rule rejection."""


class BelowMinimumError(ValidationRejection):
    """Computed trade notional is below the configured minimum."""

    def __init__(self, message: str, notional: Optional[float] = None,
                 minimum: Optional[float] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.notional = notional
        self.minimum = minimum


class MaxPositionsReachedError(ValidationRejection):
    """Opening another position would exceed max_positions."""

    def __init__(self, message: str, open_positions: Optional[int] = None,
                 max_positions: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.open_positions = open_positions
        self.max_positions = max_positions


class NoPositionError(ValidationRejection):
    """A sell was requested for a symbol with no open position."""


class InsufficientBalanceError(ValidationRejection):
    """Notional exceeds the available balance or is below the minimum."""

    def __init__(self, message: str, notional: Optional[float] = None,
                 balance: Optional[float] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.notional = notional
        self.balance = balance


class PositionExistsError(ValidationRejection):
    """A buy was requested for a symbol that already has an open position."""


class ReconciliationPendingError(ValidationRejection):
    """An earlier order on the symbol has an unknown outcome."""


class ConcurrencyRejection(TradingError):
    """Rejection caused by racing executions."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, **kwargs)
        self.recoverable = True


class AlreadyExecutingError(ConcurrencyRejection):
    """Another execution for the same symbol has not completed yet."""

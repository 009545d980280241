"""
Error classification system for the trading engine.

This module provides the structured exception hierarchy used for
business-rule rejections, concurrency rejections and exchange failures.
"""

from .base import TradingError, ConfigurationError
from .rejections import (
    ValidationRejection,
    BelowMinimumError,
    MaxPositionsReachedError,
    NoPositionError,
    InsufficientBalanceError,
    PositionExistsError,
    ReconciliationPendingError,
    ConcurrencyRejection,
    AlreadyExecutingError,
)
from .exchange import (
    CollaboratorFailure,
    ExchangeRejectedError,
    TransportFaultError,
)

__all__ = [
    "TradingError",
    "ConfigurationError",
    # Business-rule rejections
    "ValidationRejection",
    "BelowMinimumError",
    "MaxPositionsReachedError",
    "NoPositionError",
    "InsufficientBalanceError",
    "PositionExistsError",
    "ReconciliationPendingError",
    # Concurrency
    "ConcurrencyRejection",
    "AlreadyExecutingError",
    # Exchange collaborator
    "CollaboratorFailure",
    "ExchangeRejectedError",
    "TransportFaultError",
]

"""
Exchange collaborator failure classifications.

These separate an explicit refusal by the exchange from a call whose outcome
could not be confirmed. Neither is retried automatically.
"""

from typing import Optional

from .base import TradingError


class CollaboratorFailure(TradingError):
    """The exchange answered and declined the request."""

    def __init__(self, message: str, detail: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.detail = detail


class ExchangeRejectedError(CollaboratorFailure):
    """The exchange explicitly rejected the order."""


class TransportFaultError(TradingError):
    """The order call raised; whether the exchange placed it is unknown."""

    def __init__(self, message: str, detail: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.detail = detail

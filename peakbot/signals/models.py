"""Signal data models."""

from dataclasses import dataclass
from enum import Enum


class SignalKind(str, Enum):
    """Order direction a signal asks for."""
    BUY = "buy"
    SELL = "sell"


@dataclass(frozen=True)
class Signal:
    """Ephemeral trade request, consumed once by the execution guard."""
    kind: SignalKind
    symbol: str             # Base token
    price: float            # Price the decision was made at
    reason: str
    measured_pct: float = 0.0

"""
yieldledger bridge — cross-instance transfer that carries each holder's
locked rate alongside the value.
"""

from yieldledger.bridge.endpoint import (
    POOL_PREFIX,
    BridgeEndpoint,
    pair,
    pool_account_for,
)
from yieldledger.bridge.transport import InMemoryTransport, Transport

__all__ = [
    "BridgeEndpoint",
    "InMemoryTransport",
    "POOL_PREFIX",
    "Transport",
    "pair",
    "pool_account_for",
]

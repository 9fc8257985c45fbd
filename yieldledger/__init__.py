"""
yieldledger/__init__.py

yieldledger: locked-rate yield ledger with a rate-preserving bridge

Holders accrue simple interest at the rate fixed by their latest mint.
A decrease-only ceiling bounds every new mint. Balances move between
independent ledger instances with their rate carried in a signed
message, so a holder's accrual is identical before and after the move.
"""

__version__ = "0.3.0"

from yieldledger.auth.capabilities import Capability, CapabilitySet
from yieldledger.bridge.endpoint import BridgeEndpoint, pair, pool_account_for
from yieldledger.bridge.transport import InMemoryTransport, Transport
from yieldledger.core.crypto import Ed25519KeyManager
from yieldledger.core.exceptions import (
    ArithmeticOverflow,
    BridgeError,
    InsufficientBalance,
    InvalidOrigin,
    JournalError,
    MessageReplay,
    RateIncreaseRejected,
    Unauthorized,
    ValidationError,
    YieldLedgerError,
)
from yieldledger.core.fixedpoint import FULL_BALANCE, PRECISION, format_rate, parse_rate
from yieldledger.core.models import Account, GlobalConfig, OutboundMessage
from yieldledger.core.time import ManualClock, SystemClock
from yieldledger.custody import CustodyVault
from yieldledger.governance.governor import RateGovernor
from yieldledger.ledger.journal import Journal
from yieldledger.ledger.ledger import Ledger

__all__ = [
    # Ledger
    "Ledger",
    "Account",
    "GlobalConfig",
    "Journal",
    "RateGovernor",
    "CustodyVault",
    # Authorization
    "Capability",
    "CapabilitySet",
    # Bridge
    "BridgeEndpoint",
    "InMemoryTransport",
    "OutboundMessage",
    "Transport",
    "pair",
    "pool_account_for",
    "Ed25519KeyManager",
    # Clocks
    "ManualClock",
    "SystemClock",
    # Fixed point
    "FULL_BALANCE",
    "PRECISION",
    "format_rate",
    "parse_rate",
    # Errors
    "YieldLedgerError",
    "ValidationError",
    "InsufficientBalance",
    "RateIncreaseRejected",
    "Unauthorized",
    "ArithmeticOverflow",
    "BridgeError",
    "MessageReplay",
    "InvalidOrigin",
    "JournalError",
]

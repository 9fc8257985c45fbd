"""
yieldledger exception hierarchy

All exceptions inherit from YieldLedgerError. Each one names the
invariant that was violated; details carry the offending values.
"""


class YieldLedgerError(Exception):
    """Base exception for all yieldledger errors"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ValidationError(YieldLedgerError):
    """Raised when an argument is malformed (wrong type, negative amount)"""
    pass


class InsufficientBalance(YieldLedgerError):
    """Raised when a burn or transfer exceeds the settled principal"""
    pass


class RateIncreaseRejected(YieldLedgerError):
    """Raised when the ceiling rate would increase"""
    pass


class Unauthorized(YieldLedgerError):
    """Raised when a caller lacks the required capability"""
    pass


class ArithmeticOverflow(YieldLedgerError):
    """Raised when fixed-point arithmetic leaves the 256-bit range"""
    pass


class BridgeError(YieldLedgerError):
    """Raised when a cross-instance message cannot be accepted"""
    pass


class MessageReplay(BridgeError):
    """Raised when a bridge message was already consumed"""
    pass


class InvalidOrigin(BridgeError):
    """Raised when a bridge message fails origin or signature checks"""
    pass


class JournalError(YieldLedgerError):
    """Raised when the operation journal is corrupt or cannot be written"""
    pass

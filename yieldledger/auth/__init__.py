"""
Capability-based authorization for privileged ledger calls.
"""

from yieldledger.auth.capabilities import Capability, CapabilitySet

__all__ = ["Capability", "CapabilitySet"]

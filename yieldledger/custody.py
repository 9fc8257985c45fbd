"""
Custody vault — converts an external value unit 1:1 into ledger balance
and back.

Deliberately thin: it mints at the governor's current ceiling and burns
on redemption. Reserve accounting is tracked for observation only;
paying yield out of reserves (reserves going negative) is allowed here
and is the custody operator's concern, not the ledger's.
"""

import logging
import threading

from yieldledger.core.fixedpoint import FULL_BALANCE, require_uint
from yieldledger.governance.governor import RateGovernor
from yieldledger.ledger.ledger import Ledger

logger = logging.getLogger(__name__)


class CustodyVault:

    def __init__(self, ledger: Ledger, governor: RateGovernor, caller_id: str = "custody"):
        self.ledger    = ledger
        self.governor  = governor
        self.caller_id = caller_id
        self._lock     = threading.Lock()
        self._reserves = 0

    @property
    def reserves(self) -> int:
        with self._lock:
            return self._reserves

    def deposit(self, holder: str, amount: int) -> int:
        """Take amount of external value, mint it at the current ceiling."""
        require_uint(amount, "amount")
        rate = self.governor.get_ceiling_rate()
        principal = self.ledger.mint(self.caller_id, holder, amount, rate)
        with self._lock:
            self._reserves += amount
        logger.info("deposit %s %d at rate %d", holder, amount, rate)
        return principal

    def redeem(self, holder: str, amount: int = FULL_BALANCE) -> int:
        """Burn amount (default: everything) and pay it out. Returns paid amount."""
        paid = self.ledger.burn(self.caller_id, holder, amount)
        with self._lock:
            self._reserves -= paid
        logger.info("redeem %s %d", holder, paid)
        return paid

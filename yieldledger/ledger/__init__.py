"""
yieldledger ledger — per-account balances with locked accrual rates,
backed by an optional hash-chained operation journal.
"""

from yieldledger.ledger.interfaces import TokenLedger
from yieldledger.ledger.journal import Journal, JournalEntry, JournalOp
from yieldledger.ledger.ledger import Ledger

__all__ = ["Journal", "JournalEntry", "JournalOp", "Ledger", "TokenLedger"]

"""
yieldledger/core/time.py

Ledger clocks.

Accrual is measured in integer time units. Every Ledger reads time from
one injected clock and nowhere else. Two ledger instances never share a
clock; the bridge carries no timestamps that affect accrual.
"""

import threading
import time
from typing import Protocol


class Clock(Protocol):
    """Anything with a now() returning non-negative integer time units."""

    def now(self) -> int:
        ...


class SystemClock:
    """Wall clock in whole seconds since the epoch."""

    def now(self) -> int:
        return int(time.time())

    def __repr__(self) -> str:
        return "SystemClock()"


class ManualClock:
    """
    Clock advanced explicitly by the caller.

    Used by tests, simulations and journal replay. Time never moves
    backwards: set() and advance() reject it.
    """

    def __init__(self, start: int = 0) -> None:
        if start < 0:
            raise ValueError(f"start must be non-negative, got {start}")
        self._now  = start
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            return self._now

    def advance(self, delta: int) -> int:
        """Move forward by delta units and return the new time."""
        if delta < 0:
            raise ValueError(f"delta must be non-negative, got {delta}")
        with self._lock:
            self._now += delta
            return self._now

    def set(self, value: int) -> int:
        with self._lock:
            if value < self._now:
                raise ValueError(
                    f"ManualClock cannot move backwards: {self._now} -> {value}"
                )
            self._now = value
            return self._now

    def __repr__(self) -> str:
        return f"ManualClock(now={self._now})"

"""
Rate governor — the one-directional ratchet on a ledger's ceiling rate.

A ceiling that never rises bounds every future yield promise by what
earlier depositors already locked in. Existing holders keep their
(possibly higher) historical rate; only new or re-minted balances are
bound by the current ceiling.
"""

import logging
from typing import List, Tuple

from yieldledger.core.fixedpoint import format_rate, require_uint
from yieldledger.core.models import GlobalConfig
from yieldledger.ledger.ledger import Ledger

logger = logging.getLogger(__name__)


class RateGovernor:
    """Decrease-only updates to Ledger.config.ceiling_rate."""

    def __init__(self, ledger: Ledger):
        self.ledger = ledger
        self._history: List[Tuple[int, int]] = []

    def get_ceiling_rate(self) -> int:
        return self.ledger.ceiling_rate

    def set_ceiling_rate(self, caller: str, new_rate: int) -> GlobalConfig:
        """
        Lower (or keep) the ceiling.

        Raises:
            Unauthorized         — caller lacks SET_CEILING_RATE
            RateIncreaseRejected — new_rate > current ceiling; ceiling unchanged
        """
        require_uint(new_rate, "new_rate")
        previous = self.ledger.ceiling_rate
        config = self.ledger.update_config(
            caller, lambda current: current.lowered_to(new_rate)
        )
        self._history.append((config.updated_at, config.ceiling_rate))
        logger.info(
            "Ceiling rate on %s: %s -> %s (revision %d, by %s)",
            self.ledger.instance_id,
            format_rate(previous),
            format_rate(config.ceiling_rate),
            config.revision,
            caller,
        )
        return config

    @property
    def history(self) -> List[Tuple[int, int]]:
        """(updated_at, ceiling_rate) of every update accepted by this governor."""
        return list(self._history)

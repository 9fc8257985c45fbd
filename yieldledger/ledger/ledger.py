"""
Ledger implementation for yieldledger.

Commit contract — every mutating call MUST, in this exact order:
  1. Check capability            — before the lock, no state read
  2. Acquire lock
  3. Read clock, settle touched accounts (pure, on snapshots)
  4. Apply the mutation to the settled snapshots
  5. Journal the resulting snapshots (if a journal is attached)
  6. Swap the snapshots into self._accounts
  7. Release lock

A failure in steps 3-5 raises before step 6: no observer ever sees an
account that was settled but not mutated, or mutated but not settled.
"""

import logging
import threading
import warnings
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional

from yieldledger.auth.capabilities import Capability, CapabilitySet
from yieldledger.core import accrual
from yieldledger.core.canonical import decode_uint, encode_uint
from yieldledger.core.exceptions import InsufficientBalance, ValidationError
from yieldledger.core.fixedpoint import FULL_BALANCE, checked_add, require_uint
from yieldledger.core.models import Account, GlobalConfig
from yieldledger.core.time import Clock, SystemClock
from yieldledger.ledger.journal import Journal, JournalEntry, JournalOp

logger = logging.getLogger(__name__)


def _require_account_id(account) -> str:
    if not isinstance(account, str) or not account:
        raise ValidationError("account must be a non-empty string", {"account": repr(account)})
    return account


class Ledger:
    """
    Yield-bearing balance ledger for one instance.

    Owns per-account state and its GlobalConfig. Thread-safe via a single
    internal lock; each top-level call runs to completion before the
    next mutation of any account begins.
    """

    def __init__(
        self,
        ceiling_rate: int,
        capabilities: CapabilitySet,
        clock:        Optional[Clock] = None,
        journal:      Optional[Journal] = None,
        instance_id:  str = "default",
    ) -> None:
        self.instance_id  = instance_id
        self.capabilities = capabilities
        self.clock        = clock or SystemClock()
        self.journal      = journal

        self._lock:     threading.Lock     = threading.Lock()
        self._accounts: Dict[str, Account] = {}
        self._config:   GlobalConfig       = GlobalConfig(
            ceiling_rate= require_uint(ceiling_rate, "ceiling_rate"),
            updated_at=   self.clock.now(),
        )

        if journal is not None:
            entries = journal.entries()
            if entries:
                self._restore_state(entries)
            else:
                journal.record(JournalOp.GENESIS, self._config.updated_at, {
                    "instance_id":  instance_id,
                    "ceiling_rate": encode_uint(self._config.ceiling_rate),
                })

    # ── Reads ─────────────────────────────────────────────────

    @property
    def config(self) -> GlobalConfig:
        return self._config

    @property
    def ceiling_rate(self) -> int:
        return self._config.ceiling_rate

    def account(self, account: str) -> Account:
        """Stored snapshot, without settlement. Unknown accounts read as zero."""
        with self._lock:
            return self._accounts.get(account, Account())

    def accounts(self) -> Dict[str, Account]:
        with self._lock:
            return dict(self._accounts)

    def principal_balance(self, account: str) -> int:
        """Stored principal as of last_settled, not "now"."""
        return self.account(account).principal

    def current_balance(self, account: str, now: Optional[int] = None) -> int:
        """Principal plus interest accrued up to now (defaults to the clock)."""
        snapshot = self.account(account)
        return accrual.settled_balance(snapshot, self.clock.now() if now is None else now)

    def get_rate(self, account: str) -> int:
        return self.account(account).rate

    def total_principal(self) -> int:
        with self._lock:
            return sum(a.principal for a in self._accounts.values())

    # ── Privileged mutations ──────────────────────────────────

    def mint(
        self,
        caller:  str,
        account: str,
        amount:  int,
        rate:    int,
        memo:    Optional[Dict[str, Any]] = None,
    ) -> int:
        """
        Settle account, overwrite its rate, add amount. Returns new principal.

        rate is trusted to be within bounds: custody passes the current
        ceiling, the bridge passes a rate that came from an earlier mint.
        memo is journaled verbatim (the bridge records message ids there).
        """
        self.capabilities.require(caller, Capability.MINT_BURN)
        _require_account_id(account)
        require_uint(amount, "amount")
        require_uint(rate, "rate")

        with self._lock:
            now     = self.clock.now()
            settled = accrual.settle(self._get(account), now)
            updated = Account(
                principal=    checked_add(settled.principal, amount),
                rate=         rate,
                last_settled= settled.last_settled,
            )
            payload = {
                "caller":  caller,
                "account": account,
                "amount":  encode_uint(amount),
                "rate":    encode_uint(rate),
            }
            if memo:
                payload["memo"] = memo
            self._commit(JournalOp.MINT, now, {account: updated}, payload)

        logger.debug("mint %s +%d at rate %d by %s", account, amount, rate, caller)
        return updated.principal

    def burn(
        self,
        caller:  str,
        account: str,
        amount:  int,
        memo:    Optional[Dict[str, Any]] = None,
    ) -> int:
        """
        Settle account and remove amount. Returns the amount burned.

        amount == FULL_BALANCE burns the whole settled principal.
        """
        self.capabilities.require(caller, Capability.MINT_BURN)
        _require_account_id(account)
        require_uint(amount, "amount")

        with self._lock:
            now     = self.clock.now()
            settled = accrual.settle(self._get(account), now)
            burned  = settled.principal if amount == FULL_BALANCE else amount
            if burned > settled.principal:
                raise InsufficientBalance(
                    "Burn exceeds settled principal",
                    {"account": account, "amount": burned, "principal": settled.principal},
                )
            updated = settled.with_principal(settled.principal - burned)
            payload = {
                "caller":  caller,
                "account": account,
                "amount":  encode_uint(burned),
            }
            if memo:
                payload["memo"] = memo
            self._commit(JournalOp.BURN, now, {account: updated}, payload)

        logger.debug("burn %s -%d by %s", account, burned, caller)
        return burned

    # ── Holder operations ─────────────────────────────────────

    def transfer(self, caller: str, sender: str, recipient: str, amount: int) -> None:
        """
        Move amount of settled principal from sender to recipient.

        caller must be sender itself, or hold MINT_BURN (the bridge moving
        pool-held balances). Anyone else gets Unauthorized.

        A recipient whose settled principal is zero takes the sender's
        rate (first receipt, or receipt after being fully drained).
        Otherwise the recipient keeps its own rate.
        """
        _require_account_id(sender)
        _require_account_id(recipient)
        if caller != sender:
            self.capabilities.require(caller, Capability.MINT_BURN)
        require_uint(amount, "amount")

        with self._lock:
            now  = self.clock.now()
            src  = accrual.settle(self._get(sender), now)
            if amount > src.principal:
                raise InsufficientBalance(
                    "Transfer exceeds settled principal",
                    {"account": sender, "amount": amount, "principal": src.principal},
                )

            if sender == recipient:
                updates = {sender: src}
            else:
                dst = accrual.settle(self._get(recipient), now)
                if dst.principal == 0:
                    dst = dst.with_rate(src.rate)
                updates = {
                    sender:    src.with_principal(src.principal - amount),
                    recipient: dst.with_principal(checked_add(dst.principal, amount)),
                }
            self._commit(JournalOp.TRANSFER, now, updates, {
                "caller":    caller,
                "sender":    sender,
                "recipient": recipient,
                "amount":    encode_uint(amount),
            })

        logger.debug("transfer %s -> %s %d by %s", sender, recipient, amount, caller)

    def settle(self, account: str) -> Account:
        """Fold accrued interest into principal now. Returns the settled account."""
        _require_account_id(account)
        with self._lock:
            now     = self.clock.now()
            settled = accrual.settle(self._get(account), now)
            self._commit(JournalOp.SETTLE, now, {account: settled}, {"account": account})
        return settled

    # ── Configuration ─────────────────────────────────────────

    def update_config(
        self,
        caller:    str,
        transform: Callable[[GlobalConfig], GlobalConfig],
    ) -> GlobalConfig:
        """
        Replace GlobalConfig with transform(current), atomically.

        The RateGovernor's hook. transform raises to reject the change;
        the current config is then left as it was. The returned config's
        updated_at is the commit time, the same "at" the journal records.
        """
        self.capabilities.require(caller, Capability.SET_CEILING_RATE)
        with self._lock:
            now     = self.clock.now()
            updated = replace(transform(self._config), updated_at=now)
            if self.journal is not None:
                self.journal.record(JournalOp.CONFIG, now, {
                    "caller":       caller,
                    "ceiling_rate": encode_uint(updated.ceiling_rate),
                    "revision":     encode_uint(updated.revision),
                })
            self._config = updated
        return updated

    # ── Internal ──────────────────────────────────────────────

    def _get(self, account: str) -> Account:
        return self._accounts.get(account, Account())

    def _commit(
        self,
        op:       str,
        now:      int,
        updates:  Dict[str, Account],
        payload:  Dict[str, Any],
    ) -> None:
        """Journal then apply. Caller holds self._lock."""
        if self.journal is not None:
            record = dict(payload)
            record["accounts"] = {name: acct.to_dict() for name, acct in updates.items()}
            self.journal.record(op, now, record)
        self._accounts.update(updates)

    def _restore_state(self, entries: List[JournalEntry]) -> None:
        """Rebuild accounts and config from a verified journal."""
        genesis = entries[0]
        if genesis.op != JournalOp.GENESIS:
            warnings.warn(
                f"Ledger: journal {self.journal.path} does not start with a genesis entry",
                RuntimeWarning,
                stacklevel=3,
            )
        else:
            recorded = genesis.payload.get("instance_id")
            if recorded != self.instance_id:
                warnings.warn(
                    f"Ledger: journal belongs to instance {recorded!r}, "
                    f"opened as {self.instance_id!r}",
                    RuntimeWarning,
                    stacklevel=3,
                )
            self._config = GlobalConfig(
                ceiling_rate= decode_uint(genesis.payload["ceiling_rate"]),
                updated_at=   genesis.at,
            )

        for entry in entries[1:]:
            if entry.op == JournalOp.CONFIG:
                self._config = GlobalConfig(
                    ceiling_rate= decode_uint(entry.payload["ceiling_rate"]),
                    revision=     decode_uint(entry.payload["revision"]),
                    updated_at=   entry.at,
                )
                continue
            for name, data in entry.payload.get("accounts", {}).items():
                self._accounts[name] = Account.from_dict(data)

        logger.info(
            "Ledger %s restored %d accounts from %d journal entries",
            self.instance_id, len(self._accounts), len(entries),
        )

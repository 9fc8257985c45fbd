"""
Bridge endpoint — moves balances between ledger instances with their
accrual rate attached.

Outbound (source instance):
    escrow   holder -> pool-held account       (local transfer)
    settle   holder
    read     rate = ledger.get_rate(holder)
    burn     amount from the pool-held account (commits immediately)
    sign     OutboundMessage{amount, rate, destination_account, ...}
    send     hand to transport, fire-and-forget

Inbound (destination instance), cheapest checks first:
    addressed to this instance   -> InvalidOrigin
    source instance trusted      -> InvalidOrigin
    signer key matches registry  -> InvalidOrigin
    Ed25519 signature valid      -> InvalidOrigin
    message_id not yet consumed  -> MessageReplay
    mint(destination_account, amount, rate)

The destination never consults its own ceiling: the rate in the message
is the rate minted, so the holder's accrual is unchanged by the move.

Once burned outbound, value exists only in the message. If the
transport loses it for good, it is lost; nothing here compensates.
"""

import logging
import threading
from typing import Any, Dict, Optional, Set, Union

from yieldledger.core.crypto import Ed25519KeyManager
from yieldledger.core.exceptions import (
    BridgeError,
    InsufficientBalance,
    InvalidOrigin,
    MessageReplay,
    ValidationError,
)
from yieldledger.core.fixedpoint import FULL_BALANCE, require_uint
from yieldledger.core.models import OutboundMessage, new_message_id
from yieldledger.bridge.transport import Transport
from yieldledger.ledger.journal import JournalOp
from yieldledger.ledger.ledger import Ledger

logger = logging.getLogger(__name__)

POOL_PREFIX = "bridge-pool:"


def pool_account_for(account: str) -> str:
    """Pool-held balance that carries account's value while in transit."""
    return f"{POOL_PREFIX}{account}"


class BridgeEndpoint:
    """
    One instance's side of the bridge.

    The endpoint acts on its ledger as caller_id, which must hold
    Capability.MINT_BURN there. Consumed message ids and the outbound
    sequence are restored from the ledger's journal when one is attached.
    """

    def __init__(
        self,
        ledger:          Ledger,
        key_manager:     Ed25519KeyManager,
        transport:       Transport,
        trusted_origins: Optional[Dict[str, str]] = None,
        caller_id:       Optional[str] = None,
    ) -> None:
        self.ledger      = ledger
        self.key_manager = key_manager
        self.transport   = transport
        self.instance_id = ledger.instance_id
        self.caller_id   = caller_id or f"bridge:{ledger.instance_id}"

        self._lock:     threading.Lock  = threading.Lock()
        self._trusted:  Dict[str, str]  = dict(trusted_origins or {})
        self._consumed: Set[str]        = set()
        self._sequence: int             = 0

        if ledger.journal is not None:
            self._restore_state()

    # ── Trust registry ────────────────────────────────────────

    @property
    def public_key_hex(self) -> str:
        return self.key_manager.public_key_hex

    def trust(self, instance_id: str, public_key_hex: str) -> None:
        """Accept inbound messages from instance_id signed by public_key_hex."""
        with self._lock:
            self._trusted[instance_id] = public_key_hex
        logger.info("%s trusts %s (%s...)", self.instance_id, instance_id, public_key_hex[:16])

    def is_consumed(self, message_id: str) -> bool:
        with self._lock:
            return message_id in self._consumed

    # ── Outbound ──────────────────────────────────────────────

    def escrow(self, account: str, amount: int) -> str:
        """Move amount from account into its pool-held balance. Returns the pool id."""
        pool = pool_account_for(account)
        self.ledger.transfer(account, account, pool, amount)
        return pool

    def outbound(
        self,
        account:              str,
        amount:               int,
        destination_account:  str,
        destination_instance: str,
    ) -> OutboundMessage:
        """
        Burn amount from account's pool-held balance and send it, with
        account's rate, to destination_account on destination_instance.

        The pool must already hold amount (see escrow()). Raises
        InsufficientBalance otherwise, with nothing burned or sent.

        The pool accrues interest while it waits. A fixed amount leaves
        that interest in the pool for a later outbound; FULL_BALANCE burns
        and sends the pool's whole settled balance.
        """
        self._check_route(account, amount, destination_account, destination_instance)
        pool = pool_account_for(account)

        self.ledger.settle(account)
        rate = self.ledger.get_rate(account)

        with self._lock:
            message = self._draft(account, amount, destination_account, destination_instance, rate)
            if amount == FULL_BALANCE and self.ledger.current_balance(pool) == 0:
                raise InsufficientBalance("Pool-held balance is empty", {"account": pool})

            message.amount = self.ledger.burn(self.caller_id, pool, amount, memo={
                "message_id":           message.message_id,
                "sequence":             str(message.sequence),
                "destination_instance": destination_instance,
            })
            self._sequence += 1

        message.sign(self.key_manager)
        try:
            self.transport.send(message)
        except Exception as exc:
            logger.error(
                "Transport rejected %s after burn of %d from %s; resend the signed message",
                message.message_id, message.amount, account,
            )
            error = BridgeError(
                "Transport rejected message after local burn",
                {"message_id": message.message_id, "error": str(exc)},
            )
            error.outbound = message
            raise error from exc

        logger.info(
            "bridge out %s: %s -> %s/%s amount=%d rate=%d",
            message.message_id, account, destination_instance,
            destination_account, message.amount, rate,
        )
        return message

    def bridge(
        self,
        account:              str,
        amount:               int,
        destination_account:  str,
        destination_instance: str,
    ) -> OutboundMessage:
        """
        escrow() then outbound().

        The route is checked before the escrow transfer: a call rejected
        for its arguments leaves account's balance where it was.
        """
        self._check_route(account, amount, destination_account, destination_instance)
        self.escrow(account, amount)
        return self.outbound(account, amount, destination_account, destination_instance)

    # ── Inbound ───────────────────────────────────────────────

    def inbound(self, message: Union[OutboundMessage, Dict[str, Any]]) -> int:
        """
        Verify and apply one delivered message. Returns the destination
        account's principal after the mint.
        """
        if isinstance(message, dict):
            message = OutboundMessage.from_dict(message)

        problems = message.validate_schema()
        if problems:
            raise ValidationError("Malformed bridge message", {"errors": problems})

        self._check_origin(message)

        with self._lock:
            if message.message_id in self._consumed:
                logger.warning(
                    "%s rejected replay of %s from %s",
                    self.instance_id, message.message_id, message.source_instance,
                )
                raise MessageReplay(
                    "Bridge message already consumed",
                    {"message_id": message.message_id},
                )
            principal = self.ledger.mint(
                self.caller_id,
                message.destination_account,
                message.amount,
                message.rate,
                memo={
                    "message_id":      message.message_id,
                    "source_instance": message.source_instance,
                    "sequence":        str(message.sequence),
                },
            )
            self._consumed.add(message.message_id)

        logger.info(
            "bridge in %s: %s/%s -> %s amount=%d rate=%d",
            message.message_id, message.source_instance, message.source_account,
            message.destination_account, message.amount, message.rate,
        )
        return principal

    # ── Internal ──────────────────────────────────────────────

    def _draft(
        self,
        account:              str,
        amount:               int,
        destination_account:  str,
        destination_instance: str,
        rate:                 int,
    ) -> OutboundMessage:
        """Unsigned message at the next sequence. Raises ValidationError if malformed."""
        message = OutboundMessage(
            message_id=           new_message_id(),
            source_instance=      self.instance_id,
            destination_instance= destination_instance,
            sequence=             self._sequence,
            source_account=       account,
            destination_account=  destination_account,
            amount=               amount,
            rate=                 rate,
            sent_at=              self.ledger.clock.now(),
            signer_public_key=    self.key_manager.public_key_hex,
        )
        problems = message.validate_schema()
        if problems:
            raise ValidationError("Malformed outbound message", {"errors": problems})
        return message

    def _check_route(
        self,
        account:              str,
        amount:               int,
        destination_account:  str,
        destination_instance: str,
    ) -> None:
        require_uint(amount, "amount")
        if amount == 0:
            raise ValidationError("Bridge amount must be positive", {"account": account})
        self._draft(account, amount, destination_account, destination_instance, rate=0)

    def _check_origin(self, message: OutboundMessage) -> None:
        def reject(reason: str) -> None:
            logger.warning(
                "%s rejected %s from %s: %s",
                self.instance_id, message.message_id, message.source_instance, reason,
            )
            raise InvalidOrigin(reason, {
                "message_id":      message.message_id,
                "source_instance": message.source_instance,
            })

        if message.destination_instance != self.instance_id:
            reject(f"Message addressed to {message.destination_instance!r}")

        with self._lock:
            expected_key = self._trusted.get(message.source_instance)
        if expected_key is None:
            reject("Source instance is not trusted")
        if message.signer_public_key != expected_key:
            reject("Signer key does not match the trusted key for the source")
        if not message.verify_signature(expected_key):
            reject("Invalid signature")

    def _restore_state(self) -> None:
        """Rebuild consumed ids and outbound sequence from journaled memos."""
        for entry in self.ledger.journal.entries():
            if entry.payload.get("caller") != self.caller_id:
                continue
            memo = entry.payload.get("memo") or {}
            if entry.op == JournalOp.MINT and "message_id" in memo:
                self._consumed.add(memo["message_id"])
            elif entry.op == JournalOp.BURN and "sequence" in memo:
                self._sequence = max(self._sequence, int(memo["sequence"]) + 1)
        logger.debug(
            "%s bridge restored: %d consumed, next sequence %d",
            self.instance_id, len(self._consumed), self._sequence,
        )


def pair(a: BridgeEndpoint, b: BridgeEndpoint) -> None:
    """Make two endpoints trust each other's signing keys."""
    a.trust(b.instance_id, b.public_key_hex)
    b.trust(a.instance_id, a.public_key_hex)

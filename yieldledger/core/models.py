"""
yieldledger/core/models.py

Ledger data model.

Account and GlobalConfig are frozen values. A Ledger never edits one in
place: it computes the replacement, and swaps it in only when the whole
operation has succeeded.

═══════════════════════════════════════════════════════════════════
BRIDGE MESSAGE CONTRACTS
═══════════════════════════════════════════════════════════════════

CONTRACT 1 — Signing
    bytes_signed = canonicalize(msg.to_signing_dict())
    algorithm    = Ed25519
    encoding     = base64url, no padding

CONTRACT 2 — Exact values
    amount and rate travel as base-10 strings. The rate minted on the
    destination is the string decoded, never recomputed from the
    destination's own ceiling.

CONTRACT 3 — Identity
    message_id = "msg-" + 32 hex chars. Unique per message. The
    destination refuses a message_id it has already consumed.
═══════════════════════════════════════════════════════════════════
"""

import re
import secrets
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

from yieldledger.core.canonical import canonicalize, decode_uint, encode_uint
from yieldledger.core.exceptions import RateIncreaseRejected, ValidationError
from yieldledger.core.fixedpoint import require_uint


BRIDGE_PROTOCOL_VERSION = "1"

_MESSAGE_ID_RE = re.compile(r"^msg-[0-9a-f]{32}$")
_PUBLIC_KEY_HEX_LENGTH = 64


# ─────────────────────────────────────────────────────────────
# Account
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Account:
    """
    Per-holder state on one ledger instance.

    principal     settled balance as of last_settled
    rate          fixed-point interest per time unit
    last_settled  ledger time of the last settlement
    """
    principal:    int = 0
    rate:         int = 0
    last_settled: int = 0

    def with_principal(self, principal: int) -> "Account":
        return replace(self, principal=principal)

    def with_rate(self, rate: int) -> "Account":
        return replace(self, rate=rate)

    def to_dict(self) -> Dict[str, str]:
        return {
            "principal":    encode_uint(self.principal),
            "rate":         encode_uint(self.rate),
            "last_settled": encode_uint(self.last_settled),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Account":
        return cls(
            principal=    decode_uint(data["principal"]),
            rate=         decode_uint(data["rate"]),
            last_settled= decode_uint(data["last_settled"]),
        )


# ─────────────────────────────────────────────────────────────
# GlobalConfig
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class GlobalConfig:
    """
    Per-ledger configuration. ceiling_rate only ever goes down.

    revision counts accepted ceiling updates (0 at initialization).
    updated_at is the ledger-clock time the config was installed.
    """
    ceiling_rate: int
    revision:     int = 0
    updated_at:   int = 0

    def lowered_to(self, new_rate: int) -> "GlobalConfig":
        """
        Return the config with ceiling_rate = new_rate.

        Raises RateIncreaseRejected if new_rate exceeds the current
        ceiling. An equal rate is accepted and still bumps revision.
        """
        require_uint(new_rate, "new_rate")
        if new_rate > self.ceiling_rate:
            raise RateIncreaseRejected(
                "Ceiling rate may only decrease",
                {"current": self.ceiling_rate, "requested": new_rate},
            )
        return replace(self, ceiling_rate=new_rate, revision=self.revision + 1)


# ─────────────────────────────────────────────────────────────
# OutboundMessage: the only cross-instance payload
# ─────────────────────────────────────────────────────────────

def new_message_id() -> str:
    return f"msg-{secrets.token_hex(16)}"


@dataclass
class OutboundMessage:
    """
    Value plus accrual terms in transit between two ledger instances.

    The economic content is (amount, rate, destination_account). Every
    other field exists for routing, ordering and authentication.
    """

    message_id:           str
    source_instance:      str
    destination_instance: str
    sequence:             int
    source_account:       str
    destination_account:  str
    amount:               int
    rate:                 int
    sent_at:              int
    signer_public_key:    str
    version:              str = BRIDGE_PROTOCOL_VERSION
    signature:            Optional[str] = None

    def to_signing_dict(self) -> Dict[str, Any]:
        """CONTRACT 1 — every field except signature."""
        return {
            "amount":               encode_uint(self.amount),
            "destination_account":  self.destination_account,
            "destination_instance": self.destination_instance,
            "message_id":           self.message_id,
            "rate":                 encode_uint(self.rate),
            "sent_at":              encode_uint(self.sent_at),
            "sequence":             encode_uint(self.sequence),
            "signer_public_key":    self.signer_public_key,
            "source_account":       self.source_account,
            "source_instance":      self.source_instance,
            "version":              self.version,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Wire form, including signature."""
        d = self.to_signing_dict().copy()
        d["signature"] = self.signature
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OutboundMessage":
        """
        Parse the wire form.

        Raises ValidationError on missing or malformed fields. Does not
        check the signature; BridgeEndpoint.inbound() does that.
        """
        try:
            return cls(
                message_id=           data["message_id"],
                source_instance=      data["source_instance"],
                destination_instance= data["destination_instance"],
                sequence=             decode_uint(data["sequence"]),
                source_account=       data["source_account"],
                destination_account=  data["destination_account"],
                amount=               decode_uint(data["amount"]),
                rate=                 decode_uint(data["rate"]),
                sent_at=              decode_uint(data["sent_at"]),
                signer_public_key=    data["signer_public_key"],
                version=              data.get("version", BRIDGE_PROTOCOL_VERSION),
                signature=            data.get("signature"),
            )
        except KeyError as exc:
            raise ValidationError(
                "Bridge message missing field", {"field": exc.args[0]}
            ) from exc

    def validate_schema(self) -> List[str]:
        """Return a list of schema problems; empty when well formed."""
        errors: List[str] = []
        if self.version != BRIDGE_PROTOCOL_VERSION:
            errors.append(
                f"version: expected '{BRIDGE_PROTOCOL_VERSION}', got '{self.version}'"
            )
        if not isinstance(self.message_id, str) or not _MESSAGE_ID_RE.match(self.message_id):
            errors.append(f"message_id malformed: {self.message_id!r}")
        for name in ("source_instance", "destination_instance",
                     "source_account", "destination_account"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                errors.append(f"{name} must be a non-empty string")
        if (
            not isinstance(self.signer_public_key, str)
            or len(self.signer_public_key) != _PUBLIC_KEY_HEX_LENGTH
        ):
            errors.append("signer_public_key must be 64 hex chars")
        if self.amount == 0:
            errors.append("amount must be positive")
        return errors

    def canonical_bytes_for_signing(self) -> bytes:
        return canonicalize(self.to_signing_dict())

    def sign(self, key_manager) -> "OutboundMessage":
        """Sign in place and return self."""
        self.signature = key_manager.sign(self.canonical_bytes_for_signing())
        return self

    def verify_signature(self, public_key_hex: Optional[str] = None) -> bool:
        """
        True if the signature is valid for public_key_hex (defaults to the
        embedded signer key). Never raises.
        """
        if not self.signature:
            return False

        from yieldledger.core.crypto import Ed25519KeyManager

        return Ed25519KeyManager.verify_detached(
            self.canonical_bytes_for_signing(),
            self.signature,
            public_key_hex or self.signer_public_key,
        )

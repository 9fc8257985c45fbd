"""
yieldledger/ledger/journal.py

Append-only operation journal — JSONL, hash-chained.

Journal contract — a Ledger commit MUST, in this exact order:
  1. Compute the post-operation account snapshots (no state touched)
  2. record() the entry: sequence + causal_hash from the last entry,
     then write one line, flush, fsync
  3. Advance in-memory ledger state, only after confirmed write

Chain rule:
    causal_hash  = SHA-256(canonicalize(prev.to_chain_dict()))
    first_entry  = GENESIS_HASH ("0" * 64)

Entries store the resulting account snapshots, not just the call
arguments, so replay installs state exactly and never re-derives
interest from a different code path.
"""

import json
import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from yieldledger.core.canonical import canonical_hash
from yieldledger.core.exceptions import JournalError

logger = logging.getLogger(__name__)

JOURNAL_VERSION = "1"
GENESIS_HASH    = "0" * 64


class JournalOp:
    """The only valid values of JournalEntry.op."""
    GENESIS  = "genesis"
    MINT     = "mint"
    BURN     = "burn"
    TRANSFER = "transfer"
    SETTLE   = "settle"
    CONFIG   = "config"


_VALID_OPS = {
    JournalOp.GENESIS,
    JournalOp.MINT,
    JournalOp.BURN,
    JournalOp.TRANSFER,
    JournalOp.SETTLE,
    JournalOp.CONFIG,
}


@dataclass
class JournalEntry:
    """One committed ledger operation."""
    sequence:        int
    op:              str
    at:              int
    causal_hash:     str
    payload:         Dict[str, Any] = field(default_factory=dict)
    journal_version: str = JOURNAL_VERSION

    def to_chain_dict(self) -> Dict[str, Any]:
        return {
            "at":              str(self.at),
            "causal_hash":     self.causal_hash,
            "journal_version": self.journal_version,
            "op":              self.op,
            "payload":         self.payload,
            "sequence":        str(self.sequence),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sequence":        self.sequence,
            "op":              self.op,
            "at":              self.at,
            "causal_hash":     self.causal_hash,
            "payload":         self.payload,
            "journal_version": self.journal_version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JournalEntry":
        try:
            return cls(
                sequence=        data["sequence"],
                op=              data["op"],
                at=              data["at"],
                causal_hash=     data["causal_hash"],
                payload=         data.get("payload", {}),
                journal_version= data.get("journal_version", JOURNAL_VERSION),
            )
        except KeyError as exc:
            raise JournalError("Journal entry missing field", {"field": exc.args[0]}) from exc

    @staticmethod
    def hash_of(prev: Optional["JournalEntry"]) -> str:
        if prev is None:
            return GENESIS_HASH
        return canonical_hash(prev.to_chain_dict())


@dataclass
class JournalViolation:
    at_sequence:    int
    violation_type: str   # "schema" | "chain_break" | "sequence_gap"
    detail:         str


def read_entries(path: Path) -> Iterator[JournalEntry]:
    """Yield entries from a JSONL journal. Raises JournalError on bad JSON."""
    with open(path, "r", encoding="utf-8") as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as exc:
                raise JournalError(
                    f"Invalid JSON at line {line_num}: {exc}",
                    {"path": str(path)},
                ) from exc
            yield JournalEntry.from_dict(data)


def find_violations(entries: List[JournalEntry]) -> List[JournalViolation]:
    """Check op vocabulary, sequence continuity and hash linkage."""
    violations: List[JournalViolation] = []
    prev: Optional[JournalEntry] = None
    for i, entry in enumerate(entries):
        if entry.op not in _VALID_OPS:
            violations.append(JournalViolation(i, "schema", f"unknown op {entry.op!r}"))
        if entry.journal_version != JOURNAL_VERSION:
            violations.append(JournalViolation(
                i, "schema", f"journal_version {entry.journal_version!r}"
            ))
        if entry.sequence != i:
            violations.append(JournalViolation(
                i, "sequence_gap", f"expected sequence {i}, got {entry.sequence}"
            ))
        expected = JournalEntry.hash_of(prev)
        if entry.causal_hash != expected:
            violations.append(JournalViolation(
                i, "chain_break",
                f"expected ...{expected[-12:]}, got ...{str(entry.causal_hash)[-12:]}",
            ))
        prev = entry
    return violations


class Journal:
    """
    File-backed journal for one ledger instance.

    Thread-safe via internal lock. On construction the existing file (if
    any) is read to restore sequence and the last entry.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

        self._lock:       threading.Lock          = threading.Lock()
        self._sequence:   int                     = 0
        self._last_entry: Optional[JournalEntry]  = None

        if self.path.exists():
            self._restore_state()

    # ── Public API ────────────────────────────────────────────

    @property
    def next_sequence(self) -> int:
        return self._sequence

    def entries(self) -> List[JournalEntry]:
        if not self.path.exists():
            return []
        return list(read_entries(self.path))

    def record(self, op: str, at: int, payload: Dict[str, Any]) -> JournalEntry:
        """Prepare and append one entry. Raises JournalError on failure."""
        if op not in _VALID_OPS:
            raise ValueError(f"Invalid journal op '{op}'. Valid: {sorted(_VALID_OPS)}")
        with self._lock:
            entry = JournalEntry(
                sequence=    self._sequence,
                op=          op,
                at=          at,
                causal_hash= JournalEntry.hash_of(self._last_entry),
                payload=     payload,
            )
            self._append(entry)
            self._sequence  += 1
            self._last_entry = entry
            return entry

    def verify_chain(self) -> bool:
        try:
            return not find_violations(self.entries())
        except JournalError:
            return False

    # ── Internal ──────────────────────────────────────────────

    def _restore_state(self) -> None:
        entries = self.entries()
        violations = find_violations(entries)
        if violations:
            first = violations[0]
            raise JournalError(
                f"Journal integrity check failed at sequence {first.at_sequence}: "
                f"{first.violation_type} ({first.detail})",
                {"path": str(self.path), "violations": len(violations)},
            )
        if entries:
            self._sequence   = entries[-1].sequence + 1
            self._last_entry = entries[-1]
        logger.debug("Journal %s restored at sequence %d", self.path, self._sequence)

    def _append(self, entry: JournalEntry) -> None:
        try:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry.to_dict()) + "\n")
                f.flush()
                os.fsync(f.fileno())
        except OSError as exc:
            raise JournalError(f"Journal write failed: {exc}", {"path": str(self.path)}) from exc

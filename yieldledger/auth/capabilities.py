"""
Capability set injected into each Ledger.

Callers are plain string identities ("custody", "bridge:chain-b",
"governor"). A caller holds zero or more capabilities; there is no role
inheritance and no implicit superuser.
"""

import logging
import threading
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Set

import yaml

from yieldledger.core.exceptions import Unauthorized, ValidationError

logger = logging.getLogger(__name__)


class Capability(Enum):
    MINT_BURN        = "mint_burn"
    SET_CEILING_RATE = "set_ceiling_rate"


class CapabilitySet:
    """Thread-safe mapping caller -> granted capabilities."""

    def __init__(self, grants: Dict[str, Iterable[Capability]] = None):
        self._lock = threading.Lock()
        self._grants: Dict[str, Set[Capability]] = {}
        for caller, caps in (grants or {}).items():
            for cap in caps:
                self.grant(caller, cap)

    def grant(self, caller: str, capability: Capability) -> None:
        if not isinstance(caller, str) or not caller:
            raise ValidationError("caller must be a non-empty string", {"caller": repr(caller)})
        with self._lock:
            self._grants.setdefault(caller, set()).add(capability)
        logger.info("Granted %s to %s", capability.value, caller)

    def revoke(self, caller: str, capability: Capability) -> None:
        with self._lock:
            self._grants.get(caller, set()).discard(capability)
        logger.info("Revoked %s from %s", capability.value, caller)

    def has(self, caller: str, capability: Capability) -> bool:
        with self._lock:
            return capability in self._grants.get(caller, ())

    def require(self, caller: str, capability: Capability) -> None:
        """Raise Unauthorized unless caller holds capability."""
        if not self.has(caller, capability):
            raise Unauthorized(
                f"Caller lacks {capability.value} capability",
                {"caller": caller},
            )

    def holders(self, capability: Capability) -> List[str]:
        with self._lock:
            return sorted(c for c, caps in self._grants.items() if capability in caps)

    @classmethod
    def from_dict(cls, data: Dict[str, Iterable[str]]) -> "CapabilitySet":
        """
        Build from {caller: [capability value, ...]}.

            custody: [mint_burn]
            governor: [set_ceiling_rate]
        """
        grants: Dict[str, List[Capability]] = {}
        for caller, names in (data or {}).items():
            try:
                grants[caller] = [Capability(name) for name in names]
            except ValueError as exc:
                raise ValidationError(
                    "Unknown capability", {"caller": caller, "error": str(exc)}
                ) from exc
        return cls(grants)

    @classmethod
    def from_yaml(cls, path: Path) -> "CapabilitySet":
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(yaml.safe_load(f) or {})

"""
Instance configuration.

A ledger instance is described by one YAML file:

    instance_id: chain-a
    ceiling_rate: "0.05"          # decimal string, "5%", or raw fixed-point int
    journal_path: .yieldledger/chain-a.jsonl
    bridge_key_path: .yieldledger/chain-a.pem
    grants:
      custody: [mint_burn]
      "bridge:chain-a": [mint_burn]
      governor: [set_ceiling_rate]
    trusted_origins:
      chain-b: 3b6a27bcceb6a42d62a3a8d02a6f0d73653215771de243a63ac048a18b59da29

build() assembles the Ledger, RateGovernor and CapabilitySet. The bridge
endpoint is built separately because it needs a transport.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from yieldledger.auth.capabilities import CapabilitySet
from yieldledger.core.crypto import Ed25519KeyManager
from yieldledger.core.exceptions import ValidationError
from yieldledger.core.fixedpoint import parse_rate
from yieldledger.core.time import Clock
from yieldledger.governance.governor import RateGovernor
from yieldledger.ledger.journal import Journal
from yieldledger.ledger.ledger import Ledger


@dataclass
class LedgerSettings:
    instance_id:     str
    ceiling_rate:    int
    journal_path:    Optional[Path] = None
    bridge_key_path: Optional[Path] = None
    grants:          Dict[str, List[str]] = field(default_factory=dict)
    trusted_origins: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LedgerSettings":
        if not isinstance(data, dict):
            raise ValidationError("Settings must be a mapping", {"type": type(data).__name__})
        try:
            instance_id = data["instance_id"]
            ceiling     = data["ceiling_rate"]
        except KeyError as exc:
            raise ValidationError("Missing setting", {"key": exc.args[0]}) from exc

        journal_path    = data.get("journal_path")
        bridge_key_path = data.get("bridge_key_path")
        return cls(
            instance_id=     str(instance_id),
            ceiling_rate=    parse_rate(ceiling),
            journal_path=    Path(journal_path) if journal_path else None,
            bridge_key_path= Path(bridge_key_path) if bridge_key_path else None,
            grants=          dict(data.get("grants") or {}),
            trusted_origins= dict(data.get("trusted_origins") or {}),
        )

    @classmethod
    def from_yaml(cls, path: Path) -> "LedgerSettings":
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(yaml.safe_load(f))


@dataclass
class LedgerStack:
    settings:     LedgerSettings
    capabilities: CapabilitySet
    ledger:       Ledger
    governor:     RateGovernor

    def load_bridge_key(self) -> Ed25519KeyManager:
        """Load the endpoint key, generating and saving one on first use."""
        path = self.settings.bridge_key_path
        if path is None:
            raise ValidationError("bridge_key_path is not configured")
        if not Path(path).exists():
            Ed25519KeyManager.generate().save(path)
        return Ed25519KeyManager.from_file(path)


def build(settings: LedgerSettings, clock: Optional[Clock] = None) -> LedgerStack:
    capabilities = CapabilitySet.from_dict(settings.grants)
    journal = Journal(settings.journal_path) if settings.journal_path else None
    ledger = Ledger(
        ceiling_rate= settings.ceiling_rate,
        capabilities= capabilities,
        clock=        clock,
        journal=      journal,
        instance_id=  settings.instance_id,
    )
    return LedgerStack(
        settings=     settings,
        capabilities= capabilities,
        ledger=       ledger,
        governor=     RateGovernor(ledger),
    )

"""
yieldledger: Basic Usage Example

Demonstrates:
- Custody deposit at the ceiling rate
- Locked rates surviving a ceiling cut
- Bridging a balance to a second instance with its rate attached
"""

from yieldledger import (
    BridgeEndpoint,
    Capability,
    CapabilitySet,
    CustodyVault,
    Ed25519KeyManager,
    InMemoryTransport,
    Ledger,
    ManualClock,
    RateGovernor,
    format_rate,
    pair,
    parse_rate,
)


def make_instance(instance_id, clock, transport):
    caps = CapabilitySet()
    caps.grant("custody", Capability.MINT_BURN)
    caps.grant("governor", Capability.SET_CEILING_RATE)
    caps.grant(f"bridge:{instance_id}", Capability.MINT_BURN)

    ledger   = Ledger(parse_rate("5%"), caps, clock, instance_id=instance_id)
    governor = RateGovernor(ledger)
    endpoint = BridgeEndpoint(ledger, Ed25519KeyManager.generate(), transport)
    return ledger, governor, endpoint


def main():
    print("=" * 60)
    print("yieldledger: Basic Usage Example")
    print("=" * 60)
    print()

    clock     = ManualClock(0)
    transport = InMemoryTransport()

    chain_a, gov_a, bridge_a = make_instance("chain-a", clock, transport)
    chain_b, _, bridge_b     = make_instance("chain-b", clock, transport)
    pair(bridge_a, bridge_b)

    vault = CustodyVault(chain_a, gov_a)
    vault.deposit("alice", 100)
    print(f"alice deposits 100 at {format_rate(chain_a.get_rate('alice'))}")

    gov_a.set_ceiling_rate("governor", parse_rate("1%"))
    print(f"ceiling lowered to {format_rate(chain_a.ceiling_rate)}; "
          f"alice keeps {format_rate(chain_a.get_rate('alice'))}")

    clock.advance(10)
    print(f"t=10  alice on chain-a: {chain_a.current_balance('alice')}")

    message = bridge_a.bridge("alice", 150, "alice", "chain-b")
    transport.deliver("chain-b", bridge_b.inbound)
    print(f"bridged {message.amount} at {format_rate(message.rate)} -> chain-b")

    clock.advance(10)
    print(f"t=20  alice on chain-b: {chain_b.current_balance('alice')}")
    print(f"      rate on chain-b:  {format_rate(chain_b.get_rate('alice'))}")


if __name__ == "__main__":
    main()

"""
Shared fixtures: a manual clock, a capability set with the usual
callers, and a ledger / governor / custody stack built on them.
"""

import pytest

from yieldledger import (
    Capability,
    CapabilitySet,
    CustodyVault,
    Ledger,
    ManualClock,
    RateGovernor,
)

# 5% per time unit in 1e18 fixed point
RATE_5 = 5 * 10 ** 16


def make_capabilities(*bridge_callers: str) -> CapabilitySet:
    caps = CapabilitySet()
    caps.grant("custody", Capability.MINT_BURN)
    caps.grant("governor", Capability.SET_CEILING_RATE)
    for caller in bridge_callers:
        caps.grant(caller, Capability.MINT_BURN)
    return caps


@pytest.fixture
def clock():
    return ManualClock(0)


@pytest.fixture
def caps():
    return make_capabilities("bridge:default")


@pytest.fixture
def ledger(clock, caps):
    return Ledger(ceiling_rate=RATE_5, capabilities=caps, clock=clock)


@pytest.fixture
def governor(ledger):
    return RateGovernor(ledger)


@pytest.fixture
def custody(ledger, governor):
    return CustodyVault(ledger, governor)

"""
tests/test_ledger.py

Ledger operations.

    mint      settles, overwrites rate, adds amount; capability-gated
    burn      settles, FULL_BALANCE empties the account; capability-gated
    transfer  settles both sides; zero-principal recipient inherits rate
    errors    leave state exactly as it was
"""

import pytest

from yieldledger import (
    FULL_BALANCE,
    Account,
    InsufficientBalance,
    Unauthorized,
    ValidationError,
)
from yieldledger.core.exceptions import ArithmeticOverflow
from yieldledger.core.fixedpoint import MAX_UINT256
from yieldledger.ledger.interfaces import TokenLedger

from tests.conftest import RATE_5

RATE_3 = 3 * 10 ** 16


# ─────────────────────────────────────────────────────────────
# Mint
# ─────────────────────────────────────────────────────────────

class TestMint:

    def test_mint_then_accrue(self, ledger, clock):
        ledger.mint("custody", "A", 100, RATE_5)
        clock.set(10)
        assert ledger.current_balance("A") == 150
        assert ledger.current_balance("A", 10) == 150
        assert ledger.principal_balance("A") == 100, "reads must not settle"

    def test_mint_settles_before_overwriting_rate(self, ledger, clock):
        ledger.mint("custody", "A", 100, RATE_5)
        clock.set(10)
        ledger.mint("custody", "A", 50, RATE_3)

        acct = ledger.account("A")
        assert acct == Account(principal=200, rate=RATE_3, last_settled=10)
        clock.set(20)
        assert ledger.current_balance("A") == 260   # 200 * 1.3

    def test_mint_requires_capability(self, ledger):
        with pytest.raises(Unauthorized):
            ledger.mint("mallory", "A", 100, RATE_5)
        assert ledger.account("A") == Account()

    def test_mint_rejects_bad_amount(self, ledger):
        with pytest.raises(ValidationError):
            ledger.mint("custody", "A", -1, RATE_5)
        with pytest.raises(ValidationError):
            ledger.mint("custody", "", 1, RATE_5)

    def test_mint_overflow_leaves_state(self, ledger):
        ledger.mint("custody", "A", MAX_UINT256 - 5, 0)
        before = ledger.account("A")
        with pytest.raises(ArithmeticOverflow):
            ledger.mint("custody", "A", 10, RATE_5)
        assert ledger.account("A") == before

    def test_ledger_satisfies_token_protocol(self, ledger):
        assert isinstance(ledger, TokenLedger)


# ─────────────────────────────────────────────────────────────
# Burn
# ─────────────────────────────────────────────────────────────

class TestBurn:

    def test_burn_settles_first(self, ledger, clock):
        ledger.mint("custody", "A", 100, RATE_5)
        clock.set(10)
        assert ledger.burn("custody", "A", 120) == 120
        assert ledger.account("A") == Account(principal=30, rate=RATE_5, last_settled=10)

    def test_full_balance_sentinel_leaves_zero(self, ledger, clock):
        ledger.mint("custody", "A", 101, RATE_5)
        clock.set(7)
        burned = ledger.burn("custody", "A", FULL_BALANCE)
        assert burned == 136   # 101 + floor(101 * 0.35)
        assert ledger.principal_balance("A") == 0
        assert ledger.current_balance("A", 1000) == 0

    def test_burn_more_than_settled_fails_without_change(self, ledger, clock):
        ledger.mint("custody", "A", 100, RATE_5)
        clock.set(10)
        with pytest.raises(InsufficientBalance):
            ledger.burn("custody", "A", 151)
        assert ledger.account("A") == Account(principal=100, rate=RATE_5, last_settled=0)

    def test_burn_requires_capability(self, ledger):
        ledger.mint("custody", "A", 100, RATE_5)
        with pytest.raises(Unauthorized):
            ledger.burn("A", "A", 1)
        assert ledger.principal_balance("A") == 100

    def test_revoked_capability(self, ledger, caps):
        from yieldledger import Capability
        caps.revoke("custody", Capability.MINT_BURN)
        with pytest.raises(Unauthorized):
            ledger.mint("custody", "A", 1, RATE_5)


# ─────────────────────────────────────────────────────────────
# Transfer
# ─────────────────────────────────────────────────────────────

class TestTransfer:

    def test_reference_scenario_first_receipt(self, ledger, clock):
        """A (150 @ 5%) sends 50 to new C: C inherits 5%, A 100, C 50."""
        ledger.mint("custody", "A", 100, RATE_5)
        clock.set(10)
        ledger.transfer("A", "A", "C", 50)
        assert ledger.principal_balance("A") == 100
        assert ledger.principal_balance("C") == 50
        assert ledger.get_rate("C") == RATE_5

    def test_existing_recipient_keeps_rate(self, ledger, clock):
        ledger.mint("custody", "A", 100, RATE_5)
        ledger.mint("custody", "B", 100, RATE_3)
        ledger.transfer("A", "A", "B", 40)
        assert ledger.get_rate("B") == RATE_3
        assert ledger.principal_balance("B") == 140

    def test_recipient_settled_before_credit(self, ledger, clock):
        ledger.mint("custody", "A", 100, RATE_5)
        ledger.mint("custody", "B", 100, RATE_3)
        clock.set(10)
        ledger.transfer("A", "A", "B", 50)
        assert ledger.account("B") == Account(principal=180, rate=RATE_3, last_settled=10)
        assert ledger.account("A") == Account(principal=100, rate=RATE_5, last_settled=10)

    def test_drained_recipient_inherits_new_sender_rate(self, ledger, clock):
        ledger.mint("custody", "B", 10, RATE_3)
        ledger.burn("custody", "B", FULL_BALANCE)
        ledger.mint("custody", "A", 100, RATE_5)
        ledger.transfer("A", "A", "B", 10)
        assert ledger.get_rate("B") == RATE_5

    def test_insufficient_balance(self, ledger, clock):
        ledger.mint("custody", "A", 100, RATE_5)
        with pytest.raises(InsufficientBalance):
            ledger.transfer("A", "A", "C", 101)
        assert ledger.account("C") == Account()
        assert ledger.principal_balance("A") == 100

    def test_holder_transfer_needs_no_capability(self, ledger):
        ledger.mint("custody", "A", 100, RATE_5)
        ledger.transfer("A", "A", "C", 1)
        assert ledger.principal_balance("C") == 1

    def test_foreign_caller_rejected(self, ledger):
        ledger.mint("custody", "bridge-pool:A", 100, RATE_5)
        with pytest.raises(Unauthorized):
            ledger.transfer("mallory", "bridge-pool:A", "mallory", 100)
        assert ledger.principal_balance("bridge-pool:A") == 100
        assert ledger.account("mallory") == Account()

    def test_mint_burn_holder_may_move_others(self, ledger):
        ledger.mint("custody", "A", 100, RATE_5)
        ledger.transfer("bridge:default", "A", "B", 40)
        assert ledger.principal_balance("B") == 40

    def test_self_transfer_only_settles(self, ledger, clock):
        ledger.mint("custody", "A", 100, RATE_5)
        clock.set(10)
        ledger.transfer("A", "A", "A", 100)
        assert ledger.account("A") == Account(principal=150, rate=RATE_5, last_settled=10)

    def test_total_principal(self, ledger, clock):
        ledger.mint("custody", "A", 100, RATE_5)
        ledger.transfer("A", "A", "C", 30)
        assert ledger.total_principal() == 100


# ─────────────────────────────────────────────────────────────
# Settle
# ─────────────────────────────────────────────────────────────

class TestLedgerSettle:

    def test_settle_twice_same_time(self, ledger, clock):
        ledger.mint("custody", "A", 100, RATE_5)
        clock.set(4)
        first = ledger.settle("A")
        second = ledger.settle("A")
        assert first == second == Account(principal=120, rate=RATE_5, last_settled=4)

    def test_settle_unknown_account_creates_zero(self, ledger, clock):
        clock.set(9)
        assert ledger.settle("ghost") == Account(principal=0, rate=0, last_settled=9)

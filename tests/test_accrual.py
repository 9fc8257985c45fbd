"""
tests/test_accrual.py

Accrual engine and fixed-point laws.

    settle at the same now twice       -> second call changes nothing
    settle as now increases            -> principal never decreases
    growth is linear between settlements, floored
    overflow raises, never wraps
"""

import pytest

from yieldledger.core import accrual
from yieldledger.core.exceptions import ArithmeticOverflow, ValidationError
from yieldledger.core.fixedpoint import (
    MAX_UINT256,
    PRECISION,
    format_rate,
    mul_div_floor,
    parse_rate,
    require_uint,
)
from yieldledger.core.models import Account

from tests.conftest import RATE_5


# ─────────────────────────────────────────────────────────────
# Growth
# ─────────────────────────────────────────────────────────────

class TestGrowth:

    def test_reference_scenario_100_to_150(self):
        """100 units at 5% per unit for 10 units -> 150."""
        acct = Account(principal=100, rate=RATE_5, last_settled=0)
        assert accrual.settled_balance(acct, 10) == 150

    def test_growth_factor(self):
        assert accrual.growth(RATE_5, 10) == PRECISION + PRECISION // 2
        assert accrual.growth(0, 10 ** 9) == PRECISION

    def test_rounds_down(self):
        """1 unit at 5% for 1 unit earns 0.05 -> floored to 0."""
        acct = Account(principal=1, rate=RATE_5, last_settled=0)
        assert accrual.accrued_interest(acct, 1) == 0
        assert accrual.settled_balance(acct, 19) == 1
        assert accrual.settled_balance(acct, 20) == 2

    def test_zero_rate_or_principal_accrues_nothing(self):
        assert accrual.accrued_interest(Account(0, RATE_5, 0), 1000) == 0
        assert accrual.accrued_interest(Account(1000, 0, 0), 1000) == 0

    def test_clock_behind_last_settled_counts_as_zero(self):
        acct = Account(principal=100, rate=RATE_5, last_settled=50)
        assert accrual.elapsed(acct, 40) == 0
        assert accrual.settled_balance(acct, 40) == 100

    def test_settled_balance_does_not_mutate(self):
        acct = Account(principal=100, rate=RATE_5, last_settled=0)
        accrual.settled_balance(acct, 10)
        assert acct == Account(principal=100, rate=RATE_5, last_settled=0)


# ─────────────────────────────────────────────────────────────
# Settlement
# ─────────────────────────────────────────────────────────────

class TestSettle:

    def test_settle_folds_interest_and_advances(self):
        settled = accrual.settle(Account(100, RATE_5, 0), 10)
        assert settled == Account(principal=150, rate=RATE_5, last_settled=10)

    def test_settle_idempotent_at_fixed_time(self):
        once  = accrual.settle(Account(12345, RATE_5, 3), 17)
        twice = accrual.settle(once, 17)
        assert twice == once

    def test_settle_monotone_in_time(self):
        acct = Account(principal=1_000_003, rate=7 * 10 ** 15, last_settled=0)
        previous = acct.principal
        for now in range(0, 200, 7):
            acct = accrual.settle(acct, now)
            assert acct.principal >= previous
            previous = acct.principal

    def test_settling_compounds(self):
        """Two half-period settlements beat one full-period read."""
        acct = Account(principal=1000, rate=RATE_5, last_settled=0)
        simple = accrual.settled_balance(acct, 10)
        compounded = accrual.settle(accrual.settle(acct, 5), 10)
        assert simple == 1500
        assert compounded.principal == 1562   # 1250 * 1.25 = 1562.5, floored

    def test_settle_keeps_last_settled_when_clock_lags(self):
        acct = Account(principal=100, rate=RATE_5, last_settled=50)
        assert accrual.settle(acct, 10).last_settled == 50


# ─────────────────────────────────────────────────────────────
# Fixed point
# ─────────────────────────────────────────────────────────────

class TestFixedPoint:

    def test_overflow_raises(self):
        acct = Account(principal=MAX_UINT256, rate=PRECISION, last_settled=0)
        with pytest.raises(ArithmeticOverflow):
            accrual.settled_balance(acct, 1)

    def test_mul_div_floor(self):
        assert mul_div_floor(7, 3, 2) == 10
        with pytest.raises(ArithmeticOverflow):
            mul_div_floor(MAX_UINT256, 2, 1)

    @pytest.mark.parametrize("text,expected", [
        ("0.05", RATE_5),
        ("5%", RATE_5),
        ("1", PRECISION),
        ("0", 0),
        (RATE_5, RATE_5),
    ])
    def test_parse_rate(self, text, expected):
        assert parse_rate(text) == expected

    @pytest.mark.parametrize("bad", ["-0.01", "abc", "NaN", 0.05, None])
    def test_parse_rate_rejects(self, bad):
        with pytest.raises(ValidationError):
            parse_rate(bad)

    def test_format_rate(self):
        assert format_rate(RATE_5) == "0.05"
        assert format_rate(PRECISION * 2) == "2"
        assert format_rate(1) == "0.000000000000000001"

    @pytest.mark.parametrize("bad", [-1, 1.5, "3", True])
    def test_require_uint_rejects(self, bad):
        with pytest.raises(ValidationError):
            require_uint(bad)

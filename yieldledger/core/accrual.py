"""
Accrual engine — interest growth over an Account.

    growth(rate, Δt)   = PRECISION + rate * Δt          (fixed point)
    balance(acct, now) = principal * growth / PRECISION  (rounded down)

Growth is linear (simple interest between settlements). Compounding
happens only through settlement: settle() folds accrued interest into
principal, so later accrual runs on the larger principal.

Nothing here mutates. settle() returns a new Account; the Ledger decides
whether to commit it.
"""

from yieldledger.core.fixedpoint import (
    PRECISION,
    checked_add,
    checked_mul,
    mul_div_floor,
)
from yieldledger.core.models import Account


def elapsed(account: Account, now: int) -> int:
    """Time units since last settlement. A clock behind last_settled counts as zero."""
    return max(0, now - account.last_settled)


def growth(rate: int, delta: int) -> int:
    """Fixed-point growth factor after delta time units at rate."""
    return checked_add(PRECISION, checked_mul(rate, delta))


def accrued_interest(account: Account, now: int) -> int:
    """Interest earned since last_settled, floored."""
    delta = elapsed(account, now)
    if delta == 0 or account.rate == 0 or account.principal == 0:
        return 0
    return mul_div_floor(
        account.principal, checked_mul(account.rate, delta), PRECISION
    )


def settled_balance(account: Account, now: int) -> int:
    """
    principal * growth(rate, now - last_settled), rounded down.

    Read-only. Used for display and for sizing full redemptions.
    """
    return checked_add(account.principal, accrued_interest(account, now))


def settle(account: Account, now: int) -> Account:
    """
    Fold accrued interest into principal and advance last_settled.

    Calling twice at the same now is a no-op the second time. When the
    clock reads behind last_settled, last_settled is kept, so time
    already accounted for is never accrued twice.
    """
    principal = settled_balance(account, now)
    return Account(
        principal=    principal,
        rate=         account.rate,
        last_settled= max(now, account.last_settled),
    )

"""
Fixed-point arithmetic for accrual.

Rates are integers scaled by PRECISION (10**18): a rate of 5 * 10**16
means 5% of principal per time unit. All amounts and rates live in the
unsigned 256-bit range; any intermediate result outside it raises
ArithmeticOverflow instead of wrapping. Division always rounds down.

No floating point anywhere: two instances given the same integers
produce the same integers.
"""

from decimal import Decimal, InvalidOperation, ROUND_FLOOR
from typing import Final, Union

from yieldledger.core.exceptions import ArithmeticOverflow, ValidationError

PRECISION:    Final[int] = 10 ** 18
MAX_UINT256:  Final[int] = 2 ** 256 - 1

# burn(..., FULL_BALANCE) burns the whole settled principal
FULL_BALANCE: Final[int] = MAX_UINT256


def require_uint(value, name: str = "value") -> int:
    """Return value if it is an int in [0, MAX_UINT256], else raise."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(
            f"{name} must be int, got {type(value).__name__}",
            {name: repr(value)},
        )
    if value < 0:
        raise ValidationError(f"{name} must be non-negative", {name: value})
    if value > MAX_UINT256:
        raise ArithmeticOverflow(f"{name} exceeds uint256", {name: value})
    return value


def checked_add(a: int, b: int) -> int:
    result = a + b
    if result > MAX_UINT256:
        raise ArithmeticOverflow("Addition overflow", {"a": a, "b": b})
    return result


def checked_mul(a: int, b: int) -> int:
    result = a * b
    if result > MAX_UINT256:
        raise ArithmeticOverflow("Multiplication overflow", {"a": a, "b": b})
    return result


def mul_div_floor(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator), with a checked product."""
    if denominator <= 0:
        raise ValidationError("denominator must be positive", {"denominator": denominator})
    return checked_mul(a, b) // denominator


def parse_rate(text: Union[str, int]) -> int:
    """
    Convert a human rate to fixed point, rounding down.

        parse_rate("0.05")  -> 50000000000000000
        parse_rate("5%")    -> 50000000000000000
        parse_rate(7)       -> 7            (ints are already fixed point)
    """
    if isinstance(text, int) and not isinstance(text, bool):
        return require_uint(text, "rate")
    if not isinstance(text, str):
        raise ValidationError("rate must be str or int", {"rate": repr(text)})

    raw = text.strip()
    scale = Decimal(1)
    if raw.endswith("%"):
        raw = raw[:-1].strip()
        scale = Decimal(100)
    try:
        value = Decimal(raw) / scale
    except InvalidOperation:
        raise ValidationError("rate is not a decimal number", {"rate": text})
    if not value.is_finite() or value < 0:
        raise ValidationError("rate must be a finite non-negative number", {"rate": text})

    fixed = (value * PRECISION).to_integral_value(rounding=ROUND_FLOOR)
    return require_uint(int(fixed), "rate")


def format_rate(rate: int) -> str:
    """Render a fixed-point rate as an exact decimal fraction string."""
    whole, frac = divmod(require_uint(rate, "rate"), PRECISION)
    if frac == 0:
        return str(whole)
    return f"{whole}.{frac:018d}".rstrip("0")

"""Pure integer arithmetic shared by the fee kernels.

Every function is stateless and operates on plain Python ints. Python ints
never wrap, so the representable ranges of the settlement layer are enforced
explicitly: products are checked against ``U256_MAX`` and volume sums saturate
at ``U128_MAX``. Division is floor division (``//``) throughout.
"""

from __future__ import annotations

from .errors import FeeOverflowError

# -- Scales ------------------------------------------------------------------

FEE_DENOM: int = 1_000_000  # fees: 1_000_000 = 100% of notional
BPS_DENOM: int = 10_000  # multipliers, deviations and ratios: 10_000 = 1.0x

# -- Fee ceilings (FEE_DENOM scale) -----------------------------------------

MAX_BASE_FEE: int = 50_000  # 5%
DEFAULT_EMERGENCY_FEE_CAP: int = 10_000  # 1%
ABSOLUTE_FEE_CAP: int = 75_000  # 7.5%
COOLDOWN_PENALTY: int = 25_000  # 2.5%
MAX_SKIM_FEE: int = 10_000  # 1%

MAX_TIER_MULTIPLIER: int = 100_000  # 10x

# -- Representable ranges ----------------------------------------------------

U128_MAX: int = (1 << 128) - 1
U256_MAX: int = (1 << 256) - 1


def require_int(value: object, *, name: str, non_negative: bool = True) -> int:
    """Return *value* if it is a (non-bool) int, raising otherwise."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if non_negative and value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")
    return int(value)


def abs_diff(a: int, b: int) -> int:
    """``|a - b|``."""
    return a - b if a >= b else b - a


def checked_add(a: int, b: int, *, bound: int = U256_MAX) -> int:
    out = a + b
    if out > bound:
        raise FeeOverflowError(f"add overflow: {a} + {b} > {bound}")
    return out


def checked_mul(a: int, b: int, *, bound: int = U256_MAX) -> int:
    out = a * b
    if out > bound:
        raise FeeOverflowError(f"mul overflow: {a} * {b} > {bound}")
    return out


def saturating_add(a: int, b: int, *, bound: int = U128_MAX) -> int:
    """``min(a + b, bound)``."""
    out = a + b
    return bound if out > bound else out


def mul_div(a: int, b: int, denom: int) -> int:
    """``a * b // denom`` with the product checked against ``U256_MAX``."""
    if denom <= 0:
        raise ValueError(f"denom must be positive: {denom}")
    return checked_mul(a, b) // denom


def deviation_bps(current: int, reference: int) -> int:
    """Relative move of *current* against *reference* in bps.

    ``|current - reference| * 10_000 // reference``; *reference* must be positive.
    """
    if reference <= 0:
        raise ValueError(f"reference must be positive: {reference}")
    return mul_div(abs_diff(current, reference), BPS_DENOM, reference)

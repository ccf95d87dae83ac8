"""
Core fee kernels (pure, integer-only)
"""

from .caps import CapOutcome, apply_absolute_cap, apply_emergency_cap, effective_emergency_cap, require_fee_in_bounds
from .cooldown import COOLDOWN_WINDOW, CooldownOutcome, evaluate_cooldown, in_cooldown
from .errors import ConfigInvariantError, FeeBoundError, FeeGateError, FeeOverflowError, UnknownMarketError
from .math import (
    ABSOLUTE_FEE_CAP,
    BPS_DENOM,
    COOLDOWN_PENALTY,
    DEFAULT_EMERGENCY_FEE_CAP,
    FEE_DENOM,
    MAX_BASE_FEE,
    MAX_SKIM_FEE,
    MAX_TIER_MULTIPLIER,
)
from .skim import SkimAccumulatorState, SkimResult, skim_with_dust_carry

__all__ = [
    "CapOutcome",
    "apply_absolute_cap",
    "apply_emergency_cap",
    "effective_emergency_cap",
    "require_fee_in_bounds",
    "COOLDOWN_WINDOW",
    "CooldownOutcome",
    "evaluate_cooldown",
    "in_cooldown",
    "ConfigInvariantError",
    "FeeBoundError",
    "FeeGateError",
    "FeeOverflowError",
    "UnknownMarketError",
    "ABSOLUTE_FEE_CAP",
    "BPS_DENOM",
    "COOLDOWN_PENALTY",
    "DEFAULT_EMERGENCY_FEE_CAP",
    "FEE_DENOM",
    "MAX_BASE_FEE",
    "MAX_SKIM_FEE",
    "MAX_TIER_MULTIPLIER",
    "SkimAccumulatorState",
    "SkimResult",
    "skim_with_dust_carry",
]

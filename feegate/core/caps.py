"""Fee caps: the per-market emergency cap and the absolute circuit breaker.

Both caps saturate (clamp to the cap) rather than reject. The emergency cap
applies only to congestion-escalated fees; the absolute cap applies to every
fee as the last step before it is returned.
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import FeeBoundError
from .math import ABSOLUTE_FEE_CAP, require_int


@dataclass(frozen=True)
class CapOutcome:
    fee: int
    applied: bool
    cap: int


def effective_emergency_cap(override: int, venue_default: int) -> int:
    """The market override when non-zero, else the venue default."""
    require_int(override, name="override")
    require_int(venue_default, name="venue_default")
    return override if override != 0 else venue_default


def _clamp(fee: int, cap: int) -> CapOutcome:
    require_int(fee, name="fee")
    if fee > cap:
        return CapOutcome(fee=cap, applied=True, cap=cap)
    return CapOutcome(fee=fee, applied=False, cap=cap)


def apply_emergency_cap(fee: int, cap: int) -> CapOutcome:
    return _clamp(fee, cap)


def apply_absolute_cap(fee: int) -> CapOutcome:
    return _clamp(fee, ABSOLUTE_FEE_CAP)


def require_fee_in_bounds(fee: int) -> int:
    """Final guard before a fee leaves the engine."""
    if not isinstance(fee, int) or isinstance(fee, bool) or not (0 <= fee <= ABSOLUTE_FEE_CAP):
        raise FeeBoundError(f"fee out of bounds: {fee!r} not in [0, {ABSOLUTE_FEE_CAP}]")
    return fee

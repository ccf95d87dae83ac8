"""Anti-abuse cooldown penalty.

A requester that trades again on the same market within ``COOLDOWN_WINDOW``
time-units pays a flat ``COOLDOWN_PENALTY`` on top of the upstream fee. The
sum is not capped here; the absolute cap stage clamps it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .math import COOLDOWN_PENALTY, checked_add, require_int

COOLDOWN_WINDOW: int = 300


@dataclass(frozen=True)
class CooldownOutcome:
    fee: int
    applied: bool
    elapsed: Optional[int] = None


def in_cooldown(last_trade_time: Optional[int], now: int) -> bool:
    """True iff a previous trade exists and fewer than ``COOLDOWN_WINDOW`` units have elapsed."""
    if last_trade_time is None:
        return False
    return now - last_trade_time < COOLDOWN_WINDOW


def evaluate_cooldown(
    fee: int,
    last_trade_time: Optional[int],
    now: int,
    *,
    anti_abuse_paused: bool = False,
) -> CooldownOutcome:
    require_int(fee, name="fee")
    require_int(now, name="now")
    elapsed = None if last_trade_time is None else now - last_trade_time
    if anti_abuse_paused or not in_cooldown(last_trade_time, now):
        return CooldownOutcome(fee=fee, applied=False, elapsed=elapsed)
    return CooldownOutcome(fee=checked_add(fee, COOLDOWN_PENALTY), applied=True, elapsed=elapsed)

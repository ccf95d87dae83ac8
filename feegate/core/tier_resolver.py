"""Congestion tier resolver.

Classifies the live congestion signal against the venue profile and routes
the decision:

  - NORMAL: dynamic fee calculator, or the plain base fee when the market is
    disabled or its dynamic fees are paused;
  - HIGH / VERY_HIGH / EXTREME: ``base_fee * tier_multiplier / 10_000`` clamped
    to the emergency cap, or the plain base fee when emergency fees are paused.

Classification is computed in every case so callers can report the true
congestion state even when escalation is suppressed. The resolver is pure:
identical inputs give identical results.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Callable, Optional

from ..state.congestion import CongestionProfile, CongestionTier
from ..state.market_config import MarketFeeConfig
from .caps import apply_emergency_cap
from .dynamic_fee import DynamicFeeBreakdown
from .math import BPS_DENOM, mul_div, require_int


@unique
class FeeStrategy(Enum):
    BASE = "base"
    DYNAMIC = "dynamic"
    CONGESTION = "congestion"
    CONGESTION_PAUSED = "congestion_paused"


@dataclass(frozen=True)
class TierResolution:
    tier: CongestionTier
    strategy: FeeStrategy
    fee: int
    emergency_capped: bool = False
    emergency_cap: Optional[int] = None
    pre_cap_fee: Optional[int] = None
    dynamic: Optional[DynamicFeeBreakdown] = None


def classify_tier(signal: int, profile: CongestionProfile) -> CongestionTier:
    """Closed-below, open-above: a signal equal to a threshold stays in the lower tier."""
    require_int(signal, name="signal")
    if signal <= profile.normal_threshold:
        return CongestionTier.NORMAL
    if signal <= profile.high_threshold:
        return CongestionTier.HIGH
    if signal <= profile.very_high_threshold:
        return CongestionTier.VERY_HIGH
    return CongestionTier.EXTREME


def escalated_fee(base_fee: int, tier: CongestionTier, profile: CongestionProfile) -> int:
    """``base_fee * multiplier / 10_000`` for *tier* (uncapped)."""
    return mul_div(base_fee, profile.multiplier_for(tier), BPS_DENOM)


def resolve_fee(
    signal: int,
    profile: CongestionProfile,
    config: MarketFeeConfig,
    base_fee: int,
    emergency_cap: int,
    dynamic_fee: Callable[[], DynamicFeeBreakdown],
) -> TierResolution:
    require_int(base_fee, name="base_fee")
    tier = classify_tier(signal, profile)

    if tier is CongestionTier.NORMAL:
        if not config.enabled or config.paused.dynamic_fees:
            return TierResolution(tier=tier, strategy=FeeStrategy.BASE, fee=base_fee)
        breakdown = dynamic_fee()
        return TierResolution(tier=tier, strategy=FeeStrategy.DYNAMIC, fee=breakdown.fee, dynamic=breakdown)

    if config.paused.emergency_fees:
        return TierResolution(tier=tier, strategy=FeeStrategy.CONGESTION_PAUSED, fee=base_fee)

    raw = escalated_fee(base_fee, tier, profile)
    capped = apply_emergency_cap(raw, emergency_cap)
    return TierResolution(
        tier=tier,
        strategy=FeeStrategy.CONGESTION,
        fee=capped.fee,
        emergency_capped=capped.applied,
        emergency_cap=capped.cap,
        pre_cap_fee=raw,
    )

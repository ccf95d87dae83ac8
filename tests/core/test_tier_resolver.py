"""Tests for congestion tier classification and routing."""

from __future__ import annotations

from dataclasses import replace

import pytest

from feegate.core.dynamic_fee import DynamicFeeBreakdown
from feegate.core.tier_resolver import (
    FeeStrategy,
    classify_tier,
    escalated_fee,
    resolve_fee,
)
from feegate.state.congestion import CongestionProfile, CongestionTier
from feegate.state.market_config import MarketFeeConfig, PauseFlags


PROFILE = CongestionProfile(
    normal_threshold=100,
    high_threshold=200,
    very_high_threshold=300,
    high_multiplier=56_000,
    very_high_multiplier=70_000,
    extreme_multiplier=90_000,
)


def _no_dynamic() -> DynamicFeeBreakdown:
    raise AssertionError("dynamic path must not be evaluated")


def _fixed_dynamic(fee: int = 123):
    def thunk() -> DynamicFeeBreakdown:
        return DynamicFeeBreakdown(fee=fee, volatility_multiplier=10_000, volume_multiplier=10_000)

    return thunk


# ---------------------------------------------------------------------------
# classify_tier
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "signal,tier",
    [
        (0, CongestionTier.NORMAL),
        (100, CongestionTier.NORMAL),
        (101, CongestionTier.HIGH),
        (200, CongestionTier.HIGH),
        (201, CongestionTier.VERY_HIGH),
        (300, CongestionTier.VERY_HIGH),
        (301, CongestionTier.EXTREME),
        (10**30, CongestionTier.EXTREME),
    ],
)
def test_classify_tier_boundaries(signal: int, tier: CongestionTier) -> None:
    assert classify_tier(signal, PROFILE) is tier


def test_classify_rejects_bool_signal() -> None:
    with pytest.raises(TypeError):
        classify_tier(True, PROFILE)  # type: ignore[arg-type]


def test_escalated_fee_uses_tier_multiplier() -> None:
    assert escalated_fee(250, CongestionTier.HIGH, PROFILE) == 1400
    assert escalated_fee(250, CongestionTier.VERY_HIGH, PROFILE) == 1750
    assert escalated_fee(250, CongestionTier.EXTREME, PROFILE) == 2250
    assert escalated_fee(250, CongestionTier.NORMAL, PROFILE) == 250


# ---------------------------------------------------------------------------
# resolve_fee routing
# ---------------------------------------------------------------------------

def test_normal_routes_to_dynamic() -> None:
    r = resolve_fee(50, PROFILE, MarketFeeConfig(), 250, 10_000, _fixed_dynamic(321))
    assert r.tier is CongestionTier.NORMAL
    assert r.strategy is FeeStrategy.DYNAMIC
    assert r.fee == 321
    assert r.dynamic is not None


def test_normal_with_dynamic_paused_returns_base_fee() -> None:
    cfg = MarketFeeConfig(paused=PauseFlags(dynamic_fees=True))
    r = resolve_fee(50, PROFILE, cfg, 250, 10_000, _no_dynamic)
    assert r.strategy is FeeStrategy.BASE
    assert r.fee == 250


def test_normal_with_market_disabled_returns_base_fee() -> None:
    cfg = MarketFeeConfig(enabled=False)
    r = resolve_fee(50, PROFILE, cfg, 250, 10_000, _no_dynamic)
    assert r.strategy is FeeStrategy.BASE
    assert r.fee == 250


def test_high_tier_escalates_under_emergency_cap() -> None:
    r = resolve_fee(101, PROFILE, MarketFeeConfig(), 250, 10_000, _no_dynamic)
    assert r.tier is CongestionTier.HIGH
    assert r.strategy is FeeStrategy.CONGESTION
    assert r.fee == 1400
    assert r.emergency_capped is False


def test_escalated_fee_clamped_to_emergency_cap() -> None:
    r = resolve_fee(301, PROFILE, MarketFeeConfig(), 3_000, 10_000, _no_dynamic)
    assert r.tier is CongestionTier.EXTREME
    assert r.pre_cap_fee == 27_000
    assert r.fee == 10_000
    assert r.emergency_capped is True
    assert r.emergency_cap == 10_000


def test_emergency_paused_passes_base_fee_but_keeps_tier() -> None:
    cfg = replace(MarketFeeConfig(), paused=PauseFlags(emergency_fees=True))
    r = resolve_fee(250, PROFILE, cfg, 3_000, 10_000, _no_dynamic)
    assert r.tier is CongestionTier.VERY_HIGH
    assert r.strategy is FeeStrategy.CONGESTION_PAUSED
    assert r.fee == 3_000
    assert r.emergency_capped is False


def test_dynamic_fee_never_sees_emergency_cap() -> None:
    r = resolve_fee(50, PROFILE, MarketFeeConfig(), 40_000, 10_000, _fixed_dynamic(40_000))
    assert r.fee == 40_000
    assert r.emergency_capped is False


def test_resolve_is_idempotent() -> None:
    a = resolve_fee(150, PROFILE, MarketFeeConfig(), 500, 10_000, _no_dynamic)
    b = resolve_fee(150, PROFILE, MarketFeeConfig(), 500, 10_000, _no_dynamic)
    assert a == b

"""Property tests for the numeric invariants of the fee pipeline.

Uses Hypothesis to fuzz base fees, multipliers, congestion signals and
cooldown timing through the pure kernels.
"""

from __future__ import annotations

import importlib.util

import pytest

if importlib.util.find_spec("hypothesis") is None:  # pragma: no cover
    pytest.skip("hypothesis not installed", allow_module_level=True)

import hypothesis.strategies as st
from hypothesis import given, settings

from feegate.core.caps import apply_absolute_cap
from feegate.core.cooldown import COOLDOWN_WINDOW, evaluate_cooldown
from feegate.core.dynamic_fee import DynamicFeeBreakdown, apply_multipliers
from feegate.core.math import ABSOLUTE_FEE_CAP, MAX_BASE_FEE, MAX_TIER_MULTIPLIER
from feegate.core.tier_resolver import classify_tier, resolve_fee
from feegate.state.congestion import CongestionProfile, CongestionTier
from feegate.state.market_config import MarketFeeConfig, PauseFlags
from feegate.state.price_window import PriceSnapshot, PriceWindow
from feegate.state.volume import MAX_PERIODS, PERIOD_LENGTH, VolumeAggregator


@st.composite
def profiles(draw) -> CongestionProfile:
    t1 = draw(st.integers(min_value=0, max_value=10**12))
    t2 = draw(st.integers(min_value=t1 + 1, max_value=t1 + 10**12))
    t3 = draw(st.integers(min_value=t2 + 1, max_value=t2 + 10**12))
    m1 = draw(st.integers(min_value=10_000, max_value=MAX_TIER_MULTIPLIER - 2))
    m2 = draw(st.integers(min_value=m1 + 1, max_value=MAX_TIER_MULTIPLIER - 1))
    m3 = draw(st.integers(min_value=m2 + 1, max_value=MAX_TIER_MULTIPLIER))
    return CongestionProfile(
        normal_threshold=t1,
        high_threshold=t2,
        very_high_threshold=t3,
        high_multiplier=m1,
        very_high_multiplier=m2,
        extreme_multiplier=m3,
    )


_ORDER = [CongestionTier.NORMAL, CongestionTier.HIGH, CongestionTier.VERY_HIGH, CongestionTier.EXTREME]


@settings(max_examples=200, deadline=None)
@given(profile=profiles(), a=st.integers(min_value=0, max_value=4 * 10**12), b=st.integers(min_value=0, max_value=4 * 10**12))
def test_tier_is_monotone_in_signal(profile: CongestionProfile, a: int, b: int) -> None:
    lo, hi = min(a, b), max(a, b)
    assert _ORDER.index(classify_tier(lo, profile)) <= _ORDER.index(classify_tier(hi, profile))


@settings(max_examples=100, deadline=None)
@given(profile=profiles())
def test_threshold_belongs_to_lower_tier(profile: CongestionProfile) -> None:
    assert classify_tier(profile.normal_threshold, profile) is CongestionTier.NORMAL
    assert classify_tier(profile.high_threshold, profile) is CongestionTier.HIGH
    assert classify_tier(profile.very_high_threshold, profile) is CongestionTier.VERY_HIGH
    assert classify_tier(profile.very_high_threshold + 1, profile) is CongestionTier.EXTREME


@settings(max_examples=300, deadline=None)
@given(
    base=st.integers(min_value=0, max_value=MAX_BASE_FEE),
    vol=st.integers(min_value=1, max_value=MAX_TIER_MULTIPLIER),
    volume=st.integers(min_value=1, max_value=MAX_TIER_MULTIPLIER),
)
def test_dynamic_fee_never_exceeds_max_base_fee(base: int, vol: int, volume: int) -> None:
    fee, _clamped = apply_multipliers(base, vol, volume)
    assert 0 <= fee <= MAX_BASE_FEE


@settings(max_examples=300, deadline=None)
@given(
    profile=profiles(),
    signal=st.integers(min_value=0, max_value=4 * 10**12),
    base=st.integers(min_value=0, max_value=MAX_BASE_FEE),
    emergency_cap=st.integers(min_value=1, max_value=ABSOLUTE_FEE_CAP),
    dynamic_fee=st.integers(min_value=0, max_value=MAX_BASE_FEE),
    last=st.one_of(st.none(), st.integers(min_value=0, max_value=10_000)),
    now=st.integers(min_value=0, max_value=10_000),
    emergency_paused=st.booleans(),
    anti_abuse_paused=st.booleans(),
)
def test_final_fee_never_exceeds_absolute_cap(
    profile: CongestionProfile,
    signal: int,
    base: int,
    emergency_cap: int,
    dynamic_fee: int,
    last: int | None,
    now: int,
    emergency_paused: bool,
    anti_abuse_paused: bool,
) -> None:
    cfg = MarketFeeConfig(paused=PauseFlags(emergency_fees=emergency_paused, anti_abuse=anti_abuse_paused))
    resolution = resolve_fee(
        signal,
        profile,
        cfg,
        base,
        emergency_cap,
        lambda: DynamicFeeBreakdown(fee=dynamic_fee, volatility_multiplier=10_000, volume_multiplier=10_000),
    )
    cooldown = evaluate_cooldown(resolution.fee, last, now, anti_abuse_paused=anti_abuse_paused)
    assert cooldown.fee >= resolution.fee
    expect_penalty = (not anti_abuse_paused) and last is not None and now - last < COOLDOWN_WINDOW
    assert cooldown.applied is expect_penalty
    final = apply_absolute_cap(cooldown.fee).fee
    assert 0 <= final <= ABSOLUTE_FEE_CAP


@settings(max_examples=100, deadline=None)
@given(prices=st.lists(st.integers(min_value=1, max_value=10**18), min_size=0, max_size=12))
def test_price_window_keeps_newest_four_in_order(prices: list[int]) -> None:
    w = PriceWindow()
    for i, p in enumerate(prices):
        w.push(PriceSnapshot(price=p, timestamp=i))
    assert len(w) <= 4
    assert [s.price for s in w] == prices[-4:]
    assert [s.timestamp for s in w] == sorted(s.timestamp for s in w)


@settings(max_examples=100, deadline=None)
@given(amounts=st.lists(st.integers(min_value=0, max_value=10**24), min_size=1, max_size=60))
def test_periods_recorded_is_bounded(amounts: list[int]) -> None:
    agg = VolumeAggregator()
    for i, amount in enumerate(amounts):
        agg.record(amount, (i + 1) * PERIOD_LENGTH)
        assert agg.periods_recorded <= MAX_PERIODS
    assert agg.periods_recorded == min(len(amounts), MAX_PERIODS)

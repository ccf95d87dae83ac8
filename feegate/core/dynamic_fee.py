"""Dynamic fee calculator for the low-congestion path.

    fee = base_fee * volatility_multiplier * volume_multiplier / 10_000**2

clamped to ``MAX_BASE_FEE`` (5%). Both multipliers are read-only functions of
the market's windowed state; nothing here writes state.

Degenerate inputs are not errors. An empty price window, fewer than
``MIN_VOLUME_PERIODS`` recorded periods, or a zero average volume all fall
back to the neutral multiplier.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..state.market_config import VolatilityBands, VolumeBands
from ..state.price_window import PriceWindow
from ..state.volume import VolumeAggregator
from .math import BPS_DENOM, MAX_BASE_FEE, checked_mul, deviation_bps, mul_div, require_int


@dataclass(frozen=True)
class DynamicFeeBreakdown:
    fee: int
    volatility_multiplier: int
    volume_multiplier: int
    deviation_bps: int | None = None
    volume_ratio_bps: int | None = None
    clamped: bool = False


def price_deviation(window: PriceWindow, current_price: int) -> int | None:
    """Deviation of *current_price* against the window, or None for an empty window.

    With a full window the short (newest) and long (oldest) deviations are averaged.
    """
    newest = window.newest()
    if newest is None:
        return None
    short = deviation_bps(current_price, newest.price)
    if not window.is_full:
        return short
    oldest = window.oldest()
    assert oldest is not None
    long = deviation_bps(current_price, oldest.price)
    return (short + long) // 2


def multiplier_for_deviation(deviation: int, bands: VolatilityBands) -> int:
    if deviation <= bands.low_threshold:
        return bands.low_multiplier
    if deviation <= bands.high_threshold:
        return bands.normal_multiplier
    if deviation <= bands.extreme_threshold:
        return bands.high_multiplier
    return bands.extreme_multiplier


def volatility_multiplier(window: PriceWindow, current_price: int, bands: VolatilityBands) -> tuple[int, int | None]:
    """Return ``(multiplier, deviation_bps)``; deviation is None when the window is empty."""
    require_int(current_price, name="current_price")
    deviation = price_deviation(window, current_price)
    if deviation is None:
        return bands.normal_multiplier, None
    return multiplier_for_deviation(deviation, bands), deviation


def multiplier_for_volume_ratio(ratio: int, bands: VolumeBands) -> int:
    if ratio <= bands.very_low_threshold:
        return bands.very_low_multiplier
    if ratio <= bands.low_threshold:
        return bands.low_multiplier
    if ratio <= bands.high_threshold:
        return BPS_DENOM
    if ratio <= bands.very_high_threshold:
        return bands.high_multiplier
    if ratio <= bands.extreme_threshold:
        return bands.very_high_multiplier
    return bands.extreme_multiplier


def volume_multiplier(aggregator: VolumeAggregator, bands: VolumeBands) -> tuple[int, int | None]:
    """Return ``(multiplier, ratio_bps)``; ratio is None when history is insufficient."""
    if not aggregator.has_history:
        return BPS_DENOM, None
    avg = aggregator.average_period_volume()
    if avg == 0:
        return BPS_DENOM, None
    ratio = mul_div(aggregator.current_period_volume, BPS_DENOM, avg)
    return multiplier_for_volume_ratio(ratio, bands), ratio


def apply_multipliers(base_fee: int, vol_mult: int, volume_mult: int) -> tuple[int, bool]:
    """``min(base * vol * volume / 10_000**2, MAX_BASE_FEE)``; returns ``(fee, clamped)``."""
    require_int(base_fee, name="base_fee")
    raw = checked_mul(checked_mul(base_fee, vol_mult), volume_mult) // (BPS_DENOM * BPS_DENOM)
    if raw > MAX_BASE_FEE:
        return MAX_BASE_FEE, True
    return raw, False


def compute_dynamic_fee(
    base_fee: int,
    window: PriceWindow,
    aggregator: VolumeAggregator,
    current_price: int,
    volatility_bands: VolatilityBands,
    volume_bands: VolumeBands,
) -> DynamicFeeBreakdown:
    vol_mult, deviation = volatility_multiplier(window, current_price, volatility_bands)
    volume_mult, ratio = volume_multiplier(aggregator, volume_bands)
    fee, clamped = apply_multipliers(base_fee, vol_mult, volume_mult)
    return DynamicFeeBreakdown(
        fee=fee,
        volatility_multiplier=vol_mult,
        volume_multiplier=volume_mult,
        deviation_bps=deviation,
        volume_ratio_bps=ratio,
        clamped=clamped,
    )

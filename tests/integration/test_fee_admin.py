"""Tests for administrative config setters."""

from __future__ import annotations

import pytest

from feegate.core.errors import ConfigInvariantError, UnknownMarketError
from feegate.integration.admin import FeeAdmin
from feegate.integration.engine import FeeEngine
from feegate.integration.events import Event
from feegate.state.congestion import DEFAULT_CONGESTION_PROFILE, CongestionTier
from feegate.state.market_config import FeeOverrides, MarketFeeConfig, VolatilityBands, VolumeBands


def _engine() -> FeeEngine:
    return FeeEngine(congestion_source=lambda v: 0, price_source=lambda m: 1_000)


def _admin_with_market(market_id: str = "m") -> FeeAdmin:
    admin = FeeAdmin(_engine())
    admin.register_market(market_id, now=0)
    return admin


def test_register_market_installs_defaults() -> None:
    admin = FeeAdmin(_engine())
    cfg = admin.register_market("m", now=5)
    assert cfg == MarketFeeConfig()
    assert admin.engine.get_market("m").created_at == 5
    assert admin.engine.get_market("m").volume.last_period_start == 5


def test_register_market_with_custom_config() -> None:
    admin = FeeAdmin(_engine())
    custom = MarketFeeConfig(skim_fee=100)
    admin.register_market("m", now=0, config=custom)
    assert admin.engine.get_market("m").config is custom
    assert len(admin.engine.event_log.of_kind(Event.CONFIG_UPDATED)) == 1


def test_setters_require_known_market() -> None:
    admin = FeeAdmin(_engine())
    with pytest.raises(UnknownMarketError):
        admin.set_base_fee("missing", 100)


def test_set_base_fee_and_clear() -> None:
    admin = _admin_with_market()
    assert admin.set_base_fee("m", 250).overrides.base_fee == 250
    assert admin.set_base_fee("m", None).base_fee(3_000) == 3_000


def test_rejected_change_keeps_previous_config() -> None:
    admin = _admin_with_market()
    admin.set_emergency_fee_cap("m", 20_000)
    with pytest.raises(ConfigInvariantError):
        admin.set_emergency_fee_cap("m", 80_000)
    assert admin.engine.get_market("m").config.overrides.emergency_fee_cap == 20_000


def test_set_overrides_type_checked() -> None:
    admin = _admin_with_market()
    admin.set_overrides("m", FeeOverrides(base_fee=10, emergency_fee_cap=500))
    assert admin.engine.effective_emergency_cap("m") == 500
    with pytest.raises(TypeError):
        admin.set_overrides("m", {"base_fee": 10})  # type: ignore[arg-type]


def test_pause_flags_update_only_named_flags() -> None:
    admin = _admin_with_market()
    admin.set_pause_flags("m", dynamic_fees=True)
    cfg = admin.set_pause_flags("m", fee_skim=True)
    assert cfg.paused.dynamic_fees is True
    assert cfg.paused.fee_skim is True
    assert cfg.paused.anti_abuse is False


def test_unknown_pause_flag_rejected() -> None:
    admin = _admin_with_market()
    with pytest.raises(ValueError):
        admin.set_pause_flags("m", everything=True)


def test_band_setters() -> None:
    admin = _admin_with_market()
    vol = VolatilityBands(low_threshold=10, high_threshold=20, extreme_threshold=30)
    assert admin.set_volatility_bands("m", vol).volatility is vol
    volume = VolumeBands(extreme_multiplier=30_000)
    assert admin.set_volume_bands("m", volume).volume is volume
    with pytest.raises(TypeError):
        admin.set_volume_bands("m", vol)  # type: ignore[arg-type]


def test_skim_fee_bounds() -> None:
    admin = _admin_with_market()
    assert admin.set_skim_fee("m", 10_000).skim_fee == 10_000
    with pytest.raises(ConfigInvariantError):
        admin.set_skim_fee("m", 10_001)


def test_set_enabled_emits_config_event() -> None:
    admin = _admin_with_market()
    admin.set_enabled("m", False, now=42)
    (event,) = admin.engine.event_log.of_kind(Event.CONFIG_UPDATED)
    assert event.timestamp == 42
    assert event.detail == "enabled=False"


def test_set_congestion_profile_changes_classification() -> None:
    engine = FeeEngine(congestion_source=lambda v: 25, price_source=lambda m: 1_000)
    admin = FeeAdmin(engine)
    profile = admin.set_congestion_profile("l2", normal_threshold=10, high_threshold=20, very_high_threshold=30)
    assert engine.registry.get("l2") is profile
    assert profile.high_multiplier == DEFAULT_CONGESTION_PROFILE.high_multiplier
    assert engine.on_trade_request("m", "alice", venue_id="l2", now=0).tier is CongestionTier.VERY_HIGH


def test_set_congestion_profile_rejects_bad_values() -> None:
    admin = FeeAdmin(_engine())
    with pytest.raises(ConfigInvariantError):
        admin.set_congestion_profile("l2", extreme_multiplier=200_000)
    with pytest.raises(ValueError):
        admin.set_congestion_profile("l2", bogus=1)
    assert admin.engine.registry.get("l2") is DEFAULT_CONGESTION_PROFILE

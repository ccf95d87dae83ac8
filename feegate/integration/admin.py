"""
Administrative setters.

Who may call these is decided by the host's permissioning layer. This module
only validates and installs values: every setter builds a new immutable
config object (whose constructor enforces the ordering/range invariants) and
swaps it in, so a rejected change leaves the previous config in place and an
in-flight decision never sees a partial update.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Optional

from ..state.congestion import CongestionProfile
from ..state.market_config import FeeOverrides, MarketFeeConfig, PauseFlags, VolatilityBands, VolumeBands
from .engine import FeeEngine
from .events import EngineEvent, Event

logger = logging.getLogger(__name__)


class FeeAdmin:
    def __init__(self, engine: FeeEngine) -> None:
        self.engine = engine

    def _install(self, market_id: str, config: MarketFeeConfig, *, now: int, detail: str) -> MarketFeeConfig:
        self.engine.replace_market_config(market_id, config)
        logger.info("market %s config updated: %s", market_id, detail)
        self.engine.emit(EngineEvent(event=Event.CONFIG_UPDATED, market_id=market_id, timestamp=now, detail=detail))
        return config

    def _config(self, market_id: str) -> MarketFeeConfig:
        return self.engine.get_market(market_id).config

    # -- market registration ----------------------------------------------

    def register_market(self, market_id: str, *, now: int, config: Optional[MarketFeeConfig] = None) -> MarketFeeConfig:
        """Create the market's state ahead of its first trade, optionally with a custom config."""
        state = self.engine.ensure_market(market_id, now)
        if config is not None:
            return self._install(market_id, config, now=now, detail="registered")
        return state.config

    # -- fee overrides -----------------------------------------------------

    def set_base_fee(self, market_id: str, base_fee: Optional[int], *, now: int = 0) -> MarketFeeConfig:
        """Set (or clear with None) the market's base fee override."""
        cfg = self._config(market_id)
        new = replace(cfg, overrides=replace(cfg.overrides, base_fee=base_fee))
        return self._install(market_id, new, now=now, detail=f"base_fee={base_fee}")

    def set_emergency_fee_cap(self, market_id: str, cap: int, *, now: int = 0) -> MarketFeeConfig:
        """Set the emergency cap override; 0 restores the venue default."""
        cfg = self._config(market_id)
        new = replace(cfg, overrides=replace(cfg.overrides, emergency_fee_cap=cap))
        return self._install(market_id, new, now=now, detail=f"emergency_fee_cap={cap}")

    def set_overrides(self, market_id: str, overrides: FeeOverrides, *, now: int = 0) -> MarketFeeConfig:
        if not isinstance(overrides, FeeOverrides):
            raise TypeError("overrides must be a FeeOverrides")
        new = replace(self._config(market_id), overrides=overrides)
        return self._install(market_id, new, now=now, detail="overrides")

    # -- feature flags -----------------------------------------------------

    def set_enabled(self, market_id: str, enabled: bool, *, now: int = 0) -> MarketFeeConfig:
        new = replace(self._config(market_id), enabled=enabled)
        return self._install(market_id, new, now=now, detail=f"enabled={enabled}")

    def set_pause_flags(self, market_id: str, *, now: int = 0, **flags: bool) -> MarketFeeConfig:
        """Update any of ``dynamic_fees``, ``anti_abuse``, ``fee_skim``, ``emergency_fees``."""
        cfg = self._config(market_id)
        unknown = set(flags) - set(PauseFlags.__dataclass_fields__)
        if unknown:
            raise ValueError(f"unknown pause flags: {sorted(unknown)}")
        new = replace(cfg, paused=replace(cfg.paused, **flags))
        detail = ",".join(f"{k}={v}" for k, v in sorted(flags.items()))
        return self._install(market_id, new, now=now, detail=f"paused:{detail}")

    # -- multiplier bands --------------------------------------------------

    def set_volatility_bands(self, market_id: str, bands: VolatilityBands, *, now: int = 0) -> MarketFeeConfig:
        if not isinstance(bands, VolatilityBands):
            raise TypeError("bands must be a VolatilityBands")
        new = replace(self._config(market_id), volatility=bands)
        return self._install(market_id, new, now=now, detail="volatility_bands")

    def set_volume_bands(self, market_id: str, bands: VolumeBands, *, now: int = 0) -> MarketFeeConfig:
        if not isinstance(bands, VolumeBands):
            raise TypeError("bands must be a VolumeBands")
        new = replace(self._config(market_id), volume=bands)
        return self._install(market_id, new, now=now, detail="volume_bands")

    # -- skim / sampling ---------------------------------------------------

    def set_skim_fee(self, market_id: str, skim_fee: int, *, now: int = 0) -> MarketFeeConfig:
        new = replace(self._config(market_id), skim_fee=skim_fee)
        return self._install(market_id, new, now=now, detail=f"skim_fee={skim_fee}")

    def set_precise_volume_threshold(self, market_id: str, threshold: int, *, now: int = 0) -> MarketFeeConfig:
        new = replace(self._config(market_id), precise_volume_threshold=threshold)
        return self._install(market_id, new, now=now, detail=f"precise_volume_threshold={threshold}")

    # -- venue profiles ----------------------------------------------------

    def set_congestion_profile(self, venue_id: str, **fields: Any) -> CongestionProfile:
        """Replace the venue profile, changing only the given fields."""
        current = self.engine.registry.get(venue_id)
        unknown = set(fields) - set(CongestionProfile.__dataclass_fields__)
        if unknown:
            raise ValueError(f"unknown congestion profile fields: {sorted(unknown)}")
        profile = replace(current, **fields)
        self.engine.registry.set(venue_id, profile)
        logger.info("venue %s congestion profile updated: %s", venue_id, sorted(fields))
        return profile

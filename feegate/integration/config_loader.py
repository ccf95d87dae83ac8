"""
Static engine configuration loaded from YAML.

Layout (every section optional)::

    engine:
      default_base_fee: 3000
      default_emergency_fee_cap: 10000
      market_defaults:
        enabled: true
        skim_fee: 0
        precise_volume_threshold: 1000000000000000000000
        paused: {dynamic_fees: false, anti_abuse: false, fee_skim: false, emergency_fees: false}
        volatility: {low_threshold: 50, ...}
        volume: {very_low_threshold: 2500, ...}
        overrides: {base_fee: null, emergency_fee_cap: 0}
    default_profile: {normal_threshold: ..., ...}
    venues:
      mainnet: {normal_threshold: ..., high_multiplier: ..., ...}

Loading is fail-closed: unknown keys, non-mapping sections and non-int
numbers are rejected rather than ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Type, TypeVar

import yaml

from ..state.congestion import CongestionProfile, CongestionRegistry
from ..state.market_config import FeeOverrides, MarketFeeConfig, PauseFlags, VolatilityBands, VolumeBands
from .engine import EngineConfig

T = TypeVar("T")

_TOP_LEVEL_KEYS = frozenset({"engine", "default_profile", "venues"})


@dataclass(frozen=True)
class LoadedConfig:
    engine: EngineConfig
    registry: CongestionRegistry


def _require_mapping(value: Any, *, name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise TypeError(f"{name} must be a mapping")
    for k in value:
        if not isinstance(k, str):
            raise TypeError(f"{name} keys must be strings")
    return value


def _flat_dataclass(cls: Type[T], obj: Any, *, name: str) -> T:
    """Build a dataclass whose fields are all scalars from a mapping of overrides."""
    m = _require_mapping(obj, name=name)
    allowed = {f.name for f in fields(cls)}  # type: ignore[arg-type]
    unknown = set(m) - allowed
    if unknown:
        raise ValueError(f"{name}: unknown keys {sorted(unknown)}")
    for k, v in m.items():
        if isinstance(v, float):
            raise TypeError(f"{name}.{k} must not be a float")
    return cls(**dict(m))


def market_config_from_mapping(obj: Any, *, base: MarketFeeConfig = MarketFeeConfig()) -> MarketFeeConfig:
    m = _require_mapping(obj, name="market_defaults")
    nested = {
        "paused": PauseFlags,
        "volatility": VolatilityBands,
        "volume": VolumeBands,
        "overrides": FeeOverrides,
    }
    scalars = {"enabled", "skim_fee", "precise_volume_threshold"}
    unknown = set(m) - set(nested) - scalars
    if unknown:
        raise ValueError(f"market_defaults: unknown keys {sorted(unknown)}")

    kwargs: dict[str, Any] = {}
    for key, cls in nested.items():
        if key in m:
            kwargs[key] = _flat_dataclass(cls, m[key], name=f"market_defaults.{key}")
    for key in scalars:
        if key in m:
            kwargs[key] = m[key]
    return replace(base, **kwargs)


def engine_config_from_mapping(obj: Any) -> LoadedConfig:
    root = _require_mapping(obj if obj is not None else {}, name="config")
    unknown = set(root) - _TOP_LEVEL_KEYS
    if unknown:
        raise ValueError(f"config: unknown keys {sorted(unknown)}")

    engine_obj = dict(_require_mapping(root.get("engine") or {}, name="engine"))
    market_defaults = MarketFeeConfig()
    if "market_defaults" in engine_obj:
        market_defaults = market_config_from_mapping(engine_obj.pop("market_defaults"))
    engine_unknown = set(engine_obj) - {"default_base_fee", "default_emergency_fee_cap"}
    if engine_unknown:
        raise ValueError(f"engine: unknown keys {sorted(engine_unknown)}")
    engine = EngineConfig(market_defaults=market_defaults, **engine_obj)

    default_profile = CongestionProfile()
    if root.get("default_profile") is not None:
        default_profile = _flat_dataclass(CongestionProfile, root["default_profile"], name="default_profile")
    registry = CongestionRegistry(default_profile=default_profile)

    venues = _require_mapping(root.get("venues") or {}, name="venues")
    for venue_id, profile_obj in venues.items():
        registry.set(venue_id, _flat_dataclass(CongestionProfile, profile_obj, name=f"venues.{venue_id}"))

    return LoadedConfig(engine=engine, registry=registry)


def load_engine_config(path: Path | str) -> LoadedConfig:
    path = Path(path)
    obj = yaml.safe_load(path.read_text(encoding="utf-8"))
    return engine_config_from_mapping(obj)

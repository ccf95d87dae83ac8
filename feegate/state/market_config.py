"""Per-market fee configuration.

One immutable ``MarketFeeConfig`` aggregate per market. Administrative changes
produce a new object via ``dataclasses.replace``; the constructors enforce the
ordering and range invariants, so an invalid config can never be installed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..core.errors import ConfigInvariantError
from ..core.math import (
    ABSOLUTE_FEE_CAP,
    BPS_DENOM,
    MAX_BASE_FEE,
    MAX_SKIM_FEE,
    MAX_TIER_MULTIPLIER,
    U128_MAX,
    require_int,
)


def _require_bool(value: object, *, name: str) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"{name} must be a bool")
    return value


@dataclass(frozen=True)
class PauseFlags:
    """Independent kill switches; ``True`` means the feature is paused."""

    dynamic_fees: bool = False
    anti_abuse: bool = False
    fee_skim: bool = False
    emergency_fees: bool = False

    def __post_init__(self) -> None:
        for name in ("dynamic_fees", "anti_abuse", "fee_skim", "emergency_fees"):
            _require_bool(getattr(self, name), name=name)


@dataclass(frozen=True)
class VolatilityBands:
    """Deviation thresholds (bps of price) and the four volatility multipliers (bps of 1x)."""

    low_threshold: int = 50
    high_threshold: int = 200
    extreme_threshold: int = 500
    low_multiplier: int = 8_000
    normal_multiplier: int = 10_000
    high_multiplier: int = 15_000
    extreme_multiplier: int = 25_000

    def __post_init__(self) -> None:
        for name in (
            "low_threshold",
            "high_threshold",
            "extreme_threshold",
            "low_multiplier",
            "normal_multiplier",
            "high_multiplier",
            "extreme_multiplier",
        ):
            require_int(getattr(self, name), name=name)

        violations: list[str] = []
        if not (self.low_threshold < self.high_threshold < self.extreme_threshold):
            violations.append("volatility_thresholds_ascending")
        if self.low_multiplier <= 0:
            violations.append("volatility_multiplier_positive")
        if not (
            self.low_multiplier
            <= BPS_DENOM
            <= self.normal_multiplier
            <= self.high_multiplier
            <= self.extreme_multiplier
        ):
            violations.append("volatility_multipliers_ascending")
        if self.extreme_multiplier > MAX_TIER_MULTIPLIER:
            violations.append("volatility_multiplier_max")
        if violations:
            raise ConfigInvariantError(violations)


@dataclass(frozen=True)
class VolumeBands:
    """Ratio thresholds (current / average volume, bps) and five volume multipliers.

    The band between ``low_threshold`` and ``high_threshold`` is neutral (1x).
    """

    very_low_threshold: int = 2_500
    low_threshold: int = 5_000
    high_threshold: int = 15_000
    very_high_threshold: int = 30_000
    extreme_threshold: int = 50_000
    very_low_multiplier: int = 8_000
    low_multiplier: int = 9_000
    high_multiplier: int = 12_000
    very_high_multiplier: int = 15_000
    extreme_multiplier: int = 20_000

    def __post_init__(self) -> None:
        for name in (
            "very_low_threshold",
            "low_threshold",
            "high_threshold",
            "very_high_threshold",
            "extreme_threshold",
            "very_low_multiplier",
            "low_multiplier",
            "high_multiplier",
            "very_high_multiplier",
            "extreme_multiplier",
        ):
            require_int(getattr(self, name), name=name)

        violations: list[str] = []
        if not (
            self.very_low_threshold
            < self.low_threshold
            < self.high_threshold
            < self.very_high_threshold
            < self.extreme_threshold
        ):
            violations.append("volume_thresholds_ascending")
        if self.very_low_multiplier <= 0:
            violations.append("volume_multiplier_positive")
        if not (
            self.very_low_multiplier
            <= self.low_multiplier
            <= BPS_DENOM
            <= self.high_multiplier
            <= self.very_high_multiplier
            <= self.extreme_multiplier
        ):
            violations.append("volume_multipliers_ascending")
        if self.extreme_multiplier > MAX_TIER_MULTIPLIER:
            violations.append("volume_multiplier_max")
        if violations:
            raise ConfigInvariantError(violations)


@dataclass(frozen=True)
class FeeOverrides:
    """Optional per-market overrides. ``emergency_fee_cap == 0`` means "use the venue default"."""

    base_fee: Optional[int] = None
    emergency_fee_cap: int = 0

    def __post_init__(self) -> None:
        violations: list[str] = []
        if self.base_fee is not None:
            require_int(self.base_fee, name="base_fee")
            if self.base_fee > MAX_BASE_FEE:
                violations.append("base_fee_max")
        require_int(self.emergency_fee_cap, name="emergency_fee_cap")
        if self.emergency_fee_cap > ABSOLUTE_FEE_CAP:
            violations.append("emergency_fee_cap_max")
        if violations:
            raise ConfigInvariantError(violations)


DEFAULT_PRECISE_VOLUME_THRESHOLD: int = 1_000_000_000_000_000_000_000  # 1_000 units at 18 decimals


@dataclass(frozen=True)
class MarketFeeConfig:
    """Complete fee configuration for one market."""

    enabled: bool = True
    paused: PauseFlags = field(default_factory=PauseFlags)
    volatility: VolatilityBands = field(default_factory=VolatilityBands)
    volume: VolumeBands = field(default_factory=VolumeBands)
    overrides: FeeOverrides = field(default_factory=FeeOverrides)
    skim_fee: int = 0
    precise_volume_threshold: int = DEFAULT_PRECISE_VOLUME_THRESHOLD

    def __post_init__(self) -> None:
        _require_bool(self.enabled, name="enabled")
        for name, typ in (
            ("paused", PauseFlags),
            ("volatility", VolatilityBands),
            ("volume", VolumeBands),
            ("overrides", FeeOverrides),
        ):
            if not isinstance(getattr(self, name), typ):
                raise TypeError(f"{name} must be a {typ.__name__}")
        require_int(self.skim_fee, name="skim_fee")
        require_int(self.precise_volume_threshold, name="precise_volume_threshold")

        violations: list[str] = []
        if self.skim_fee > MAX_SKIM_FEE:
            violations.append("skim_fee_max")
        if self.precise_volume_threshold > U128_MAX:
            violations.append("precise_volume_threshold_max")
        if violations:
            raise ConfigInvariantError(violations)

    def base_fee(self, default_base_fee: int) -> int:
        """Market base fee: the override when set, else *default_base_fee*."""
        if self.overrides.base_fee is not None:
            return self.overrides.base_fee
        return default_base_fee

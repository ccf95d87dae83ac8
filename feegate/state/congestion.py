"""Congestion profiles, the per-venue registry, and the congestion signal cache.

A congestion profile maps a venue's congestion signal (for example the
prevailing transaction cost) onto four ordered tiers:

  NORMAL    signal <= normal_threshold       -> dynamic fee path
  HIGH      signal <= high_threshold         -> base fee x high_multiplier
  VERY_HIGH signal <= very_high_threshold    -> base fee x very_high_multiplier
  EXTREME   above very_high_threshold        -> base fee x extreme_multiplier

A signal equal to a threshold belongs to the lower tier.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Callable, Dict, Mapping, Optional

from ..core.errors import ConfigInvariantError
from ..core.math import BPS_DENOM, MAX_TIER_MULTIPLIER, require_int

CONGESTION_CACHE_TTL: int = 60

VenueId = str


@unique
class CongestionTier(Enum):
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"
    EXTREME = "EXTREME"

    @property
    def escalated(self) -> bool:
        return self is not CongestionTier.NORMAL


@dataclass(frozen=True)
class CongestionProfile:
    """Immutable per-venue thresholds and tier multipliers (multipliers in bps, 10_000 = 1x)."""

    normal_threshold: int = 20_000_000_000
    high_threshold: int = 50_000_000_000
    very_high_threshold: int = 100_000_000_000
    high_multiplier: int = 15_000
    very_high_multiplier: int = 30_000
    extreme_multiplier: int = 50_000

    def __post_init__(self) -> None:
        for name in (
            "normal_threshold",
            "high_threshold",
            "very_high_threshold",
            "high_multiplier",
            "very_high_multiplier",
            "extreme_multiplier",
        ):
            require_int(getattr(self, name), name=name)

        violations: list[str] = []
        if not (self.normal_threshold < self.high_threshold < self.very_high_threshold):
            violations.append("thresholds_ascending")
        if self.high_multiplier < BPS_DENOM:
            violations.append("high_multiplier_min")
        if not (self.high_multiplier < self.very_high_multiplier < self.extreme_multiplier):
            violations.append("multipliers_ascending")
        if self.extreme_multiplier > MAX_TIER_MULTIPLIER:
            violations.append("extreme_multiplier_max")
        if violations:
            raise ConfigInvariantError(violations)

    def multiplier_for(self, tier: CongestionTier) -> int:
        """Escalation multiplier for *tier*; NORMAL maps to 1x."""
        if tier is CongestionTier.HIGH:
            return self.high_multiplier
        if tier is CongestionTier.VERY_HIGH:
            return self.very_high_multiplier
        if tier is CongestionTier.EXTREME:
            return self.extreme_multiplier
        return BPS_DENOM


DEFAULT_CONGESTION_PROFILE = CongestionProfile()


@dataclass
class CongestionRegistry:
    """
    Mutable mapping: venue_id -> CongestionProfile.

    Populated once at process start from static configuration. A venue seen
    for the first time is assigned ``default_profile``. Profiles are immutable,
    so replacing one never exposes a half-written profile to a reader that
    already holds a reference.
    """

    default_profile: CongestionProfile = DEFAULT_CONGESTION_PROFILE
    _profiles: Dict[VenueId, CongestionProfile] = field(default_factory=dict)

    def get(self, venue_id: VenueId) -> CongestionProfile:
        profile = self._profiles.get(venue_id)
        if profile is None:
            profile = self.default_profile
            self._profiles[venue_id] = profile
        return profile

    def set(self, venue_id: VenueId, profile: CongestionProfile) -> None:
        if not isinstance(profile, CongestionProfile):
            raise TypeError("profile must be a CongestionProfile")
        if not isinstance(venue_id, str) or not venue_id:
            raise ValueError("venue_id must be a non-empty string")
        self._profiles[venue_id] = profile

    def get_all(self) -> Mapping[VenueId, CongestionProfile]:
        return dict(self._profiles)


@dataclass(frozen=True)
class CachedSignal:
    value: int
    sampled_at: int


@dataclass
class CongestionCache:
    """Per-venue cache of the last congestion signal, refreshed at most once per ``ttl``."""

    ttl: int = CONGESTION_CACHE_TTL
    _entries: Dict[VenueId, CachedSignal] = field(default_factory=dict)

    def read(self, venue_id: VenueId, now: int, sample: Callable[[VenueId], int]) -> int:
        entry = self._entries.get(venue_id)
        if entry is not None and now >= entry.sampled_at and now - entry.sampled_at < self.ttl:
            return entry.value
        value = require_int(sample(venue_id), name="congestion signal")
        self._entries[venue_id] = CachedSignal(value=value, sampled_at=now)
        return value

    def peek(self, venue_id: VenueId) -> Optional[CachedSignal]:
        return self._entries.get(venue_id)

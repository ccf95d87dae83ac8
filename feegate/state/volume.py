"""Rolling 24-period volume aggregate (one per market).

Instead of 24 discrete buckets the aggregate keeps a decayed running sum:
once 24 periods have been recorded, each further rollover multiplies the
accumulated volume by 23/24, approximating a fixed-length rolling window.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..core.math import U128_MAX, require_int, saturating_add

PERIOD_LENGTH: int = 3_600
MAX_PERIODS: int = 24
MIN_VOLUME_PERIODS: int = 6


@dataclass
class VolumeAggregator:
    current_period_volume: int = 0
    accumulated_volume: int = 0
    last_period_start: int = 0
    periods_recorded: int = 0

    def __post_init__(self) -> None:
        for name in ("current_period_volume", "accumulated_volume", "last_period_start", "periods_recorded"):
            require_int(getattr(self, name), name=name)
        if self.periods_recorded > MAX_PERIODS:
            raise ValueError(f"periods_recorded must be <= {MAX_PERIODS}: {self.periods_recorded}")
        if self.current_period_volume > U128_MAX or self.accumulated_volume > U128_MAX:
            raise ValueError("volume must fit in u128")

    @property
    def rolling_volume(self) -> int:
        """Volume over the rolling window including the open period."""
        return saturating_add(self.accumulated_volume, self.current_period_volume)

    @property
    def has_history(self) -> bool:
        return self.periods_recorded >= MIN_VOLUME_PERIODS

    def average_period_volume(self) -> int:
        if self.periods_recorded == 0:
            return 0
        return self.accumulated_volume // self.periods_recorded

    def roll_over(self, now: int) -> None:
        self.accumulated_volume = saturating_add(self.accumulated_volume, self.current_period_volume)
        self.current_period_volume = 0
        if self.periods_recorded < MAX_PERIODS:
            self.periods_recorded += 1
        else:
            self.accumulated_volume = self.accumulated_volume * (MAX_PERIODS - 1) // MAX_PERIODS
        self.last_period_start = now

    def record(self, amount: int, now: int) -> bool:
        """Add *amount* to the open period, rolling over first when a period has elapsed.

        Returns True when a rollover happened.
        """
        require_int(amount, name="amount")
        require_int(now, name="now")
        rolled = False
        if now - self.last_period_start >= PERIOD_LENGTH:
            self.roll_over(now)
            rolled = True
        self.current_period_volume = saturating_add(self.current_period_volume, amount)
        return rolled

"""
Bounded price snapshot history (one per market).

The window is a fixed-capacity ring buffer addressed by explicit ``head`` and
``length`` indices. Iteration is always oldest-first. Pushing into a full
window overwrites the oldest slot and advances ``head`` (FIFO eviction).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from ..core.math import require_int

PRICE_WINDOW_CAPACITY: int = 4
MIN_SNAPSHOT_INTERVAL: int = 900
LITE_SNAPSHOT_INTERVAL: int = 14_400


@dataclass(frozen=True)
class PriceSnapshot:
    price: int
    timestamp: int

    def __post_init__(self) -> None:
        require_int(self.price, name="price")
        require_int(self.timestamp, name="timestamp")
        if self.price <= 0:
            raise ValueError(f"price must be positive: {self.price}")


@dataclass
class PriceWindow:
    capacity: int = PRICE_WINDOW_CAPACITY
    _slots: List[Optional[PriceSnapshot]] = field(default_factory=list)
    _head: int = 0
    _length: int = 0

    def __post_init__(self) -> None:
        require_int(self.capacity, name="capacity")
        if self.capacity <= 0:
            raise ValueError("capacity must be positive")
        if not self._slots:
            self._slots = [None] * self.capacity
        if len(self._slots) != self.capacity:
            raise ValueError("slot count must equal capacity")

    def __len__(self) -> int:
        return self._length

    def __iter__(self) -> Iterator[PriceSnapshot]:
        for i in range(self._length):
            snap = self._slots[(self._head + i) % self.capacity]
            assert snap is not None
            yield snap

    @property
    def is_full(self) -> bool:
        return self._length == self.capacity

    def snapshots(self) -> list[PriceSnapshot]:
        return list(self)

    def oldest(self) -> Optional[PriceSnapshot]:
        if self._length == 0:
            return None
        return self._slots[self._head]

    def newest(self) -> Optional[PriceSnapshot]:
        if self._length == 0:
            return None
        return self._slots[(self._head + self._length - 1) % self.capacity]

    def push(self, snapshot: PriceSnapshot) -> Optional[PriceSnapshot]:
        """Append *snapshot*; returns the evicted oldest snapshot when the window was full."""
        if not isinstance(snapshot, PriceSnapshot):
            raise TypeError("snapshot must be a PriceSnapshot")
        newest = self.newest()
        if newest is not None and snapshot.timestamp < newest.timestamp:
            raise ValueError("snapshots must be pushed in timestamp order")

        if self._length < self.capacity:
            self._slots[(self._head + self._length) % self.capacity] = snapshot
            self._length += 1
            return None

        evicted = self._slots[self._head]
        self._slots[self._head] = snapshot
        self._head = (self._head + 1) % self.capacity
        return evicted

    def is_due(self, now: int, min_interval: int = MIN_SNAPSHOT_INTERVAL) -> bool:
        """True when the window is empty or its newest snapshot is at least *min_interval* old."""
        require_int(now, name="now")
        require_int(min_interval, name="min_interval")
        newest = self.newest()
        return newest is None or now - newest.timestamp >= min_interval

    def maybe_record(self, price: int, now: int, min_interval: int = MIN_SNAPSHOT_INTERVAL) -> bool:
        """Record ``(price, now)`` unless the newest snapshot is younger than *min_interval*.

        Returns True when a snapshot was captured.
        """
        if not self.is_due(now, min_interval):
            return False
        self.push(PriceSnapshot(price=price, timestamp=now))
        return True


def snapshot_interval(volume_24p: int, precise_threshold: int) -> int:
    """Sampling interval: precise when 24-period volume clears *precise_threshold*, else lite."""
    if volume_24p >= precise_threshold:
        return MIN_SNAPSHOT_INTERVAL
    return LITE_SNAPSHOT_INTERVAL

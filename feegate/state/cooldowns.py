"""
Cooldown table for anti-abuse penalties.

We track, per (market, requester), the time of the last accepted trade. Entries
are overwritten on every accepted trade and never deleted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple

from ..core.math import require_int

MarketId = str
RequesterId = str


def _require_id(value: object, *, name: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValueError(f"{name} must be a non-empty string")
    return value


@dataclass
class CooldownTable:
    """Mutable mapping: (market_id, requester_id) -> last_trade_time."""

    _last: Dict[Tuple[MarketId, RequesterId], int] = field(default_factory=dict)

    def get_last(self, market_id: MarketId, requester_id: RequesterId) -> Optional[int]:
        return self._last.get((market_id, requester_id))

    def set_last(self, market_id: MarketId, requester_id: RequesterId, now: int) -> None:
        key = (
            _require_id(market_id, name="market_id"),
            _require_id(requester_id, name="requester_id"),
        )
        self._last[key] = require_int(now, name="now")

    def get_all(self) -> Mapping[Tuple[MarketId, RequesterId], int]:
        # Return a shallow copy to avoid accidental mutation during iteration.
        return dict(self._last)

    def __len__(self) -> int:
        return len(self._last)

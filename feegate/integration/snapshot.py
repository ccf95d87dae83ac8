"""
Engine state snapshot encoding.

Goals:
- Deterministic JSON-able snapshot of every market's rolling state and config.
- Round-trippable into a fresh ``FeeEngine``.
- Explicit versioning; the storage technology is left to the host.
"""

from __future__ import annotations

import hashlib
from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping

from ..core.skim import SkimAccumulatorState
from ..state.canonical import canonical_json_bytes, domain_sep_bytes, sha256_hex
from ..state.price_window import PriceSnapshot, PriceWindow
from ..state.volume import VolumeAggregator
from .config_loader import market_config_from_mapping
from .engine import FeeEngine, MarketState


ENGINE_SNAPSHOT_VERSION = 1


def _require_str(value: Any, *, name: str) -> str:
    if not isinstance(value, str) or not value:
        raise TypeError(f"{name} must be a non-empty string")
    return value


def _require_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    return int(value)


@dataclass(frozen=True)
class EngineSnapshot:
    """
    Deterministic, versioned snapshot of a ``FeeEngine``'s per-market state.

    The commitment is *not* included inside `data` to avoid self-reference.
    """

    version: int
    data: Dict[str, Any]

    def canonical_bytes(self) -> bytes:
        return canonical_json_bytes(self.data)

    def commitment_bytes(self) -> bytes:
        payload = domain_sep_bytes("engine_snapshot", version=self.version) + self.canonical_bytes()
        return hashlib.sha256(payload).digest()

    def commitment_hex(self) -> str:
        payload = domain_sep_bytes("engine_snapshot", version=self.version) + self.canonical_bytes()
        return sha256_hex(payload)


def _market_entry(state: MarketState) -> Dict[str, Any]:
    vol = state.volume
    return {
        "market_id": state.market_id,
        "created_at": int(state.created_at),
        "config": asdict(state.config),
        "price_window": [
            {"price": int(s.price), "timestamp": int(s.timestamp)} for s in state.price_window
        ],
        "volume": {
            "current_period_volume": int(vol.current_period_volume),
            "accumulated_volume": int(vol.accumulated_volume),
            "last_period_start": int(vol.last_period_start),
            "periods_recorded": int(vol.periods_recorded),
        },
        "skim": {"accrued": int(state.skim.accrued), "dust": int(state.skim.dust)},
    }


def snapshot_from_engine(engine: FeeEngine, *, version: int = ENGINE_SNAPSHOT_VERSION) -> EngineSnapshot:
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")

    markets = [_market_entry(s) for s in engine.markets.values()]
    markets.sort(key=lambda e: e["market_id"])

    cooldowns = [
        {"market_id": m, "requester_id": r, "last_trade_time": int(t)}
        for (m, r), t in engine.cooldowns.get_all().items()
    ]
    cooldowns.sort(key=lambda e: (e["market_id"], e["requester_id"]))

    data: Dict[str, Any] = {
        "version": int(version),
        "markets": markets,
        "cooldowns": cooldowns,
    }
    return EngineSnapshot(version=version, data=data)


def restore_engine_state(engine: FeeEngine, snapshot: Mapping[str, Any]) -> FeeEngine:
    """Load *snapshot* into *engine* (which should be freshly constructed)."""
    if not isinstance(snapshot, Mapping):
        raise TypeError("snapshot must be a mapping")

    version = snapshot.get("version", ENGINE_SNAPSHOT_VERSION)
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("snapshot.version must be a positive int")
    if version != ENGINE_SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {version}")

    markets = snapshot.get("markets") or []
    if not isinstance(markets, list):
        raise TypeError("snapshot.markets must be a list")
    seen: set[str] = set()
    for entry in markets:
        if not isinstance(entry, Mapping):
            raise TypeError("snapshot.markets entries must be objects")
        market_id = _require_str(entry.get("market_id"), name="market.market_id")
        if market_id in seen:
            raise ValueError(f"duplicate market entry: {market_id}")
        seen.add(market_id)

        window = PriceWindow()
        snaps = entry.get("price_window") or []
        if not isinstance(snaps, list) or len(snaps) > window.capacity:
            raise ValueError(f"invalid price_window for market {market_id}")
        for s in snaps:
            window.push(
                PriceSnapshot(
                    price=_require_int(s.get("price"), name="snapshot.price"),
                    timestamp=_require_int(s.get("timestamp"), name="snapshot.timestamp"),
                )
            )

        vol = entry.get("volume") or {}
        skim = entry.get("skim") or {}
        engine.put_market(
            MarketState(
                market_id=market_id,
                config=market_config_from_mapping(entry.get("config") or {}),
                price_window=window,
                volume=VolumeAggregator(
                    current_period_volume=_require_int(vol.get("current_period_volume", 0), name="current_period_volume"),
                    accumulated_volume=_require_int(vol.get("accumulated_volume", 0), name="accumulated_volume"),
                    last_period_start=_require_int(vol.get("last_period_start", 0), name="last_period_start"),
                    periods_recorded=_require_int(vol.get("periods_recorded", 0), name="periods_recorded"),
                ),
                skim=SkimAccumulatorState(
                    accrued=_require_int(skim.get("accrued", 0), name="skim.accrued"),
                    dust=_require_int(skim.get("dust", 0), name="skim.dust"),
                ),
                created_at=_require_int(entry.get("created_at", 0), name="created_at"),
            )
        )

    cooldowns = snapshot.get("cooldowns") or []
    if not isinstance(cooldowns, list):
        raise TypeError("snapshot.cooldowns must be a list")
    for entry in cooldowns:
        if not isinstance(entry, Mapping):
            raise TypeError("snapshot.cooldowns entries must be objects")
        engine.cooldowns.set_last(
            _require_str(entry.get("market_id"), name="cooldown.market_id"),
            _require_str(entry.get("requester_id"), name="cooldown.requester_id"),
            _require_int(entry.get("last_trade_time"), name="cooldown.last_trade_time"),
        )
    return engine

"""Structured engine events.

Every decision emits ``FEE_DECIDED``; every clamp emits its own event so an
auditor can tell which cap shaped a fee. Events go to an injected sink; the
default sink is an in-memory ``EventLog``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Callable, List, Optional


@unique
class Event(Enum):
    FEE_DECIDED = "FeeDecided"
    EMERGENCY_CAP_APPLIED = "EmergencyCapApplied"
    CIRCUIT_BREAKER_APPLIED = "CircuitBreakerApplied"
    COOLDOWN_PENALTY_APPLIED = "CooldownPenaltyApplied"
    PRICE_SNAPSHOT_RECORDED = "PriceSnapshotRecorded"
    VOLUME_PERIOD_ROLLED = "VolumePeriodRolled"
    FEE_SKIMMED = "FeeSkimmed"
    CONFIG_UPDATED = "ConfigUpdated"


@dataclass(frozen=True)
class EngineEvent:
    """One observable engine event. Unused fields keep their defaults."""

    event: Event
    market_id: str
    timestamp: int
    requester_id: Optional[str] = None
    base_fee: int = 0
    fee: int = 0
    pre_cap_fee: int = 0
    cap: int = 0
    congestion_signal: int = 0
    tier: Optional[str] = None
    strategy: Optional[str] = None
    penalty_applied: bool = False
    amount: int = 0
    detail: Optional[str] = None


EventSink = Callable[[EngineEvent], None]


@dataclass
class EventLog:
    """Append-only in-memory sink."""

    events: List[EngineEvent] = field(default_factory=list)

    def __call__(self, event: EngineEvent) -> None:
        self.events.append(event)

    def __len__(self) -> int:
        return len(self.events)

    def of_kind(self, kind: Event) -> list[EngineEvent]:
        return [e for e in self.events if e.event is kind]

    def clear(self) -> None:
        self.events.clear()

"""
Imperative shell: decision orchestration, administration, config and snapshots
"""

from .admin import FeeAdmin
from .config_loader import LoadedConfig, engine_config_from_mapping, load_engine_config
from .engine import (
    DecisionStage,
    EngineConfig,
    FeeDecision,
    FeeEngine,
    MarketState,
    SettlementResult,
    SettlementStage,
)
from .events import EngineEvent, Event, EventLog
from .snapshot import EngineSnapshot, restore_engine_state, snapshot_from_engine

__all__ = [
    "FeeAdmin",
    "LoadedConfig",
    "engine_config_from_mapping",
    "load_engine_config",
    "DecisionStage",
    "EngineConfig",
    "FeeDecision",
    "FeeEngine",
    "MarketState",
    "SettlementResult",
    "SettlementStage",
    "EngineEvent",
    "Event",
    "EventLog",
    "EngineSnapshot",
    "restore_engine_state",
    "snapshot_from_engine",
]

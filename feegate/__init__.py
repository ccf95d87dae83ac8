"""`feegate`: per-market fee/admission decision engine.

Given a pending trade, decide the fee it pays from decision-time signals only:
network congestion, recent price movement, recent volume and the requester's
recent activity. Fees use a 1_000_000 scale (1_000_000 = 100%); multipliers
use a 10_000 scale (10_000 = 1x).

Public API:
- `FeeEngine.on_trade_request(market_id, requester_id, *, venue_id, now) -> FeeDecision`
- `FeeEngine.on_trade_settled(market_id, realized_output_amount, *, now) -> SettlementResult`
- `FeeAdmin` for validated configuration changes
"""

from .core.tier_resolver import FeeStrategy
from .integration import EngineConfig, FeeAdmin, FeeDecision, FeeEngine, SettlementResult
from .state import CongestionProfile, CongestionRegistry, CongestionTier, MarketFeeConfig

__all__ = [
    "CongestionProfile",
    "CongestionRegistry",
    "CongestionTier",
    "EngineConfig",
    "FeeAdmin",
    "FeeDecision",
    "FeeEngine",
    "FeeStrategy",
    "MarketFeeConfig",
    "SettlementResult",
]

"""
Fee decision engine (imperative shell around the pure fee kernels).

- ``on_trade_request`` classifies congestion, computes the fee, evaluates the
  cooldown penalty, applies the circuit breaker and returns a ``FeeDecision``.
- ``on_trade_settled`` updates the rolling state (volume aggregate, price
  window, fee skim) from the realized trade.

The two passes never interleave for a market: a decision reads the market's
state and returns before any settlement mutates it. The host guarantees that
requests for one market are applied sequentially; distinct markets share no
mutable state beyond the read-mostly venue registry and signal cache.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Callable, Dict, Mapping, Optional

from ..core.caps import apply_absolute_cap, effective_emergency_cap, require_fee_in_bounds
from ..core.cooldown import evaluate_cooldown
from ..core.dynamic_fee import DynamicFeeBreakdown, compute_dynamic_fee
from ..core.errors import ConfigInvariantError, UnknownMarketError
from ..core.math import ABSOLUTE_FEE_CAP, DEFAULT_EMERGENCY_FEE_CAP, MAX_BASE_FEE, require_int
from ..core.skim import SkimAccumulatorState, skim_with_dust_carry
from ..core.tier_resolver import FeeStrategy, resolve_fee
from ..state.congestion import CongestionCache, CongestionRegistry, CongestionTier
from ..state.cooldowns import CooldownTable
from ..state.market_config import MarketFeeConfig
from ..state.price_window import PriceWindow, snapshot_interval
from ..state.volume import VolumeAggregator
from .events import EngineEvent, Event, EventLog, EventSink

logger = logging.getLogger(__name__)

CongestionSource = Callable[[str], int]
PriceSource = Callable[[str], int]


@dataclass(frozen=True)
class EngineConfig:
    # Base fee for markets without a base fee override (FEE_DENOM scale).
    default_base_fee: int = 3_000

    # Venue default for the emergency cap; markets override it with a non-zero value.
    default_emergency_fee_cap: int = DEFAULT_EMERGENCY_FEE_CAP

    # Config installed for a market the first time it is observed.
    market_defaults: MarketFeeConfig = MarketFeeConfig()

    def __post_init__(self) -> None:
        require_int(self.default_base_fee, name="default_base_fee")
        require_int(self.default_emergency_fee_cap, name="default_emergency_fee_cap")
        if not isinstance(self.market_defaults, MarketFeeConfig):
            raise TypeError("market_defaults must be a MarketFeeConfig")
        violations: list[str] = []
        if self.default_base_fee > MAX_BASE_FEE:
            violations.append("default_base_fee_max")
        if not (0 < self.default_emergency_fee_cap <= ABSOLUTE_FEE_CAP):
            violations.append("default_emergency_fee_cap_range")
        if violations:
            raise ConfigInvariantError(violations)


@unique
class DecisionStage(Enum):
    TIER_CLASSIFIED = "TIER_CLASSIFIED"
    FEE_COMPUTED = "FEE_COMPUTED"
    PENALTY_EVALUATED = "PENALTY_EVALUATED"
    CAPPED = "CAPPED"
    FINALIZED = "FINALIZED"


@unique
class SettlementStage(Enum):
    VOLUME_UPDATE = "VOLUME_UPDATE"
    SNAPSHOT_UPDATE = "SNAPSHOT_UPDATE"
    FEE_SKIM = "FEE_SKIM"


@dataclass
class MarketState:
    """Everything the engine owns for one market."""

    market_id: str
    config: MarketFeeConfig
    price_window: PriceWindow = field(default_factory=PriceWindow)
    volume: VolumeAggregator = field(default_factory=VolumeAggregator)
    skim: SkimAccumulatorState = SkimAccumulatorState()
    created_at: int = 0


@dataclass(frozen=True)
class FeeDecision:
    market_id: str
    requester_id: str
    fee: int
    base_fee: int
    congestion_signal: int
    tier: CongestionTier
    strategy: FeeStrategy
    penalty_applied: bool
    emergency_capped: bool = False
    circuit_breaker_applied: bool = False
    stages: tuple[DecisionStage, ...] = ()
    dynamic: Optional[DynamicFeeBreakdown] = None

    def as_tuple(self) -> tuple[int, str, str, bool]:
        """``(fee, tier label, strategy label, penalty_applied)``."""
        return (self.fee, self.tier.value, self.strategy.value, self.penalty_applied)


@dataclass(frozen=True)
class SettlementResult:
    market_id: str
    volume_recorded: bool = False
    period_rolled: bool = False
    snapshot_recorded: bool = False
    snapshot_interval: int = 0
    skimmed_amount: int = 0
    stages: tuple[SettlementStage, ...] = ()


class FeeEngine:
    """Per-market fee decision engine."""

    def __init__(
        self,
        *,
        congestion_source: CongestionSource,
        price_source: PriceSource,
        config: EngineConfig = EngineConfig(),
        registry: Optional[CongestionRegistry] = None,
        cache: Optional[CongestionCache] = None,
        event_sink: Optional[EventSink] = None,
    ) -> None:
        self.config = config
        self.registry = registry if registry is not None else CongestionRegistry()
        self.cache = cache if cache is not None else CongestionCache()
        self.cooldowns = CooldownTable()
        self.event_log = EventLog()
        self._sink: EventSink = event_sink if event_sink is not None else self.event_log
        self._congestion_source = congestion_source
        self._price_source = price_source
        self._markets: Dict[str, MarketState] = {}

    # -- market state ------------------------------------------------------

    @property
    def markets(self) -> Mapping[str, MarketState]:
        return dict(self._markets)

    def ensure_market(self, market_id: str, now: int) -> MarketState:
        """Return the market's state, creating it with the default config on first observation."""
        state = self._markets.get(market_id)
        if state is None:
            if not isinstance(market_id, str) or not market_id:
                raise ValueError("market_id must be a non-empty string")
            state = MarketState(
                market_id=market_id,
                config=self.config.market_defaults,
                volume=VolumeAggregator(last_period_start=now),
                created_at=now,
            )
            self._markets[market_id] = state
            logger.info("market %s observed at %d; default fee config installed", market_id, now)
        return state

    def get_market(self, market_id: str) -> MarketState:
        state = self._markets.get(market_id)
        if state is None:
            raise UnknownMarketError(market_id)
        return state

    def put_market(self, state: MarketState) -> None:
        """Install a fully built market state (used by snapshot restore)."""
        if not isinstance(state, MarketState):
            raise TypeError("state must be a MarketState")
        self._markets[state.market_id] = state

    def replace_market_config(self, market_id: str, config: MarketFeeConfig) -> None:
        if not isinstance(config, MarketFeeConfig):
            raise TypeError("config must be a MarketFeeConfig")
        self.get_market(market_id).config = config

    def effective_emergency_cap(self, market_id: str) -> int:
        config = self.get_market(market_id).config
        return effective_emergency_cap(config.overrides.emergency_fee_cap, self.config.default_emergency_fee_cap)

    def emit(self, event: EngineEvent) -> None:
        self._sink(event)

    # -- decision pass -----------------------------------------------------

    def on_trade_request(self, market_id: str, requester_id: str, *, venue_id: str, now: int) -> FeeDecision:
        require_int(now, name="now")
        if not isinstance(requester_id, str) or not requester_id:
            raise ValueError("requester_id must be a non-empty string")

        # One profile and one config reference for the whole decision.
        profile = self.registry.get(venue_id)
        state = self.ensure_market(market_id, now)
        config = state.config

        signal = self.cache.read(venue_id, now, self._congestion_source)
        base_fee = config.base_fee(self.config.default_base_fee)
        emergency_cap = effective_emergency_cap(
            config.overrides.emergency_fee_cap, self.config.default_emergency_fee_cap
        )

        def dynamic() -> DynamicFeeBreakdown:
            return compute_dynamic_fee(
                base_fee,
                state.price_window,
                state.volume,
                self._price_source(market_id),
                config.volatility,
                config.volume,
            )

        stages = [DecisionStage.TIER_CLASSIFIED]
        resolution = resolve_fee(signal, profile, config, base_fee, emergency_cap, dynamic)
        stages.append(DecisionStage.FEE_COMPUTED)

        if resolution.emergency_capped:
            logger.info(
                "emergency cap on %s: %d -> %d (tier=%s)",
                market_id,
                resolution.pre_cap_fee,
                resolution.fee,
                resolution.tier.value,
            )
            self.emit(
                EngineEvent(
                    event=Event.EMERGENCY_CAP_APPLIED,
                    market_id=market_id,
                    timestamp=now,
                    requester_id=requester_id,
                    fee=resolution.fee,
                    pre_cap_fee=resolution.pre_cap_fee or 0,
                    cap=emergency_cap,
                    tier=resolution.tier.value,
                )
            )

        cooldown = evaluate_cooldown(
            resolution.fee,
            self.cooldowns.get_last(market_id, requester_id),
            now,
            anti_abuse_paused=config.paused.anti_abuse,
        )
        stages.append(DecisionStage.PENALTY_EVALUATED)
        if cooldown.applied:
            logger.info(
                "cooldown penalty on %s for %s: %d units since last trade",
                market_id,
                requester_id,
                cooldown.elapsed,
            )
            self.emit(
                EngineEvent(
                    event=Event.COOLDOWN_PENALTY_APPLIED,
                    market_id=market_id,
                    timestamp=now,
                    requester_id=requester_id,
                    fee=cooldown.fee,
                    pre_cap_fee=resolution.fee,
                    penalty_applied=True,
                )
            )

        capped = apply_absolute_cap(cooldown.fee)
        stages.append(DecisionStage.CAPPED)
        if capped.applied:
            logger.info("circuit breaker on %s: %d -> %d", market_id, cooldown.fee, capped.fee)
            self.emit(
                EngineEvent(
                    event=Event.CIRCUIT_BREAKER_APPLIED,
                    market_id=market_id,
                    timestamp=now,
                    requester_id=requester_id,
                    fee=capped.fee,
                    pre_cap_fee=cooldown.fee,
                    cap=capped.cap,
                )
            )

        fee = require_fee_in_bounds(capped.fee)
        # Always overwritten, penalised or not.
        self.cooldowns.set_last(market_id, requester_id, now)
        stages.append(DecisionStage.FINALIZED)

        decision = FeeDecision(
            market_id=market_id,
            requester_id=requester_id,
            fee=fee,
            base_fee=base_fee,
            congestion_signal=signal,
            tier=resolution.tier,
            strategy=resolution.strategy,
            penalty_applied=cooldown.applied,
            emergency_capped=resolution.emergency_capped,
            circuit_breaker_applied=capped.applied,
            stages=tuple(stages),
            dynamic=resolution.dynamic,
        )
        self.emit(
            EngineEvent(
                event=Event.FEE_DECIDED,
                market_id=market_id,
                timestamp=now,
                requester_id=requester_id,
                base_fee=base_fee,
                fee=fee,
                congestion_signal=signal,
                tier=decision.tier.value,
                strategy=decision.strategy.value,
                penalty_applied=decision.penalty_applied,
            )
        )
        logger.debug(
            "fee decided market=%s requester=%s base=%d fee=%d signal=%d tier=%s strategy=%s penalty=%s",
            market_id,
            requester_id,
            base_fee,
            fee,
            signal,
            decision.tier.value,
            decision.strategy.value,
            decision.penalty_applied,
        )
        return decision

    # -- settlement pass ---------------------------------------------------

    def on_trade_settled(self, market_id: str, realized_output_amount: int, *, now: int) -> SettlementResult:
        require_int(realized_output_amount, name="realized_output_amount")
        require_int(now, name="now")
        state = self.get_market(market_id)
        config = state.config
        if not config.enabled:
            logger.debug("market %s disabled; settlement state untouched", market_id)
            return SettlementResult(market_id=market_id)

        stages = [SettlementStage.VOLUME_UPDATE]
        rolled = state.volume.record(realized_output_amount, now)
        if rolled:
            self.emit(
                EngineEvent(
                    event=Event.VOLUME_PERIOD_ROLLED,
                    market_id=market_id,
                    timestamp=now,
                    amount=state.volume.accumulated_volume,
                    detail=f"periods_recorded={state.volume.periods_recorded}",
                )
            )

        interval = snapshot_interval(state.volume.rolling_volume, config.precise_volume_threshold)
        recorded = False
        if state.price_window.is_due(now, interval):
            price = self._price_source(market_id)
            recorded = state.price_window.maybe_record(price, now, interval)
            stages.append(SettlementStage.SNAPSHOT_UPDATE)
            self.emit(
                EngineEvent(
                    event=Event.PRICE_SNAPSHOT_RECORDED,
                    market_id=market_id,
                    timestamp=now,
                    amount=price,
                    detail=f"interval={interval}",
                )
            )

        skimmed = 0
        if config.skim_fee > 0 and not config.paused.fee_skim:
            result, state.skim = skim_with_dust_carry(realized_output_amount, config.skim_fee, state.skim)
            skimmed = result.skimmed_amount
            stages.append(SettlementStage.FEE_SKIM)
            if skimmed > 0:
                self.emit(
                    EngineEvent(
                        event=Event.FEE_SKIMMED,
                        market_id=market_id,
                        timestamp=now,
                        amount=skimmed,
                        fee=config.skim_fee,
                    )
                )

        return SettlementResult(
            market_id=market_id,
            volume_recorded=True,
            period_rolled=rolled,
            snapshot_recorded=recorded,
            snapshot_interval=interval,
            skimmed_amount=skimmed,
            stages=tuple(stages),
        )

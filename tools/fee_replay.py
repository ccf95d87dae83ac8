#!/usr/bin/env python3
"""
Replay a JSON trade trace through the fee engine and print every decision.

Trace format::

    {
      "venue_id": "mainnet",
      "steps": [
        {"op": "signal", "value": 15000000000},
        {"op": "price", "market": "ETH/USDC", "value": 3000000000},
        {"op": "request", "market": "ETH/USDC", "requester": "alice", "now": 100},
        {"op": "settle", "market": "ETH/USDC", "amount": 5000000, "now": 101}
      ]
    }

``signal`` and ``price`` steps update the values the engine's sources return;
the engine still caches the congestion signal for its usual interval.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from feegate.integration.config_loader import LoadedConfig, engine_config_from_mapping, load_engine_config  # noqa: E402
from feegate.integration.engine import FeeEngine  # noqa: E402


def _build_engine(cfg: LoadedConfig, signals: dict[str, int], prices: dict[str, int]) -> FeeEngine:
    return FeeEngine(
        congestion_source=lambda venue_id: signals.get(venue_id, 0),
        price_source=lambda market_id: prices[market_id],
        config=cfg.engine,
        registry=cfg.registry,
    )


def replay(trace: dict[str, Any], cfg: LoadedConfig) -> list[str]:
    venue_id = str(trace.get("venue_id", "default"))
    signals: dict[str, int] = {}
    prices: dict[str, int] = {}
    engine = _build_engine(cfg, signals, prices)

    lines: list[str] = []
    for i, step in enumerate(trace.get("steps", [])):
        op = step.get("op")
        if op == "signal":
            signals[str(step.get("venue_id", venue_id))] = int(step["value"])
        elif op == "price":
            prices[str(step["market"])] = int(step["value"])
        elif op == "request":
            d = engine.on_trade_request(
                str(step["market"]),
                str(step["requester"]),
                venue_id=str(step.get("venue_id", venue_id)),
                now=int(step["now"]),
            )
            lines.append(
                f"[{i}] request market={d.market_id} requester={d.requester_id} fee={d.fee} "
                f"tier={d.tier.value} strategy={d.strategy.value} penalty={d.penalty_applied} "
                f"breaker={d.circuit_breaker_applied}"
            )
        elif op == "settle":
            r = engine.on_trade_settled(str(step["market"]), int(step["amount"]), now=int(step["now"]))
            lines.append(
                f"[{i}] settle market={r.market_id} rolled={r.period_rolled} "
                f"snapshot={r.snapshot_recorded} skimmed={r.skimmed_amount}"
            )
        else:
            raise ValueError(f"step {i}: unknown op {op!r}")
    return lines


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Replay a trade trace through the fee engine.")
    ap.add_argument("trace", type=Path, help="JSON trace file")
    ap.add_argument("--config", type=Path, default=None, help="YAML engine config")
    ap.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    cfg = load_engine_config(args.config) if args.config is not None else engine_config_from_mapping({})
    trace = json.loads(args.trace.read_text(encoding="utf-8"))
    if not isinstance(trace, dict):
        print("[fee-replay] FAIL: trace must be a JSON object", file=sys.stderr)
        return 2

    for line in replay(trace, cfg):
        print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

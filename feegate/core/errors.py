"""Exception types for the fee decision engine.

Configuration problems are rejected at the administrative boundary with
``ConfigInvariantError``. ``FeeOverflowError`` and ``FeeBoundError`` signal
defects in the decision path and are never caught by the engine.
"""

from __future__ import annotations


class FeeGateError(Exception):
    """Base class for engine errors."""


class ConfigInvariantError(FeeGateError, ValueError):
    """Raised when a configuration value violates an ordering or range invariant."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"config invariant violations: {', '.join(violations)}")


class FeeOverflowError(FeeGateError, ArithmeticError):
    """Raised when an intermediate value leaves its representable range."""


class FeeBoundError(FeeGateError, AssertionError):
    """Raised when a finalized fee exceeds a bound the caps should make unreachable."""


class UnknownMarketError(FeeGateError, KeyError):
    """Raised when a settlement arrives for a market with no recorded state."""
